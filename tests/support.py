from __future__ import annotations

import unittest
from collections.abc import Generator
from zoneinfo import ZoneInfo

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from officehub import models  # noqa: F401
from officehub.db import Base, get_db
from officehub.main import app
from officehub.models import User, UserStatus
from officehub.services.attendance_state import WorkdayPolicy

UTC_POLICY = WorkdayPolicy(timezone=ZoneInfo("UTC"))


class SqliteDatabase:
    """Fresh in-memory schema shared by every session of one test."""

    def __init__(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    def session(self) -> Session:
        return self.session_factory()

    def override_get_db(self):  # type: ignore[no-untyped-def]
        def _override() -> Generator[Session, None, None]:
            db = self.session_factory()
            try:
                yield db
            finally:
                db.close()

        return _override

    def dispose(self) -> None:
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()


def add_user(
    db: Session,
    email: str,
    *,
    full_name: str = "",
    user_role: str = "user",
    status: UserStatus = UserStatus.APPROVED,
) -> User:
    user = User(email_address=email, full_name=full_name or email.split("@")[0], user_role=user_role, status=status)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


class ApiTestCase(unittest.TestCase):
    """Runs the app against a private SQLite database.

    The client is built without entering its context, so startup hooks (schema
    guard and sweep worker) stay off.
    """

    def setUp(self) -> None:
        self.database = SqliteDatabase()
        app.dependency_overrides[get_db] = self.database.override_get_db()
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.database.dispose()

    def assertApiError(self, response, status_code: int, code: str) -> dict:  # type: ignore[no-untyped-def]
        self.assertEqual(response.status_code, status_code, response.text)
        body = response.json()
        self.assertEqual(body["code"], code)
        self.assertIn("request_id", body)
        return body
