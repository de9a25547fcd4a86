from __future__ import annotations

from sqlalchemy.orm import Session

from officehub.errors import bad_request, not_found
from officehub.models import User, UserStatus
from officehub.repository import DeleteResult, InsertResult, Repository, UpdateResult
from officehub.schemas import UserApproveRequest, UserCreate, UserUpdate

USER_NOT_FOUND = ("USER_NOT_FOUND", "User not found")


def list_users(db: Session, *, email: str | None = None) -> list[User]:
    criteria = [User.email_address == email] if email else []
    return Repository(db, User).find(*criteria, order_by=(User.id.asc(),))


def get_user(db: Session, user_id: int) -> User:
    code, message = USER_NOT_FOUND
    return Repository(db, User).get_or_raise(user_id, code=code, message=message)


def get_user_by_email(db: Session, email: str | None) -> User:
    if not email:
        raise bad_request("EMAIL_REQUIRED", "Email is required")
    user = Repository(db, User).find_one(User.email_address == email)
    if user is None:
        raise not_found(*USER_NOT_FOUND)
    return user


def create_user(db: Session, payload: UserCreate) -> InsertResult:
    return Repository(db, User).insert(
        User(**payload.model_dump()),
        conflict_code="USER_EXISTS",
        conflict_message="A user with this email already exists",
    )


def update_user(db: Session, user_id: int, payload: UserUpdate) -> UpdateResult:
    users = Repository(db, User)
    user = get_user(db, user_id)
    values = payload.model_dump(exclude_unset=True)
    if values.get("email_address") and values["email_address"] != user.email_address:
        if users.exists(User.email_address == values["email_address"]):
            raise bad_request("USER_EXISTS", "A user with this email already exists")
    return users.update(user, values)


def approve_user(db: Session, user_id: int, payload: UserApproveRequest) -> UpdateResult:
    user = get_user(db, user_id)
    return Repository(db, User).update(
        user,
        {"user_role": payload.user_role, "status": UserStatus.APPROVED},
    )


def delete_user(db: Session, user_id: int) -> DeleteResult:
    user = get_user(db, user_id)
    return Repository(db, User).delete(user)
