from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from officehub.db import Base
from officehub.errors import ApiError

ModelT = TypeVar("ModelT", bound=Base)


@dataclass(frozen=True, slots=True)
class InsertResult:
    inserted_id: int
    acknowledged: bool = True


@dataclass(frozen=True, slots=True)
class UpdateResult:
    matched_count: int
    modified_count: int
    acknowledged: bool = True


@dataclass(frozen=True, slots=True)
class DeleteResult:
    deleted_count: int
    acknowledged: bool = True


class Repository(Generic[ModelT]):
    """Collection-style access to one mapped table.

    Write methods commit immediately and answer with driver-style result
    objects (inserted id, matched/modified counts, deleted count).
    """

    def __init__(self, db: Session, model: type[ModelT]) -> None:
        self.db = db
        self.model = model

    def get(self, entity_id: int) -> ModelT | None:
        return self.db.get(self.model, entity_id)

    def get_or_raise(self, entity_id: int, *, code: str, message: str) -> ModelT:
        entity = self.get(entity_id)
        if entity is None:
            raise ApiError(status_code=404, code=code, message=message)
        return entity

    def find_one(self, *criteria: Any) -> ModelT | None:
        return self.db.scalar(select(self.model).where(*criteria).limit(1))

    def find(
        self,
        *criteria: Any,
        order_by: Sequence[Any] = (),
        limit: int | None = None,
    ) -> list[ModelT]:
        stmt = select(self.model).where(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.scalars(stmt).all())

    def exists(self, *criteria: Any) -> bool:
        return self.find_one(*criteria) is not None

    def insert(
        self,
        entity: ModelT,
        *,
        conflict_code: str | None = None,
        conflict_message: str | None = None,
    ) -> InsertResult:
        self.db.add(entity)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if conflict_code is None:
                raise
            raise ApiError(
                status_code=400,
                code=conflict_code,
                message=conflict_message or "Record already exists.",
            )
        self.db.refresh(entity)
        return InsertResult(inserted_id=entity.id)

    def update(self, entity: ModelT, values: dict[str, Any]) -> UpdateResult:
        modified = self._apply(entity, values)
        if modified:
            self._commit_update()
            self.db.refresh(entity)
        return UpdateResult(matched_count=1, modified_count=1 if modified else 0)

    def update_where(self, criteria: Sequence[Any], values: dict[str, Any]) -> UpdateResult:
        entities = self.find(*criteria)
        modified_count = sum(1 for entity in entities if self._apply(entity, values))
        if modified_count:
            self._commit_update()
        return UpdateResult(matched_count=len(entities), modified_count=modified_count)

    def delete(self, entity: ModelT) -> DeleteResult:
        self.db.delete(entity)
        self.db.commit()
        return DeleteResult(deleted_count=1)

    def delete_where(self, *criteria: Any) -> DeleteResult:
        entities = self.find(*criteria)
        for entity in entities:
            self.db.delete(entity)
        if entities:
            self.db.commit()
        return DeleteResult(deleted_count=len(entities))

    def _commit_update(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ApiError(
                status_code=400,
                code="INVALID_UPDATE",
                message="Update violates a required field or unique constraint.",
            ) from exc

    @staticmethod
    def _apply(entity: Any, values: dict[str, Any]) -> bool:
        modified = False
        for key, value in values.items():
            if getattr(entity, key) != value:
                setattr(entity, key, value)
                modified = True
        return modified
