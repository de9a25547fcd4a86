from __future__ import annotations

from sqlalchemy.orm import Session

from officehub.models import Leave, LeaveStatus
from officehub.repository import InsertResult, Repository, UpdateResult
from officehub.schemas import LeaveCreate


def create_leave(db: Session, payload: LeaveCreate) -> InsertResult:
    leave = Leave(
        email=payload.email,
        user_name=payload.user_name,
        user_role=payload.user_role,
        leave_type=payload.leave_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        status=LeaveStatus.PENDING,
    )
    return Repository(db, Leave).insert(leave)


def list_leaves(
    db: Session,
    *,
    email: str | None = None,
    status: LeaveStatus | None = None,
) -> list[Leave]:
    criteria = []
    if email is not None:
        criteria.append(Leave.email == email)
    if status is not None:
        criteria.append(Leave.status == status)
    return Repository(db, Leave).find(
        *criteria,
        order_by=(Leave.start_date.asc(), Leave.id.asc()),
    )


def set_leave_status(db: Session, leave_id: int, status: LeaveStatus) -> UpdateResult:
    leaves = Repository(db, Leave)
    leave = leaves.get_or_raise(leave_id, code="LEAVE_NOT_FOUND", message="Leave not found")
    return leaves.update(leave, {"status": status})
