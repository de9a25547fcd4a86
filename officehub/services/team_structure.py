from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from officehub.errors import ApiError, not_found
from officehub.models import TeamMember, User
from officehub.repository import DeleteResult, InsertResult, Repository, UpdateResult
from officehub.schemas import (
    TeamBatchError,
    TeamBatchResults,
    TeamBatchUpdateRequest,
    TeamBatchUpdateResponse,
    TeamMemberUpsert,
)

logger = logging.getLogger("officehub.team_structure")


def list_team_structure(db: Session) -> list[TeamMember]:
    return Repository(db, TeamMember).find(order_by=(TeamMember.id.asc(),))


def upsert_team_member(db: Session, payload: TeamMemberUpsert) -> InsertResult | UpdateResult:
    """Update the manager of an existing member, or add the member."""
    members = Repository(db, TeamMember)
    manager_values = {
        "manager_email": payload.manager_email,
        "manager_name": payload.manager_name,
        "manager_role": payload.manager_role,
    }
    existing = members.find_one(TeamMember.user_email == payload.user_email)
    if existing is not None:
        return members.update(existing, manager_values)
    return members.insert(
        TeamMember(
            user_email=payload.user_email,
            user_name=payload.user_name,
            user_role=payload.user_role,
            **manager_values,
        ),
        conflict_code="TEAM_MEMBER_EXISTS",
        conflict_message="User already exists in team structure",
    )


def batch_update_team_structure(db: Session, payload: TeamBatchUpdateRequest) -> TeamBatchUpdateResponse:
    users = Repository(db, User).find(User.id.in_(payload.user_ids), order_by=(User.id.asc(),))
    if not users:
        raise not_found("USERS_NOT_FOUND", "No valid users found with the provided IDs")

    results = TeamBatchResults()
    for user in users:
        upsert = TeamMemberUpsert(
            user_email=user.email_address,
            user_name=user.full_name or user.email_address,
            user_role=user.user_role,
            manager_email=payload.manager_email,
            manager_name=payload.manager_name,
            manager_role=payload.manager_role,
        )
        try:
            result = upsert_team_member(db, upsert)
        except (ApiError, SQLAlchemyError) as exc:
            db.rollback()
            logger.warning(
                "team_structure_batch_item_failed",
                extra={"user_email": user.email_address, "error": str(exc)},
            )
            results.errors.append(TeamBatchError(user_email=user.email_address, error=str(exc)))
            continue
        if isinstance(result, InsertResult):
            results.created += 1
        else:
            results.updated += 1

    message = (
        f"Batch update completed. Updated: {results.updated}, "
        f"Created: {results.created}, Errors: {len(results.errors)}"
    )
    return TeamBatchUpdateResponse(message=message, results=results)


def remove_team_member(db: Session, user_email: str) -> DeleteResult:
    result = Repository(db, TeamMember).delete_where(TeamMember.user_email == user_email)
    if result.deleted_count == 0:
        raise not_found("TEAM_MEMBER_NOT_FOUND", "User not found in team structure")
    return result
