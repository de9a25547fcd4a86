import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from officehub.db import Base, get_db
from officehub.errors import bad_request
from officehub.models import AgentBranch, AgentBranchTask, BranchStatus, Notice, TaskStatus, Ticket, TicketStatus
from officehub.repository import Repository
from officehub.schemas import (
    AgentBranchCreate,
    AgentBranchRead,
    AgentBranchTaskCreate,
    AgentBranchTaskRead,
    AgentBranchTaskUpdate,
    AgentBranchUpdate,
    DeleteResultRead,
    InsertResultRead,
    NoticeCreate,
    NoticeRead,
    NoticeUpdate,
    StatusUpdateRequest,
    TicketCreate,
    TicketRead,
    TicketUpdate,
    UpdateResultRead,
)


@dataclass(frozen=True)
class Reference:
    model: type[Base]
    code: str
    message: str


@dataclass(frozen=True)
class CrudResource:
    """One table exposed as list/get/create/update/delete routes."""

    path: str
    tag: str
    model: type[Base]
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    read_schema: type[BaseModel]
    not_found_code: str
    not_found_message: str
    filter_fields: tuple[str, ...] = ()
    status_enum: type[enum.Enum] | None = None
    conflict_code: str | None = None
    conflict_message: str | None = None
    references: dict[str, Reference] = field(default_factory=dict)


def _coerce_filter(model: type[Base], field_name: str, raw: str) -> Any:
    column = getattr(model, field_name)
    python_type = column.type.python_type
    try:
        if python_type is bool:
            return raw.strip().lower() in {"1", "true", "yes"}
        if python_type is date:
            return date.fromisoformat(raw)
        return python_type(raw)
    except ValueError as exc:
        raise bad_request("INVALID_FILTER", f"Invalid value for {field_name}: {raw}") from exc


def _check_references(db: Session, resource: CrudResource, values: dict[str, Any]) -> None:
    for field_name, reference in resource.references.items():
        if field_name not in values:
            continue
        Repository(db, reference.model).get_or_raise(
            values[field_name],
            code=reference.code,
            message=reference.message,
        )


def build_crud_router(resource: CrudResource) -> APIRouter:
    router = APIRouter(prefix=resource.path, tags=[resource.tag])
    model = resource.model

    def _get(db: Session, item_id: int) -> Any:
        return Repository(db, model).get_or_raise(
            item_id,
            code=resource.not_found_code,
            message=resource.not_found_message,
        )

    def list_items(request: Request, db: Session = Depends(get_db)):
        criteria = []
        for field_name in resource.filter_fields:
            raw = request.query_params.get(field_name)
            if raw is None or raw == "":
                continue
            criteria.append(getattr(model, field_name) == _coerce_filter(model, field_name, raw))
        return Repository(db, model).find(*criteria, order_by=(model.id.desc(),))

    def get_item(item_id: int, db: Session = Depends(get_db)):
        return _get(db, item_id)

    def create_item(payload: resource.create_schema, db: Session = Depends(get_db)):  # type: ignore[name-defined]
        values = payload.model_dump()
        _check_references(db, resource, values)
        return Repository(db, model).insert(
            model(**values),
            conflict_code=resource.conflict_code,
            conflict_message=resource.conflict_message,
        )

    def update_item(
        item_id: int,
        payload: resource.update_schema,  # type: ignore[name-defined]
        db: Session = Depends(get_db),
    ):
        item = _get(db, item_id)
        values = payload.model_dump(exclude_unset=True)
        _check_references(db, resource, values)
        return Repository(db, model).update(item, values)

    def delete_item(item_id: int, db: Session = Depends(get_db)):
        return Repository(db, model).delete(_get(db, item_id))

    router.add_api_route("", list_items, methods=["GET"], response_model=list[resource.read_schema])
    router.add_api_route("", create_item, methods=["POST"], response_model=InsertResultRead)
    router.add_api_route("/{item_id}", get_item, methods=["GET"], response_model=resource.read_schema)
    router.add_api_route("/{item_id}", update_item, methods=["PUT"], response_model=UpdateResultRead)
    router.add_api_route("/{item_id}", delete_item, methods=["DELETE"], response_model=DeleteResultRead)

    status_enum = resource.status_enum
    if status_enum is not None:

        def update_item_status(item_id: int, payload: StatusUpdateRequest, db: Session = Depends(get_db)):
            try:
                new_status = status_enum(payload.status)
            except ValueError as exc:
                allowed = ", ".join(member.value for member in status_enum)
                raise bad_request("INVALID_STATUS", f"Valid status is required ({allowed})") from exc
            return Repository(db, model).update(_get(db, item_id), {"status": new_status})

        router.add_api_route(
            "/{item_id}/status",
            update_item_status,
            methods=["PATCH"],
            response_model=UpdateResultRead,
        )

    return router


NOTICES = CrudResource(
    path="/notices",
    tag="notices",
    model=Notice,
    create_schema=NoticeCreate,
    update_schema=NoticeUpdate,
    read_schema=NoticeRead,
    not_found_code="NOTICE_NOT_FOUND",
    not_found_message="Notice not found",
    filter_fields=("audience_role", "posted_by_email", "is_pinned"),
)

TICKETS = CrudResource(
    path="/tickets",
    tag="tickets",
    model=Ticket,
    create_schema=TicketCreate,
    update_schema=TicketUpdate,
    read_schema=TicketRead,
    not_found_code="TICKET_NOT_FOUND",
    not_found_message="Ticket not found",
    filter_fields=("raised_by_email", "assignee_email", "status", "priority", "category"),
    status_enum=TicketStatus,
)

AGENT_BRANCHES = CrudResource(
    path="/agent-branches",
    tag="agent-branches",
    model=AgentBranch,
    create_schema=AgentBranchCreate,
    update_schema=AgentBranchUpdate,
    read_schema=AgentBranchRead,
    not_found_code="AGENT_BRANCH_NOT_FOUND",
    not_found_message="Agent branch not found",
    filter_fields=("manager_email", "agent_email", "status"),
    status_enum=BranchStatus,
    conflict_code="AGENT_BRANCH_EXISTS",
    conflict_message="An agent branch with this code already exists",
)

AGENT_BRANCH_TASKS = CrudResource(
    path="/agent-branch-tasks",
    tag="agent-branch-tasks",
    model=AgentBranchTask,
    create_schema=AgentBranchTaskCreate,
    update_schema=AgentBranchTaskUpdate,
    read_schema=AgentBranchTaskRead,
    not_found_code="AGENT_BRANCH_TASK_NOT_FOUND",
    not_found_message="Agent branch task not found",
    filter_fields=("branch_id", "assignee_id", "assigner_id", "status"),
    status_enum=TaskStatus,
    references={
        "branch_id": Reference(AgentBranch, "AGENT_BRANCH_NOT_FOUND", "Agent branch not found"),
    },
)

RESOURCES = (NOTICES, TICKETS, AGENT_BRANCHES, AGENT_BRANCH_TASKS)
