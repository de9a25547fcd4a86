from __future__ import annotations

from sqlalchemy import case, or_
from sqlalchemy.orm import Session

from officehub.models import AgentBranchTask, Task, TaskStatus
from officehub.repository import DeleteResult, InsertResult, Repository, UpdateResult
from officehub.schemas import TaskCreate, TaskStatusUpdate, TaskUpdate

_PENDING_FIRST = case((Task.status == TaskStatus.PENDING, 0), else_=1)


def list_tasks(
    db: Session,
    *,
    assignee_id: str | None = None,
    assigner_id: str | None = None,
    status: TaskStatus | None = None,
) -> list[Task]:
    criteria = []
    if assignee_id and assigner_id:
        criteria.append(or_(Task.assignee_id == assignee_id, Task.assigner_id == assigner_id))
    elif assignee_id:
        criteria.append(Task.assignee_id == assignee_id)
    elif assigner_id:
        criteria.append(Task.assigner_id == assigner_id)
    if status is not None:
        criteria.append(Task.status == status)
    return Repository(db, Task).find(
        *criteria,
        order_by=(_PENDING_FIRST, Task.due_date.asc(), Task.id.asc()),
    )


def create_task(db: Session, payload: TaskCreate) -> InsertResult:
    task = Task(**payload.model_dump(), status=TaskStatus.PENDING)
    return Repository(db, Task).insert(task)


def _get_task(db: Session, task_id: int) -> Task:
    return Repository(db, Task).get_or_raise(task_id, code="TASK_NOT_FOUND", message="Task not found")


def update_task(db: Session, task_id: int, payload: TaskUpdate) -> UpdateResult:
    task = _get_task(db, task_id)
    return Repository(db, Task).update(task, payload.model_dump())


def update_task_status(db: Session, task_id: int, payload: TaskStatusUpdate) -> UpdateResult:
    task = _get_task(db, task_id)
    return Repository(db, Task).update(task, {"status": payload.status})


def delete_task(db: Session, task_id: int) -> DeleteResult:
    task = _get_task(db, task_id)
    return Repository(db, Task).delete(task)


def purge_completed_tasks(db: Session) -> dict[str, int]:
    """Delete completed tasks and completed agent-branch tasks."""
    tasks = Repository(db, Task).delete_where(Task.status == TaskStatus.COMPLETED)
    branch_tasks = Repository(db, AgentBranchTask).delete_where(AgentBranchTask.status == TaskStatus.COMPLETED)
    return {"tasks": tasks.deleted_count, "agent_branch_tasks": branch_tasks.deleted_count}
