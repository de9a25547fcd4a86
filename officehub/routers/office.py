from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from officehub.db import get_db
from officehub.models import LeaveStatus, TaskStatus
from officehub.repository import InsertResult
from officehub.schemas import (
    DeleteResultRead,
    InsertResultRead,
    LeaveCreate,
    LeaveRead,
    TaskCreate,
    TaskRead,
    TaskStatusUpdate,
    TaskUpdate,
    TeamBatchUpdateRequest,
    TeamBatchUpdateResponse,
    TeamMemberDeleteResponse,
    TeamMemberRead,
    TeamMemberUpsert,
    UpdateResultRead,
    UserApproveRequest,
    UserCreate,
    UserRead,
    UserUpdate,
)
from officehub.services.leaves import create_leave, list_leaves, set_leave_status
from officehub.services.tasks import (
    create_task,
    delete_task,
    list_tasks,
    update_task,
    update_task_status,
)
from officehub.services.team_structure import (
    batch_update_team_structure,
    list_team_structure,
    remove_team_member,
    upsert_team_member,
)
from officehub.services.users import (
    approve_user,
    create_user,
    delete_user,
    get_user,
    get_user_by_email,
    list_users,
    update_user,
)

router = APIRouter()


@router.get("/users", response_model=list[UserRead], tags=["users"])
def users_list(email: str | None = Query(default=None), db: Session = Depends(get_db)):
    return list_users(db, email=email)


@router.get("/users/{user_id}", response_model=UserRead, tags=["users"])
def users_get(user_id: int, db: Session = Depends(get_db)):
    return get_user(db, user_id)


@router.post("/users", response_model=InsertResultRead, tags=["users"])
def users_create(payload: UserCreate, db: Session = Depends(get_db)):
    return create_user(db, payload)


@router.put("/users/approve/{user_id}", response_model=UpdateResultRead, tags=["users"])
def users_approve(user_id: int, payload: UserApproveRequest, db: Session = Depends(get_db)):
    return approve_user(db, user_id, payload)


@router.put("/users/{user_id}", response_model=UpdateResultRead, tags=["users"])
def users_update(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    return update_user(db, user_id, payload)


@router.delete("/users/{user_id}", response_model=DeleteResultRead, tags=["users"])
def users_delete(user_id: int, db: Session = Depends(get_db)):
    return delete_user(db, user_id)


@router.get("/user-by-email", response_model=UserRead, tags=["users"])
def user_by_email(email: str | None = Query(default=None), db: Session = Depends(get_db)):
    return get_user_by_email(db, email)


@router.get("/tasks", response_model=list[TaskRead], tags=["tasks"])
def tasks_list(
    assignee_id: str | None = Query(default=None),
    assigner_id: str | None = Query(default=None),
    status: TaskStatus | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return list_tasks(db, assignee_id=assignee_id, assigner_id=assigner_id, status=status)


@router.post("/tasks", response_model=InsertResultRead, tags=["tasks"])
def tasks_create(payload: TaskCreate, db: Session = Depends(get_db)):
    return create_task(db, payload)


@router.put("/tasks/{task_id}", response_model=UpdateResultRead, tags=["tasks"])
def tasks_update(task_id: int, payload: TaskUpdate, db: Session = Depends(get_db)):
    return update_task(db, task_id, payload)


@router.patch("/tasks/{task_id}/status", response_model=UpdateResultRead, tags=["tasks"])
def tasks_update_status(task_id: int, payload: TaskStatusUpdate, db: Session = Depends(get_db)):
    return update_task_status(db, task_id, payload)


@router.delete("/tasks/{task_id}", response_model=DeleteResultRead, tags=["tasks"])
def tasks_delete(task_id: int, db: Session = Depends(get_db)):
    return delete_task(db, task_id)


@router.post("/add-leave", response_model=InsertResultRead, tags=["leaves"])
def leaves_add(payload: LeaveCreate, db: Session = Depends(get_db)):
    return create_leave(db, payload)


@router.get("/leaves", response_model=list[LeaveRead], tags=["leaves"])
def leaves_list(db: Session = Depends(get_db)):
    return list_leaves(db)


@router.get("/leaves-email", response_model=list[LeaveRead], tags=["leaves"])
def leaves_by_email(email: str = Query(min_length=1), db: Session = Depends(get_db)):
    return list_leaves(db, email=email)


@router.get("/pending-leaves", response_model=list[LeaveRead], tags=["leaves"])
def leaves_pending(email: str = Query(min_length=1), db: Session = Depends(get_db)):
    return list_leaves(db, email=email, status=LeaveStatus.PENDING)


@router.patch("/approve-leaves/{leave_id}", response_model=UpdateResultRead, tags=["leaves"])
def leaves_approve(leave_id: int, db: Session = Depends(get_db)):
    return set_leave_status(db, leave_id, LeaveStatus.APPROVED)


@router.patch("/reject-leaves/{leave_id}", response_model=UpdateResultRead, tags=["leaves"])
def leaves_reject(leave_id: int, db: Session = Depends(get_db)):
    return set_leave_status(db, leave_id, LeaveStatus.REJECTED)


@router.get("/team-structure", response_model=list[TeamMemberRead], tags=["team"])
def team_structure(db: Session = Depends(get_db)):
    return list_team_structure(db)


@router.post("/update-team-structure", response_model=InsertResultRead | UpdateResultRead, tags=["team"])
def team_structure_upsert(payload: TeamMemberUpsert, db: Session = Depends(get_db)):
    result = upsert_team_member(db, payload)
    if isinstance(result, InsertResult):
        return InsertResultRead(acknowledged=result.acknowledged, inserted_id=result.inserted_id)
    return UpdateResultRead(
        acknowledged=result.acknowledged,
        matched_count=result.matched_count,
        modified_count=result.modified_count,
    )


@router.post("/batch-update-team-structure", response_model=TeamBatchUpdateResponse, tags=["team"])
def team_structure_batch(payload: TeamBatchUpdateRequest, db: Session = Depends(get_db)):
    return batch_update_team_structure(db, payload)


def _removal_response(user_email: str, db: Session) -> TeamMemberDeleteResponse:
    result = remove_team_member(db, user_email)
    return TeamMemberDeleteResponse(
        message="User removed from team structure",
        result=DeleteResultRead(acknowledged=result.acknowledged, deleted_count=result.deleted_count),
    )


@router.delete("/team-structure/{user_email}", response_model=TeamMemberDeleteResponse, tags=["team"])
def team_structure_remove(user_email: str, db: Session = Depends(get_db)):
    return _removal_response(user_email, db)


@router.delete("/team-structure-rsm/{user_email}", response_model=TeamMemberDeleteResponse, tags=["team"])
def team_structure_remove_rsm(user_email: str, db: Session = Depends(get_db)):
    return _removal_response(user_email, db)
