from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from officehub.db import get_db
from officehub.schemas import (
    DeleteResultRead,
    InsertResultRead,
    PerformanceResponse,
    SalesEntryCreate,
    SalesEntryRead,
    SalesEntryUpdate,
    TargetCreate,
    TargetRead,
    TargetUpdate,
    TeamPerformanceItem,
    UpdateResultRead,
)
from officehub.services.performance import get_performance, get_team_performance
from officehub.services.sales import (
    create_sales_entry,
    create_target,
    delete_sales_entry,
    delete_target,
    list_all_sales,
    list_sales,
    list_targets,
    update_sales_entry,
    update_target,
)

router = APIRouter(tags=["performance"])


@router.get("/sales", response_model=list[SalesEntryRead])
def sales_for_user(
    user_email: str = Query(min_length=1),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return list_sales(db, user_email=user_email, start_date=start_date, end_date=end_date)


@router.get("/sales/all", response_model=list[SalesEntryRead])
def sales_all(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    user_role: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return list_all_sales(db, start_date=start_date, end_date=end_date, user_role=user_role)


@router.post("/sales", response_model=InsertResultRead)
def sales_create(payload: SalesEntryCreate, db: Session = Depends(get_db)):
    return create_sales_entry(db, payload)


@router.put("/sales/{entry_id}", response_model=UpdateResultRead)
def sales_update(entry_id: int, payload: SalesEntryUpdate, db: Session = Depends(get_db)):
    return update_sales_entry(db, entry_id, payload)


@router.delete("/sales/{entry_id}", response_model=DeleteResultRead)
def sales_delete(entry_id: int, db: Session = Depends(get_db)):
    return delete_sales_entry(db, entry_id)


@router.get("/targets", response_model=list[TargetRead])
def targets_list(
    user_email: str | None = Query(default=None),
    manager_email: str | None = Query(default=None),
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=2000, le=2100),
    db: Session = Depends(get_db),
):
    return list_targets(db, user_email=user_email, manager_email=manager_email, month=month, year=year)


@router.post("/targets", response_model=InsertResultRead)
def targets_create(payload: TargetCreate, db: Session = Depends(get_db)):
    return create_target(db, payload)


@router.put("/targets/{target_id}", response_model=UpdateResultRead)
def targets_update(target_id: int, payload: TargetUpdate, db: Session = Depends(get_db)):
    return update_target(db, target_id, payload)


@router.delete("/targets/{target_id}", response_model=DeleteResultRead)
def targets_delete(target_id: int, db: Session = Depends(get_db)):
    return delete_target(db, target_id)


@router.get("/performance", response_model=PerformanceResponse)
def performance(
    user_email: str = Query(min_length=1),
    month: int = Query(ge=1, le=12),
    year: int = Query(ge=2000, le=2100),
    db: Session = Depends(get_db),
) -> PerformanceResponse:
    return get_performance(db, user_email=user_email, month=month, year=year)


@router.get("/team-performance", response_model=list[TeamPerformanceItem])
def team_performance(
    manager_email: str = Query(min_length=1),
    month: int = Query(ge=1, le=12),
    year: int = Query(ge=2000, le=2100),
    db: Session = Depends(get_db),
) -> list[TeamPerformanceItem]:
    return get_team_performance(db, manager_email=manager_email, month=month, year=year)
