from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from officehub.errors import bad_request
from officehub.models import SalesEntry, Target
from officehub.repository import DeleteResult, InsertResult, Repository, UpdateResult
from officehub.schemas import SalesFigures, SalesEntryCreate, TargetCreate, TargetGoals

DEPOSIT_FIELDS = (
    "savings_account_deposit",
    "pra_account_deposit",
    "current_account_deposit",
    "snd_account_deposit",
    "fdr_term_deposit",
    "dps_deposit",
)
ACCOUNT_OPENED_FIELDS = (
    "savings_account_opened",
    "pra_account_opened",
    "current_account_opened",
    "snd_account_opened",
    "fdr_term_account_opened",
    "dps_account_opened",
)


def _sales_values(figures: SalesFigures) -> dict[str, Any]:
    values = figures.model_dump(include=set(SalesFigures.model_fields))
    # Zero or missing totals fall back to the per-account sums.
    if not values["today_deposit"]:
        values["today_deposit"] = sum(values[field] for field in DEPOSIT_FIELDS)
    if not values["total_accounts"]:
        values["total_accounts"] = sum(values[field] for field in ACCOUNT_OPENED_FIELDS)
    return values


def _date_range(column: Any, start_date: date | None, end_date: date | None) -> list[Any]:
    criteria = []
    if start_date is not None:
        criteria.append(column >= start_date)
    if end_date is not None:
        criteria.append(column <= end_date)
    return criteria


def list_sales(
    db: Session,
    *,
    user_email: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[SalesEntry]:
    return Repository(db, SalesEntry).find(
        SalesEntry.user_email == user_email,
        *_date_range(SalesEntry.date, start_date, end_date),
        order_by=(SalesEntry.date.desc(),),
    )


def list_all_sales(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    user_role: str | None = None,
) -> list[SalesEntry]:
    criteria = _date_range(SalesEntry.date, start_date, end_date)
    if user_role:
        criteria.append(SalesEntry.user_role == user_role)
    return Repository(db, SalesEntry).find(*criteria, order_by=(SalesEntry.date.desc(), SalesEntry.id.desc()))


def create_sales_entry(db: Session, payload: SalesEntryCreate) -> InsertResult:
    sales = Repository(db, SalesEntry)
    conflict_message = "Sales entry already exists for this date"
    if sales.exists(SalesEntry.user_email == payload.user_email, SalesEntry.date == payload.date):
        raise bad_request("SALES_ENTRY_EXISTS", conflict_message)

    entry = SalesEntry(
        user_email=payload.user_email,
        user_name=payload.user_name,
        user_role=payload.user_role,
        date=payload.date,
        **_sales_values(payload),
    )
    return sales.insert(entry, conflict_code="SALES_ENTRY_EXISTS", conflict_message=conflict_message)


def update_sales_entry(db: Session, entry_id: int, payload: SalesFigures) -> UpdateResult:
    sales = Repository(db, SalesEntry)
    entry = sales.get_or_raise(entry_id, code="SALES_ENTRY_NOT_FOUND", message="Sales entry not found")
    return sales.update(entry, _sales_values(payload))


def delete_sales_entry(db: Session, entry_id: int) -> DeleteResult:
    sales = Repository(db, SalesEntry)
    entry = sales.get_or_raise(entry_id, code="SALES_ENTRY_NOT_FOUND", message="Sales entry not found")
    return sales.delete(entry)


def list_targets(
    db: Session,
    *,
    user_email: str | None = None,
    manager_email: str | None = None,
    month: int | None = None,
    year: int | None = None,
) -> list[Target]:
    criteria = []
    if user_email:
        criteria.append(Target.user_email == user_email)
    if manager_email:
        criteria.append(Target.manager_email == manager_email)
    if month is not None and year is not None:
        criteria.extend([Target.month == month, Target.year == year])
    return Repository(db, Target).find(
        *criteria,
        order_by=(Target.year.desc(), Target.month.desc(), Target.id.asc()),
    )


def create_target(db: Session, payload: TargetCreate) -> InsertResult:
    targets = Repository(db, Target)
    conflict_message = "Target already exists for this month"
    if targets.exists(
        Target.user_email == payload.user_email,
        Target.month == payload.month,
        Target.year == payload.year,
    ):
        raise bad_request("TARGET_EXISTS", conflict_message)
    target = Target(**payload.model_dump())
    return targets.insert(target, conflict_code="TARGET_EXISTS", conflict_message=conflict_message)


def update_target(db: Session, target_id: int, payload: TargetGoals) -> UpdateResult:
    targets = Repository(db, Target)
    target = targets.get_or_raise(target_id, code="TARGET_NOT_FOUND", message="Target not found")
    return targets.update(target, payload.model_dump())


def delete_target(db: Session, target_id: int) -> DeleteResult:
    targets = Repository(db, Target)
    target = targets.get_or_raise(target_id, code="TARGET_NOT_FOUND", message="Target not found")
    return targets.delete(target)
