from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from officehub.db import get_db
from officehub.schemas import (
    AttendanceRecordRead,
    AttendanceStatusResponse,
    AutoAbsentCheckResponse,
    AutoOutRequest,
    AutoOutResponse,
    CheckInRequest,
    CheckInResponse,
    CheckOutRequest,
    InsertResultRead,
    LocationChangeRead,
    LocationChangeRequest,
    MarkAbsentRequest,
    MarkAbsentResponse,
    MonthlyAttendanceSummary,
    UpdateResultRead,
)
from officehub.services.attendance import (
    auto_checkout_absent_user,
    check_auto_absent,
    check_in,
    check_out,
    get_attendance_history,
    get_attendance_status,
    list_all_attendance,
    list_location_changes,
    mark_absent_users,
    record_location_change,
    summarize_attendance_by_month,
)
from officehub.services.attendance_state import get_workday_policy, local_day

router = APIRouter(tags=["attendance"])

# Manual sweeps skip plain users; the scheduled sweep covers every approved user.
MARK_ABSENT_EXCLUDED_ROLE = "user"


@router.get("/attendance/status", response_model=AttendanceStatusResponse)
def attendance_status(
    email: str = Query(min_length=1),
    day: date | None = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
) -> AttendanceStatusResponse:
    return get_attendance_status(db, email=email, day=day)


@router.get("/attendance/check-auto-absent", response_model=AutoAbsentCheckResponse)
def attendance_check_auto_absent(
    email: str = Query(min_length=1),
    db: Session = Depends(get_db),
) -> AutoAbsentCheckResponse:
    return check_auto_absent(db, email=email)


@router.get("/attendance-by-month", response_model=list[MonthlyAttendanceSummary])
def attendance_by_month(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    email: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[MonthlyAttendanceSummary]:
    return summarize_attendance_by_month(db, start_date=start_date, end_date=end_date, email=email)


@router.post("/attendance/check-in", response_model=CheckInResponse, response_model_exclude_none=True)
def attendance_check_in(
    payload: CheckInRequest,
    db: Session = Depends(get_db),
) -> CheckInResponse:
    return check_in(db, payload)


@router.put("/attendance/check-out", response_model=UpdateResultRead)
def attendance_check_out(
    payload: CheckOutRequest,
    db: Session = Depends(get_db),
):
    return check_out(db, payload)


@router.post("/attendance/location-change", response_model=InsertResultRead)
def attendance_location_change(
    payload: LocationChangeRequest,
    db: Session = Depends(get_db),
):
    return record_location_change(db, payload)


@router.get("/attendance/location-changes", response_model=list[LocationChangeRead])
def attendance_location_changes(
    email: str = Query(min_length=1),
    day: date = Query(alias="date"),
    db: Session = Depends(get_db),
):
    return list_location_changes(db, email=email, day=day)


@router.get("/attendance/history", response_model=list[AttendanceRecordRead])
def attendance_history(
    email: str = Query(min_length=1),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[AttendanceRecordRead]:
    return get_attendance_history(db, email=email, start_date=start_date, end_date=end_date)


@router.get("/attendance/all", response_model=list[AttendanceRecordRead])
def attendance_all(
    day: date | None = Query(default=None, alias="date"),
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
) -> list[AttendanceRecordRead]:
    return list_all_attendance(db, day=day, status_filter=status_filter)


@router.post("/attendance/mark-absent", response_model=MarkAbsentResponse)
def attendance_mark_absent(
    payload: MarkAbsentRequest | None = None,
    db: Session = Depends(get_db),
) -> MarkAbsentResponse:
    day = payload.date if payload is not None else None
    if day is None:
        day = local_day(datetime.now(timezone.utc), get_workday_policy())
    results = mark_absent_users(db, day=day, excluded_role=MARK_ABSENT_EXCLUDED_ROLE)
    return MarkAbsentResponse(
        message=f"Marked {len(results)} users as absent",
        results=results,
    )


@router.patch("/attend/auto-out", response_model=AutoOutResponse, response_model_exclude_none=True)
def attend_auto_out(
    payload: AutoOutRequest,
    db: Session = Depends(get_db),
) -> AutoOutResponse:
    return auto_checkout_absent_user(db, payload)
