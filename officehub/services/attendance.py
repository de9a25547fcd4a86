from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from officehub.errors import ApiError
from officehub.models import (
    AttendanceRecord,
    AttendanceStatus,
    LocationChange,
    LocationEventType,
    User,
    UserStatus,
)
from officehub.repository import InsertResult, Repository, UpdateResult
from officehub.schemas import (
    AttendanceRecordRead,
    AttendanceStatusResponse,
    AutoAbsentCheckResponse,
    AutoOutRequest,
    AutoOutResponse,
    CheckInRequest,
    CheckInResponse,
    CheckOutRequest,
    LocationChangeRead,
    LocationChangeRequest,
    MarkedAbsentUser,
    MonthlyAttendanceSummary,
    UpdateResultRead,
)
from officehub.services.attendance_state import (
    ZERO_WORK_HOURS,
    AttendanceState,
    WorkdayPolicy,
    auto_checkout_time,
    compute_attendance_state,
    format_work_hours,
    get_workday_policy,
    is_late_checkin,
    local_day,
    normalize_ts,
)

logger = logging.getLogger("officehub.attendance")

OFFICE_LOCATION = "Office"
ABSENT_LOCATION = "N/A"
AUTO_ABSENT_NOTES = "Automatically marked absent"
LAZY_ABSENT_NOTES = "Automatically marked absent (end of day)"
DEFAULT_SUMMARY_MONTHS = 6


def _records(db: Session) -> Repository[AttendanceRecord]:
    return Repository(db, AttendanceRecord)


def _find_record(db: Session, user_email: str, day: date) -> AttendanceRecord | None:
    return _records(db).find_one(
        AttendanceRecord.user_email == user_email,
        AttendanceRecord.date == day,
    )


def _location_changes_for_day(db: Session, user_email: str, day: date) -> list[LocationChange]:
    return Repository(db, LocationChange).find(
        LocationChange.user_email == user_email,
        LocationChange.date == day,
        order_by=(LocationChange.timestamp.asc(), LocationChange.id.asc()),
    )


def _group_location_changes(
    db: Session,
    records: list[AttendanceRecord],
) -> dict[tuple[str, date], list[LocationChange]]:
    grouped: dict[tuple[str, date], list[LocationChange]] = defaultdict(list)
    if not records:
        return grouped
    emails = {record.user_email for record in records}
    days = {record.date for record in records}
    changes = Repository(db, LocationChange).find(
        LocationChange.user_email.in_(emails),
        LocationChange.date.in_(days),
        order_by=(LocationChange.timestamp.asc(), LocationChange.id.asc()),
    )
    for change in changes:
        grouped[(change.user_email, change.date)].append(change)
    return grouped


def _record_view(record: AttendanceRecord, changes: list[LocationChange]) -> AttendanceRecordRead:
    view = AttendanceRecordRead.model_validate(record)
    view.location_changes = [LocationChangeRead.model_validate(change) for change in changes]
    return view


def _log_location_event(
    db: Session,
    *,
    record: AttendanceRecord,
    event_type: LocationEventType,
    timestamp: datetime,
    location: str,
    location_type: str | None,
    is_outside_office: bool,
    notes: str,
    user_name: str | None = None,
) -> InsertResult:
    event = LocationChange(
        user_email=record.user_email,
        user_name=user_name or record.user_name,
        date=record.date,
        timestamp=normalize_ts(timestamp),
        location=location,
        location_type=location_type,
        is_outside_office=is_outside_office,
        notes=notes,
        type=event_type,
    )
    return Repository(db, LocationChange).insert(event)


def _build_absent_record(user: User, day: date, *, notes: str) -> AttendanceRecord:
    return AttendanceRecord(
        user_email=user.email_address,
        user_name=user.full_name or "Unknown",
        user_role=user.user_role,
        date=day,
        status=AttendanceStatus.ABSENT,
        location=ABSENT_LOCATION,
        is_outside_office=False,
        auto_absent=True,
        notes=notes,
    )


def _insert_lazy_absent_record(db: Session, user: User, day: date) -> AttendanceRecord:
    record = _build_absent_record(user, day, notes=LAZY_ABSENT_NOTES)
    try:
        _records(db).insert(record)
    except IntegrityError:
        # A concurrent check-in or sweep created the row first.
        existing = _find_record(db, user.email_address, day)
        if existing is None:
            raise
        return existing
    logger.info(
        "attendance_auto_absent_marked",
        extra={"user_email": user.email_address, "date": day.isoformat(), "record_id": record.id},
    )
    return record


def _approved_user(db: Session, email: str) -> User | None:
    return Repository(db, User).find_one(
        User.email_address == email,
        User.status == UserStatus.APPROVED,
    )


def check_in(
    db: Session,
    payload: CheckInRequest,
    *,
    policy: WorkdayPolicy | None = None,
) -> CheckInResponse:
    policy = policy or get_workday_policy()
    day = local_day(payload.check_in_time, policy)
    existing = _find_record(db, payload.user_email, day)

    if existing is not None:
        if payload.status != AttendanceStatus.ABSENT:
            raise ApiError(status_code=400, code="ALREADY_CHECKED_IN", message="Already checked in today")
        result = _records(db).update(
            existing,
            {
                "status": AttendanceStatus.ABSENT,
                "notes": payload.notes or AUTO_ABSENT_NOTES,
                "auto_absent": True,
            },
        )
        return CheckInResponse(
            modified_count=result.modified_count,
            message="Updated existing record to absent",
        )

    location = payload.location or OFFICE_LOCATION
    location_type = payload.location_type or "office"
    record = AttendanceRecord(
        user_email=payload.user_email,
        user_name=payload.user_name,
        user_role=payload.user_role,
        date=day,
        check_in_time=normalize_ts(payload.check_in_time),
        status=payload.status or AttendanceStatus.PRESENT,
        location=location,
        location_type=location_type,
        last_location=location,
        last_location_type=location_type,
        is_outside_office=payload.is_outside_office,
        notes=payload.notes or "",
    )
    result = _records(db).insert(
        record,
        conflict_code="ALREADY_CHECKED_IN",
        conflict_message="Already checked in today",
    )
    _log_location_event(
        db,
        record=record,
        event_type=LocationEventType.CHECK_IN,
        timestamp=payload.check_in_time,
        location=location,
        location_type=location_type,
        is_outside_office=payload.is_outside_office,
        notes=payload.notes or "Initial check-in",
    )
    logger.info(
        "attendance_checked_in",
        extra={"user_email": record.user_email, "date": day.isoformat(), "record_id": result.inserted_id},
    )
    return CheckInResponse(inserted_id=result.inserted_id)


def check_out(
    db: Session,
    payload: CheckOutRequest,
    *,
    policy: WorkdayPolicy | None = None,
) -> UpdateResult:
    policy = policy or get_workday_policy()
    day = payload.date or local_day(payload.check_out_time, policy)
    record = _find_record(db, payload.user_email, day)
    if record is None:
        raise ApiError(
            status_code=404,
            code="CHECKIN_NOT_FOUND",
            message="No check-in record found for today",
        )
    if record.check_out_time is not None:
        raise ApiError(status_code=400, code="ALREADY_CHECKED_OUT", message="Already checked out today")

    check_out_time = normalize_ts(payload.check_out_time)
    if record.check_in_time is not None:
        work_hours = format_work_hours(record.check_in_time, check_out_time)
    else:
        work_hours = ZERO_WORK_HOURS
    location = payload.location or record.last_location or record.location or OFFICE_LOCATION
    location_type = payload.location_type or record.last_location_type or record.location_type

    result = _records(db).update(
        record,
        {
            "check_out_time": check_out_time,
            "work_hours": work_hours,
            "check_out_location": location,
            "check_out_location_type": location_type,
            "check_out_notes": payload.notes or "",
        },
    )
    _log_location_event(
        db,
        record=record,
        event_type=LocationEventType.CHECK_OUT,
        timestamp=check_out_time,
        location=location,
        location_type=location_type,
        is_outside_office=location != OFFICE_LOCATION,
        notes=payload.notes or "Check-out",
    )
    logger.info(
        "attendance_checked_out",
        extra={"user_email": record.user_email, "date": day.isoformat(), "work_hours": work_hours},
    )
    return result


def record_location_change(
    db: Session,
    payload: LocationChangeRequest,
    *,
    policy: WorkdayPolicy | None = None,
) -> InsertResult:
    policy = policy or get_workday_policy()
    day = local_day(payload.timestamp, policy)
    record = _find_record(db, payload.user_email, day)
    state = compute_attendance_state(payload.timestamp, record, day, policy)
    if record is None or state in (AttendanceState.NO_RECORD, AttendanceState.AUTO_ABSENT_DUE):
        raise ApiError(
            status_code=400,
            code="CHECKIN_REQUIRED",
            message="You must check in first before changing location",
        )
    if record.check_out_time is not None:
        raise ApiError(
            status_code=400,
            code="ALREADY_CHECKED_OUT",
            message="Cannot change location after checking out",
        )

    location_type = payload.location_type or "other"
    is_outside_office = bool(payload.is_outside_office) or payload.location != OFFICE_LOCATION

    result = _log_location_event(
        db,
        record=record,
        event_type=LocationEventType.LOCATION_CHANGE,
        timestamp=payload.timestamp,
        location=payload.location,
        location_type=location_type,
        is_outside_office=is_outside_office,
        notes=payload.notes or "",
        user_name=payload.user_name,
    )
    _records(db).update(
        record,
        {"last_location": payload.location, "last_location_type": location_type},
    )
    return result


def get_attendance_status(
    db: Session,
    *,
    email: str,
    day: date | None = None,
    now: datetime | None = None,
    policy: WorkdayPolicy | None = None,
) -> AttendanceStatusResponse:
    policy = policy or get_workday_policy()
    now_utc = normalize_ts(now or datetime.now(timezone.utc))
    target_day = day or local_day(now_utc, policy)

    record = _find_record(db, email, target_day)
    state = compute_attendance_state(now_utc, record, target_day, policy)
    if state is AttendanceState.AUTO_ABSENT_DUE:
        user = _approved_user(db, email)
        if user is not None:
            record = _insert_lazy_absent_record(db, user, target_day)
            state = compute_attendance_state(now_utc, record, target_day, policy)

    if record is None:
        return AttendanceStatusResponse(state=state, is_checked_in=False, date=target_day)

    changes = _location_changes_for_day(db, email, target_day)
    return AttendanceStatusResponse(
        state=state,
        is_checked_in=True,
        is_checked_out=record.check_out_time is not None,
        record_id=record.id,
        date=record.date,
        status=record.status,
        check_in_time=record.check_in_time,
        check_out_time=record.check_out_time,
        location=record.location,
        last_location=record.last_location or record.location,
        check_out_location=record.check_out_location,
        is_outside_office=record.is_outside_office,
        notes=record.notes,
        work_hours=record.work_hours,
        auto_absent=record.auto_absent,
        auto_check_out=record.auto_check_out,
        location_changes=[LocationChangeRead.model_validate(change) for change in changes],
    )


def check_auto_absent(
    db: Session,
    *,
    email: str,
    now: datetime | None = None,
    policy: WorkdayPolicy | None = None,
) -> AutoAbsentCheckResponse:
    policy = policy or get_workday_policy()
    now_utc = normalize_ts(now or datetime.now(timezone.utc))
    today = local_day(now_utc, policy)

    record = _find_record(db, email, today)
    if record is not None:
        return AutoAbsentCheckResponse(marked=False, message="Attendance record already exists")

    state = compute_attendance_state(now_utc, None, today, policy)
    if state is not AttendanceState.AUTO_ABSENT_DUE:
        return AutoAbsentCheckResponse(marked=False, message="Workday has not ended yet")

    user = _approved_user(db, email)
    if user is None:
        return AutoAbsentCheckResponse(marked=False, message="User is not an approved user")

    record = _insert_lazy_absent_record(db, user, today)
    return AutoAbsentCheckResponse(
        marked=True,
        message="User automatically marked absent",
        record=_record_view(record, []),
    )


def list_location_changes(db: Session, *, email: str, day: date) -> list[LocationChange]:
    return _location_changes_for_day(db, email, day)


def get_attendance_history(
    db: Session,
    *,
    email: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[AttendanceRecordRead]:
    criteria = [AttendanceRecord.user_email == email]
    if start_date is not None:
        criteria.append(AttendanceRecord.date >= start_date)
    if end_date is not None:
        criteria.append(AttendanceRecord.date <= end_date)
    records = _records(db).find(
        *criteria,
        order_by=(AttendanceRecord.date.desc(), AttendanceRecord.id.desc()),
    )
    grouped = _group_location_changes(db, records)
    return [_record_view(record, grouped.get((record.user_email, record.date), [])) for record in records]


def list_all_attendance(
    db: Session,
    *,
    day: date | None = None,
    status_filter: str | None = None,
) -> list[AttendanceRecordRead]:
    criteria = []
    if day is not None:
        criteria.append(AttendanceRecord.date == day)
    normalized_status = (status_filter or "").strip().lower()
    if normalized_status == "remote":
        criteria.append(AttendanceRecord.is_outside_office.is_(True))
    elif normalized_status and normalized_status != "all":
        try:
            criteria.append(AttendanceRecord.status == AttendanceStatus(normalized_status))
        except ValueError as exc:
            raise ApiError(
                status_code=400,
                code="INVALID_STATUS_FILTER",
                message=f"Unknown attendance status filter: {status_filter}",
            ) from exc

    records = _records(db).find(
        *criteria,
        order_by=(AttendanceRecord.date.desc(), AttendanceRecord.check_in_time.desc(), AttendanceRecord.id.desc()),
    )
    grouped = _group_location_changes(db, records)
    return [_record_view(record, grouped.get((record.user_email, record.date), [])) for record in records]


def _shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def summarize_attendance_by_month(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    email: str | None = None,
    today: date | None = None,
    policy: WorkdayPolicy | None = None,
) -> list[MonthlyAttendanceSummary]:
    policy = policy or get_workday_policy()
    end = end_date or today or local_day(datetime.now(timezone.utc), policy)
    if start_date is None:
        start_year, start_month = _shift_month(end.year, end.month, -(DEFAULT_SUMMARY_MONTHS - 1))
        start = date(start_year, start_month, 1)
    else:
        start = start_date
    if start > end:
        raise ApiError(
            status_code=400,
            code="INVALID_DATE_RANGE",
            message="start_date must be before or equal to end_date",
        )

    criteria = [AttendanceRecord.date >= start, AttendanceRecord.date <= end]
    if email:
        criteria.append(AttendanceRecord.user_email == email)

    buckets: dict[tuple[int, int], MonthlyAttendanceSummary] = {}
    for record in _records(db).find(*criteria):
        key = (record.date.year, record.date.month)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = MonthlyAttendanceSummary(
                month=calendar.month_abbr[record.date.month],
                year=record.date.year,
                month_num=record.date.month,
            )
            buckets[key] = bucket

        bucket.total += 1
        if record.status == AttendanceStatus.PRESENT:
            bucket.present += 1
            if record.check_in_time is not None and is_late_checkin(record.check_in_time, policy):
                bucket.late += 1
        elif record.status == AttendanceStatus.ABSENT:
            bucket.absent += 1

    return [buckets[key] for key in sorted(buckets)]


def mark_absent_users(
    db: Session,
    *,
    day: date,
    notes: str = AUTO_ABSENT_NOTES,
    excluded_role: str | None = None,
) -> list[MarkedAbsentUser]:
    """Insert absent records for approved users who have none on ``day``.

    Inserts that lose a race against a concurrent check-in are skipped.
    """
    criteria = [User.status == UserStatus.APPROVED]
    if excluded_role is not None:
        criteria.append(User.user_role != excluded_role)
    users = Repository(db, User).find(*criteria, order_by=(User.id.asc(),))
    recorded_emails = set(
        db.scalars(select(AttendanceRecord.user_email).where(AttendanceRecord.date == day)).all()
    )

    marked: list[MarkedAbsentUser] = []
    for user in users:
        if user.email_address in recorded_emails:
            continue
        record = _build_absent_record(user, day, notes=notes)
        try:
            result = _records(db).insert(record)
        except IntegrityError:
            logger.info(
                "attendance_absent_insert_skipped",
                extra={"user_email": user.email_address, "date": day.isoformat()},
            )
            continue
        marked.append(MarkedAbsentUser(user=user.email_address, inserted_id=result.inserted_id))
    return marked


def auto_checkout_absent_user(
    db: Session,
    payload: AutoOutRequest,
    *,
    now: datetime | None = None,
    policy: WorkdayPolicy | None = None,
) -> AutoOutResponse:
    policy = policy or get_workday_policy()
    now_utc = normalize_ts(now or datetime.now(timezone.utc))
    day = payload.date or local_day(now_utc, policy)
    record = _records(db).find_one(
        AttendanceRecord.user_email == payload.user_email,
        AttendanceRecord.date == day,
        AttendanceRecord.status == AttendanceStatus.ABSENT,
    )
    if record is None:
        raise ApiError(
            status_code=404,
            code="ABSENT_RECORD_NOT_FOUND",
            message="No absent record found for this user today",
        )
    if record.check_out_time is not None:
        return AutoOutResponse(message="User already checked out", already_checked_out=True)

    location = record.location or ABSENT_LOCATION
    notes = "Auto checkout for absent user"
    result = _records(db).update(
        record,
        {
            "check_out_time": now_utc,
            "work_hours": ZERO_WORK_HOURS,
            "check_out_location": location,
            "check_out_location_type": record.location_type or "other",
            "check_out_notes": notes,
            "auto_check_out": True,
        },
    )
    _log_location_event(
        db,
        record=record,
        event_type=LocationEventType.CHECK_OUT,
        timestamp=now_utc,
        location=location,
        location_type=record.location_type or "other",
        is_outside_office=False,
        notes=notes,
    )
    return AutoOutResponse(
        message="Auto checkout completed",
        result=UpdateResultRead(
            acknowledged=result.acknowledged,
            matched_count=result.matched_count,
            modified_count=result.modified_count,
        ),
    )


def auto_checkout_open_records(
    db: Session,
    *,
    day: date,
    policy: WorkdayPolicy | None = None,
) -> int:
    """Close every record on ``day`` that was checked in but never checked out."""
    policy = policy or get_workday_policy()
    checkout_at = auto_checkout_time(day, policy)
    open_records = _records(db).find(
        AttendanceRecord.date == day,
        AttendanceRecord.check_in_time.is_not(None),
        AttendanceRecord.check_out_time.is_(None),
        order_by=(AttendanceRecord.id.asc(),),
    )
    for record in open_records:
        location = record.last_location or record.location or OFFICE_LOCATION
        location_type = record.last_location_type or record.location_type
        _records(db).update(
            record,
            {
                "check_out_time": checkout_at,
                "work_hours": format_work_hours(record.check_in_time, checkout_at),
                "check_out_location": location,
                "check_out_location_type": location_type,
                "check_out_notes": "Automatic check-out",
                "auto_check_out": True,
            },
        )
        _log_location_event(
            db,
            record=record,
            event_type=LocationEventType.CHECK_OUT,
            timestamp=checkout_at,
            location=location,
            location_type=location_type,
            is_outside_office=location != OFFICE_LOCATION,
            notes="Automatic check-out",
        )
    return len(open_records)
