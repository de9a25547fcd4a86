from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from math import floor
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from officehub.models import AttendanceStatus
from officehub.settings import get_settings

MS_PER_HOUR = 60 * 60 * 1000
MS_PER_MINUTE = 60 * 1000
ZERO_WORK_HOURS = "0h 0m"


class AttendanceState(str, enum.Enum):
    NO_RECORD = "NO_RECORD"
    AUTO_ABSENT_DUE = "AUTO_ABSENT_DUE"
    PRESENT = "PRESENT"
    CHECKED_OUT = "CHECKED_OUT"
    ABSENT = "ABSENT"


@dataclass(frozen=True)
class WorkdayPolicy:
    timezone: ZoneInfo
    workday_end: time = time(17, 0)
    auto_checkout_at: time = time(17, 0)
    late_checkin_hour: int = 10


def parse_hhmm(value: str) -> time:
    try:
        hour_text, minute_text = value.strip().split(":", 1)
        return time(hour=int(hour_text), minute=int(minute_text))
    except ValueError as exc:
        raise ValueError(f"Expected HH:MM time, got {value!r}") from exc


def _resolve_timezone(raw_name: str) -> ZoneInfo:
    try:
        return ZoneInfo((raw_name or "").strip() or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


@lru_cache
def get_workday_policy() -> WorkdayPolicy:
    settings = get_settings()
    return WorkdayPolicy(
        timezone=_resolve_timezone(settings.attendance_timezone),
        workday_end=parse_hhmm(settings.workday_end),
        auto_checkout_at=parse_hhmm(settings.auto_checkout_at),
        late_checkin_hour=settings.late_checkin_hour,
    )


def normalize_ts(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def local_day(ts: datetime, policy: WorkdayPolicy) -> date:
    return normalize_ts(ts).astimezone(policy.timezone).date()


def is_after_workday_end(now: datetime, day: date, policy: WorkdayPolicy) -> bool:
    """True between the workday cutoff and local midnight of ``day``."""
    local_now = normalize_ts(now).astimezone(policy.timezone)
    if local_now.date() != day:
        return False
    return local_now.time() > policy.workday_end


def auto_checkout_time(day: date, policy: WorkdayPolicy) -> datetime:
    local_checkout = datetime.combine(day, policy.auto_checkout_at, tzinfo=policy.timezone)
    return local_checkout.astimezone(timezone.utc)


def is_late_checkin(check_in_time: datetime, policy: WorkdayPolicy) -> bool:
    return normalize_ts(check_in_time).astimezone(policy.timezone).hour >= policy.late_checkin_hour


def format_work_hours(check_in_time: datetime, check_out_time: datetime) -> str:
    elapsed = normalize_ts(check_out_time) - normalize_ts(check_in_time)
    delta_ms = max(0, floor(elapsed / timedelta(milliseconds=1)))
    hours = delta_ms // MS_PER_HOUR
    minutes = (delta_ms % MS_PER_HOUR) // MS_PER_MINUTE
    return f"{hours}h {minutes}m"


def compute_attendance_state(
    now: datetime,
    record: Any | None,
    day: date,
    policy: WorkdayPolicy,
) -> AttendanceState:
    """Classify one user's day from its attendance record.

    ``record`` only needs ``status`` and ``check_out_time`` attributes. A
    missing record becomes ``AUTO_ABSENT_DUE`` once the workday cutoff has
    passed on ``day`` itself; earlier days are left to the absence sweep.
    """
    if record is None:
        if is_after_workday_end(now, day, policy):
            return AttendanceState.AUTO_ABSENT_DUE
        return AttendanceState.NO_RECORD

    if record.status == AttendanceStatus.ABSENT:
        return AttendanceState.ABSENT
    if record.check_out_time is not None:
        return AttendanceState.CHECKED_OUT
    return AttendanceState.PRESENT
