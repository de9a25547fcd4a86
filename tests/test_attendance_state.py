from __future__ import annotations

import unittest
from datetime import date, datetime, time, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from officehub.models import AttendanceStatus
from officehub.services.attendance_state import (
    AttendanceState,
    WorkdayPolicy,
    _resolve_timezone,
    auto_checkout_time,
    compute_attendance_state,
    format_work_hours,
    is_after_workday_end,
    is_late_checkin,
    local_day,
    normalize_ts,
    parse_hhmm,
)

UTC_POLICY = WorkdayPolicy(timezone=ZoneInfo("UTC"))
DHAKA_POLICY = WorkdayPolicy(timezone=ZoneInfo("Asia/Dhaka"))
DAY = date(2026, 3, 2)


class WorkHoursTests(unittest.TestCase):
    def test_formats_hours_and_minutes(self) -> None:
        check_in = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
        check_out = datetime(2026, 3, 2, 17, 30, 59, tzinfo=timezone.utc)

        self.assertEqual(format_work_hours(check_in, check_out), "8h 30m")

    def test_under_a_minute_is_zero(self) -> None:
        check_in = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
        check_out = datetime(2026, 3, 2, 9, 0, 59, tzinfo=timezone.utc)

        self.assertEqual(format_work_hours(check_in, check_out), "0h 0m")

    def test_check_out_before_check_in_clamps_to_zero(self) -> None:
        check_in = datetime(2026, 3, 2, 17, 0, tzinfo=timezone.utc)
        check_out = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

        self.assertEqual(format_work_hours(check_in, check_out), "0h 0m")

    def test_naive_values_are_read_as_utc(self) -> None:
        check_in = datetime(2026, 3, 2, 9, 0)
        check_out = datetime(2026, 3, 2, 11, 15, tzinfo=timezone.utc)

        self.assertEqual(format_work_hours(check_in, check_out), "2h 15m")
        self.assertEqual(normalize_ts(check_in).tzinfo, timezone.utc)


class AttendanceStateTests(unittest.TestCase):
    def test_no_record_before_workday_end(self) -> None:
        now = datetime(2026, 3, 2, 16, 59, tzinfo=timezone.utc)

        self.assertEqual(compute_attendance_state(now, None, DAY, UTC_POLICY), AttendanceState.NO_RECORD)

    def test_no_record_after_workday_end_is_absent_due(self) -> None:
        now = datetime(2026, 3, 2, 17, 1, tzinfo=timezone.utc)

        self.assertEqual(compute_attendance_state(now, None, DAY, UTC_POLICY), AttendanceState.AUTO_ABSENT_DUE)

    def test_exact_workday_end_is_not_yet_due(self) -> None:
        now = datetime(2026, 3, 2, 17, 0, tzinfo=timezone.utc)

        self.assertFalse(is_after_workday_end(now, DAY, UTC_POLICY))

    def test_past_day_without_record_stays_no_record(self) -> None:
        now = datetime(2026, 3, 3, 18, 0, tzinfo=timezone.utc)

        self.assertEqual(compute_attendance_state(now, None, DAY, UTC_POLICY), AttendanceState.NO_RECORD)

    def test_record_states(self) -> None:
        now = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
        present = SimpleNamespace(status=AttendanceStatus.PRESENT, check_out_time=None)
        checked_out = SimpleNamespace(status=AttendanceStatus.PRESENT, check_out_time=now)
        absent_closed = SimpleNamespace(status=AttendanceStatus.ABSENT, check_out_time=now)

        self.assertEqual(compute_attendance_state(now, present, DAY, UTC_POLICY), AttendanceState.PRESENT)
        self.assertEqual(compute_attendance_state(now, checked_out, DAY, UTC_POLICY), AttendanceState.CHECKED_OUT)
        self.assertEqual(compute_attendance_state(now, absent_closed, DAY, UTC_POLICY), AttendanceState.ABSENT)


class WorkdayPolicyTests(unittest.TestCase):
    def test_local_day_follows_configured_timezone(self) -> None:
        late_evening_utc = datetime(2026, 3, 1, 20, 0, tzinfo=timezone.utc)

        self.assertEqual(local_day(late_evening_utc, UTC_POLICY), date(2026, 3, 1))
        self.assertEqual(local_day(late_evening_utc, DHAKA_POLICY), date(2026, 3, 2))

    def test_auto_checkout_time_is_local_cutoff_in_utc(self) -> None:
        self.assertEqual(
            auto_checkout_time(DAY, DHAKA_POLICY),
            datetime(2026, 3, 2, 11, 0, tzinfo=timezone.utc),
        )

    def test_late_checkin_threshold(self) -> None:
        self.assertTrue(is_late_checkin(datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc), UTC_POLICY))
        self.assertFalse(is_late_checkin(datetime(2026, 3, 2, 9, 59, tzinfo=timezone.utc), UTC_POLICY))

    def test_parse_hhmm(self) -> None:
        self.assertEqual(parse_hhmm(" 17:30 "), time(17, 30))
        with self.assertRaises(ValueError):
            parse_hhmm("1730")
        with self.assertRaises(ValueError):
            parse_hhmm("ab:cd")

    def test_unknown_timezone_falls_back_to_utc(self) -> None:
        self.assertEqual(_resolve_timezone("Not/A_Zone"), ZoneInfo("UTC"))
        self.assertEqual(_resolve_timezone(""), ZoneInfo("UTC"))


if __name__ == "__main__":
    unittest.main()
