from __future__ import annotations

import unittest
from datetime import date, datetime, timezone

from officehub.errors import ApiError
from officehub.models import AttendanceRecord, AttendanceStatus, LocationChange, LocationEventType, UserStatus
from officehub.schemas import AutoOutRequest, CheckInRequest, CheckOutRequest, LocationChangeRequest
from officehub.services.attendance import (
    LAZY_ABSENT_NOTES,
    auto_checkout_absent_user,
    auto_checkout_open_records,
    check_auto_absent,
    check_in,
    check_out,
    get_attendance_history,
    get_attendance_status,
    list_all_attendance,
    mark_absent_users,
    record_location_change,
    summarize_attendance_by_month,
)
from officehub.services.attendance_state import AttendanceState, normalize_ts
from tests.support import UTC_POLICY, SqliteDatabase, add_user

DAY = date(2026, 3, 2)


def _at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def _check_in_payload(email: str = "ali@example.com", hour: int = 9, **overrides) -> CheckInRequest:  # type: ignore[no-untyped-def]
    values = {
        "user_email": email,
        "user_name": "Ali",
        "check_in_time": _at(hour),
        "location": "Office",
    }
    values.update(overrides)
    return CheckInRequest(**values)


class AttendanceServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.database = SqliteDatabase()
        self.db = self.database.session()

    def tearDown(self) -> None:
        self.db.close()
        self.database.dispose()


class CheckInOutTests(AttendanceServiceTestCase):
    def test_check_in_creates_record_and_initial_event(self) -> None:
        response = check_in(self.db, _check_in_payload(), policy=UTC_POLICY)

        self.assertIsNotNone(response.inserted_id)
        record = self.db.get(AttendanceRecord, response.inserted_id)
        self.assertEqual(record.date, DAY)
        self.assertEqual(record.status, AttendanceStatus.PRESENT)
        self.assertEqual(record.last_location, "Office")
        events = self.db.query(LocationChange).all()
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].type, LocationEventType.CHECK_IN)
        self.assertEqual(events[0].notes, "Initial check-in")

    def test_second_check_in_same_day_is_rejected(self) -> None:
        check_in(self.db, _check_in_payload(hour=9), policy=UTC_POLICY)

        with self.assertRaises(ApiError) as ctx:
            check_in(self.db, _check_in_payload(hour=11), policy=UTC_POLICY)

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.message, "Already checked in today")
        self.assertEqual(self.db.query(AttendanceRecord).count(), 1)

    def test_absent_check_in_overwrites_existing_record(self) -> None:
        check_in(self.db, _check_in_payload(), policy=UTC_POLICY)

        response = check_in(
            self.db,
            _check_in_payload(hour=12, status=AttendanceStatus.ABSENT),
            policy=UTC_POLICY,
        )

        self.assertEqual(response.modified_count, 1)
        self.assertEqual(response.message, "Updated existing record to absent")
        record = self.db.query(AttendanceRecord).one()
        self.assertEqual(record.status, AttendanceStatus.ABSENT)
        self.assertTrue(record.auto_absent)

    def test_check_out_computes_work_hours_and_uses_last_location(self) -> None:
        check_in(self.db, _check_in_payload(), policy=UTC_POLICY)
        record_location_change(
            self.db,
            LocationChangeRequest(user_email="ali@example.com", timestamp=_at(11), location="Client Site"),
            policy=UTC_POLICY,
        )

        result = check_out(
            self.db,
            CheckOutRequest(user_email="ali@example.com", check_out_time=_at(17, 30)),
            policy=UTC_POLICY,
        )

        self.assertEqual(result.modified_count, 1)
        record = self.db.query(AttendanceRecord).one()
        self.assertEqual(record.work_hours, "8h 30m")
        self.assertEqual(record.check_out_location, "Client Site")
        self.assertEqual(normalize_ts(record.check_out_time), _at(17, 30))
        last_event = self.db.query(LocationChange).order_by(LocationChange.id.desc()).first()
        self.assertEqual(last_event.type, LocationEventType.CHECK_OUT)
        self.assertTrue(last_event.is_outside_office)

    def test_check_out_without_check_in_is_not_found(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            check_out(
                self.db,
                CheckOutRequest(user_email="ali@example.com", check_out_time=_at(17)),
                policy=UTC_POLICY,
            )

        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.message, "No check-in record found for today")

    def test_second_check_out_is_rejected(self) -> None:
        check_in(self.db, _check_in_payload(), policy=UTC_POLICY)
        payload = CheckOutRequest(user_email="ali@example.com", check_out_time=_at(17))
        check_out(self.db, payload, policy=UTC_POLICY)

        with self.assertRaises(ApiError) as ctx:
            check_out(self.db, payload, policy=UTC_POLICY)

        self.assertEqual(ctx.exception.code, "ALREADY_CHECKED_OUT")
        self.assertEqual(self.db.query(AttendanceRecord).one().work_hours, "8h 0m")


class LocationChangeTests(AttendanceServiceTestCase):
    def test_location_change_requires_check_in(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            record_location_change(
                self.db,
                LocationChangeRequest(user_email="ali@example.com", timestamp=_at(10), location="Branch"),
                policy=UTC_POLICY,
            )

        self.assertEqual(ctx.exception.code, "CHECKIN_REQUIRED")

    def test_location_change_after_check_out_is_rejected(self) -> None:
        check_in(self.db, _check_in_payload(), policy=UTC_POLICY)
        check_out(
            self.db,
            CheckOutRequest(user_email="ali@example.com", check_out_time=_at(16)),
            policy=UTC_POLICY,
        )

        with self.assertRaises(ApiError) as ctx:
            record_location_change(
                self.db,
                LocationChangeRequest(user_email="ali@example.com", timestamp=_at(16, 30), location="Branch"),
                policy=UTC_POLICY,
            )

        self.assertEqual(ctx.exception.code, "ALREADY_CHECKED_OUT")

    def test_location_change_updates_last_location_and_history(self) -> None:
        check_in(self.db, _check_in_payload(), policy=UTC_POLICY)
        record_location_change(
            self.db,
            LocationChangeRequest(
                user_email="ali@example.com",
                timestamp=_at(12),
                location="Branch",
                location_type="branch",
            ),
            policy=UTC_POLICY,
        )

        history = get_attendance_history(self.db, email="ali@example.com")

        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].last_location, "Branch")
        self.assertEqual(
            [change.type for change in history[0].location_changes],
            [LocationEventType.CHECK_IN, LocationEventType.LOCATION_CHANGE],
        )

    def test_location_away_from_office_is_always_outside(self) -> None:
        check_in(self.db, _check_in_payload(), policy=UTC_POLICY)
        record_location_change(
            self.db,
            LocationChangeRequest(
                user_email="ali@example.com",
                timestamp=_at(12),
                location="Client site",
                is_outside_office=False,
            ),
            policy=UTC_POLICY,
        )

        events = self.db.query(LocationChange).order_by(LocationChange.id).all()

        self.assertEqual(
            [(event.location, event.is_outside_office) for event in events],
            [("Office", False), ("Client site", True)],
        )


class AttendanceStatusTests(AttendanceServiceTestCase):
    def test_status_before_workday_end_has_no_record(self) -> None:
        add_user(self.db, "ali@example.com")

        status = get_attendance_status(self.db, email="ali@example.com", now=_at(15), policy=UTC_POLICY)

        self.assertEqual(status.state, AttendanceState.NO_RECORD)
        self.assertFalse(status.is_checked_in)
        self.assertEqual(self.db.query(AttendanceRecord).count(), 0)

    def test_status_after_workday_end_marks_approved_user_absent(self) -> None:
        add_user(self.db, "ali@example.com")

        status = get_attendance_status(self.db, email="ali@example.com", now=_at(18), policy=UTC_POLICY)

        self.assertEqual(status.state, AttendanceState.ABSENT)
        self.assertTrue(status.auto_absent)
        record = self.db.query(AttendanceRecord).one()
        self.assertIsNone(record.check_in_time)
        self.assertEqual(record.notes, LAZY_ABSENT_NOTES)
        self.assertEqual(record.location, "N/A")

    def test_status_after_workday_end_ignores_unapproved_user(self) -> None:
        add_user(self.db, "new@example.com", status=UserStatus.PENDING)

        status = get_attendance_status(self.db, email="new@example.com", now=_at(18), policy=UTC_POLICY)

        self.assertEqual(status.state, AttendanceState.AUTO_ABSENT_DUE)
        self.assertEqual(self.db.query(AttendanceRecord).count(), 0)

    def test_status_for_past_day_does_not_synthesize(self) -> None:
        add_user(self.db, "ali@example.com")

        status = get_attendance_status(
            self.db,
            email="ali@example.com",
            day=date(2026, 3, 1),
            now=_at(18),
            policy=UTC_POLICY,
        )

        self.assertEqual(status.state, AttendanceState.NO_RECORD)
        self.assertEqual(self.db.query(AttendanceRecord).count(), 0)

    def test_check_auto_absent_is_idempotent(self) -> None:
        add_user(self.db, "ali@example.com")

        first = check_auto_absent(self.db, email="ali@example.com", now=_at(18), policy=UTC_POLICY)
        second = check_auto_absent(self.db, email="ali@example.com", now=_at(19), policy=UTC_POLICY)

        self.assertTrue(first.marked)
        self.assertEqual(first.record.status, AttendanceStatus.ABSENT)
        self.assertFalse(second.marked)
        self.assertEqual(self.db.query(AttendanceRecord).count(), 1)


class AttendanceReportTests(AttendanceServiceTestCase):
    def _record(self, email: str, day: date, status: AttendanceStatus, check_in_hour: int | None) -> None:
        self.db.add(
            AttendanceRecord(
                user_email=email,
                user_name=email,
                date=day,
                status=status,
                check_in_time=_at(check_in_hour, day=day) if check_in_hour is not None else None,
                is_outside_office=email.startswith("remote"),
            )
        )
        self.db.commit()

    def test_monthly_summary_counts_present_absent_and_late(self) -> None:
        self._record("a@example.com", date(2026, 2, 10), AttendanceStatus.PRESENT, 9)
        self._record("b@example.com", date(2026, 2, 10), AttendanceStatus.PRESENT, 10)
        self._record("c@example.com", date(2026, 2, 11), AttendanceStatus.ABSENT, None)
        self._record("a@example.com", date(2026, 3, 2), AttendanceStatus.PRESENT, 11)

        summary = summarize_attendance_by_month(
            self.db,
            start_date=date(2026, 2, 1),
            end_date=date(2026, 3, 31),
            policy=UTC_POLICY,
        )

        self.assertEqual([(item.month, item.year) for item in summary], [("Feb", 2026), ("Mar", 2026)])
        february, march = summary
        self.assertEqual((february.present, february.absent, february.late, february.total), (2, 1, 1, 3))
        self.assertEqual((march.present, march.absent, march.late, march.total), (1, 0, 1, 1))

    def test_monthly_summary_rejects_inverted_range(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            summarize_attendance_by_month(
                self.db,
                start_date=date(2026, 3, 2),
                end_date=date(2026, 3, 1),
                policy=UTC_POLICY,
            )

        self.assertEqual(ctx.exception.code, "INVALID_DATE_RANGE")

    def test_list_all_filters_remote_and_status(self) -> None:
        self._record("remote@example.com", DAY, AttendanceStatus.PRESENT, 9)
        self._record("desk@example.com", DAY, AttendanceStatus.PRESENT, 9)
        self._record("away@example.com", DAY, AttendanceStatus.ABSENT, None)

        remote = list_all_attendance(self.db, day=DAY, status_filter="remote")
        absent = list_all_attendance(self.db, day=DAY, status_filter="absent")
        everyone = list_all_attendance(self.db, day=DAY, status_filter="all")

        self.assertEqual([item.user_email for item in remote], ["remote@example.com"])
        self.assertEqual([item.user_email for item in absent], ["away@example.com"])
        self.assertEqual(len(everyone), 3)
        with self.assertRaises(ApiError):
            list_all_attendance(self.db, status_filter="sleeping")


class AbsenceSweepTests(AttendanceServiceTestCase):
    def test_mark_absent_skips_recorded_unapproved_and_excluded_users(self) -> None:
        add_user(self.db, "manager@example.com", user_role="manager")
        add_user(self.db, "staff@example.com", user_role="user")
        add_user(self.db, "pending@example.com", status=UserStatus.PENDING)
        add_user(self.db, "present@example.com", user_role="manager")
        check_in(self.db, _check_in_payload(email="present@example.com"), policy=UTC_POLICY)

        manual = mark_absent_users(self.db, day=DAY, excluded_role="user")
        scheduled = mark_absent_users(self.db, day=DAY)

        self.assertEqual([item.user for item in manual], ["manager@example.com"])
        self.assertEqual([item.user for item in scheduled], ["staff@example.com"])
        self.assertEqual(mark_absent_users(self.db, day=DAY), [])

    def test_auto_out_closes_absent_record_once(self) -> None:
        add_user(self.db, "ali@example.com")
        mark_absent_users(self.db, day=DAY)
        payload = AutoOutRequest(user_email="ali@example.com", date=DAY)

        first = auto_checkout_absent_user(self.db, payload, now=_at(17, 5), policy=UTC_POLICY)
        second = auto_checkout_absent_user(self.db, payload, now=_at(17, 10), policy=UTC_POLICY)

        self.assertEqual(first.result.modified_count, 1)
        self.assertFalse(first.already_checked_out)
        self.assertTrue(second.already_checked_out)
        record = self.db.query(AttendanceRecord).one()
        self.assertEqual(record.work_hours, "0h 0m")
        self.assertTrue(record.auto_check_out)

    def test_auto_out_without_absent_record_is_not_found(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            auto_checkout_absent_user(
                self.db,
                AutoOutRequest(user_email="ali@example.com", date=DAY),
                policy=UTC_POLICY,
            )

        self.assertEqual(ctx.exception.status_code, 404)

    def test_auto_checkout_closes_open_records_at_cutoff(self) -> None:
        check_in(self.db, _check_in_payload(), policy=UTC_POLICY)

        closed = auto_checkout_open_records(self.db, day=DAY, policy=UTC_POLICY)

        self.assertEqual(closed, 1)
        record = self.db.query(AttendanceRecord).one()
        self.assertEqual(normalize_ts(record.check_out_time), _at(17))
        self.assertEqual(record.work_hours, "8h 0m")
        self.assertTrue(record.auto_check_out)
        self.assertEqual(auto_checkout_open_records(self.db, day=DAY, policy=UTC_POLICY), 0)


if __name__ == "__main__":
    unittest.main()
