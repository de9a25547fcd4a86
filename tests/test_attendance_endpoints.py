from __future__ import annotations

import unittest
from datetime import datetime, timezone

from officehub.models import AttendanceRecord, AttendanceStatus
from tests.support import ApiTestCase, add_user


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AttendanceEndpointTests(ApiTestCase):
    def _check_in(self, email: str = "ali@example.com", **overrides):  # type: ignore[no-untyped-def]
        payload = {
            "user_email": email,
            "user_name": "Ali",
            "check_in_time": _now_iso(),
            "location": "Office",
        }
        payload.update(overrides)
        return self.client.post("/attendance/check-in", json=payload)

    def test_check_in_then_status_reports_present(self) -> None:
        response = self._check_in()

        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(set(response.json()), {"acknowledged", "inserted_id"})

        status = self.client.get("/attendance/status", params={"email": "ali@example.com"})
        self.assertEqual(status.status_code, 200)
        body = status.json()
        self.assertEqual(body["state"], "PRESENT")
        self.assertTrue(body["is_checked_in"])
        self.assertFalse(body["is_checked_out"])
        self.assertEqual([change["type"] for change in body["location_changes"]], ["check-in"])
        self.assertIn("X-Request-Id", status.headers)

    def test_duplicate_check_in_is_bad_request(self) -> None:
        self._check_in()

        body = self.assertApiError(self._check_in(), 400, "ALREADY_CHECKED_IN")

        self.assertEqual(body["message"], "Already checked in today")

    def test_missing_fields_are_reported(self) -> None:
        response = self.client.post("/attendance/check-in", json={"user_email": "ali@example.com"})

        body = self.assertApiError(response, 400, "VALIDATION_ERROR")
        self.assertEqual(body["message"], "Required fields missing: user_name, check_in_time")

    def test_check_out_and_location_change_flow(self) -> None:
        self._check_in()

        moved = self.client.post(
            "/attendance/location-change",
            json={"user_email": "ali@example.com", "timestamp": _now_iso(), "location": "Client Site"},
        )
        self.assertEqual(moved.status_code, 200, moved.text)
        self.assertIn("inserted_id", moved.json())

        checked_out = self.client.put(
            "/attendance/check-out",
            json={"user_email": "ali@example.com", "check_out_time": _now_iso()},
        )
        self.assertEqual(checked_out.status_code, 200, checked_out.text)
        self.assertEqual(checked_out.json()["modified_count"], 1)

        self.assertApiError(
            self.client.put(
                "/attendance/check-out",
                json={"user_email": "ali@example.com", "check_out_time": _now_iso()},
            ),
            400,
            "ALREADY_CHECKED_OUT",
        )

        history = self.client.get("/attendance/history", params={"email": "ali@example.com"}).json()
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0]["check_out_location"], "Client Site")
        self.assertEqual(
            [change["type"] for change in history[0]["location_changes"]],
            ["check-in", "location-change", "check-out"],
        )

    def test_check_out_without_record_is_not_found(self) -> None:
        response = self.client.put(
            "/attendance/check-out",
            json={"user_email": "ghost@example.com", "check_out_time": _now_iso()},
        )

        self.assertApiError(response, 404, "CHECKIN_NOT_FOUND")

    def test_mark_absent_and_auto_out(self) -> None:
        with self.database.session() as db:
            add_user(db, "manager@example.com", user_role="manager")
            add_user(db, "staff@example.com", user_role="user")

        marked = self.client.post("/attendance/mark-absent", json={"date": "2026-03-02"})

        self.assertEqual(marked.status_code, 200, marked.text)
        body = marked.json()
        self.assertEqual(body["message"], "Marked 1 users as absent")
        self.assertEqual([item["user"] for item in body["results"]], ["manager@example.com"])

        auto_out = self.client.patch(
            "/attend/auto-out",
            json={"user_email": "manager@example.com", "date": "2026-03-02"},
        )
        self.assertEqual(auto_out.status_code, 200, auto_out.text)
        self.assertEqual(auto_out.json()["result"]["modified_count"], 1)

        with self.database.session() as db:
            record = db.query(AttendanceRecord).one()
            self.assertEqual(record.status, AttendanceStatus.ABSENT)
            self.assertTrue(record.auto_check_out)

    def test_attendance_all_rejects_unknown_status(self) -> None:
        response = self.client.get("/attendance/all", params={"status": "sleeping"})

        self.assertApiError(response, 400, "INVALID_STATUS_FILTER")

    def test_attendance_by_month(self) -> None:
        with self.database.session() as db:
            db.add(
                AttendanceRecord(
                    user_email="ali@example.com",
                    user_name="Ali",
                    date=datetime(2026, 1, 15).date(),
                    check_in_time=datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc),
                    status=AttendanceStatus.PRESENT,
                )
            )
            db.commit()

        response = self.client.get(
            "/attendance-by-month",
            params={"start_date": "2026-01-01", "end_date": "2026-01-31"},
        )

        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(
            response.json(),
            [{"month": "Jan", "year": 2026, "month_num": 1, "present": 1, "absent": 0, "late": 0, "total": 1}],
        )


if __name__ == "__main__":
    unittest.main()
