from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from tests.support import ApiTestCase


def _deadline(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


class JobEndpointTests(ApiTestCase):
    def _post(self, deadline_days: int = 30) -> int:
        response = self.client.post(
            "/job-posts",
            json={
                "title": "Field Officer",
                "description": "Open accounts in the field",
                "deadline": _deadline(deadline_days),
                "posted_by_email": "hr@example.com",
                "custom_fields": [{"label": "Preferred area", "type": "text"}],
            },
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["inserted_id"]

    def _apply(self, post_id: int, **documents):  # type: ignore[no-untyped-def]
        payload = {"job_post_id": post_id, "personal_info": {"fullName": "Candidate"}}
        payload.update(documents)
        return self.client.post("/job-applications", json=payload)

    def test_application_increments_counter_and_blocks_delete(self) -> None:
        post_id = self._post()

        applied = self._apply(post_id)

        self.assertEqual(applied.status_code, 201, applied.text)
        post = self.client.get(f"/job-posts/{post_id}").json()
        self.assertEqual(post["applications"], 1)
        self.assertApiError(self.client.delete(f"/job-posts/{post_id}"), 400, "JOB_POST_HAS_APPLICATIONS")

        archived = self.client.patch(f"/job-posts/{post_id}/archive")
        self.assertEqual(archived.json()["modified_count"], 1)
        self.assertApiError(self._apply(post_id), 400, "JOB_POST_NOT_ACTIVE")

    def test_application_after_deadline_is_rejected(self) -> None:
        post_id = self._post(deadline_days=-1)

        self.assertApiError(self._apply(post_id), 400, "JOB_POST_DEADLINE_PASSED")

    def test_post_without_applications_can_be_deleted(self) -> None:
        post_id = self._post()

        self.assertEqual(self.client.delete(f"/job-posts/{post_id}").json()["deleted_count"], 1)
        self.assertApiError(self.client.get(f"/job-posts/{post_id}"), 404, "JOB_POST_NOT_FOUND")

    def test_list_posts_by_status(self) -> None:
        active_id = self._post()
        archived_id = self._post()
        self.client.patch(f"/job-posts/{archived_id}/archive")

        active = self.client.get("/job-posts", params={"status": "active"}).json()
        everything = self.client.get("/job-posts", params={"status": "all"}).json()

        self.assertEqual([post["id"] for post in active], [active_id])
        self.assertEqual(len(everything), 2)
        self.assertApiError(self.client.get("/job-posts", params={"status": "draft"}), 400, "INVALID_STATUS_FILTER")

    def test_applications_sort_by_document_field_with_missing_last(self) -> None:
        post_id = self._post()
        self._apply(post_id, additional_info={"expectedSalary": 50000})
        self._apply(post_id, additional_info={})
        self._apply(post_id, additional_info={"expectedSalary": 30000})

        ascending = self.client.get(
            "/job-applications",
            params={"job_post_id": post_id, "sort": "expectedSalary"},
        ).json()
        descending = self.client.get(
            "/job-applications",
            params={"job_post_id": post_id, "sort": "expectedSalary", "sort_direction": "desc"},
        ).json()

        self.assertEqual(
            [item["additional_info"].get("expectedSalary") for item in ascending],
            [30000, 50000, None],
        )
        self.assertEqual(
            [item["additional_info"].get("expectedSalary") for item in descending],
            [50000, 30000, None],
        )

    def test_application_status_and_report(self) -> None:
        post_id = self._post()
        application_id = self._apply(post_id).json()["inserted_id"]

        shortlisted = self.client.patch(
            f"/job-applications/{application_id}/status",
            json={"status": "shortlisted"},
        )
        self.assertEqual(shortlisted.json()["modified_count"], 1)
        application = self.client.get(f"/job-applications/{application_id}").json()
        self.assertEqual(application["status"], "shortlisted")
        self.assertEqual(application["job_title"], "Field Officer")

        report = self.client.post("/job-applications/generate-report", json={"job_post_id": post_id})
        self.assertEqual(report.status_code, 200, report.text)
        body = report.json()
        self.assertEqual(body["status"], "processing")
        self.assertTrue(body["report_url"].startswith(f"/reports/{post_id}_"))
        self.assertTrue(body["report_url"].endswith(".pdf"))

        self.assertApiError(self.client.get("/job-applications/999"), 404, "APPLICATION_NOT_FOUND")


if __name__ == "__main__":
    unittest.main()
