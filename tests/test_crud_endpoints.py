from __future__ import annotations

import unittest

from tests.support import ApiTestCase


class NoticeEndpointTests(ApiTestCase):
    def test_notice_crud_and_filters(self) -> None:
        pinned = self.client.post(
            "/notices",
            json={"title": "Audit", "body": "Bring ledgers", "posted_by_email": "hq@example.com", "is_pinned": True},
        ).json()["inserted_id"]
        self.client.post(
            "/notices",
            json={"title": "Picnic", "body": "Friday", "posted_by_email": "hq@example.com", "audience_role": "user"},
        )

        only_pinned = self.client.get("/notices", params={"is_pinned": "true"}).json()
        for_users = self.client.get("/notices", params={"audience_role": "user"}).json()

        self.assertEqual([item["id"] for item in only_pinned], [pinned])
        self.assertEqual([item["title"] for item in for_users], ["Picnic"])

        updated = self.client.put(f"/notices/{pinned}", json={"body": "Bring all ledgers"})
        self.assertEqual(updated.json()["modified_count"], 1)
        self.assertEqual(self.client.get(f"/notices/{pinned}").json()["body"], "Bring all ledgers")

        self.assertEqual(self.client.delete(f"/notices/{pinned}").json()["deleted_count"], 1)
        self.assertApiError(self.client.get(f"/notices/{pinned}"), 404, "NOTICE_NOT_FOUND")

    def test_null_for_required_column_is_rejected(self) -> None:
        notice_id = self.client.post(
            "/notices",
            json={"title": "Audit", "body": "Bring ledgers", "posted_by_email": "hq@example.com"},
        ).json()["inserted_id"]

        self.assertApiError(self.client.put(f"/notices/{notice_id}", json={"title": None}), 400, "INVALID_UPDATE")
        self.assertEqual(self.client.get(f"/notices/{notice_id}").json()["title"], "Audit")


class TicketEndpointTests(ApiTestCase):
    def test_ticket_status_transitions(self) -> None:
        ticket_id = self.client.post(
            "/tickets",
            json={"subject": "Printer jammed", "raised_by_email": "ali@example.com", "priority": "high"},
        ).json()["inserted_id"]

        resolved = self.client.patch(f"/tickets/{ticket_id}/status", json={"status": "resolved"})
        self.assertEqual(resolved.json()["modified_count"], 1)

        tickets = self.client.get("/tickets", params={"status": "resolved", "priority": "high"}).json()
        self.assertEqual([item["id"] for item in tickets], [ticket_id])

        self.assertApiError(
            self.client.patch(f"/tickets/{ticket_id}/status", json={"status": "lost"}),
            400,
            "INVALID_STATUS",
        )
        self.assertApiError(self.client.get("/tickets", params={"status": "lost"}), 400, "INVALID_FILTER")


class AgentBranchEndpointTests(ApiTestCase):
    def _branch(self, code: str = "DHK-01"):  # type: ignore[no-untyped-def]
        return self.client.post(
            "/agent-branches",
            json={"name": "Dhaka North", "code": code, "manager_email": "rsm@example.com"},
        )

    def test_branch_code_is_unique(self) -> None:
        self.assertEqual(self._branch().status_code, 200)

        self.assertApiError(self._branch(), 400, "AGENT_BRANCH_EXISTS")

    def test_branch_tasks_require_existing_branch(self) -> None:
        branch_id = self._branch().json()["inserted_id"]
        task = {
            "title": "Stock check",
            "assignee_id": "7",
            "assigner_id": "1",
            "due_date": "2026-03-10",
        }

        created = self.client.post("/agent-branch-tasks", json={**task, "branch_id": branch_id})
        self.assertEqual(created.status_code, 200, created.text)
        self.assertApiError(
            self.client.post("/agent-branch-tasks", json={**task, "branch_id": 999}),
            404,
            "AGENT_BRANCH_NOT_FOUND",
        )

        listed = self.client.get("/agent-branch-tasks", params={"branch_id": str(branch_id)}).json()
        self.assertEqual([item["title"] for item in listed], ["Stock check"])
        self.assertApiError(self.client.get("/agent-branch-tasks", params={"branch_id": "abc"}), 400, "INVALID_FILTER")

        done = self.client.patch(f"/agent-branch-tasks/{created.json()['inserted_id']}/status", json={"status": "completed"})
        self.assertEqual(done.json()["modified_count"], 1)


if __name__ == "__main__":
    unittest.main()
