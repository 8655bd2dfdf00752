import unittest

from app import app, db
from models.milestone import Milestone, MilestoneStatus
from models.project import Project
from tests.utils.cases import BuildTrackTestCase


class MilestoneApiTestCase(BuildTrackTestCase):
    def _milestone(self, milestone_id):
        with app.app_context():
            milestone = db.session.get(Milestone, milestone_id)
            return milestone.status, milestone.approval_status, milestone.approval_comments

    def _progress(self):
        with app.app_context():
            return db.session.get(Project, self.project_id).progress

    def test_create_and_list(self):
        self.login("contractor")
        response = self.client.post(
            "/api/milestones",
            json={
                "project_id": self.project_id,
                "title": "Foundation",
                "start_date": "2024-01-02",
                "due_date": "2024-01-10T00:00:00",
                "order": 1,
            },
        )
        self.assertEqual(response.status_code, 201)
        created = response.get_json()["data"]
        self.assertEqual(created["status"], "pending")
        self.assertEqual(created["approval"]["status"], "pending")
        self.assertEqual(created["due_date"], "2024-01-10")

        body = self.client.get(f"/api/milestones/project/{self.project_id}").get_json()
        self.assertEqual(body["count"], 1)
        self.assertIn("edit", body["data"][0]["allowed_actions"])

    def test_submit_rejected_below_full_progress(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.IN_PROGRESS, progress=80)
        self.login("contractor")
        response = self.client.put(f"/api/milestones/{milestone_id}/submit")
        self.assertEqual(response.status_code, 400)
        self.assertIn("progress", response.get_json()["errors"])
        self.assertEqual(self._milestone(milestone_id)[0], "in-progress")

    def test_full_approval_cycle(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.IN_PROGRESS, progress=100)
            self.add_milestone(MilestoneStatus.PENDING)

        self.login("contractor")
        response = self.client.put(f"/api/milestones/{milestone_id}/submit")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["status"], "awaiting-approval")

        self.login("architect")
        queue = self.client.get("/api/milestones/status/pending-approval").get_json()
        self.assertEqual([item["id"] for item in queue["data"]], [milestone_id])

        response = self.client.put(
            f"/api/milestones/{milestone_id}/approve",
            json={"status": "approved", "comments": "Solid work"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["data"]["status"], "completed")
        self.assertEqual(body["data"]["approval"]["approved_by"]["id"], self.user_ids["architect"])
        self.assertEqual(body["project_progress"], 35)
        self.assertEqual(self._progress(), 35)

    def test_rejection_with_comments(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.AWAITING_APPROVAL, progress=100)
        self.login("architect")
        response = self.client.put(
            f"/api/milestones/{milestone_id}/approve",
            json={"status": "rejected", "comments": "needs rework"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._milestone(milestone_id), ("rejected", "rejected", "needs rework"))
        self.assertEqual(self._progress(), 0)

    def test_contractor_approval_is_forbidden(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.AWAITING_APPROVAL, progress=100)
        self.login("contractor")
        response = self.client.put(f"/api/milestones/{milestone_id}/approve", json={"status": "approved"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self._milestone(milestone_id)[0], "awaiting-approval")

    def test_invalid_decision(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.AWAITING_APPROVAL, progress=100)
        self.login("architect")
        response = self.client.put(f"/api/milestones/{milestone_id}/approve", json={"status": "done"})
        self.assertEqual(response.status_code, 400)
        body = response.get_json()
        self.assertEqual(body["error"], "invalid_decision")
        self.assertEqual(body["message"], "Status must be approved or rejected.")

    def test_invalid_transition_is_a_conflict(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.COMPLETED, progress=100)
        self.login("contractor")
        response = self.client.put(f"/api/milestones/{milestone_id}", json={"title": "Renamed"})
        self.assertEqual(response.status_code, 409)
        body = response.get_json()
        self.assertEqual(body["status_from"], "completed")
        self.assertEqual(body["action"], "edit")

    def test_update_cannot_move_to_another_project(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.PENDING)
        self.login("contractor")
        response = self.client.put(f"/api/milestones/{milestone_id}", json={"project_id": 12})
        self.assertEqual(response.status_code, 400)
        self.assertIn("project_id", response.get_json()["errors"])

    def test_progress_out_of_range(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.IN_PROGRESS)
        self.login("contractor")
        response = self.client.put(f"/api/milestones/{milestone_id}", json={"progress": 120})
        self.assertEqual(response.status_code, 400)
        self.assertIn("progress", response.get_json()["errors"])

    def test_null_progress_and_order_are_rejected(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.IN_PROGRESS, progress=30)
        self.login("contractor")
        for field in ("progress", "order"):
            response = self.client.put(f"/api/milestones/{milestone_id}", json={field: None})
            self.assertEqual(response.status_code, 400)
            body = response.get_json()
            self.assertEqual(body["error"], "validation_error")
            self.assertIn(field, body["errors"])

    def test_awaiting_approval_edit_cannot_change_status(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.AWAITING_APPROVAL, progress=100)
        self.login("contractor")
        response = self.client.put(f"/api/milestones/{milestone_id}", json={"status": "in-progress"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["status_from"], "awaiting-approval")
        data = self.client.get(f"/api/milestones/{milestone_id}").get_json()["data"]
        self.assertEqual(data["status"], "awaiting-approval")

    def test_missing_milestone(self):
        self.login("architect")
        self.assertEqual(self.client.get("/api/milestones/4321").status_code, 404)

    def test_outsider_cannot_read(self):
        with app.app_context():
            milestone_id = self.add_milestone(MilestoneStatus.PENDING)
        self.login("other_architect")
        self.assertEqual(self.client.get(f"/api/milestones/{milestone_id}").status_code, 403)
        self.assertEqual(self.client.get(f"/api/milestones/project/{self.project_id}").status_code, 403)


if __name__ == "__main__":
    unittest.main()
