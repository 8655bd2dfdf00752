import unittest

from app import app, db
from models.project import Project
from tests.utils.cases import BuildTrackTestCase


class DailyReportApiTestCase(BuildTrackTestCase):
    def _report(self, day="2024-01-05", **extra):
        payload = {
            "project_id": self.project_id,
            "date": day,
            "work_summary": "Shuttering for ground floor slab",
            "workers_on_site": 12,
            "hours_worked": 8.5,
            "weather": {"condition": "sunny", "temperature": 31},
            "equipment": [{"name": "Mixer", "hours_used": 6}],
            "issues": [{"description": "Late delivery", "severity": "medium", "resolved": False}],
        }
        payload.update(extra)
        return self.client.post("/api/reports", json=payload)

    def test_create_report_updates_progress(self):
        self.login("contractor")
        response = self._report()
        self.assertEqual(response.status_code, 201)
        data = response.get_json()["data"]
        self.assertEqual(data["weather"]["condition"], "sunny")
        self.assertEqual(data["issues"][0]["severity"], "medium")
        with app.app_context():
            self.assertEqual(db.session.get(Project, self.project_id).progress, 3)

    def test_duplicate_date(self):
        self.login("contractor")
        self.assertEqual(self._report().status_code, 201)
        response = self._report()
        self.assertEqual(response.status_code, 400)
        body = response.get_json()
        self.assertEqual(body["error"], "duplicate_date_for_project")
        self.assertEqual(body["message"], "A report already exists for this date.")

    def test_invalid_nested_values(self):
        self.login("contractor")
        response = self._report(weather={"condition": "foggy"}, issues=[{"severity": "high"}])
        self.assertEqual(response.status_code, 400)
        errors = response.get_json()["errors"]
        self.assertIn("weather", errors)
        self.assertIn("issues", errors)

        response = self._report(equipment="mixer")
        self.assertEqual(response.status_code, 400)
        self.assertIn("equipment", response.get_json()["errors"])

    def test_only_submitter_edits(self):
        self.login("contractor")
        report_id = self._report().get_json()["data"]["id"]

        self.login("architect")
        self.assertEqual(self.client.put(f"/api/reports/{report_id}", json={"notes": "x"}).status_code, 403)

        self.login("contractor")
        response = self.client.put(f"/api/reports/{report_id}", json={"notes": "Slab poured"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["notes"], "Slab poured")

    def test_list_and_my_reports(self):
        self.login("contractor")
        self._report("2024-01-05")
        self._report("2024-01-06")

        body = self.client.get(f"/api/reports/project/{self.project_id}?limit=1").get_json()
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["total"], 2)
        self.assertEqual(body["pages"], 2)
        self.assertEqual(body["data"][0]["date"], "2024-01-06")

        body = self.client.get("/api/reports/user/my-reports").get_json()
        self.assertEqual(body["total"], 2)

        response = self.client.get(f"/api/reports/project/{self.project_id}?start_date=yesterday")
        self.assertEqual(response.status_code, 400)

    def test_delete_report(self):
        self.login("contractor")
        report_id = self._report().get_json()["data"]["id"]
        self.assertEqual(self.client.delete(f"/api/reports/{report_id}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/reports/{report_id}").status_code, 404)


class InventoryApiTestCase(BuildTrackTestCase):
    def _add_item(self, **extra):
        payload = {
            "project_id": self.project_id,
            "name": "Cement",
            "category": "concrete",
            "unit": "bags",
            "quantity": 12,
            "min_quantity": 10,
            "unit_cost": 6.25,
            "supplier": {"name": "BuildMart", "contact": "555-0100"},
        }
        payload.update(extra)
        return self.client.post("/api/inventory", json=payload)

    def test_add_and_adjust_quantity(self):
        self.login("contractor")
        response = self._add_item()
        self.assertEqual(response.status_code, 201)
        item = response.get_json()["data"]
        self.assertFalse(item["is_low_stock"])

        response = self.client.put(
            f"/api/inventory/{item['id']}/quantity",
            json={"quantity": 5, "operation": "subtract"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()["data"]["is_low_stock"])

        response = self.client.put(
            f"/api/inventory/{item['id']}/quantity",
            json={"quantity": 50, "operation": "subtract"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "Not enough quantity in stock.")

    def test_low_stock_alerts(self):
        self.login("contractor")
        self._add_item(name="Cement", quantity=2)
        self._add_item(name="Gravel", quantity=90)

        body = self.client.get("/api/inventory/alerts/low-stock").get_json()
        self.assertEqual([item["name"] for item in body["data"]], ["Cement"])

        body = self.client.get(f"/api/inventory/project/{self.project_id}?low_stock=true").get_json()
        self.assertEqual(body["count"], 1)

    def test_invalid_category(self):
        self.login("contractor")
        response = self._add_item(category="glass")
        self.assertEqual(response.status_code, 400)
        self.assertIn("category", response.get_json()["errors"])

    def test_client_cannot_add_items(self):
        self.login("client")
        self.assertEqual(self._add_item().status_code, 403)


if __name__ == "__main__":
    unittest.main()
