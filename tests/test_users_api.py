import unittest

from app import app, db
from models.user import User
from tests.utils.cases import BuildTrackTestCase


class UserDirectoryApiTestCase(BuildTrackTestCase):
    def test_requires_login(self):
        self.assertEqual(self.client.get("/api/users").status_code, 401)

    def test_filter_by_role_and_search(self):
        self.login("client")
        body = self.client.get("/api/users?role=architect").get_json()
        self.assertEqual([user["username"] for user in body["data"]], ["architect", "other_architect"])
        self.assertEqual(body["count"], 2)

        body = self.client.get("/api/users?search=other_con").get_json()
        self.assertEqual([user["username"] for user in body["data"]], ["other_contractor"])
        self.assertNotIn("password_hash", body["data"][0])

    def test_inactive_users_are_hidden(self):
        with app.app_context():
            db.session.get(User, self.user_ids["other_contractor"]).is_active = False
            db.session.commit()
        self.login("architect")
        body = self.client.get("/api/users/role/contractor").get_json()
        self.assertEqual([user["name"] for user in body["data"]], ["Contractor"])
        self.assertEqual(set(body["data"][0]), {"id", "name", "email", "company"})

    def test_unknown_role_is_rejected(self):
        self.login("architect")
        response = self.client.get("/api/users/role/plumber")
        self.assertEqual(response.status_code, 400)
        self.assertIn("role", response.get_json()["errors"])

    def test_user_detail_lists_projects(self):
        self.login("client")
        data = self.client.get(f"/api/users/{self.user_ids['contractor']}").get_json()["data"]
        self.assertEqual(data["role"], "contractor")
        self.assertEqual(data["projects"], [{"id": self.project_id, "name": "Riverside Villa", "status": "planning"}])

        data = self.client.get(f"/api/users/{self.user_ids['other_contractor']}").get_json()["data"]
        self.assertEqual(data["projects"], [])

        self.assertEqual(self.client.get("/api/users/9999").status_code, 404)


class ProfileApiTestCase(BuildTrackTestCase):
    def test_profile_update_persists_changes(self):
        self.login("contractor")
        response = self.client.put(
            "/api/auth/profile",
            json={"name": "Site Lead", "phone": "555-0101", "company": "Stone & Sons"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["name"], "Site Lead")

        with app.app_context():
            refreshed = db.session.get(User, self.user_ids["contractor"])
            self.assertEqual(refreshed.name, "Site Lead")
            self.assertEqual(refreshed.company, "Stone & Sons")
            self.assertEqual(refreshed.email, "contractor@example.com")

    def test_profile_update_rejects_duplicate_email(self):
        self.login("contractor")
        response = self.client.put("/api/auth/profile", json={"email": "architect@example.com"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["errors"]["email"], ["This email is already in use."])

        response = self.client.put("/api/auth/profile", json={"email": "contractor@example.com"})
        self.assertEqual(response.status_code, 200)

    def test_profile_cannot_change_role(self):
        self.login("client")
        response = self.client.put("/api/auth/profile", json={"role": "admin"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("role", response.get_json()["errors"])

    def test_password_change_requires_correct_current_password(self):
        self.login("client")
        response = self.client.put(
            "/api/auth/change-password",
            json={
                "current_password": "WrongPassword!",
                "new_password": "Newpass123",
                "confirm_password": "Newpass123",
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.get_json()["errors"]["current_password"],
            ["Current password is incorrect."],
        )

    def test_password_change_requires_matching_confirmation(self):
        self.login("client")
        response = self.client.put(
            "/api/auth/change-password",
            json={
                "current_password": "Password123",
                "new_password": "Newpass123",
                "confirm_password": "Other123",
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("confirm_password", response.get_json()["errors"])

    def test_password_change_successfully_updates_hash(self):
        self.login("client")
        response = self.client.put(
            "/api/auth/change-password",
            json={
                "current_password": "Password123",
                "new_password": "BrandNew123",
                "confirm_password": "BrandNew123",
            },
        )
        self.assertEqual(response.status_code, 200)

        with app.app_context():
            refreshed = db.session.get(User, self.user_ids["client"])
            self.assertTrue(refreshed.check_password("BrandNew123"))
            self.assertFalse(refreshed.check_password("Password123"))


if __name__ == "__main__":
    unittest.main()
