import unittest

from app import app, db
from models.user import User
from tests.utils.cases import BuildTrackTestCase


class AuthApiTestCase(BuildTrackTestCase):
    def test_login_and_me(self):
        response = self.client.post("/api/auth/login", json={"username": "architect", "password": "Password123"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["role"], "architect")

        me = self.client.get("/api/auth/me").get_json()["data"]
        self.assertEqual(me["id"], self.user_ids["architect"])
        self.assertNotIn("password_hash", me)

    def test_wrong_password(self):
        response = self.client.post("/api/auth/login", json={"username": "architect", "password": "nope"})
        self.assertEqual(response.status_code, 401)

    def test_logout_clears_session(self):
        self.login("client")
        self.assertEqual(self.client.post("/api/auth/logout").status_code, 200)
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)

    def test_signup(self):
        response = self.client.post(
            "/api/auth/signup",
            json={
                "username": "new.client",
                "name": "New Client",
                "email": "new.client@example.com",
                "password": "Password123",
                "role": "client",
                "company": "Acme",
            },
        )
        self.assertEqual(response.status_code, 201)
        with app.app_context():
            user = User.query.filter_by(username="new.client").one()
            self.assertTrue(user.check_password("Password123"))
            self.assertEqual(user.company, "Acme")

    def test_signup_rejects_duplicates_and_admin_role(self):
        response = self.client.post(
            "/api/auth/signup",
            json={
                "username": "client",
                "name": "Copy",
                "email": "copy@example.com",
                "password": "Password123",
                "role": "admin",
            },
        )
        self.assertEqual(response.status_code, 400)
        errors = response.get_json()["errors"]
        self.assertIn("username", errors)
        self.assertIn("role", errors)

    def test_inactive_user_is_logged_out(self):
        with app.app_context():
            db.session.get(User, self.user_ids["client"]).is_active = False
            db.session.commit()
        self.login("client")
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)


class CsrfProtectionTestCase(BuildTrackTestCase):
    def setUp(self):
        super().setUp()
        app.config["WTF_CSRF_ENABLED"] = True

    def test_write_without_token_is_rejected(self):
        self.login("contractor")
        response = self.client.put(f"/api/projects/{self.project_id}", json={"name": "Renamed"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "csrf_error")

    def test_write_with_header_token_is_accepted(self):
        self.login("contractor")
        token = self.client.get("/api/auth/csrf").get_json()["csrf_token"]
        response = self.client.put(
            f"/api/projects/{self.project_id}",
            json={"name": "Renamed"},
            headers={"X-CSRFToken": token},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["name"], "Renamed")


if __name__ == "__main__":
    unittest.main()
