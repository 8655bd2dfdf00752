"""Base test case with a fresh database and one member per role."""

from __future__ import annotations

import unittest
from datetime import date

from app import app, db
from models.milestone import Milestone, MilestoneStatus
from models.project import Project
from models.user import User
from tests.utils.db import cleanup_test_database, provision_test_database, rebuild_database_engine

PROJECT_START = date(2024, 1, 1)
PROJECT_END = date(2024, 1, 31)


class BuildTrackTestCase(unittest.TestCase):
    """Seeds a project with its client, contractor and architect, plus outsiders.

    Subclasses that call services directly set ``push_context`` so the test
    body runs inside an application context.
    """

    push_context = False

    def setUp(self):
        self.db_name, self.db_uri, self._managed = provision_test_database()
        self._original_csrf_enabled = app.config.get("WTF_CSRF_ENABLED", True)
        self._original_database_uri = app.config.get("SQLALCHEMY_DATABASE_URI")
        app.config["TESTING"] = True
        app.config["SQLALCHEMY_DATABASE_URI"] = self.db_uri
        app.config["WTF_CSRF_ENABLED"] = False

        with app.app_context():
            rebuild_database_engine(db, self.db_uri)
            db.session.remove()
            db.drop_all()
            db.create_all()

            users = {
                "client": self._make_user("client", User.CLIENT),
                "contractor": self._make_user("contractor", User.CONTRACTOR),
                "architect": self._make_user("architect", User.ARCHITECT),
                "admin": self._make_user("admin", User.ADMIN),
                "other_contractor": self._make_user("other_contractor", User.CONTRACTOR),
                "other_architect": self._make_user("other_architect", User.ARCHITECT),
            }
            db.session.add_all(users.values())
            db.session.flush()

            project = Project(
                name="Riverside Villa",
                start_date=PROJECT_START,
                end_date=PROJECT_END,
                client_id=users["client"].id,
                contractor_id=users["contractor"].id,
                architect_id=users["architect"].id,
                created_by_id=users["contractor"].id,
            )
            db.session.add(project)
            db.session.commit()

            self.user_ids = {key: user.id for key, user in users.items()}
            self.project_id = project.id

        self.client = app.test_client()
        self._context = None
        if self.push_context:
            self._context = app.app_context()
            self._context.push()

    def tearDown(self):
        if self._context is not None:
            db.session.remove()
            self._context.pop()
        with app.app_context():
            db.session.remove()
            db.drop_all()
            db.engine.dispose()
        if self._managed:
            cleanup_test_database(self.db_name)
        app.config["SQLALCHEMY_DATABASE_URI"] = self._original_database_uri
        app.config["WTF_CSRF_ENABLED"] = self._original_csrf_enabled

    @staticmethod
    def _make_user(username: str, role: str) -> User:
        user = User(
            username=username,
            name=username.replace("_", " ").title(),
            email=f"{username}@example.com",
            role=role,
        )
        user.set_password("Password123")
        return user

    def user(self, key: str) -> User:
        return db.session.get(User, self.user_ids[key])

    def project(self) -> Project:
        return db.session.get(Project, self.project_id)

    def login(self, key: str):
        with self.client.session_transaction() as client_session:
            client_session["user_id"] = self.user_ids[key]

    def add_milestone(self, status: MilestoneStatus = MilestoneStatus.PENDING, *, progress: int = 0, title=None) -> int:
        """Insert a milestone in the given state directly, bypassing the workflow."""

        milestone = Milestone(
            project_id=self.project_id,
            title=title or f"{status.value} milestone",
            start_date=PROJECT_START,
            due_date=PROJECT_END,
            progress=progress,
            created_by_id=self.user_ids["contractor"],
        )
        milestone.status_enum = status
        db.session.add(milestone)
        db.session.commit()
        return milestone.id
