""" Represents a user in the system.

Every user has exactly one role, and the role decides what the user may do:
A Contractor runs the site: manages milestones, daily reports and inventory, and submits milestones for approval
An Architect designs and supervises: manages milestones and approves or rejects submitted ones
A Client follows the work of the projects they are a member of, read-only
An Admin can hand-set a project's progress and can see every project

A User can only see the projects they are a member of (see Project)

"""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from werkzeug.security import generate_password_hash, check_password_hash
from database import db


class UserRole(StrEnum):
    """Roles a user can hold."""

    CLIENT = "client"
    CONTRACTOR = "contractor"
    ARCHITECT = "architect"
    ADMIN = "admin"


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.Text)
    role = db.Column(db.String(20), nullable=False, default=UserRole.CLIENT.value)
    name = db.Column(db.String(80), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    phone = db.Column(db.String(40), nullable=True)
    company = db.Column(db.String(120), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    CLIENT = UserRole.CLIENT.value
    CONTRACTOR = UserRole.CONTRACTOR.value
    ARCHITECT = UserRole.ARCHITECT.value
    ADMIN = UserRole.ADMIN.value

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def role_enum(self) -> UserRole:
        """Return the role as an enum value."""

        return UserRole(self.role)

    @role_enum.setter
    def role_enum(self, value: UserRole) -> None:
        self.role = value.value

    @property
    def display_name(self) -> str:
        for value in (self.name, self.username, self.email):
            if value:
                return value
        return f"User {self.id}"

    def __repr__(self):
        return f"<User {self.id}>"

    def to_summary(self) -> dict[str, object]:
        """Return the short form used when the user is embedded in another payload."""

        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation of the user, without credentials."""

        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "phone": self.phone,
            "company": self.company,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
