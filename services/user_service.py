"""User directory used to pick project members, and the signed-in user's own profile."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import or_

from database import db
from models.project import Project
from models.user import User, UserRole
from services.access_service import get_user_projects
from services.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "email", "phone", "company")


def _parse_role(role: str) -> UserRole:
    try:
        return UserRole(role)
    except ValueError:
        raise ValidationError(errors={"role": [f"Unknown role: {role}."]}) from None


def list_users(*, role: str | None = None, search: str | None = None) -> list[User]:
    """Return active users, optionally narrowed by role and a name or email search."""

    query = User.query.filter(User.is_active.is_(True))
    if role:
        query = query.filter(User.role == _parse_role(role).value)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    return query.order_by(User.name.asc(), User.id.asc()).all()


def list_users_by_role(role: str) -> list[User]:
    return list_users(role=role)


def get_user_detail(user_id: int) -> dict[str, Any]:
    """Return the user with the projects they are a member of."""

    user = User.query.get(user_id)
    if user is None:
        raise NotFoundError("User not found.")
    payload = user.to_dict()
    payload["projects"] = [_project_summary(project) for project in get_user_projects(user)]
    return payload


def _project_summary(project: Project) -> dict[str, Any]:
    return {"id": project.id, "name": project.name, "status": project.status}


def update_profile(user: User, changes: dict[str, Any]) -> User:
    """Apply the profile fields present in ``changes``. Role and username stay fixed."""

    for attribute in PROFILE_FIELDS:
        if attribute not in changes:
            continue
        if attribute in ("name", "email") and not changes[attribute]:
            raise ValidationError(errors={attribute: ["This field cannot be empty."]})
        setattr(user, attribute, changes[attribute])
    db.session.flush()
    logger.info("User %s updated their profile", user.id)
    return user


def change_password(user: User, new_password: str) -> None:
    user.set_password(new_password)
    db.session.flush()
    logger.info("User %s changed their password", user.id)


__all__ = [
    "change_password",
    "get_user_detail",
    "list_users",
    "list_users_by_role",
    "update_profile",
]
