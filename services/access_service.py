"""Role capabilities and project membership checks."""
from __future__ import annotations

from enum import StrEnum

from sqlalchemy import or_

from models.project import Project
from models.user import User, UserRole
from services.exceptions import ForbiddenError, NotFoundError


class Capability(StrEnum):
    """Actions gated by role."""

    MANAGE_PROJECTS = "manage_projects"
    MANAGE_MILESTONES = "manage_milestones"
    SUBMIT_MILESTONES = "submit_milestones"
    REVIEW_MILESTONES = "review_milestones"
    MANAGE_REPORTS = "manage_reports"
    MANAGE_INVENTORY = "manage_inventory"
    OVERRIDE_PROGRESS = "override_progress"


ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.CONTRACTOR: frozenset(
        {
            Capability.MANAGE_PROJECTS,
            Capability.MANAGE_MILESTONES,
            Capability.SUBMIT_MILESTONES,
            Capability.MANAGE_REPORTS,
            Capability.MANAGE_INVENTORY,
        }
    ),
    UserRole.ARCHITECT: frozenset(
        {
            Capability.MANAGE_PROJECTS,
            Capability.MANAGE_MILESTONES,
            Capability.REVIEW_MILESTONES,
        }
    ),
    UserRole.CLIENT: frozenset(),
    UserRole.ADMIN: frozenset({Capability.OVERRIDE_PROGRESS}),
}


def _role_of(user: User | None) -> UserRole | None:
    if user is None:
        return None
    try:
        return UserRole(user.role)
    except ValueError:
        return None


def user_has_capability(user: User | None, capability: Capability) -> bool:
    """Return True when the user's role grants the capability."""

    role = _role_of(user)
    if role is None:
        return False
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def require_capability(user: User | None, capability: Capability, message: str | None = None) -> None:
    """Raise ForbiddenError unless the user's role grants the capability."""

    if user_has_capability(user, capability):
        return
    role = user.role if user is not None else "anonymous"
    raise ForbiddenError(
        message or f"Role '{role}' is not authorized to perform this action.",
    )


def user_can_access_project(user: User | None, project: Project | None) -> bool:
    """Return True when the given user can view the provided project."""

    if user is None or project is None:
        return False
    if _role_of(user) == UserRole.ADMIN:
        return True
    return project.has_member(user)


def project_access_filter(user: User):
    """SQL condition selecting the projects the user is a member of."""

    return or_(
        Project.client_id == user.id,
        Project.contractor_id == user.id,
        Project.architect_id == user.id,
        Project.created_by_id == user.id,
    )


def get_user_projects(user: User | None) -> list[Project]:
    """Return all projects visible to the user, newest first."""

    if user is None:
        return []
    query = Project.query
    if _role_of(user) != UserRole.ADMIN:
        query = query.filter(project_access_filter(user))
    return query.order_by(Project.created_at.desc(), Project.id.desc()).all()


def get_project_or_404(project_id: int | None) -> Project:
    project = Project.query.get(project_id) if project_id is not None else None
    if project is None:
        raise NotFoundError("Project not found.")
    return project


def require_project_access(user: User | None, project_id: int | None) -> Project:
    """Resolve the project and check membership.

    A missing project raises NotFoundError; an existing project the user is not
    a member of raises ForbiddenError.
    """

    project = get_project_or_404(project_id)
    if not user_can_access_project(user, project):
        raise ForbiddenError("You do not have access to this project.")
    return project
