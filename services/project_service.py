"""Project creation, editing and the project views used by the API."""
from __future__ import annotations

import logging
from typing import Any

from flask_sqlalchemy.pagination import Pagination

from database import db
from models.project import Project, ProjectPriority, ProjectStatus
from models.user import User
from services.access_service import (
    Capability,
    project_access_filter,
    require_capability,
    require_project_access,
)
from services.exceptions import ValidationError
from services.progress_service import (
    build_progress_breakdown,
    mark_progress_stale,
    recalculate_project_progress,
)

logger = logging.getLogger(__name__)

PROJECT_FIELDS = (
    "name",
    "description",
    "status",
    "priority",
    "start_date",
    "end_date",
    "actual_end_date",
    "location",
    "tags",
    "client_id",
    "contractor_id",
    "architect_id",
)


def _check_members(data: dict[str, Any]) -> None:
    errors: dict[str, list[str]] = {}
    for field, role in (("client_id", None), ("contractor_id", User.CONTRACTOR), ("architect_id", User.ARCHITECT)):
        user_id = data.get(field)
        if user_id is None:
            continue
        member = User.query.get(user_id)
        if member is None:
            errors.setdefault(field, []).append("User does not exist.")
        elif role is not None and member.role != role:
            errors.setdefault(field, []).append(f"User must have the {role} role.")
    if errors:
        raise ValidationError(errors=errors)


def _check_dates(start_date, end_date) -> None:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValidationError(errors={"end_date": ["End date cannot be before the start date."]})


def _apply_budget(project: Project, budget: dict[str, Any]) -> None:
    errors: dict[str, list[str]] = {}
    for key in ("estimated", "actual"):
        value = budget.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            errors.setdefault(key, []).append("Must be a number of zero or more.")
    breakdown = budget.get("breakdown")
    if breakdown is not None:
        if not isinstance(breakdown, list) or not all(
            isinstance(line, dict) and line.get("category") for line in breakdown
        ):
            errors.setdefault("breakdown", []).append("Each line needs a category.")
    if errors:
        raise ValidationError(errors={"budget": errors})

    if budget.get("estimated") is not None:
        project.budget_estimated = budget["estimated"]
    if budget.get("actual") is not None:
        project.budget_actual = budget["actual"]
    if breakdown is not None:
        project.budget_breakdown = breakdown


def create_project(user: User | None, data: dict[str, Any]) -> Project:
    """Create a project owned by the current contractor or architect."""

    require_capability(user, Capability.MANAGE_PROJECTS)
    if data.get("client_id") is None:
        raise ValidationError(errors={"client_id": ["A project needs a client."]})
    _check_dates(data.get("start_date"), data.get("end_date"))
    _check_members(data)

    project = Project(created_by_id=user.id, progress=0)
    for attribute in PROJECT_FIELDS:
        if data.get(attribute) is not None:
            setattr(project, attribute, data[attribute])
    project.status = project.status or ProjectStatus.PLANNING.value
    project.priority = project.priority or ProjectPriority.MEDIUM.value
    if data.get("budget"):
        _apply_budget(project, data["budget"])
    db.session.add(project)
    db.session.flush()
    logger.info("Project %s created by user %s", project.id, user.id)
    return project


def update_project(project_id: int, user: User | None, changes: dict[str, Any]) -> Project:
    """Edit a project's details. Progress is not editable here."""

    project = require_project_access(user, project_id)
    require_capability(user, Capability.MANAGE_PROJECTS)
    _check_dates(changes.get("start_date", project.start_date), changes.get("end_date", project.end_date))
    _check_members(changes)
    if changes.get("client_id", project.client_id) is None:
        raise ValidationError(errors={"client_id": ["A project needs a client."]})

    dates_changed = any(
        field in changes and changes[field] != getattr(project, field)
        for field in ("start_date", "end_date")
    )
    for attribute in PROJECT_FIELDS:
        if attribute in changes:
            setattr(project, attribute, changes[attribute])
    if changes.get("budget"):
        _apply_budget(project, changes["budget"])
    db.session.flush()
    if dates_changed:
        # The planned duration feeds the report score.
        mark_progress_stale(project.id)
    return project


def update_project_budget(project_id: int, user: User | None, budget: dict[str, Any]) -> Project:
    project = require_project_access(user, project_id)
    require_capability(user, Capability.MANAGE_PROJECTS)
    _apply_budget(project, budget)
    db.session.flush()
    return project


def delete_project(project_id: int, user: User | None) -> None:
    project = require_project_access(user, project_id)
    require_capability(user, Capability.MANAGE_PROJECTS)
    db.session.delete(project)
    db.session.flush()
    logger.info("Project %s deleted by user %s", project_id, user.id)


def get_project_detail(project_id: int, user: User | None) -> dict[str, Any]:
    """Return the project with freshly recalculated progress and its breakdown."""

    project = require_project_access(user, project_id)
    recalculate_project_progress(project.id)
    payload = project.to_dict()
    payload["progress_breakdown"] = build_progress_breakdown(project).to_dict()
    return payload


def list_projects(
    user: User,
    *,
    status: str | None = None,
    priority: str | None = None,
    search: str | None = None,
    page: int = 1,
    per_page: int = 10,
) -> Pagination:
    """Return one page of the projects the user is a member of, newest first."""

    query = Project.query
    if user.role != User.ADMIN:
        query = query.filter(project_access_filter(user))
    if status:
        query = query.filter(Project.status == status)
    if priority:
        query = query.filter(Project.priority == priority)
    if search:
        query = query.filter(Project.name.ilike(f"%{search}%"))
    query = query.order_by(Project.created_at.desc(), Project.id.desc())
    return query.paginate(page=page, per_page=per_page, error_out=False)


def refresh_project_progress(project_id: int, user: User | None) -> dict[str, Any]:
    """Recalculate on demand and return the progress with its breakdown."""

    project = require_project_access(user, project_id)
    progress = recalculate_project_progress(project.id)
    return {
        "progress": progress,
        "breakdown": build_progress_breakdown(project).to_dict(),
    }
