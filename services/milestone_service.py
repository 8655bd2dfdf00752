"""Milestone workflow: legal transitions, who may trigger them, and their side effects.

Every transition is checked here, not in the routes, in this order:
the milestone must exist, the user must be a member of its project, the
user's role must allow the action, the milestone must be in a state the
action leaves from, and the action's own preconditions must hold.
"""
from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from sqlalchemy.exc import IntegrityError

from database import db
from models.milestone import ApprovalStatus, Milestone, MilestoneStatus
from models.project import Project
from models.user import User
from services.access_service import (
    Capability,
    get_user_projects,
    require_capability,
    require_project_access,
)
from services.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidDecisionError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from services.progress_service import mark_progress_stale

logger = logging.getLogger(__name__)


class MilestoneAction(StrEnum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    EDIT = "edit"
    DELETE = "delete"


TRANSITIONS: dict[tuple[MilestoneStatus, MilestoneAction], MilestoneStatus] = {
    (MilestoneStatus.IN_PROGRESS, MilestoneAction.SUBMIT): MilestoneStatus.AWAITING_APPROVAL,
    (MilestoneStatus.AWAITING_APPROVAL, MilestoneAction.APPROVE): MilestoneStatus.COMPLETED,
    (MilestoneStatus.AWAITING_APPROVAL, MilestoneAction.REJECT): MilestoneStatus.REJECTED,
}

# Edits and deletes keep the current state, so they are listed by the states they accept.
EDITABLE_STATUSES = frozenset(
    {
        MilestoneStatus.PENDING,
        MilestoneStatus.IN_PROGRESS,
        MilestoneStatus.AWAITING_APPROVAL,
        MilestoneStatus.REJECTED,
    }
)
DELETABLE_STATUSES = frozenset(
    {
        MilestoneStatus.PENDING,
        MilestoneStatus.IN_PROGRESS,
        MilestoneStatus.AWAITING_APPROVAL,
    }
)

# Statuses a milestone can be created with or edited into directly.
WORKING_STATUSES = frozenset({MilestoneStatus.PENDING, MilestoneStatus.IN_PROGRESS})

ACTION_CAPABILITIES = {
    MilestoneAction.SUBMIT: Capability.SUBMIT_MILESTONES,
    MilestoneAction.APPROVE: Capability.REVIEW_MILESTONES,
    MilestoneAction.REJECT: Capability.REVIEW_MILESTONES,
    MilestoneAction.EDIT: Capability.MANAGE_MILESTONES,
    MilestoneAction.DELETE: Capability.MANAGE_MILESTONES,
}

REVIEW_DECISIONS = {
    ApprovalStatus.APPROVED.value: MilestoneAction.APPROVE,
    ApprovalStatus.REJECTED.value: MilestoneAction.REJECT,
}

MILESTONE_FIELDS = (
    "title",
    "description",
    "status",
    "start_date",
    "due_date",
    "progress",
    "order",
    "assigned_to_id",
    "dependency_ids",
)

# Columns that cannot be cleared by sending null.
REQUIRED_FIELDS = ("title", "start_date", "due_date", "progress", "order")


def next_status(current: MilestoneStatus, action: MilestoneAction) -> MilestoneStatus:
    """Return the state the action leads to, or raise InvalidTransitionError."""

    if action == MilestoneAction.EDIT:
        allowed = current in EDITABLE_STATUSES
    elif action == MilestoneAction.DELETE:
        allowed = current in DELETABLE_STATUSES
    else:
        target = TRANSITIONS.get((current, action))
        if target is not None:
            return target
        allowed = False
    if not allowed:
        raise InvalidTransitionError(
            f"Cannot {action.value} a milestone that is {current.value}.",
            status_from=current.value,
            action=action.value,
        )
    return current


def allowed_actions(milestone: Milestone, user: User | None) -> list[str]:
    """Return the actions the user could take on the milestone right now."""

    actions = []
    for action, capability in ACTION_CAPABILITIES.items():
        try:
            require_capability(user, capability)
            next_status(milestone.status_enum, action)
        except (ForbiddenError, InvalidTransitionError):
            continue
        actions.append(action.value)
    return actions


def serialize_milestone(milestone: Milestone, user: User | None = None) -> dict[str, Any]:
    payload = milestone.to_dict()
    if user is not None:
        payload["allowed_actions"] = allowed_actions(milestone, user)
    return payload


def _load_milestone(milestone_id: int) -> Milestone:
    milestone = Milestone.query.get(milestone_id)
    if milestone is None:
        raise NotFoundError("Milestone not found.")
    return milestone


def _authorize(milestone: Milestone, user: User | None, action: MilestoneAction) -> MilestoneStatus:
    require_project_access(user, milestone.project_id)
    require_capability(user, ACTION_CAPABILITIES[action])
    return next_status(milestone.status_enum, action)


def get_milestone(milestone_id: int, user: User | None) -> Milestone:
    milestone = _load_milestone(milestone_id)
    require_project_access(user, milestone.project_id)
    return milestone


def list_project_milestones(project_id: int, user: User | None) -> list[Milestone]:
    """Return the project's milestones in display order."""

    require_project_access(user, project_id)
    return (
        Milestone.query.filter_by(project_id=project_id)
        .order_by(Milestone.order.asc(), Milestone.id.asc())
        .all()
    )


def list_awaiting_approval(user: User | None) -> list[Milestone]:
    """Return milestones waiting for review in the architect's projects."""

    require_capability(user, Capability.REVIEW_MILESTONES)
    project_ids = [project.id for project in get_user_projects(user)]
    if not project_ids:
        return []
    return (
        Milestone.query.filter(
            Milestone.project_id.in_(project_ids),
            Milestone.status == MilestoneStatus.AWAITING_APPROVAL.value,
        )
        .order_by(Milestone.updated_at.desc(), Milestone.id.desc())
        .all()
    )


def _resolve_dependencies(project: Project, dependency_ids, milestone: Milestone | None) -> list[Milestone]:
    ids = list(dict.fromkeys(dependency_ids or []))
    if milestone is not None and milestone.id in ids:
        raise ValidationError(
            "A milestone cannot depend on itself.",
            errors={"dependency_ids": ["A milestone cannot depend on itself."]},
        )
    if not ids:
        return []
    dependencies = Milestone.query.filter(Milestone.id.in_(ids)).all()
    same_project = [dependency for dependency in dependencies if dependency.project_id == project.id]
    if len(same_project) != len(ids):
        message = "Dependencies must be milestones of the same project."
        raise ValidationError(message, errors={"dependency_ids": [message]})
    return dependencies


def _check_dates_and_progress(start_date, due_date, progress) -> None:
    errors: dict[str, list[str]] = {}
    if start_date is not None and due_date is not None and start_date > due_date:
        errors.setdefault("due_date", []).append("Due date cannot be before the start date.")
    if progress is not None and not 0 <= progress <= 100:
        errors.setdefault("progress", []).append("Progress must be between 0 and 100.")
    if errors:
        raise ValidationError(errors=errors)


def _flush_workflow(milestone: Milestone, action: MilestoneAction) -> None:
    """Flush a workflow write, reporting an integrity violation as a conflict."""

    milestone_id = milestone.id
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Conflicting %s on milestone %s: %s", action.value, milestone_id, exc)
        raise ConflictError() from exc


def _check_assignee(assigned_to_id) -> None:
    if assigned_to_id is not None and User.query.get(assigned_to_id) is None:
        message = "Assigned user does not exist."
        raise ValidationError(message, errors={"assigned_to_id": [message]})


def create_milestone(user: User | None, project_id: int, data: dict[str, Any]) -> Milestone:
    """Create a milestone in the project. Contractors and architects only."""

    project = require_project_access(user, project_id)
    require_capability(user, Capability.MANAGE_MILESTONES)

    status = MilestoneStatus(data.get("status") or MilestoneStatus.PENDING.value)
    if status not in WORKING_STATUSES:
        raise ValidationError(
            "A new milestone must start as pending or in-progress.",
            errors={"status": ["A new milestone must start as pending or in-progress."]},
        )
    progress = data.get("progress") or 0
    _check_dates_and_progress(data.get("start_date"), data.get("due_date"), progress)
    _check_assignee(data.get("assigned_to_id"))

    milestone = Milestone(
        project_id=project.id,
        title=data["title"],
        description=data.get("description"),
        start_date=data["start_date"],
        due_date=data["due_date"],
        progress=progress,
        order=data.get("order") or 0,
        assigned_to_id=data.get("assigned_to_id"),
        created_by_id=user.id,
    )
    milestone.status_enum = status
    milestone.dependencies = _resolve_dependencies(project, data.get("dependency_ids"), None)
    db.session.add(milestone)
    db.session.flush()
    logger.info("Milestone %s created in project %s by user %s", milestone.id, project.id, user.id)
    mark_progress_stale(project.id)
    return milestone


def update_milestone(milestone_id: int, user: User | None, changes: dict[str, Any]) -> Milestone:
    """Apply a direct edit. Status may only be moved to pending or in-progress here,
    and not at all while the milestone awaits review.
    """

    milestone = _load_milestone(milestone_id)
    _authorize(milestone, user, MilestoneAction.EDIT)
    project = milestone.project

    unknown = set(changes) - set(MILESTONE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}.")

    empty = sorted(field for field in REQUIRED_FIELDS if field in changes and changes[field] is None)
    if empty:
        raise ValidationError(errors={field: ["This field cannot be empty."] for field in empty})

    current = milestone.status_enum
    requested = MilestoneStatus(changes["status"]) if changes.get("status") else current
    if requested != current and current == MilestoneStatus.AWAITING_APPROVAL:
        raise InvalidTransitionError(
            "A milestone awaiting approval leaves that state only through review.",
            status_from=current.value,
            action=MilestoneAction.EDIT.value,
        )
    if requested != current and requested not in WORKING_STATUSES:
        raise InvalidTransitionError(
            f"A milestone cannot be edited into {requested.value}; use the approval workflow.",
            status_from=current.value,
            action=MilestoneAction.EDIT.value,
        )

    start_date = changes.get("start_date", milestone.start_date)
    due_date = changes.get("due_date", milestone.due_date)
    progress = changes.get("progress", milestone.progress)
    _check_dates_and_progress(start_date, due_date, progress)
    if requested == MilestoneStatus.AWAITING_APPROVAL and progress != 100:
        raise ValidationError(
            "A milestone awaiting approval must stay at 100%.",
            errors={"progress": ["A milestone awaiting approval must stay at 100%."]},
        )
    if "assigned_to_id" in changes:
        _check_assignee(changes["assigned_to_id"])

    for attribute in ("title", "description", "order", "assigned_to_id"):
        if attribute in changes:
            setattr(milestone, attribute, changes[attribute])
    milestone.start_date = start_date
    milestone.due_date = due_date
    milestone.progress = progress
    if "dependency_ids" in changes:
        milestone.dependencies = _resolve_dependencies(project, changes["dependency_ids"], milestone)

    if requested != current:
        if current == MilestoneStatus.REJECTED:
            milestone.reopen(requested)
        else:
            milestone.status_enum = requested
        logger.info(
            "Milestone %s moved %s -> %s by user %s", milestone.id, current.value, requested.value, user.id
        )

    _flush_workflow(milestone, MilestoneAction.EDIT)
    mark_progress_stale(milestone.project_id)
    return milestone


def delete_milestone(milestone_id: int, user: User | None) -> None:
    milestone = _load_milestone(milestone_id)
    _authorize(milestone, user, MilestoneAction.DELETE)
    project_id = milestone.project_id
    db.session.delete(milestone)
    db.session.flush()
    logger.info("Milestone %s deleted by user %s", milestone_id, user.id)
    mark_progress_stale(project_id)


def submit_milestone_for_approval(milestone_id: int, user: User | None) -> Milestone:
    """Hand a finished milestone to the architect. Contractors only."""

    milestone = _load_milestone(milestone_id)
    _authorize(milestone, user, MilestoneAction.SUBMIT)
    if (milestone.progress or 0) != 100:
        raise ValidationError(
            "Milestone progress must reach 100% before submission.",
            errors={"progress": ["Milestone progress must reach 100% before submission."]},
        )
    milestone.submit_for_approval()
    _flush_workflow(milestone, MilestoneAction.SUBMIT)
    logger.info("Milestone %s submitted for approval by user %s", milestone.id, user.id)
    return milestone


def review_milestone(
    milestone_id: int,
    user: User | None,
    decision: str | None,
    comments: str | None = None,
) -> tuple[Milestone, int]:
    """Approve or reject a submitted milestone. Architects only.

    Returns the milestone and the recalculated progress of its project.
    """

    milestone = _load_milestone(milestone_id)
    require_project_access(user, milestone.project_id)
    require_capability(user, Capability.REVIEW_MILESTONES)
    action = REVIEW_DECISIONS.get(decision or "")
    if action is None:
        raise InvalidDecisionError()
    next_status(milestone.status_enum, action)

    if action == MilestoneAction.APPROVE:
        milestone.approve(user, comments)
    else:
        milestone.reject(user, comments)
    _flush_workflow(milestone, action)
    logger.info("Milestone %s %s by user %s", milestone.id, decision, user.id)

    mark_progress_stale(milestone.project_id)
    project = Project.query.get(milestone.project_id)
    return milestone, project.progress


__all__ = [
    "ACTION_CAPABILITIES",
    "MilestoneAction",
    "TRANSITIONS",
    "allowed_actions",
    "create_milestone",
    "delete_milestone",
    "get_milestone",
    "list_awaiting_approval",
    "list_project_milestones",
    "next_status",
    "review_milestone",
    "serialize_milestone",
    "submit_milestone_for_approval",
    "update_milestone",
]
