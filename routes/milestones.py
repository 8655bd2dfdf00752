"""Milestone endpoints, including the submit and approval workflow."""
from __future__ import annotations

from flask import Blueprint, g

from forms import MilestoneForm, MilestoneReviewForm
from routes import bind_json_form, commit_or_error, json_list, json_success, login_required
from services.milestone_service import (
    create_milestone,
    delete_milestone,
    get_milestone,
    list_awaiting_approval,
    list_project_milestones,
    review_milestone,
    serialize_milestone,
    submit_milestone_for_approval,
    update_milestone,
)

milestones_bp = Blueprint("milestones", __name__, url_prefix="/api/milestones")


@milestones_bp.route("/project/<int:project_id>", methods=["GET"])
@login_required
def for_project(project_id: int):
    milestones = list_project_milestones(project_id, g.user)
    return json_list([serialize_milestone(milestone, g.user) for milestone in milestones])


@milestones_bp.route("/status/pending-approval", methods=["GET"])
@login_required
def pending_approval():
    milestones = list_awaiting_approval(g.user)
    return json_list([serialize_milestone(milestone, g.user) for milestone in milestones])


@milestones_bp.route("", methods=["POST"])
@login_required
def create():
    data = bind_json_form(MilestoneForm)
    milestone = create_milestone(g.user, data.get("project_id"), data)
    error = commit_or_error("create the milestone")
    if error:
        return error
    return json_success(serialize_milestone(milestone, g.user), status=201, message="Milestone created.")


@milestones_bp.route("/<int:milestone_id>", methods=["GET"])
@login_required
def show(milestone_id: int):
    milestone = get_milestone(milestone_id, g.user)
    return json_success(serialize_milestone(milestone, g.user))


@milestones_bp.route("/<int:milestone_id>", methods=["PUT"])
@login_required
def update(milestone_id: int):
    data = bind_json_form(MilestoneForm, partial=True, exclude=("project_id",))
    milestone = update_milestone(milestone_id, g.user, data)
    error = commit_or_error("update the milestone")
    if error:
        return error
    return json_success(serialize_milestone(milestone, g.user), message="Milestone updated.")


@milestones_bp.route("/<int:milestone_id>", methods=["DELETE"])
@login_required
def delete(milestone_id: int):
    delete_milestone(milestone_id, g.user)
    error = commit_or_error("delete the milestone")
    if error:
        return error
    return json_success(message="Milestone deleted.")


@milestones_bp.route("/<int:milestone_id>/submit", methods=["PUT"])
@login_required
def submit(milestone_id: int):
    milestone = submit_milestone_for_approval(milestone_id, g.user)
    error = commit_or_error("submit the milestone")
    if error:
        return error
    return json_success(serialize_milestone(milestone, g.user), message="Milestone submitted for approval.")


@milestones_bp.route("/<int:milestone_id>/approve", methods=["PUT"])
@login_required
def review(milestone_id: int):
    data = bind_json_form(MilestoneReviewForm)
    milestone, progress = review_milestone(
        milestone_id,
        g.user,
        data.get("status"),
        data.get("comments"),
    )
    error = commit_or_error("record the review")
    if error:
        return error
    return json_success(
        serialize_milestone(milestone, g.user),
        message=f"Milestone {data.get('status')}.",
        project_progress=progress,
    )
