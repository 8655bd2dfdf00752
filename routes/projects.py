"""Project endpoints."""
from __future__ import annotations

from flask import Blueprint, g, request

from forms import BudgetForm, ProgressOverrideForm, ProjectForm
from routes import bind_json_form, commit_or_error, json_list, json_success, login_required, page_args
from services.progress_service import override_project_progress
from services.project_service import (
    create_project,
    delete_project,
    get_project_detail,
    list_projects,
    refresh_project_progress,
    update_project,
    update_project_budget,
)

projects_bp = Blueprint("projects", __name__, url_prefix="/api/projects")


@projects_bp.route("", methods=["GET"])
@login_required
def index():
    page, per_page = page_args()
    result = list_projects(
        g.user,
        status=request.args.get("status"),
        priority=request.args.get("priority"),
        search=request.args.get("search"),
        page=page,
        per_page=per_page,
    )
    return json_list(
        [project.to_dict() for project in result.items],
        total=result.total,
        pages=result.pages,
        current_page=result.page,
    )


@projects_bp.route("", methods=["POST"])
@login_required
def create():
    data = bind_json_form(ProjectForm)
    project = create_project(g.user, data)
    error = commit_or_error("create the project")
    if error:
        return error
    return json_success(project.to_dict(), status=201, message="Project created.")


@projects_bp.route("/<int:project_id>", methods=["GET"])
@login_required
def show(project_id: int):
    detail = get_project_detail(project_id, g.user)
    error = commit_or_error("refresh the project progress")
    if error:
        return error
    return json_success(detail)


@projects_bp.route("/<int:project_id>", methods=["PUT"])
@login_required
def update(project_id: int):
    data = bind_json_form(ProjectForm, partial=True)
    project = update_project(project_id, g.user, data)
    error = commit_or_error("update the project")
    if error:
        return error
    return json_success(project.to_dict(), message="Project updated.")


@projects_bp.route("/<int:project_id>", methods=["DELETE"])
@login_required
def delete(project_id: int):
    delete_project(project_id, g.user)
    error = commit_or_error("delete the project")
    if error:
        return error
    return json_success(message="Project deleted.")


@projects_bp.route("/<int:project_id>/budget", methods=["PUT"])
@login_required
def budget(project_id: int):
    data = bind_json_form(BudgetForm, partial=True)
    project = update_project_budget(project_id, g.user, data)
    error = commit_or_error("update the budget")
    if error:
        return error
    return json_success(project.to_dict(), message="Budget updated.")


@projects_bp.route("/<int:project_id>/progress", methods=["PUT"])
@login_required
def override_progress(project_id: int):
    data = bind_json_form(ProgressOverrideForm)
    project = override_project_progress(project_id, g.user, data.get("progress"))
    error = commit_or_error("update the progress")
    if error:
        return error
    return json_success(project.to_dict(), message="Progress updated.")


@projects_bp.route("/<int:project_id>/calculate-progress", methods=["POST"])
@login_required
def calculate_progress(project_id: int):
    result = refresh_project_progress(project_id, g.user)
    error = commit_or_error("save the project progress")
    if error:
        return error
    return json_success(result)
