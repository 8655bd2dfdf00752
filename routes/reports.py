"""Daily report endpoints."""
from __future__ import annotations

from datetime import datetime

from flask import Blueprint, g, request

from forms import DailyReportForm
from routes import bind_json_form, commit_or_error, json_list, json_success, login_required, page_args
from services.exceptions import ValidationError
from services.report_service import (
    create_daily_report,
    delete_daily_report,
    get_daily_report,
    list_project_reports,
    list_user_reports,
    update_daily_report,
)

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _date_arg(name: str):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(errors={name: ["Not a valid date value."]}) from None


def _page_response(result):
    return json_list(
        [report.to_dict() for report in result.items],
        total=result.total,
        pages=result.pages,
        current_page=result.page,
    )


@reports_bp.route("/project/<int:project_id>", methods=["GET"])
@login_required
def for_project(project_id: int):
    page, per_page = page_args()
    result = list_project_reports(
        project_id,
        g.user,
        start=_date_arg("start_date"),
        end=_date_arg("end_date"),
        page=page,
        per_page=per_page,
    )
    return _page_response(result)


@reports_bp.route("/user/my-reports", methods=["GET"])
@login_required
def my_reports():
    page, per_page = page_args()
    return _page_response(list_user_reports(g.user, page=page, per_page=per_page))


@reports_bp.route("", methods=["POST"])
@login_required
def create():
    data = bind_json_form(DailyReportForm)
    report = create_daily_report(g.user, data.get("project_id"), data)
    error = commit_or_error("save the daily report")
    if error:
        return error
    return json_success(report.to_dict(), status=201, message="Daily report created.")


@reports_bp.route("/<int:report_id>", methods=["GET"])
@login_required
def show(report_id: int):
    return json_success(get_daily_report(report_id, g.user).to_dict())


@reports_bp.route("/<int:report_id>", methods=["PUT"])
@login_required
def update(report_id: int):
    data = bind_json_form(DailyReportForm, partial=True, exclude=("project_id",))
    report = update_daily_report(report_id, g.user, data)
    error = commit_or_error("update the daily report")
    if error:
        return error
    return json_success(report.to_dict(), message="Daily report updated.")


@reports_bp.route("/<int:report_id>", methods=["DELETE"])
@login_required
def delete(report_id: int):
    delete_daily_report(report_id, g.user)
    error = commit_or_error("delete the daily report")
    if error:
        return error
    return json_success(message="Daily report deleted.")
