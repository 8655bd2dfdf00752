"""Daily site reports: one per project and calendar day."""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

from flask_sqlalchemy.pagination import Pagination
from sqlalchemy.exc import IntegrityError

from database import db
from models.daily_report import DailyReport
from models.user import User
from services.access_service import Capability, require_capability, require_project_access
from services.exceptions import DuplicateDateForProjectError, ForbiddenError, NotFoundError
from services.progress_service import mark_progress_stale

logger = logging.getLogger(__name__)

REPORT_FIELDS = (
    "date",
    "work_summary",
    "workers_on_site",
    "hours_worked",
    "weather",
    "equipment",
    "issues",
    "safety_incidents",
    "notes",
)


def _report_exists(project_id: int, report_date: date, *, exclude_id: int | None = None) -> bool:
    query = DailyReport.query.filter_by(project_id=project_id, date=report_date)
    if exclude_id is not None:
        query = query.filter(DailyReport.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def _flush_report(report: DailyReport) -> None:
    """Flush, turning a lost race on the (project, date) constraint into a duplicate error."""

    project_id, report_date = report.project_id, report.date
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Duplicate daily report for project %s on %s: %s", project_id, report_date, exc)
        raise DuplicateDateForProjectError() from exc


def _load_report(report_id: int) -> DailyReport:
    report = DailyReport.query.get(report_id)
    if report is None:
        raise NotFoundError("Report not found.")
    return report


def _require_submitter(report: DailyReport, user: User | None, verb: str) -> None:
    require_project_access(user, report.project_id)
    require_capability(user, Capability.MANAGE_REPORTS)
    if user.id != report.submitted_by_id:
        raise ForbiddenError(f"You can only {verb} your own reports.")


def get_daily_report(report_id: int, user: User | None) -> DailyReport:
    report = _load_report(report_id)
    require_project_access(user, report.project_id)
    return report


def create_daily_report(user: User | None, project_id: int, data: dict[str, Any]) -> DailyReport:
    """Record the day's report and refresh the project's progress. Contractors only."""

    project = require_project_access(user, project_id)
    require_capability(user, Capability.MANAGE_REPORTS)

    report_date = data.get("date") or date.today()
    if _report_exists(project.id, report_date):
        raise DuplicateDateForProjectError()

    report = DailyReport(project_id=project.id, date=report_date, submitted_by_id=user.id)
    for attribute in REPORT_FIELDS:
        if attribute != "date" and attribute in data and data[attribute] is not None:
            setattr(report, attribute, data[attribute])
    db.session.add(report)
    _flush_report(report)
    logger.info("Daily report %s for %s added to project %s", report.id, report.date, project.id)

    mark_progress_stale(project.id)
    return report


def update_daily_report(report_id: int, user: User | None, changes: dict[str, Any]) -> DailyReport:
    """Edit a report. Only its submitter may do so."""

    report = _load_report(report_id)
    _require_submitter(report, user, "edit")

    new_date = changes.get("date") or report.date
    if new_date != report.date and _report_exists(report.project_id, new_date, exclude_id=report.id):
        raise DuplicateDateForProjectError()

    report.date = new_date
    for attribute in REPORT_FIELDS:
        if attribute != "date" and attribute in changes:
            setattr(report, attribute, changes[attribute])
    _flush_report(report)
    return report


def delete_daily_report(report_id: int, user: User | None) -> None:
    report = _load_report(report_id)
    _require_submitter(report, user, "delete")
    project_id = report.project_id
    db.session.delete(report)
    db.session.flush()
    logger.info("Daily report %s deleted by user %s", report_id, user.id)
    mark_progress_stale(project_id)


def list_project_reports(
    project_id: int,
    user: User | None,
    *,
    start: date | None = None,
    end: date | None = None,
    page: int = 1,
    per_page: int = 10,
) -> Pagination:
    """Return one page of the project's reports, newest first."""

    require_project_access(user, project_id)
    query = DailyReport.query.filter(DailyReport.project_id == project_id)
    if start is not None:
        query = query.filter(DailyReport.date >= start)
    if end is not None:
        query = query.filter(DailyReport.date <= end)
    return query.order_by(DailyReport.date.desc()).paginate(page=page, per_page=per_page, error_out=False)


def list_user_reports(user: User | None, *, page: int = 1, per_page: int = 10) -> Pagination:
    """Return one page of the reports the contractor submitted."""

    require_capability(user, Capability.MANAGE_REPORTS)
    query = DailyReport.query.filter(DailyReport.submitted_by_id == user.id).order_by(DailyReport.date.desc())
    return query.paginate(page=page, per_page=per_page, error_out=False)
