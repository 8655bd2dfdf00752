"""Project progress derived from milestone approvals and daily report cadence.

Milestones carry MILESTONE_WEIGHT points, split evenly between them and
earned when a milestone is approved or completed. Daily reports carry the
remaining REPORT_WEIGHT points, earned one report per day of the project's
planned duration. A project without milestones is measured by its reports
alone.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from blinker import Namespace

from database import db
from models.daily_report import DailyReport
from models.milestone import DONE_STATUSES, Milestone, MilestoneStatus
from models.project import Project
from services.exceptions import ValidationError
from services.access_service import Capability, get_project_or_404, require_capability

logger = logging.getLogger(__name__)

MILESTONE_WEIGHT = 70
REPORT_WEIGHT = 30
SECONDS_PER_DAY = 24 * 60 * 60

progress_signals = Namespace()

# Sent with the project id whenever a milestone or daily report of the project
# changes. The receiver below is the only place progress gets recomputed.
project_progress_stale = progress_signals.signal("project-progress-stale")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def planned_days(start: date | datetime | None, end: date | datetime | None) -> int:
    """Return the planned duration in whole days, never less than one."""

    if start is None or end is None:
        return 1
    seconds = (end - start).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def calculate_progress(
    milestone_statuses: Iterable[str],
    report_count: int,
    start: date | datetime | None,
    end: date | datetime | None,
) -> int:
    """Return the 0-100 progress for the given milestone statuses and report count.

    Pure function of its arguments.
    """

    statuses = [MilestoneStatus(status) for status in milestone_statuses]
    total_days = planned_days(start, end)

    if statuses:
        done = sum(1 for status in statuses if status in DONE_STATUSES)
        milestone_score = done / len(statuses) * MILESTONE_WEIGHT
        report_score = min(report_count / total_days * REPORT_WEIGHT, REPORT_WEIGHT)
        return _round_half_up(milestone_score + report_score)

    if report_count > 0:
        return min(_round_half_up(report_count / total_days * 100), 100)

    return 0


@dataclass
class ProgressBreakdown:
    """Counts behind a project's progress value."""

    progress: int
    milestones_total: int = 0
    milestones_approved: int = 0
    milestones_in_progress: int = 0
    milestones_pending: int = 0
    milestones_rejected: int = 0
    reports_total: int = 0
    reports_this_week: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "milestones": {
                "total": self.milestones_total,
                "approved": self.milestones_approved,
                "in_progress": self.milestones_in_progress,
                "pending": self.milestones_pending,
                "rejected": self.milestones_rejected,
            },
            "daily_reports": {
                "total": self.reports_total,
                "this_week": self.reports_this_week,
            },
        }


def build_progress_breakdown(project: Project, *, today: date | None = None) -> ProgressBreakdown:
    """Load the project's milestones and reports and compute its progress."""

    statuses = [
        status
        for (status,) in db.session.query(Milestone.status).filter(Milestone.project_id == project.id)
    ]
    report_dates = [
        report_date
        for (report_date,) in db.session.query(DailyReport.date).filter(DailyReport.project_id == project.id)
    ]
    week_start = (today or date.today()) - timedelta(days=7)

    return ProgressBreakdown(
        progress=calculate_progress(statuses, len(report_dates), project.start_date, project.end_date),
        milestones_total=len(statuses),
        milestones_approved=sum(1 for status in statuses if MilestoneStatus(status) in DONE_STATUSES),
        milestones_in_progress=sum(1 for status in statuses if status == MilestoneStatus.IN_PROGRESS),
        milestones_pending=sum(
            1
            for status in statuses
            if status in (MilestoneStatus.PENDING, MilestoneStatus.AWAITING_APPROVAL)
        ),
        milestones_rejected=sum(1 for status in statuses if status == MilestoneStatus.REJECTED),
        reports_total=len(report_dates),
        reports_this_week=sum(1 for report_date in report_dates if report_date >= week_start),
    )


def recalculate_project_progress(project_id: int) -> int:
    """Recompute and store the project's progress, returning the new value."""

    project = get_project_or_404(project_id)
    # Pending milestone and report changes must be visible to the queries.
    db.session.flush()
    breakdown = build_progress_breakdown(project)
    if project.progress != breakdown.progress:
        logger.info(
            "Project %s progress %s -> %s",
            project.id,
            project.progress,
            breakdown.progress,
        )
        project.progress = breakdown.progress
        db.session.flush()
    return breakdown.progress


@project_progress_stale.connect
def _on_project_progress_stale(project_id: int, **_extra) -> int:
    return recalculate_project_progress(project_id)


def mark_progress_stale(project_id: int | None) -> None:
    """Announce that the project's milestones or reports changed."""

    if project_id is None:
        return
    project_progress_stale.send(project_id)


def override_project_progress(project_id: int, user, progress) -> Project:
    """Hand-set a project's progress. Admin only."""

    require_capability(
        user,
        Capability.OVERRIDE_PROGRESS,
        "Only an administrator can override project progress.",
    )
    project = get_project_or_404(project_id)
    if isinstance(progress, bool) or not isinstance(progress, int) or not 0 <= progress <= 100:
        raise ValidationError("Progress must be a whole number between 0 and 100.")
    logger.info("Project %s progress overridden to %s by user %s", project.id, progress, user.id)
    project.progress = progress
    db.session.flush()
    return project
