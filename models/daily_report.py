"""A Daily Report records one day of site activity on a Project.

A Contractor submits at most one Daily Report per Project and calendar day
Only the submitter can edit or delete a Daily Report
Daily Reports count towards the Project's progress
"""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from database import db


class WeatherCondition(StrEnum):
    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    STORMY = "stormy"
    SNOWY = "snowy"
    WINDY = "windy"


class IssueSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DailyReport(db.Model):
    __tablename__ = "daily_report"

    __table_args__ = (
        db.UniqueConstraint("project_id", "date", name="uq_daily_report_project_date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    work_summary = db.Column(db.Text, nullable=False)
    workers_on_site = db.Column(db.Integer, nullable=False, default=0)
    hours_worked = db.Column(db.Float, nullable=False, default=0)
    weather = db.Column(db.JSON, nullable=True)
    equipment = db.Column(db.JSON, nullable=True)
    issues = db.Column(db.JSON, nullable=True)
    safety_incidents = db.Column(db.JSON, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    submitted_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    project = db.relationship("Project", back_populates="daily_reports")
    submitted_by = db.relationship("User", foreign_keys=[submitted_by_id])

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<DailyReport project={self.project_id} date={self.date}>"

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation of the report."""

        project_name = self.project.name if self.project is not None else "Unknown project"
        return {
            "id": self.id,
            "project": {"id": self.project_id, "name": project_name},
            "date": self.date.isoformat() if self.date else None,
            "work_summary": self.work_summary,
            "workers_on_site": self.workers_on_site,
            "hours_worked": self.hours_worked,
            "weather": self.weather or {},
            "equipment": list(self.equipment or []),
            "issues": list(self.issues or []),
            "safety_incidents": list(self.safety_incidents or []),
            "notes": self.notes,
            "submitted_by": self.submitted_by.to_summary() if self.submitted_by else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
