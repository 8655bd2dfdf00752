"""A Project is a construction job followed by its client, contractor and architect.

A Project has one client, and optionally one contractor and one architect
A User is a member of a Project when they are its client, contractor, architect or creator
A Project groups Milestones, Daily Reports and Inventory Items
A Project's progress is derived from its Milestones and Daily Reports, it is never typed in
(except by an Admin through the progress override)

"""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from database import db


class ProjectStatus(StrEnum):
    """Lifecycle status of a project."""

    PLANNING = "planning"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProjectPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Project(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=ProjectStatus.PLANNING.value)
    priority = db.Column(db.String(10), nullable=False, default=ProjectPriority.MEDIUM.value)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    actual_end_date = db.Column(db.Date, nullable=True)
    location = db.Column(db.JSON, nullable=True)
    budget_estimated = db.Column(db.Float, nullable=False, default=0)
    budget_actual = db.Column(db.Float, nullable=False, default=0)
    budget_breakdown = db.Column(db.JSON, nullable=True)
    progress = db.Column(db.Integer, nullable=False, default=0)
    tags = db.Column(db.JSON, nullable=True)

    client_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    contractor_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True, index=True)
    architect_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True, index=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    client = db.relationship("User", foreign_keys=[client_id])
    contractor = db.relationship("User", foreign_keys=[contractor_id])
    architect = db.relationship("User", foreign_keys=[architect_id])
    created_by = db.relationship("User", foreign_keys=[created_by_id])

    milestones = db.relationship(
        "Milestone",
        back_populates="project",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Milestone.order",
    )
    daily_reports = db.relationship(
        "DailyReport",
        back_populates="project",
        lazy=True,
        cascade="all, delete-orphan",
    )
    inventory_items = db.relationship(
        "InventoryItem",
        back_populates="project",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Project {self.name}>"

    @property
    def status_enum(self) -> ProjectStatus:
        """Return the status as an enum value."""

        return ProjectStatus(self.status)

    @status_enum.setter
    def status_enum(self, value: ProjectStatus) -> None:
        self.status = value.value

    @property
    def member_ids(self) -> set[int]:
        """Ids of the users that take part in the project."""

        candidates = (self.client_id, self.contractor_id, self.architect_id, self.created_by_id)
        return {user_id for user_id in candidates if user_id is not None}

    def has_member(self, user) -> bool:
        return bool(user is not None and user.id in self.member_ids)

    @property
    def budget(self) -> dict[str, object]:
        return {
            "estimated": self.budget_estimated or 0,
            "actual": self.budget_actual or 0,
            "breakdown": list(self.budget_breakdown or []),
        }

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation of the project."""

        def _member(user):
            return user.to_summary() if user is not None else None

        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "actual_end_date": self.actual_end_date.isoformat() if self.actual_end_date else None,
            "location": self.location or {},
            "budget": self.budget,
            "progress": self.progress,
            "tags": list(self.tags or []),
            "client": _member(self.client),
            "contractor": _member(self.contractor),
            "architect": _member(self.architect),
            "created_by": _member(self.created_by),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
