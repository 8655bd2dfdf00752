"""A Milestone is a trackable sub-goal of a Project with its own approval workflow

A Milestone belongs to exactly one Project
A Contractor reports the Milestone's progress and submits it for approval once it reaches 100%
An Architect approves (the Milestone is completed) or rejects a submitted Milestone
A Milestone can depend on other Milestones of the same Project
The approval status always follows the Milestone status (see APPROVAL_FOR_STATUS)

"""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from database import db


class MilestoneStatus(StrEnum):
    """Workflow states of a milestone."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    AWAITING_APPROVAL = "awaiting-approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class ApprovalStatus(StrEnum):
    """Outcome of the architect review."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


APPROVAL_FOR_STATUS = {
    MilestoneStatus.PENDING: ApprovalStatus.PENDING,
    MilestoneStatus.IN_PROGRESS: ApprovalStatus.PENDING,
    MilestoneStatus.AWAITING_APPROVAL: ApprovalStatus.PENDING,
    MilestoneStatus.APPROVED: ApprovalStatus.APPROVED,
    MilestoneStatus.COMPLETED: ApprovalStatus.APPROVED,
    MilestoneStatus.REJECTED: ApprovalStatus.REJECTED,
}

# Statuses that count as done when computing project progress
DONE_STATUSES = frozenset({MilestoneStatus.APPROVED, MilestoneStatus.COMPLETED})


milestone_dependencies = db.Table(
    "milestone_dependencies",
    db.Column("milestone_id", db.Integer, db.ForeignKey("milestone.id"), primary_key=True),
    db.Column("depends_on_id", db.Integer, db.ForeignKey("milestone.id"), primary_key=True),
)


class Milestone(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=MilestoneStatus.PENDING.value)
    start_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    completed_date = db.Column(db.DateTime, nullable=True)
    progress = db.Column(db.Integer, nullable=False, default=0)
    order = db.Column(db.Integer, nullable=False, default=0)

    approval_status = db.Column(db.String(20), nullable=False, default=ApprovalStatus.PENDING.value)
    approved_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    approval_comments = db.Column(db.Text, nullable=True)

    assigned_to_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    project = db.relationship("Project", back_populates="milestones")
    approved_by = db.relationship("User", foreign_keys=[approved_by_id])
    assigned_to = db.relationship("User", foreign_keys=[assigned_to_id])
    created_by = db.relationship("User", foreign_keys=[created_by_id])
    dependencies = db.relationship(
        "Milestone",
        secondary=milestone_dependencies,
        primaryjoin=id == milestone_dependencies.c.milestone_id,
        secondaryjoin=id == milestone_dependencies.c.depends_on_id,
        backref=db.backref("dependents", lazy="selectin"),
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Milestone {self.title}>"

    @property
    def status_enum(self) -> MilestoneStatus:
        """Return the status as an enum value."""

        return MilestoneStatus(self.status)

    @status_enum.setter
    def status_enum(self, value: MilestoneStatus) -> None:
        self.status = value.value
        self.approval_status = APPROVAL_FOR_STATUS[value].value

    @property
    def approval_status_enum(self) -> ApprovalStatus:
        return ApprovalStatus(self.approval_status)

    @property
    def is_done(self) -> bool:
        return self.status_enum in DONE_STATUSES

    def submit_for_approval(self) -> None:
        """Hand the milestone over to the architect."""

        self.status_enum = MilestoneStatus.AWAITING_APPROVAL

    def approve(self, reviewer, comments: str | None = None) -> None:
        """Record an approval; the milestone is completed at 100%."""

        now = datetime.utcnow()
        self.status_enum = MilestoneStatus.COMPLETED
        self.approved_by_id = reviewer.id
        self.approved_at = now
        self.approval_comments = comments
        self.progress = 100
        self.completed_date = now

    def reject(self, reviewer, comments: str | None = None) -> None:
        """Record a rejection."""

        self.status_enum = MilestoneStatus.REJECTED
        self.approved_by_id = reviewer.id
        self.approved_at = datetime.utcnow()
        self.approval_comments = comments

    def reopen(self, status: MilestoneStatus) -> None:
        """Move a rejected milestone back into work, keeping the reviewer comments."""

        self.status_enum = status
        self.approved_by_id = None
        self.approved_at = None

    @property
    def approval(self) -> dict[str, object]:
        return {
            "status": self.approval_status,
            "approved_by": self.approved_by.to_summary() if self.approved_by else None,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "comments": self.approval_comments,
        }

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation of the milestone."""

        project_name = self.project.name if self.project is not None else "Unknown project"
        return {
            "id": self.id,
            "project": {"id": self.project_id, "name": project_name},
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "completed_date": self.completed_date.isoformat() if self.completed_date else None,
            "progress": self.progress,
            "order": self.order,
            "approval": self.approval,
            "dependencies": [
                {"id": dependency.id, "title": dependency.title, "status": dependency.status}
                for dependency in self.dependencies
            ],
            "assigned_to": self.assigned_to.to_summary() if self.assigned_to else None,
            "created_by": self.created_by_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
