"""Materials and tools stocked for a Project."""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from database import db


class InventoryCategory(StrEnum):
    CONCRETE = "concrete"
    STEEL = "steel"
    WOOD = "wood"
    ELECTRICAL = "electrical"
    PLUMBING = "plumbing"
    FINISHING = "finishing"
    TOOLS = "tools"
    SAFETY = "safety"
    OTHER = "other"


class InventoryItem(db.Model):
    __tablename__ = "inventory_item"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(20), nullable=False, default=InventoryCategory.OTHER.value)
    description = db.Column(db.Text, nullable=True)
    unit = db.Column(db.String(40), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=0)
    min_quantity = db.Column(db.Float, nullable=False, default=0)
    unit_cost = db.Column(db.Float, nullable=False, default=0)
    supplier = db.Column(db.JSON, nullable=True)
    location = db.Column(db.String(200), nullable=True)
    last_restocked = db.Column(db.DateTime, nullable=True)
    added_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    project = db.relationship("Project", back_populates="inventory_items")
    added_by = db.relationship("User", foreign_keys=[added_by_id])

    def __repr__(self):
        return f"<InventoryItem {self.name}>"

    @property
    def is_low_stock(self) -> bool:
        """True when the stock has reached its minimum threshold."""

        return (self.quantity or 0) <= (self.min_quantity or 0)

    @property
    def total_value(self) -> float:
        return (self.quantity or 0) * (self.unit_cost or 0)

    def restock(self, amount: float) -> None:
        self.quantity = (self.quantity or 0) + amount
        self.last_restocked = datetime.utcnow()

    def to_dict(self) -> dict[str, object]:
        project_name = self.project.name if self.project is not None else "Unknown project"
        return {
            "id": self.id,
            "project": {"id": self.project_id, "name": project_name},
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "unit": self.unit,
            "quantity": self.quantity,
            "min_quantity": self.min_quantity,
            "unit_cost": self.unit_cost,
            "supplier": self.supplier or {},
            "location": self.location,
            "last_restocked": self.last_restocked.isoformat() if self.last_restocked else None,
            "is_low_stock": self.is_low_stock,
            "total_value": self.total_value,
            "added_by": self.added_by.to_summary() if self.added_by else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
