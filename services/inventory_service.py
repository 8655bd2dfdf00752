"""Project inventory: stock levels and low stock alerts."""
from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from database import db
from models.inventory_item import InventoryItem
from models.user import User
from services.access_service import (
    Capability,
    get_user_projects,
    require_capability,
    require_project_access,
)
from services.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

INVENTORY_FIELDS = (
    "name",
    "category",
    "description",
    "unit",
    "quantity",
    "min_quantity",
    "unit_cost",
    "supplier",
    "location",
)


class QuantityOperation(StrEnum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"


def _load_item(item_id: int) -> InventoryItem:
    item = InventoryItem.query.get(item_id)
    if item is None:
        raise NotFoundError("Inventory item not found.")
    return item


def _check_quantities(quantity, min_quantity) -> None:
    errors: dict[str, list[str]] = {}
    if quantity is not None and quantity < 0:
        errors["quantity"] = ["Quantity cannot be negative."]
    if min_quantity is not None and min_quantity < 0:
        errors["min_quantity"] = ["Minimum quantity cannot be negative."]
    if errors:
        raise ValidationError(errors=errors)


def get_item(item_id: int, user: User | None) -> InventoryItem:
    item = _load_item(item_id)
    require_project_access(user, item.project_id)
    return item


def list_project_items(
    project_id: int,
    user: User | None,
    *,
    category: str | None = None,
    search: str | None = None,
    low_stock: bool = False,
) -> list[InventoryItem]:
    require_project_access(user, project_id)
    query = InventoryItem.query.filter(InventoryItem.project_id == project_id)
    if category:
        query = query.filter(InventoryItem.category == category)
    if search:
        query = query.filter(InventoryItem.name.ilike(f"%{search}%"))
    items = query.order_by(InventoryItem.category.asc(), InventoryItem.name.asc()).all()
    if low_stock:
        items = [item for item in items if item.is_low_stock]
    return items


def create_item(user: User | None, project_id: int, data: dict[str, Any]) -> InventoryItem:
    project = require_project_access(user, project_id)
    require_capability(user, Capability.MANAGE_INVENTORY)
    _check_quantities(data.get("quantity"), data.get("min_quantity"))

    item = InventoryItem(project_id=project.id, added_by_id=user.id)
    for attribute in INVENTORY_FIELDS:
        if data.get(attribute) is not None:
            setattr(item, attribute, data[attribute])
    db.session.add(item)
    db.session.flush()
    return item


def update_item(item_id: int, user: User | None, changes: dict[str, Any]) -> InventoryItem:
    item = _load_item(item_id)
    require_project_access(user, item.project_id)
    require_capability(user, Capability.MANAGE_INVENTORY)
    _check_quantities(changes.get("quantity"), changes.get("min_quantity"))
    for attribute in INVENTORY_FIELDS:
        if attribute in changes:
            setattr(item, attribute, changes[attribute])
    db.session.flush()
    return item


def delete_item(item_id: int, user: User | None) -> None:
    item = _load_item(item_id)
    require_project_access(user, item.project_id)
    require_capability(user, Capability.MANAGE_INVENTORY)
    db.session.delete(item)
    db.session.flush()


def adjust_quantity(item_id: int, user: User | None, quantity: float, operation: str | None) -> InventoryItem:
    """Add to, subtract from, or overwrite the stock of an item."""

    item = _load_item(item_id)
    require_project_access(user, item.project_id)
    require_capability(user, Capability.MANAGE_INVENTORY)
    if quantity is None or quantity < 0:
        raise ValidationError(errors={"quantity": ["Quantity must be zero or more."]})

    try:
        op = QuantityOperation(operation or QuantityOperation.SET.value)
    except ValueError:
        raise ValidationError(errors={"operation": ["Operation must be add, subtract or set."]}) from None

    if op == QuantityOperation.ADD:
        item.restock(quantity)
    elif op == QuantityOperation.SUBTRACT:
        if (item.quantity or 0) < quantity:
            raise ValidationError("Not enough quantity in stock.")
        item.quantity = (item.quantity or 0) - quantity
    else:
        item.quantity = quantity
    db.session.flush()
    if item.is_low_stock:
        logger.info("Inventory item %s is low on stock (%s %s)", item.id, item.quantity, item.unit)
    return item


def list_low_stock(user: User | None) -> list[InventoryItem]:
    """Return the low stock items of every project the contractor works on."""

    require_capability(user, Capability.MANAGE_INVENTORY)
    project_ids = [project.id for project in get_user_projects(user)]
    if not project_ids:
        return []
    items = (
        InventoryItem.query.filter(InventoryItem.project_id.in_(project_ids))
        .order_by(InventoryItem.project_id.asc(), InventoryItem.name.asc())
        .all()
    )
    return [item for item in items if item.is_low_stock]
