"""Inventory endpoints."""
from __future__ import annotations

from flask import Blueprint, g, request

from forms import InventoryItemForm, QuantityAdjustmentForm
from routes import bind_json_form, commit_or_error, json_list, json_success, login_required
from services.inventory_service import (
    adjust_quantity,
    create_item,
    delete_item,
    get_item,
    list_low_stock,
    list_project_items,
    update_item,
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.route("/project/<int:project_id>", methods=["GET"])
@login_required
def for_project(project_id: int):
    items = list_project_items(
        project_id,
        g.user,
        category=request.args.get("category"),
        search=request.args.get("search"),
        low_stock=request.args.get("low_stock", "").lower() in {"1", "true", "yes"},
    )
    return json_list([item.to_dict() for item in items])


@inventory_bp.route("/alerts/low-stock", methods=["GET"])
@login_required
def low_stock():
    return json_list([item.to_dict() for item in list_low_stock(g.user)])


@inventory_bp.route("", methods=["POST"])
@login_required
def create():
    data = bind_json_form(InventoryItemForm)
    item = create_item(g.user, data.get("project_id"), data)
    error = commit_or_error("add the inventory item")
    if error:
        return error
    return json_success(item.to_dict(), status=201, message="Inventory item added.")


@inventory_bp.route("/<int:item_id>", methods=["GET"])
@login_required
def show(item_id: int):
    return json_success(get_item(item_id, g.user).to_dict())


@inventory_bp.route("/<int:item_id>", methods=["PUT"])
@login_required
def update(item_id: int):
    data = bind_json_form(InventoryItemForm, partial=True, exclude=("project_id",))
    item = update_item(item_id, g.user, data)
    error = commit_or_error("update the inventory item")
    if error:
        return error
    return json_success(item.to_dict(), message="Inventory item updated.")


@inventory_bp.route("/<int:item_id>", methods=["DELETE"])
@login_required
def delete(item_id: int):
    delete_item(item_id, g.user)
    error = commit_or_error("delete the inventory item")
    if error:
        return error
    return json_success(message="Inventory item deleted.")


@inventory_bp.route("/<int:item_id>/quantity", methods=["PUT"])
@login_required
def quantity(item_id: int):
    data = bind_json_form(QuantityAdjustmentForm)
    item = adjust_quantity(item_id, g.user, data.get("quantity"), data.get("operation"))
    error = commit_or_error("update the quantity")
    if error:
        return error
    return json_success(item.to_dict(), message="Quantity updated.")
