"""User directory endpoints used when assigning project members."""
from __future__ import annotations

from flask import Blueprint, request

from routes import json_list, json_success, login_required
from services.user_service import get_user_detail, list_users, list_users_by_role

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.route("", methods=["GET"])
@login_required
def index():
    users = list_users(role=request.args.get("role"), search=request.args.get("search"))
    return json_list([user.to_dict() for user in users])


@users_bp.route("/<int:user_id>", methods=["GET"])
@login_required
def show(user_id: int):
    return json_success(get_user_detail(user_id))


@users_bp.route("/role/<role>", methods=["GET"])
@login_required
def by_role(role: str):
    return json_list([user.to_summary() | {"company": user.company} for user in list_users_by_role(role)])
