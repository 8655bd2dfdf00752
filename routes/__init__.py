"""Shared helpers for route blueprints."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Iterable

from flask import current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import MultiDict

from database import db
from services.exceptions import ValidationError

__all__ = [
    "bind_json_form",
    "commit_or_error",
    "json_error",
    "json_list",
    "json_success",
    "login_required",
    "page_args",
]

IGNORED_FIELDS = frozenset({"csrf_token"})


def json_success(data: Any = None, *, status: int = 200, message: str | None = None, **extra):
    payload: dict[str, Any] = {"success": True, "data": data}
    if message:
        payload["message"] = message
    payload.update(extra)
    return jsonify(payload), status


def json_list(items: list[dict[str, Any]], *, total: int | None = None, pages: int | None = None, current_page: int | None = None):
    payload: dict[str, Any] = {"success": True, "count": len(items), "data": items}
    if total is not None:
        payload.update(total=total, pages=pages, current_page=current_page)
    return jsonify(payload), 200


def json_error(message: str, *, status: int = 400, **extra):
    payload = {"success": False, "message": message}
    payload.update(extra)
    return jsonify(payload), status


def login_required(view):
    """Reject the request with 401 JSON unless a user is in the session."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        if g.get("user") is None:
            return json_error("Authentication required.", status=401, error="unauthenticated")
        return view(*args, **kwargs)

    return wrapped


def page_args() -> tuple[int, int]:
    """Read ``page`` and ``limit`` from the query string."""

    default_size = current_app.config.get("PAGE_SIZE", 10)
    page = request.args.get("page", 1, type=int) or 1
    per_page = request.args.get("limit", default_size, type=int) or default_size
    return max(page, 1), min(max(per_page, 1), 100)


def _as_formdata(payload: dict[str, Any]) -> MultiDict:
    formdata = MultiDict()
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, (int, float)):
            value = str(value)
        formdata.add(key, value)
    return formdata


def bind_json_form(
    form_cls,
    payload: Any = None,
    *,
    partial: bool = False,
    exclude: Iterable[str] = (),
    **form_kwargs,
) -> dict[str, Any]:
    """Validate a JSON body against a form and return the cleaned values.

    Only keys present in the body are returned. With ``partial`` the form's
    required fields are only enforced for keys the body carries.
    Extra keyword arguments go to the form constructor.
    """

    if payload is None:
        payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")

    excluded = set(exclude)
    form = form_cls(formdata=_as_formdata(payload), **form_kwargs)
    allowed = set(form._fields) - excluded
    unknown = sorted(set(payload) - allowed - IGNORED_FIELDS)
    if unknown:
        raise ValidationError(
            f"Unknown field(s): {', '.join(unknown)}.",
            errors={name: ["Unknown field."] for name in unknown},
        )

    form.validate()
    errors = {
        name: list(messages)
        for name, messages in form.errors.items()
        if name not in excluded and (not partial or name in payload)
    }
    if errors:
        raise ValidationError(errors=errors)
    return {name: form[name].data for name in payload if name in allowed}


def commit_or_error(action: str):
    """Commit the session. Returns an error response when the database refuses."""

    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logging.exception("Failed to %s", action)
        return json_error(f"Could not {action}. Please try again.", status=500, error="database_error")
    return None
