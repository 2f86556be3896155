from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from .serialization import to_json


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            raise AuthenticationError("Please log in to continue")
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                raise AuthenticationError("Please log in to continue")
            if session.get("role") not in allowed:
                raise AuthorizationError("You do not have permission for this action")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session["role"])


def require_self_or_roles(user_id: int, *roles: Role) -> None:
    """Students may only read their own data; staff roles may read anyone's."""
    if current_user_id() == int(user_id):
        return
    if current_role() not in roles:
        raise AuthorizationError("You do not have permission for this action")


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": to_json(data)}), status


def error(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def acting_user_id(requested: Optional[int], *roles: Role) -> int:
    """Users act on themselves unless their role lets them name someone else."""
    if requested is None or int(requested) == current_user_id():
        return current_user_id()
    if current_role() not in roles:
        raise AuthorizationError("You do not have permission for this action")
    return int(requested)
