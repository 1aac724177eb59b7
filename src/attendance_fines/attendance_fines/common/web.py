"""Flask helpers shared by the controllers (session user, auth guards, JSON errors)."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import jsonify, session

from ..core.enums import CheckInErrorCode, Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CheckInError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..members.service import SessionUser

logger = logging.getLogger(__name__)

_CHECKIN_STATUS = {
    CheckInErrorCode.MALFORMED_TOKEN: 400,
    CheckInErrorCode.NOT_AUTHENTICATED: 401,
    CheckInErrorCode.WRONG_ORGANIZATION: 403,
    CheckInErrorCode.EVENT_NOT_FOUND: 404,
    CheckInErrorCode.EVENT_ENDED: 409,
}


def error_response(status: int, code: str, message: str):
    return jsonify({"success": False, "code": code, "message": message}), status


def domain_error_response(e: DomainError):
    if isinstance(e, CheckInError):
        return error_response(_CHECKIN_STATUS.get(e.code, 400), e.code.value, str(e))
    if isinstance(e, AuthenticationError):
        return error_response(401, "AUTHENTICATION_FAILED", str(e))
    if isinstance(e, AuthorizationError):
        return error_response(403, "FORBIDDEN", str(e))
    if isinstance(e, NotFoundError):
        return error_response(404, "NOT_FOUND", str(e))
    if isinstance(e, ValidationError):
        return error_response(400, getattr(e, "code", "VALIDATION_ERROR"), str(e))
    return error_response(400, "DOMAIN_ERROR", str(e))


def server_error_response(what: str):
    logger.exception("unexpected error while %s", what)
    return error_response(500, "SERVER_ERROR", f"System error while {what}")


def login_session(user: SessionUser) -> None:
    session["user_id"] = user.user_id
    session["org_id"] = user.org_id
    session["role"] = user.role.value
    session["name"] = user.full_name


def current_user() -> Optional[SessionUser]:
    if "user_id" not in session:
        return None
    return SessionUser(
        user_id=int(session["user_id"]),
        org_id=int(session["org_id"]),
        full_name=session.get("name") or "",
        role=Role(session.get("role") or Role.STUDENT.value),
    )


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response(401, "NOT_AUTHENTICATED", "Please log in to continue")
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response(401, "NOT_AUTHENTICATED", "Please log in to continue")
        if session.get("role") != Role.ADMIN.value:
            return error_response(403, "FORBIDDEN", "Admin role required")
        return view(*args, **kwargs)

    return wrapper
