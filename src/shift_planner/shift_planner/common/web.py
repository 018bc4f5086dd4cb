"""JSON helpers shared by the controllers.

Domain exceptions raised inside an @api_view are turned into the same
error body, so views only handle the happy path.
"""

from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Callable, Optional

from flask import jsonify, request, session

from ..access.model import Actor
from ..access.repository import RoleRepository
from ..core.exceptions import (
    AccessDeniedError,
    DomainError,
    HierarchyCycleError,
    InvalidRequestError,
    OverlapError,
    PersistenceError,
    RequestNotFoundError,
)
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)


class E:
    """Machine-readable error codes."""

    VALIDATION = "ERR_VALIDATION"
    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"
    FORBIDDEN = "ERR_FORBIDDEN"
    NOT_FOUND = "ERR_NOT_FOUND"
    OVERLAP = "ERR_OVERLAP"
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION: 400,
    E.UNAUTHENTICATED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.OVERLAP: 409,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}

# Most specific first: RequestNotFoundError is an InvalidRequestError.
_ERROR_CODES = (
    (RequestNotFoundError, E.NOT_FOUND),
    (InvalidRequestError, E.VALIDATION),
    (AccessDeniedError, E.FORBIDDEN),
    (OverlapError, E.OVERLAP),
    (HierarchyCycleError, E.INTERNAL),
    (PersistenceError, E.DATABASE),
)


def api_error(code: str, message: str, *, status: Optional[int] = None, details: Optional[dict] = None):
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or _DEFAULT_STATUS.get(code, 400)


def error_code_for(exc: DomainError) -> str:
    for exc_type, code in _ERROR_CODES:
        if isinstance(exc, exc_type):
            return code
    return E.INTERNAL


def current_actor(roles: RoleRepository) -> Optional[Actor]:
    """The logged-in user, as set in the session by the authentication layer."""
    user_id = session.get("user_id")
    if user_id is None:
        return None
    return Actor(user_id=int(user_id), roles=roles.get_roles(int(user_id)))


def api_view(roles: RoleRepository) -> Callable:
    """Decorator: require a session user, pass it as `actor`, map errors to JSON."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                actor = current_actor(roles)
                if actor is None:
                    return api_error(E.UNAUTHENTICATED, "Login required")
                return view(actor, *args, **kwargs)
            except DomainError as e:
                code = error_code_for(e)
                if _DEFAULT_STATUS[code] >= 500:
                    logger.error("%s %s failed: %s", request.method, request.path, e)
                    return api_error(code, "Internal error while processing the request")
                return api_error(code, str(e))
            except Exception:
                logger.exception("Unhandled error on %s %s", request.method, request.path)
                return api_error(E.INTERNAL, "Internal error while processing the request")

        return wrapper

    return decorator


def query_date(name: str) -> Optional[date]:
    raw = (request.args.get(name) or "").strip()
    return parse_iso_date(raw) if raw else None


def query_int(name: str) -> Optional[int]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidRequestError(f"{name} must be an integer") from None


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRequestError("Request body must be a JSON object")
    return data
