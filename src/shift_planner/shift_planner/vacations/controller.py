from __future__ import annotations

from typing import List, Optional

from flask import Flask, jsonify

from ..common.datetime_utils import parse_iso_date
from ..common.web import api_view, json_body
from ..core.exceptions import InvalidRequestError
from ..container import Container
from .service import VacationPeriod

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _optional_int(body: dict, key: str) -> Optional[int]:
    value = body.get(key)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequestError(f"{key} must be an integer") from None


def _optional_str(body: dict, key: str) -> Optional[str]:
    value = body.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidRequestError(f"{key} must be a string")
    return value


def _flag(body: dict, key: str, default: bool) -> bool:
    value = body.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise InvalidRequestError(f"{key} must be true or false")


def _request_ids(body: dict) -> List[int]:
    ids = body.get("request_ids")
    if not isinstance(ids, list) or not ids:
        raise InvalidRequestError("request_ids must be a non-empty list")
    try:
        return [int(i) for i in ids]
    except (TypeError, ValueError):
        raise InvalidRequestError("request_ids must be integers") from None


def _period_from(body: dict) -> VacationPeriod:
    start_raw = _optional_str(body, "start_date") or ""
    if not start_raw:
        raise InvalidRequestError("start_date is required")
    end_raw = _optional_str(body, "end_date") or ""
    return VacationPeriod(
        start_date=parse_iso_date(start_raw),
        end_date=parse_iso_date(end_raw) if end_raw else None,
        is_full_day=_flag(body, "is_full_day", True),
        start_time=_optional_str(body, "start_time"),
        end_time=_optional_str(body, "end_time"),
        notes=_optional_str(body, "notes"),
        selected_approver_id=_optional_int(body, "selected_approver_id"),
    )


def register(app: Flask, container: Container) -> None:
    service = container.vacation_service
    api = api_view(container.roles_repo)

    @app.route("/api/vacations", methods=["GET"], endpoint="my_vacations")
    @api
    def my_vacations(actor):
        groups = service.list_my_requests(user_id=actor.user_id)
        return jsonify({"items": [g.to_dict() for g in groups]})

    @app.route("/api/vacations", methods=["POST"], endpoint="submit_vacation")
    @api
    def submit_vacation(actor):
        body = json_body()
        group = service.submit(
            actor=actor,
            period=_period_from(body),
            user_id=_optional_int(body, "user_id"),
            team_id=_optional_int(body, "team_id"),
            approve_immediately=_flag(body, "approve_immediately", False),
        )
        return jsonify(group.to_dict()), 201

    @app.route("/api/vacations/<int:request_id>", methods=["PUT"], endpoint="edit_vacation")
    @api
    def edit_vacation(actor, request_id: int):
        group = service.edit(actor=actor, request_id=request_id, period=_period_from(json_body()))
        return jsonify(group.to_dict())

    @app.route("/api/vacations/<int:request_id>", methods=["DELETE"], endpoint="cancel_vacation")
    @api
    def cancel_vacation(actor, request_id: int):
        deleted = service.cancel(actor=actor, request_id=request_id)
        return jsonify({"deleted": deleted})

    @app.route("/api/vacations/pending", methods=["GET"], endpoint="pending_vacations")
    @api
    def pending_vacations(actor):
        groups = service.list_pending_for(actor=actor)
        return jsonify({"items": [g.to_dict() for g in groups]})

    @app.route("/api/vacations/<int:request_id>/approve", methods=["POST"], endpoint="approve_vacation")
    @api
    def approve_vacation(actor, request_id: int):
        group = service.approve(actor=actor, request_id=request_id)
        return jsonify(group.to_dict())

    @app.route("/api/vacations/<int:request_id>/reject", methods=["POST"], endpoint="reject_vacation")
    @api
    def reject_vacation(actor, request_id: int):
        reason = _optional_str(json_body(), "reason") or ""
        group = service.reject(actor=actor, request_id=request_id, reason=reason)
        return jsonify(group.to_dict())

    @app.route("/api/vacations/bulk-approve", methods=["POST"], endpoint="bulk_approve_vacations")
    @api
    def bulk_approve_vacations(actor):
        result = service.bulk_approve(actor=actor, request_ids=_request_ids(json_body()))
        return jsonify(result.to_dict())

    @app.route("/api/vacations/bulk-reject", methods=["POST"], endpoint="bulk_reject_vacations")
    @api
    def bulk_reject_vacations(actor):
        body = json_body()
        result = service.bulk_reject(
            actor=actor,
            request_ids=_request_ids(body),
            reason=_optional_str(body, "reason") or "",
        )
        return jsonify(result.to_dict())
