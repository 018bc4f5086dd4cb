from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import api_view, json_body, query_date, query_int
from ..core.exceptions import InvalidRequestError
from ..container import Container


def _window() -> dict:
    return {"team_id": query_int("team_id"), "start": query_date("start"), "end": query_date("end")}


def register(app: Flask, container: Container) -> None:
    service = container.planning_service
    api = api_view(container.roles_repo)

    @app.route("/api/planning/capacity", methods=["GET"], endpoint="planning_capacity")
    @api
    def planning_capacity(actor):
        combined = (request.args.get("combined") or "").lower() in {"1", "true", "yes"}
        days = service.capacity(actor=actor, combined=combined, **_window())
        return jsonify({"items": [d.to_dict() for d in days]})

    @app.route("/api/planning/conflicts", methods=["GET"], endpoint="planning_conflicts")
    @api
    def planning_conflicts(actor):
        conflicts = service.conflicts(actor=actor, **_window())
        return jsonify({"items": [c.to_dict() for c in conflicts]})

    @app.route("/api/planning/what-if", methods=["POST"], endpoint="planning_what_if")
    @api
    def planning_what_if(actor):
        raw = json_body().get("decisions") or {}
        if not isinstance(raw, dict):
            raise InvalidRequestError("decisions must be an object of request_id -> approve|reject")
        try:
            decisions = {int(k): v for k, v in raw.items()}
        except ValueError:
            raise InvalidRequestError("decision keys must be request ids") from None
        report = service.what_if(actor=actor, decisions=decisions, **_window())
        return jsonify(report.to_dict())

    @app.route("/api/planning/fairness", methods=["GET"], endpoint="planning_fairness")
    @api
    def planning_fairness(actor):
        return jsonify(service.fairness(actor=actor, **_window()).to_dict())

    @app.route("/api/planning/analytics", methods=["GET"], endpoint="planning_analytics")
    @api
    def planning_analytics(actor):
        return jsonify(service.analytics(actor=actor, **_window()).to_dict())
