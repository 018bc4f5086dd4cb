from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import api_view, query_date, query_int
from ..core.exceptions import InvalidRequestError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    api = api_view(container.roles_repo)

    @app.route("/api/schedule", methods=["GET"], endpoint="schedule")
    @api
    def schedule(actor):
        start = query_date("start")
        end = query_date("end")
        if start is None or end is None:
            raise InvalidRequestError("start and end are required")
        views = container.schedule_service.list_schedule(
            actor=actor,
            start=start,
            end=end,
            team_id=query_int("team_id"),
        )
        return jsonify({"items": [v.to_dict() for v in views]})
