from __future__ import annotations

from datetime import date
from typing import List, Optional

from ..access.gate import AccessScopeGate, redact_shift
from ..access.model import Actor
from ..core.exceptions import InvalidRequestError
from ..teams.repository import TeamRepository
from .model import ShiftView
from .repository import ShiftRecordRepository


class ScheduleViewService:
    """Use case: show the schedule of one team or of all teams, scoped to the viewer."""

    def __init__(self, teams: TeamRepository, shifts: ShiftRecordRepository):
        self._teams = teams
        self._shifts = shifts

    def list_schedule(
        self,
        *,
        actor: Actor,
        start: date,
        end: date,
        team_id: Optional[int] = None,
    ) -> List[ShiftView]:
        if end < start:
            raise InvalidRequestError("End date must be on or after start date")

        gate = AccessScopeGate.from_repository(self._teams)
        scope = gate.resolve(actor, team_id)
        if not scope.observable_team_ids:
            return []

        records = self._shifts.list_range(start=start, end=end, team_ids=sorted(scope.observable_team_ids))
        return [redact_shift(scope, r) for r in records]
