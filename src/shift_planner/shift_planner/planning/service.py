from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from ..access.gate import AccessScopeGate
from ..access.model import AccessScope, Actor
from ..common.datetime_utils import month_window, now_local
from ..core.constants import DEFAULT_PLANNING_MONTHS
from ..core.enums import RequestStatus
from ..core.exceptions import AccessDeniedError, InvalidRequestError
from ..teams.model import Team, TeamMembership
from ..teams.repository import TeamRepository
from ..vacations.model import VacationRequest
from ..vacations.repository import VacationRequestRepository
from .analytics import VacationAnalytics
from .capacity import CapacityCalculator
from .conflicts import ConflictDetector
from .fairness import FairnessAnalyzer
from .model import AnalyticsReport, Conflict, DayCapacity, FairnessReport, ImpactReport
from .what_if import DecisionInput, WhatIfSimulator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanningSnapshot:
    """Everything the planning views read, already narrowed to the actor's scope."""

    scope: AccessScope
    start: date
    end: date
    teams: Sequence[Team]
    memberships: Sequence[TeamMembership]
    requests: Sequence[VacationRequest]
    capacity: Sequence[DayCapacity]

    @property
    def pending(self) -> List[VacationRequest]:
        return [r for r in self.requests if r.status == RequestStatus.PENDING]

    @property
    def range_length_days(self) -> int:
        return (self.end - self.start).days + 1


class VacationPlanningService:
    """Use case: capacity planning views over the teams an actor may see."""

    def __init__(
        self,
        teams: TeamRepository,
        requests: VacationRequestRepository,
        *,
        planning_months: int = DEFAULT_PLANNING_MONTHS,
        today: Callable[[], date] = lambda: now_local().date(),
    ):
        self._teams = teams
        self._requests = requests
        self._planning_months = planning_months
        self._today = today

        self._calculator = CapacityCalculator()
        self._conflicts = ConflictDetector()
        self._simulator = WhatIfSimulator()
        self._fairness = FairnessAnalyzer()
        self._analytics = VacationAnalytics()

    def default_window(self) -> Tuple[date, date]:
        return month_window(self._today(), self._planning_months)

    def snapshot(
        self,
        *,
        actor: Actor,
        team_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> PlanningSnapshot:
        default_start, default_end = self.default_window()
        start = start or default_start
        end = end or default_end
        if end < start:
            raise InvalidRequestError("End date must be on or after start date")

        gate = AccessScopeGate.from_repository(self._teams)
        scope = gate.resolve(actor, team_id)
        team_ids = sorted(scope.visible_team_ids)

        if team_id is not None and not team_ids:
            raise AccessDeniedError(f"Team {team_id} is outside your planning scope")
        if not team_ids:
            return PlanningSnapshot(scope=scope, start=start, end=end, teams=[], memberships=[], requests=[], capacity=[])

        teams = sorted(
            (t for t in (gate.resolver.get(tid) for tid in team_ids) if t is not None),
            key=lambda t: (t.name, t.team_id),
        )
        memberships = list(self._teams.list_memberships(team_ids=team_ids))
        configs = self._teams.list_capacity_configs(team_ids=team_ids)
        # Unpaged: every request in the window feeds the capacity grid.
        requests = list(self._requests.list_requests(team_ids=team_ids, start=start, end=end, limit=None))

        capacity = self._calculator.build(
            teams=teams,
            memberships=memberships,
            requests=requests,
            configs=configs,
            start=start,
            end=end,
        )
        logger.debug(
            "Planning snapshot for user %s: %d team(s), %d request(s), %s..%s",
            actor.user_id,
            len(teams),
            len(requests),
            start,
            end,
        )
        return PlanningSnapshot(
            scope=scope,
            start=start,
            end=end,
            teams=teams,
            memberships=memberships,
            requests=requests,
            capacity=capacity,
        )

    def capacity(
        self,
        *,
        actor: Actor,
        team_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        combined: bool = False,
    ) -> List[DayCapacity]:
        snap = self.snapshot(actor=actor, team_id=team_id, start=start, end=end)
        if combined:
            return self._calculator.aggregate_by_date(snap.capacity)
        return list(snap.capacity)

    def conflicts(
        self,
        *,
        actor: Actor,
        team_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Conflict]:
        snap = self.snapshot(actor=actor, team_id=team_id, start=start, end=end)
        return self._conflicts.detect(snap.capacity, snap.pending)

    def what_if(
        self,
        *,
        actor: Actor,
        decisions: Mapping[int, DecisionInput],
        team_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> ImpactReport:
        snap = self.snapshot(actor=actor, team_id=team_id, start=start, end=end)
        return self._simulator.simulate(snap.capacity, snap.pending, decisions)

    def fairness(
        self,
        *,
        actor: Actor,
        team_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> FairnessReport:
        snap = self.snapshot(actor=actor, team_id=team_id, start=start, end=end)
        roster = sorted({m.user_id for m in snap.memberships})
        return self._fairness.analyze(snap.requests, snap.range_length_days, roster=roster)

    def analytics(
        self,
        *,
        actor: Actor,
        team_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> AnalyticsReport:
        snap = self.snapshot(actor=actor, team_id=team_id, start=start, end=end)
        return self._analytics.analyze(
            requests=snap.requests,
            capacity_by_day=snap.capacity,
            teams=snap.teams,
            start=snap.start,
            end=snap.end,
        )
