from __future__ import annotations

import math
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..common.datetime_utils import iter_days
from ..core.constants import DEFAULT_REQUIRED_CAPACITY, WARNING_BUFFER_RATIO
from ..core.enums import RequestStatus, RiskLevel
from ..teams.model import Team, TeamCapacityConfig, TeamMembership
from ..vacations.model import VacationRequest
from .model import DayCapacity


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def classify_risk(available: int, required_capacity: int) -> RiskLevel:
    """critical below the minimum, warning inside the 1.5x buffer, safe above it."""
    if required_capacity <= 0:
        return RiskLevel.SAFE
    if available < required_capacity:
        return RiskLevel.CRITICAL
    if available < required_capacity * WARNING_BUFFER_RATIO:
        return RiskLevel.WARNING
    return RiskLevel.SAFE


def coverage_percentage(available: int, required_capacity: int) -> int:
    if required_capacity <= 0:
        return 100
    return round_half_up(available / required_capacity * 100)


def day_capacity(
    *,
    day: date,
    team_id: Optional[int],
    total_members: int,
    on_leave: int,
    required_capacity: int,
    team_name: str = "",
) -> DayCapacity:
    available = total_members - on_leave
    return DayCapacity(
        date=day,
        team_id=team_id,
        team_name=team_name,
        total_members=total_members,
        on_leave=on_leave,
        available=available,
        required_capacity=required_capacity,
        coverage_percentage=coverage_percentage(available, required_capacity),
        risk_level=classify_risk(available, required_capacity),
    )


class CapacityCalculator:
    """Per-day, per-team staffing adequacy.

    By default only approved time-off reduces availability (committed state);
    pass include_pending=True for a projected view.
    """

    def __init__(self, *, include_pending: bool = False):
        self._include_pending = include_pending

    @staticmethod
    def _counts_as_leave(request: VacationRequest, include_pending: bool) -> bool:
        if request.status == RequestStatus.APPROVED:
            return True
        return include_pending and request.status == RequestStatus.PENDING

    def compute(
        self,
        team_id: int,
        day: date,
        members: Iterable[int],
        leave_records: Iterable[VacationRequest],
        required_capacity: int,
        *,
        include_pending: Optional[bool] = None,
        team_name: str = "",
    ) -> DayCapacity:
        if include_pending is None:
            include_pending = self._include_pending
        member_ids = set(members)
        on_leave = {
            r.user_id
            for r in leave_records
            if r.team_id == team_id
            and r.requested_date == day
            and r.user_id in member_ids
            and self._counts_as_leave(r, include_pending)
        }
        return day_capacity(
            day=day,
            team_id=team_id,
            total_members=len(member_ids),
            on_leave=len(on_leave),
            required_capacity=int(required_capacity),
            team_name=team_name,
        )

    def build(
        self,
        *,
        teams: Sequence[Team],
        memberships: Iterable[TeamMembership],
        requests: Iterable[VacationRequest],
        configs: Iterable[TeamCapacityConfig],
        start: date,
        end: date,
    ) -> List[DayCapacity]:
        """Capacity grid for every team and every day of [start, end], team by team."""
        members: Dict[int, Set[int]] = defaultdict(set)
        for m in memberships:
            members[m.team_id].add(m.user_id)

        required: Mapping[int, int] = {c.team_id: int(c.min_staff_required) for c in configs}

        by_team_day: Dict[Tuple[int, date], List[VacationRequest]] = defaultdict(list)
        for r in requests:
            by_team_day[(r.team_id, r.requested_date)].append(r)

        days = list(iter_days(start, end))
        grid: List[DayCapacity] = []
        for team in teams:
            team_members = members.get(team.team_id, set())
            team_required = required.get(team.team_id, DEFAULT_REQUIRED_CAPACITY)
            for day in days:
                grid.append(
                    self.compute(
                        team.team_id,
                        day,
                        team_members,
                        by_team_day.get((team.team_id, day), []),
                        team_required,
                        team_name=team.name,
                    )
                )
        return grid

    @staticmethod
    def aggregate(days: Sequence[DayCapacity], *, team_name: str = "All teams") -> DayCapacity:
        """Combine several teams' capacity for one date: sum first, classify after."""
        if not days:
            raise ValueError("aggregate() needs at least one DayCapacity")
        dates = {d.date for d in days}
        if len(dates) != 1:
            raise ValueError("aggregate() combines a single date")

        total_members = sum(d.total_members for d in days)
        available = sum(d.available for d in days)
        required_capacity = sum(d.required_capacity for d in days)
        return day_capacity(
            day=days[0].date,
            team_id=None,
            total_members=total_members,
            on_leave=total_members - available,
            required_capacity=required_capacity,
            team_name=team_name,
        )

    def aggregate_by_date(self, days: Sequence[DayCapacity]) -> List[DayCapacity]:
        by_date: Dict[date, List[DayCapacity]] = defaultdict(list)
        for d in days:
            by_date[d.date].append(d)
        return [self.aggregate(by_date[day]) for day in sorted(by_date)]
