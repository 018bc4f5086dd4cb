from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.enums import Decision, RequestStatus, RiskLevel
from ..core.exceptions import InvalidRequestError
from ..vacations.model import VacationRequest
from .capacity import day_capacity, round_half_up
from .model import DayCapacity, DayDelta, ImpactReport

DecisionInput = Union[Decision, str]


def _as_decision(value: DecisionInput) -> Decision:
    if isinstance(value, Decision):
        return value
    try:
        return Decision(str(value).strip().lower())
    except ValueError as exc:
        raise InvalidRequestError(f"Unknown decision: {value!r}") from exc


def _average_coverage(days: Sequence[DayCapacity]) -> float:
    if not days:
        return 0.0
    return sum(d.coverage_percentage for d in days) / len(days)


class WhatIfSimulator:
    """Projects the capacity grid under hypothetical approve/reject decisions.

    Pure: the grid and the requests passed in are left untouched, and the
    same inputs always give an equal ImpactReport.
    """

    def simulate(
        self,
        capacity_by_day: Sequence[DayCapacity],
        pending_requests: Iterable[VacationRequest],
        decisions: Mapping[int, DecisionInput],
    ) -> ImpactReport:
        parsed = {int(rid): _as_decision(d) for rid, d in decisions.items()}
        pending = {r.request_id: r for r in pending_requests if r.status == RequestStatus.PENDING}

        approvals: Counter[Tuple[date, Optional[int]]] = Counter()
        for rid, decision in parsed.items():
            req = pending.get(rid)
            if req is None or decision != Decision.APPROVE:
                continue
            approvals[(req.requested_date, req.team_id)] += 1

        days: List[DayCapacity] = []
        deltas: List[DayDelta] = []
        for before in capacity_by_day:
            n = approvals.get(before.key, 0)
            if not n:
                days.append(before)
                continue
            after = day_capacity(
                day=before.date,
                team_id=before.team_id,
                total_members=before.total_members,
                on_leave=before.on_leave + n,
                required_capacity=before.required_capacity,
                team_name=before.team_name,
            )
            days.append(after)
            deltas.append(
                DayDelta(
                    date=before.date,
                    team_id=before.team_id,
                    team_name=before.team_name,
                    available_before=before.available,
                    available_after=after.available,
                    risk_before=before.risk_level,
                    risk_after=after.risk_level,
                    coverage_before=before.coverage_percentage,
                    coverage_after=after.coverage_percentage,
                )
            )

        counts: Dict[RiskLevel, int] = Counter(d.risk_level for d in days)
        baseline = _average_coverage(capacity_by_day)
        projected = _average_coverage(days)

        return ImpactReport(
            critical_days=counts.get(RiskLevel.CRITICAL, 0),
            warning_days=counts.get(RiskLevel.WARNING, 0),
            safe_days=counts.get(RiskLevel.SAFE, 0),
            average_coverage=round_half_up(projected),
            coverage_change=round_half_up((projected - baseline) * 10) / 10,
            days=tuple(days),
            changed_days=tuple(deltas),
        )
