from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..core.constants import MANY_PENDING_THRESHOLD
from ..core.enums import ConflictSeverity, RequestStatus, RiskLevel
from ..vacations.model import VacationRequest
from .model import Conflict, DayCapacity

_SEVERITY_ORDER = {
    ConflictSeverity.CRITICAL: 0,
    ConflictSeverity.WARNING: 1,
    ConflictSeverity.INFO: 2,
}


class ConflictDetector:
    """Flags pending requests that land on under-staffed days."""

    def __init__(self, *, many_pending_threshold: int = MANY_PENDING_THRESHOLD):
        self._threshold = many_pending_threshold

    def detect(
        self,
        capacity_by_day: Sequence[DayCapacity],
        pending_requests: Iterable[VacationRequest],
        *,
        team_names: Optional[Mapping[int, str]] = None,
    ) -> List[Conflict]:
        pending: Dict[Tuple[int, date], List[VacationRequest]] = defaultdict(list)
        for r in pending_requests:
            if r.status == RequestStatus.PENDING:
                pending[(r.team_id, r.requested_date)].append(r)

        names: Dict[int, str] = dict(team_names or {})
        for day in capacity_by_day:
            if day.team_id is not None and day.team_name:
                names.setdefault(day.team_id, day.team_name)

        conflicts: List[Conflict] = []
        for day in capacity_by_day:
            if day.team_id is None or day.risk_level == RiskLevel.SAFE:
                continue
            affected = pending.get((day.team_id, day.date))
            if not affected:
                continue
            if day.risk_level == RiskLevel.CRITICAL:
                severity = ConflictSeverity.CRITICAL
                message = f"Only {day.available} of {day.required_capacity} required staff available"
            else:
                severity = ConflictSeverity.WARNING
                message = f"Low capacity buffer ({day.available}/{day.required_capacity})"
            conflicts.append(
                Conflict(
                    severity=severity,
                    date=day.date,
                    team_id=day.team_id,
                    team_name=names.get(day.team_id, "Unknown Team"),
                    message=message,
                    affected_requests=tuple(affected),
                    capacity=day,
                )
            )

        for (team_id, day), requests in pending.items():
            if len(requests) > self._threshold:
                conflicts.append(
                    Conflict(
                        severity=ConflictSeverity.INFO,
                        date=day,
                        team_id=team_id,
                        team_name=names.get(team_id, "Unknown Team"),
                        message=f"{len(requests)} pending requests for the same day",
                        affected_requests=tuple(requests),
                    )
                )

        # sorted() is stable, so equal (severity, date) keep their discovery order.
        return sorted(conflicts, key=lambda c: (_SEVERITY_ORDER[c.severity], c.date))
