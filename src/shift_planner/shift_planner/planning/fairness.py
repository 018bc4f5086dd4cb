from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..core.constants import FAIRNESS_OUTLIER_RATIO
from ..core.enums import RequestStatus
from ..vacations.model import VacationRequest
from .model import EmployeeStat, FairnessReport


@dataclass
class _Tally:
    team_id: Optional[int] = None
    approved: float = 0.0
    pending: float = 0.0

    @property
    def total(self) -> float:
        return self.approved + self.pending


class FairnessAnalyzer:
    """How evenly time off is spread across employees over a date range."""

    def __init__(self, *, outlier_ratio: float = FAIRNESS_OUTLIER_RATIO):
        self._outlier_ratio = outlier_ratio

    def analyze(
        self,
        requests: Iterable[VacationRequest],
        range_length_days: int,
        roster: Optional[Iterable[int]] = None,
    ) -> FairnessReport:
        tallies: Dict[int, _Tally] = {}
        for user_id in roster or ():
            tallies.setdefault(int(user_id), _Tally())

        for r in requests:
            if r.status == RequestStatus.REJECTED:
                continue
            tally = tallies.setdefault(r.user_id, _Tally())
            if tally.team_id is None:
                tally.team_id = r.team_id
            if r.status == RequestStatus.APPROVED:
                tally.approved += r.day_weight
            else:
                tally.pending += r.day_weight

        if not tallies:
            return FairnessReport(
                employees=(),
                fairness_score=100.0,
                mean_total_days=0.0,
                max_total_days=0.0,
                min_total_days=0.0,
            )

        totals = [t.total for t in tallies.values()]
        mean = sum(totals) / len(totals)
        max_total = max(totals)
        min_total = min(totals)
        score = 100.0 if max_total == 0 else (1 - (max_total - min_total) / max_total) * 100

        employees: List[EmployeeStat] = []
        for user_id, t in tallies.items():
            is_outlier = abs(t.total - mean) > self._outlier_ratio * mean
            deviation = None
            if is_outlier:
                deviation = "above" if t.total > mean else "below"
            employees.append(
                EmployeeStat(
                    user_id=user_id,
                    team_id=t.team_id,
                    approved_days=t.approved,
                    pending_days=t.pending,
                    total_days=t.total,
                    percentage_of_range=(t.total / range_length_days * 100) if range_length_days > 0 else 0.0,
                    is_outlier=is_outlier,
                    deviation=deviation,
                )
            )
        employees.sort(key=lambda e: (-e.total_days, e.user_id))

        return FairnessReport(
            employees=tuple(employees),
            fairness_score=round(score, 1),
            mean_total_days=mean,
            max_total_days=max_total,
            min_total_days=min_total,
        )
