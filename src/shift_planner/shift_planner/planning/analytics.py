from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Iterator, List, Optional, Sequence, Tuple

from ..core.enums import RequestStatus, RiskLevel
from ..teams.model import Team
from ..vacations.model import VacationRequest
from .capacity import round_half_up
from .model import AnalyticsReport, DayCapacity, TeamStats


def _iter_months(start: date, end: date) -> Iterator[date]:
    current = start.replace(day=1)
    while current <= end:
        yield current
        if current.month == 12:
            current = current.replace(year=current.year + 1, month=1)
        else:
            current = current.replace(month=current.month + 1)


def _average_coverage(days: Sequence[DayCapacity]) -> int:
    if not days:
        return 0
    return round_half_up(sum(d.coverage_percentage for d in days) / len(days))


def _average_response_days(requests: Sequence[VacationRequest]) -> Optional[float]:
    spans: List[float] = []
    for r in requests:
        decided = r.approved_at if r.status == RequestStatus.APPROVED else r.rejected_at
        if r.created_at is None or decided is None:
            continue
        spans.append((decided - r.created_at).total_seconds() / 86400)
    if not spans:
        return None
    return round(sum(spans) / len(spans), 1)


class VacationAnalytics:
    """Summary figures for the planning dashboard."""

    def analyze(
        self,
        *,
        requests: Sequence[VacationRequest],
        capacity_by_day: Sequence[DayCapacity],
        teams: Sequence[Team],
        start: date,
        end: date,
    ) -> AnalyticsReport:
        statuses = Counter(r.status for r in requests)
        total = len(requests)
        approved = statuses.get(RequestStatus.APPROVED, 0)

        per_month = Counter((r.requested_date.year, r.requested_date.month) for r in requests)
        by_month: List[Tuple[str, int]] = [
            (m.strftime("%b %Y"), per_month.get((m.year, m.month), 0)) for m in _iter_months(start, end)
        ]
        peak: Optional[Tuple[str, int]] = None
        for label, count in by_month:
            # Earliest month wins a tie.
            if peak is None or count > peak[1]:
                peak = (label, count)

        risks = Counter(d.risk_level for d in capacity_by_day)
        safe_days = risks.get(RiskLevel.SAFE, 0)

        team_stats = []
        for team in teams:
            team_days = [d for d in capacity_by_day if d.team_id == team.team_id]
            team_stats.append(
                TeamStats(
                    team_id=team.team_id,
                    team_name=team.name,
                    requests=sum(1 for r in requests if r.team_id == team.team_id),
                    average_coverage=_average_coverage(team_days),
                    critical_days=sum(1 for d in team_days if d.risk_level == RiskLevel.CRITICAL),
                )
            )

        return AnalyticsReport(
            total_requests=total,
            approved=approved,
            rejected=statuses.get(RequestStatus.REJECTED, 0),
            pending=statuses.get(RequestStatus.PENDING, 0),
            approval_rate=round_half_up(approved / total * 100) if total else 0,
            requests_by_month=tuple(by_month),
            peak_month=peak,
            average_coverage=_average_coverage(capacity_by_day),
            critical_days=risks.get(RiskLevel.CRITICAL, 0),
            safe_days=safe_days,
            capacity_health_score=round_half_up(safe_days / len(capacity_by_day) * 100) if capacity_by_day else 0,
            team_stats=tuple(team_stats),
            average_response_days=_average_response_days(requests),
        )
