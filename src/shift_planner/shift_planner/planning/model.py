from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from ..core.enums import ConflictSeverity, RiskLevel
from ..vacations.model import VacationRequest


@dataclass(frozen=True)
class DayCapacity:
    """Staffing of one team on one day. Derived, never persisted."""

    date: date
    team_id: Optional[int]
    total_members: int
    on_leave: int
    available: int
    required_capacity: int
    coverage_percentage: int
    risk_level: RiskLevel
    team_name: str = ""

    @property
    def key(self) -> Tuple[date, Optional[int]]:
        return self.date, self.team_id

    def to_dict(self) -> dict:
        return {
            "date": self.date.strftime("%Y-%m-%d"),
            "team_id": self.team_id,
            "team_name": self.team_name,
            "total_members": self.total_members,
            "on_leave": self.on_leave,
            "available": self.available,
            "required_capacity": self.required_capacity,
            "coverage_percentage": self.coverage_percentage,
            "risk_level": self.risk_level.value,
        }


@dataclass(frozen=True)
class Conflict:
    severity: ConflictSeverity
    date: date
    team_id: int
    team_name: str
    message: str
    affected_requests: Tuple[VacationRequest, ...]
    capacity: Optional[DayCapacity] = None

    def to_dict(self) -> dict:
        return {
            "type": self.severity.value,
            "date": self.date.strftime("%Y-%m-%d"),
            "team_id": self.team_id,
            "team_name": self.team_name,
            "message": self.message,
            "affected_request_ids": [r.request_id for r in self.affected_requests],
            "capacity": self.capacity.to_dict() if self.capacity else None,
        }


@dataclass(frozen=True)
class DayDelta:
    """Before/after of one team-day touched by a what-if scenario."""

    date: date
    team_id: Optional[int]
    team_name: str
    available_before: int
    available_after: int
    risk_before: RiskLevel
    risk_after: RiskLevel
    coverage_before: int
    coverage_after: int

    def to_dict(self) -> dict:
        return {
            "date": self.date.strftime("%Y-%m-%d"),
            "team_id": self.team_id,
            "team_name": self.team_name,
            "before": {"available": self.available_before, "risk_level": self.risk_before.value},
            "after": {"available": self.available_after, "risk_level": self.risk_after.value},
            "coverage_before": self.coverage_before,
            "coverage_after": self.coverage_after,
        }


@dataclass(frozen=True)
class ImpactReport:
    critical_days: int
    warning_days: int
    safe_days: int
    average_coverage: int
    coverage_change: float
    days: Tuple[DayCapacity, ...]
    changed_days: Tuple[DayDelta, ...]

    def to_dict(self) -> dict:
        return {
            "critical_days": self.critical_days,
            "warning_days": self.warning_days,
            "safe_days": self.safe_days,
            "average_coverage": self.average_coverage,
            "coverage_change": self.coverage_change,
            "changed_days": [d.to_dict() for d in self.changed_days],
        }


@dataclass(frozen=True)
class EmployeeStat:
    user_id: int
    team_id: Optional[int]
    approved_days: float
    pending_days: float
    total_days: float
    percentage_of_range: float
    is_outlier: bool = False
    deviation: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "team_id": self.team_id,
            "approved_days": self.approved_days,
            "pending_days": self.pending_days,
            "total_days": self.total_days,
            "percentage_of_range": self.percentage_of_range,
            "is_outlier": self.is_outlier,
            "deviation": self.deviation,
        }


@dataclass(frozen=True)
class FairnessReport:
    employees: Tuple[EmployeeStat, ...]
    fairness_score: float
    mean_total_days: float
    max_total_days: float
    min_total_days: float

    @property
    def outliers(self) -> Tuple[EmployeeStat, ...]:
        return tuple(e for e in self.employees if e.is_outlier)

    def to_dict(self) -> dict:
        return {
            "fairness_score": self.fairness_score,
            "mean_total_days": self.mean_total_days,
            "max_total_days": self.max_total_days,
            "min_total_days": self.min_total_days,
            "employees": [e.to_dict() for e in self.employees],
        }


@dataclass(frozen=True)
class TeamStats:
    team_id: int
    team_name: str
    requests: int
    average_coverage: int
    critical_days: int


@dataclass(frozen=True)
class AnalyticsReport:
    total_requests: int
    approved: int
    rejected: int
    pending: int
    approval_rate: int
    requests_by_month: Tuple[Tuple[str, int], ...]
    peak_month: Optional[Tuple[str, int]]
    average_coverage: int
    critical_days: int
    safe_days: int
    capacity_health_score: int
    team_stats: Tuple[TeamStats, ...]
    average_response_days: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "total_requests": self.total_requests,
            "approved": self.approved,
            "rejected": self.rejected,
            "pending": self.pending,
            "approval_rate": self.approval_rate,
            "requests_by_month": [{"month": m, "count": c} for m, c in self.requests_by_month],
            "peak_month": {"month": self.peak_month[0], "count": self.peak_month[1]} if self.peak_month else None,
            "average_coverage": self.average_coverage,
            "critical_days": self.critical_days,
            "safe_days": self.safe_days,
            "capacity_health_score": self.capacity_health_score,
            "average_response_days": self.average_response_days,
            "team_stats": [
                {
                    "team_id": t.team_id,
                    "team_name": t.team_name,
                    "requests": t.requests,
                    "average_coverage": t.average_coverage,
                    "critical_days": t.critical_days,
                }
                for t in self.team_stats
            ],
        }
