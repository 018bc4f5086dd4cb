from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Dict, List, Optional, Sequence, Tuple

from ..common.datetime_utils import format_hhmm
from ..core.constants import FULL_DAY_WEIGHT, PARTIAL_DAY_WEIGHT
from ..core.enums import RequestStatus


def windows_overlap(
    a_full_day: bool,
    a_start: Optional[time],
    a_end: Optional[time],
    b_full_day: bool,
    b_start: Optional[time],
    b_end: Optional[time],
) -> bool:
    """Same-day overlap: a full day covers any window; partial windows are half-open."""
    if a_full_day or b_full_day:
        return True
    if a_start is None or a_end is None or b_start is None or b_end is None:
        return True
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class VacationRequest:
    """One requested day off (or part of a day) for one user."""

    request_id: int
    user_id: int
    team_id: int
    requested_date: date
    is_full_day: bool
    status: RequestStatus
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    approver_id: Optional[int] = None
    request_group_id: Optional[str] = None
    selected_approver_id: Optional[int] = None
    created_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status != RequestStatus.REJECTED

    @property
    def day_weight(self) -> float:
        return FULL_DAY_WEIGHT if self.is_full_day else PARTIAL_DAY_WEIGHT

    def overlaps(self, *, on: date, is_full_day: bool, start_time: Optional[time], end_time: Optional[time]) -> bool:
        if not self.is_active or self.requested_date != on:
            return False
        return windows_overlap(self.is_full_day, self.start_time, self.end_time, is_full_day, start_time, end_time)

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "user_id": self.user_id,
            "team_id": self.team_id,
            "requested_date": self.requested_date.strftime("%Y-%m-%d"),
            "is_full_day": self.is_full_day,
            "start_time": format_hhmm(self.start_time) or None,
            "end_time": format_hhmm(self.end_time) or None,
            "status": self.status.value,
            "notes": self.notes,
            "rejection_reason": self.rejection_reason,
            "approver_id": self.approver_id,
            "request_group_id": self.request_group_id,
            "selected_approver_id": self.selected_approver_id,
        }


@dataclass(frozen=True)
class VacationRequestGroup:
    """Aggregate of the requests created together for one date range.

    The repository creates, replaces and deletes a group as a whole. A
    single-day request is a group of one without a group_id.
    """

    user_id: int
    team_id: int
    dates: Tuple[date, ...]
    is_full_day: bool = True
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    notes: Optional[str] = None
    selected_approver_id: Optional[int] = None
    group_id: Optional[str] = None
    status: RequestStatus = RequestStatus.PENDING
    request_ids: Tuple[int, ...] = ()
    approver_id: Optional[int] = None
    rejection_reason: Optional[str] = None

    @property
    def start_date(self) -> date:
        return self.dates[0]

    @property
    def end_date(self) -> date:
        return self.dates[-1]

    @property
    def primary_request_id(self) -> int:
        return self.request_ids[0]

    def shift_note(self) -> str:
        """Note written on the vacation shift record for each approved day."""
        window = "Full Day" if self.is_full_day else f"{format_hhmm(self.start_time)} - {format_hhmm(self.end_time)}"
        note = f"Vacation - {window}"
        if self.notes:
            note += f" | {self.notes}"
        return note

    def to_dict(self) -> dict:
        return {
            "group_id": self.group_id,
            "request_ids": list(self.request_ids),
            "user_id": self.user_id,
            "team_id": self.team_id,
            "dates": [d.strftime("%Y-%m-%d") for d in self.dates],
            "start_date": self.start_date.strftime("%Y-%m-%d"),
            "end_date": self.end_date.strftime("%Y-%m-%d"),
            "is_full_day": self.is_full_day,
            "start_time": format_hhmm(self.start_time) or None,
            "end_time": format_hhmm(self.end_time) or None,
            "notes": self.notes,
            "status": self.status.value,
            "approver_id": self.approver_id,
            "rejection_reason": self.rejection_reason,
            "selected_approver_id": self.selected_approver_id,
        }


def group_requests(requests: Sequence[VacationRequest]) -> List[VacationRequestGroup]:
    """Fold requests into groups, in order of first appearance."""
    members: Dict[object, List[VacationRequest]] = {}
    order: List[object] = []
    for req in requests:
        key = req.request_group_id if req.request_group_id else ("single", req.request_id)
        if key not in members:
            members[key] = []
            order.append(key)
        members[key].append(req)

    groups: List[VacationRequestGroup] = []
    for key in order:
        items = sorted(members[key], key=lambda r: (r.requested_date, r.request_id))
        first = items[0]
        groups.append(
            VacationRequestGroup(
                user_id=first.user_id,
                team_id=first.team_id,
                dates=tuple(r.requested_date for r in items),
                is_full_day=first.is_full_day,
                start_time=first.start_time,
                end_time=first.end_time,
                notes=first.notes,
                selected_approver_id=first.selected_approver_id,
                group_id=first.request_group_id,
                status=first.status,
                request_ids=tuple(r.request_id for r in items),
                approver_id=first.approver_id,
                rejection_reason=first.rejection_reason,
            )
        )
    return groups
