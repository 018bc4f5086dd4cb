"""In-memory collaborators shared by the service tests."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Iterable, Optional

from src.shift_planner.shift_planner.core.constants import DEFAULT_LIST_LIMIT
from src.shift_planner.shift_planner.core.enums import NotificationEvent, RequestStatus, Role
from src.shift_planner.shift_planner.core.exceptions import (
    InvalidRequestError,
    NotificationDeliveryFailure,
    PersistenceError,
)
from src.shift_planner.shift_planner.shifts.model import ShiftRecord
from src.shift_planner.shift_planner.teams.model import Team, TeamCapacityConfig, TeamMembership
from src.shift_planner.shift_planner.vacations.model import VacationRequest, VacationRequestGroup


@dataclass
class InMemoryTeams:
    teams: list[Team]
    memberships: list[TeamMembership] = field(default_factory=list)
    configs: list[TeamCapacityConfig] = field(default_factory=list)

    def list_teams(self):
        return list(self.teams)

    def list_memberships(self, *, team_ids: Optional[Iterable[int]] = None, user_id: Optional[int] = None):
        wanted = set(team_ids) if team_ids is not None else None
        return [
            m
            for m in self.memberships
            if (wanted is None or m.team_id in wanted) and (user_id is None or m.user_id == user_id)
        ]

    def list_capacity_configs(self, *, team_ids: Iterable[int]):
        wanted = set(team_ids)
        return [c for c in self.configs if c.team_id in wanted]


@dataclass
class InMemoryRoles:
    roles: dict[int, frozenset[Role]]

    def get_roles(self, user_id: int):
        return self.roles.get(int(user_id), frozenset())


@dataclass
class InMemoryShifts:
    records: list[ShiftRecord] = field(default_factory=list)

    def list_range(self, *, start: date, end: date, team_ids=None, user_id=None):
        wanted = set(team_ids) if team_ids is not None else None
        return [
            r
            for r in self.records
            if start <= r.work_date <= end
            and (wanted is None or r.team_id in wanted)
            and (user_id is None or r.user_id == user_id)
        ]


class InMemoryVacations:
    """Vacation store with the same all-or-nothing behavior as the MySQL one.

    fail_approval_write=True makes apply_approval fail after staging its
    changes, which must leave requests and shift records untouched.
    """

    def __init__(self, shifts: Optional[InMemoryShifts] = None, *, fail_approval_write: bool = False):
        self.requests: dict[int, VacationRequest] = {}
        self.shifts = shifts or InMemoryShifts()
        self.fail_approval_write = fail_approval_write
        self._next_id = 1

    def seed(self, **kwargs) -> VacationRequest:
        rid = self._next_id
        self._next_id += 1
        kwargs.setdefault("is_full_day", True)
        kwargs.setdefault("status", RequestStatus.PENDING)
        req = VacationRequest(request_id=rid, **kwargs)
        self.requests[rid] = req
        return req

    def _insert(self, group: VacationRequestGroup) -> list[int]:
        ids = []
        for day in group.dates:
            req = self.seed(
                user_id=group.user_id,
                team_id=group.team_id,
                requested_date=day,
                is_full_day=group.is_full_day,
                start_time=group.start_time,
                end_time=group.end_time,
                notes=group.notes,
                request_group_id=group.group_id,
                selected_approver_id=group.selected_approver_id,
                created_at=datetime(2025, 6, 1, 9, 0),
            )
            ids.append(req.request_id)
        return ids

    def create_group(self, group):
        return self._insert(group)

    def replace_group(self, *, request_ids, group):
        for rid in request_ids:
            if self.requests.get(rid) is None or self.requests[rid].status != RequestStatus.PENDING:
                raise InvalidRequestError("Only pending requests can be edited")
        for rid in request_ids:
            del self.requests[rid]
        return self._insert(group)

    def delete_requests(self, *, request_ids):
        count = 0
        for rid in request_ids:
            if self.requests.pop(int(rid), None) is not None:
                count += 1
        return count

    def get(self, *, request_id):
        return self.requests.get(int(request_id))

    def list_by_group(self, *, group_id):
        return sorted(
            (r for r in self.requests.values() if r.request_group_id == group_id),
            key=lambda r: r.requested_date,
        )

    def list_requests(
        self, *, team_ids=None, user_id=None, start=None, end=None, statuses=None, limit=DEFAULT_LIST_LIMIT
    ):
        wanted_teams = set(team_ids) if team_ids is not None else None
        wanted_status = set(statuses) if statuses is not None else None
        items = [
            r
            for r in self.requests.values()
            if (wanted_teams is None or r.team_id in wanted_teams)
            and (user_id is None or r.user_id == user_id)
            and (start is None or r.requested_date >= start)
            and (end is None or r.requested_date <= end)
            and (wanted_status is None or r.status in wanted_status)
        ]
        items.sort(key=lambda r: (r.requested_date, r.request_id))
        return items if limit is None else items[:limit]

    def list_active_for_user_dates(self, *, user_id, dates):
        days = set(dates)
        return [r for r in self.requests.values() if r.user_id == user_id and r.requested_date in days and r.is_active]

    def apply_approval(self, *, request_ids, approver_id, decided_at, shift_records):
        requests = dict(self.requests)
        for rid in request_ids:
            req = requests.get(rid)
            if req is None or req.status != RequestStatus.PENDING:
                raise InvalidRequestError("Request has already been processed")
            requests[rid] = replace(req, status=RequestStatus.APPROVED, approver_id=approver_id, approved_at=decided_at)

        cleared = {(r.user_id, r.work_date) for r in shift_records}
        records = [r for r in self.shifts.records if (r.user_id, r.work_date) not in cleared]
        records.extend(shift_records)

        if self.fail_approval_write:
            raise PersistenceError("Database error while writing shift records")

        self.requests = requests
        self.shifts.records = records

    def apply_rejection(self, *, request_ids, approver_id, decided_at, reason):
        for rid in request_ids:
            req = self.requests.get(rid)
            if req is None or req.status != RequestStatus.PENDING:
                raise InvalidRequestError("Request has already been processed")
        for rid in request_ids:
            self.requests[rid] = replace(
                self.requests[rid],
                status=RequestStatus.REJECTED,
                approver_id=approver_id,
                rejected_at=decided_at,
                rejection_reason=reason,
            )


class FailingNotifier:
    def __init__(self):
        self.attempts: list[tuple[int, NotificationEvent]] = []

    def notify(self, request_id: int, event: NotificationEvent) -> None:
        self.attempts.append((request_id, event))
        raise NotificationDeliveryFailure("SMTP server unreachable")
