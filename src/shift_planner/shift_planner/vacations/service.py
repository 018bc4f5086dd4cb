from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Callable, Dict, List, Optional, Sequence, Set, Union

from ..access.gate import AccessScopeGate
from ..access.model import Actor
from ..common.datetime_utils import now_local, parse_hhmm, working_days
from ..common.validators import optional_text, require_non_empty
from ..core.enums import ActivityType, AvailabilityStatus, NotificationEvent, RequestStatus
from ..core.exceptions import (
    AccessDeniedError,
    DomainError,
    InvalidRequestError,
    OverlapError,
    RequestNotFoundError,
)
from ..notifications.notifier import Notifier
from ..shifts.model import ShiftRecord
from ..teams.repository import TeamRepository
from .model import VacationRequest, VacationRequestGroup, group_requests
from .repository import VacationRequestRepository

logger = logging.getLogger(__name__)

TimeInput = Union[str, time, None]


@dataclass(frozen=True)
class VacationPeriod:
    """What the requester asks for: a date or date range with an optional time window."""

    start_date: date
    end_date: Optional[date] = None
    is_full_day: bool = True
    start_time: TimeInput = None
    end_time: TimeInput = None
    notes: Optional[str] = None
    selected_approver_id: Optional[int] = None


@dataclass
class BulkResult:
    approved_ids: List[int] = field(default_factory=list)
    rejected_ids: List[int] = field(default_factory=list)
    failed: Dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "approved_ids": list(self.approved_ids),
            "rejected_ids": list(self.rejected_ids),
            "failed": {str(k): v for k, v in self.failed.items()},
        }


class VacationRequestService:
    """Use cases of the vacation request lifecycle.

    pending -> approved | rejected (both terminal). Pending groups may be
    edited (replaced as a whole) or cancelled by the requester.
    """

    def __init__(
        self,
        requests: VacationRequestRepository,
        teams: TeamRepository,
        notifier: Notifier,
        *,
        clock: Callable[[], datetime] = now_local,
        group_id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._requests = requests
        self._teams = teams
        self._notifier = notifier
        self._clock = clock
        self._new_group_id = group_id_factory

    # -------- helpers --------
    @staticmethod
    def _coerce_time(value: TimeInput) -> Optional[time]:
        if value is None or isinstance(value, time):
            return value
        return parse_hhmm(value)

    def _build_group(self, *, user_id: int, team_id: int, period: VacationPeriod) -> VacationRequestGroup:
        end_date = period.end_date or period.start_date
        if end_date < period.start_date:
            raise InvalidRequestError("End date must be on or after start date")

        start_t: Optional[time] = None
        end_t: Optional[time] = None
        if not period.is_full_day:
            start_t = self._coerce_time(period.start_time)
            end_t = self._coerce_time(period.end_time)
            if start_t is None or end_t is None:
                raise InvalidRequestError("Start and end time are required for a partial-day request")
            if start_t >= end_t:
                raise InvalidRequestError("End time must be after start time")

        days = working_days(period.start_date, end_date)
        if not days:
            raise InvalidRequestError("The selected range contains no working days")

        return VacationRequestGroup(
            user_id=int(user_id),
            team_id=int(team_id),
            dates=tuple(days),
            is_full_day=bool(period.is_full_day),
            start_time=start_t,
            end_time=end_t,
            notes=optional_text(period.notes),
            selected_approver_id=period.selected_approver_id,
            group_id=self._new_group_id() if len(days) > 1 else None,
        )

    def _check_overlap(self, group: VacationRequestGroup, *, exclude_ids: Set[int] = frozenset()) -> None:
        existing = [
            r
            for r in self._requests.list_active_for_user_dates(user_id=group.user_id, dates=group.dates)
            if r.request_id not in exclude_ids
        ]
        clashes = sorted(
            {
                day
                for day in group.dates
                for r in existing
                if r.overlaps(on=day, is_full_day=group.is_full_day, start_time=group.start_time, end_time=group.end_time)
            }
        )
        if clashes:
            listed = ", ".join(d.strftime("%Y-%m-%d") for d in clashes)
            raise OverlapError(f"You already have a vacation request for {listed}")

    def _resolve_team(self, *, user_id: int, team_id: Optional[int]) -> int:
        own = sorted({m.team_id for m in self._teams.list_memberships(user_id=int(user_id))})
        if team_id is None:
            if len(own) != 1:
                raise InvalidRequestError("Select the team this vacation request is for")
            return own[0]
        if int(team_id) not in own:
            raise InvalidRequestError("User is not a member of the selected team")
        return int(team_id)

    def _load_group(self, request_id: int) -> VacationRequestGroup:
        req = self._requests.get(request_id=int(request_id))
        if not req:
            raise RequestNotFoundError("Vacation request not found")
        members: Sequence[VacationRequest] = [req]
        if req.request_group_id:
            members = self._requests.list_by_group(group_id=req.request_group_id) or [req]
        return group_requests(members)[0]

    def _require_pending(self, group: VacationRequestGroup) -> None:
        if group.status != RequestStatus.PENDING:
            raise InvalidRequestError("Request has already been processed")

    def _require_requester(self, actor: Actor, group: VacationRequestGroup) -> None:
        if actor.user_id != group.user_id:
            raise AccessDeniedError("Only the requester can change this request")

    def _notify(self, request_id: int, event: NotificationEvent) -> None:
        # Best effort: the operation already committed.
        try:
            self._notifier.notify(int(request_id), event)
        except Exception:
            logger.exception("Notification %s for vacation request %s failed", event.value, request_id)

    # -------- use cases --------
    def submit(
        self,
        *,
        actor: Actor,
        period: VacationPeriod,
        user_id: Optional[int] = None,
        team_id: Optional[int] = None,
        approve_immediately: bool = False,
    ) -> VacationRequestGroup:
        """Create a request group, or enter an approved one for a team member.

        Admins and planners may submit for anyone; managers for users of
        their teams. With approve_immediately the actor must be able to
        approve for the team, and the new group is approved right away.
        """
        user_id = actor.user_id if user_id is None else int(user_id)
        resolved_team = self._resolve_team(user_id=user_id, team_id=team_id)

        if (user_id != actor.user_id and not actor.is_unrestricted) or approve_immediately:
            scope = AccessScopeGate.from_repository(self._teams).resolve(actor)
            if user_id != actor.user_id and not (
                user_id in scope.full_detail_user_ids and scope.can_adjudicate(resolved_team)
            ):
                raise AccessDeniedError("You can only request vacation for yourself or members of your teams")
            if approve_immediately and not scope.can_adjudicate(resolved_team):
                raise AccessDeniedError("You cannot approve or reject requests for this team")

        group = self._build_group(user_id=user_id, team_id=resolved_team, period=period)

        # Every day is checked before anything is written.
        self._check_overlap(group)

        ids = self._requests.create_group(group)
        created = replace(group, request_ids=tuple(ids))
        logger.info(
            "Vacation request %s submitted by user %s for user %s, %d day(s) from %s",
            created.primary_request_id,
            actor.user_id,
            user_id,
            len(created.dates),
            created.start_date,
        )
        if approve_immediately:
            return self.approve(actor=actor, request_id=created.primary_request_id)

        self._notify(created.primary_request_id, NotificationEvent.REQUEST)
        return created

    def edit(self, *, actor: Actor, request_id: int, period: VacationPeriod) -> VacationRequestGroup:
        current = self._load_group(request_id)
        self._require_requester(actor, current)
        self._require_pending(current)

        group = self._build_group(user_id=current.user_id, team_id=current.team_id, period=period)
        self._check_overlap(group, exclude_ids=set(current.request_ids))

        ids = self._requests.replace_group(request_ids=current.request_ids, group=group)
        updated = replace(group, request_ids=tuple(ids))
        logger.info("Vacation request group %s replaced by %s", current.request_ids, updated.request_ids)
        self._notify(updated.primary_request_id, NotificationEvent.REQUEST)
        return updated

    def cancel(self, *, actor: Actor, request_id: int) -> int:
        group = self._load_group(request_id)
        self._require_requester(actor, group)
        self._require_pending(group)

        deleted = self._requests.delete_requests(request_ids=group.request_ids)
        logger.info("Vacation request group %s cancelled by user %s", group.request_ids, actor.user_id)
        return deleted

    def approve(self, *, actor: Actor, request_id: int) -> VacationRequestGroup:
        group = self._load_group(request_id)
        AccessScopeGate.from_repository(self._teams).require_adjudication(actor, group.team_id)
        self._require_pending(group)

        decided_at = self._clock()
        note = group.shift_note()
        records = [
            ShiftRecord(
                user_id=group.user_id,
                team_id=group.team_id,
                work_date=day,
                activity_type=ActivityType.VACATION,
                availability_status=AvailabilityStatus.UNAVAILABLE,
                notes=note,
                created_by=actor.user_id,
            )
            for day in group.dates
        ]

        self._requests.apply_approval(
            request_ids=group.request_ids,
            approver_id=actor.user_id,
            decided_at=decided_at,
            shift_records=records,
        )
        logger.info("Vacation request %s approved by user %s", group.request_ids, actor.user_id)

        self._notify(group.primary_request_id, NotificationEvent.APPROVAL)
        return replace(group, status=RequestStatus.APPROVED, approver_id=actor.user_id)

    def reject(self, *, actor: Actor, request_id: int, reason: str) -> VacationRequestGroup:
        reason = require_non_empty(reason, "Rejection reason")
        group = self._load_group(request_id)
        AccessScopeGate.from_repository(self._teams).require_adjudication(actor, group.team_id)
        self._require_pending(group)

        self._requests.apply_rejection(
            request_ids=group.request_ids,
            approver_id=actor.user_id,
            decided_at=self._clock(),
            reason=reason,
        )
        logger.info("Vacation request %s rejected by user %s", group.request_ids, actor.user_id)

        self._notify(group.primary_request_id, NotificationEvent.REJECTION)
        return replace(group, status=RequestStatus.REJECTED, approver_id=actor.user_id, rejection_reason=reason)

    def _each_group(
        self,
        request_ids: Sequence[int],
        decide: Callable[[int], VacationRequestGroup],
        done: List[int],
        failed: Dict[int, str],
        action: str,
    ) -> None:
        seen: Set[int] = set()
        for rid in request_ids:
            rid = int(rid)
            if rid in seen:
                continue
            try:
                group = decide(rid)
            except DomainError as e:
                logger.warning("Bulk %s of request %s failed: %s", action, rid, e)
                failed[rid] = str(e)
                continue
            seen.update(group.request_ids)
            done.extend(group.request_ids)

    def bulk_approve(self, *, actor: Actor, request_ids: Sequence[int]) -> BulkResult:
        """Approve each group on its own; one failure does not stop the others."""
        result = BulkResult()
        self._each_group(
            request_ids,
            lambda rid: self.approve(actor=actor, request_id=rid),
            result.approved_ids,
            result.failed,
            "approval",
        )
        return result

    def bulk_reject(self, *, actor: Actor, request_ids: Sequence[int], reason: str) -> BulkResult:
        """Reject each group with one shared reason, isolating failures."""
        reason = require_non_empty(reason, "Rejection reason")
        result = BulkResult()
        self._each_group(
            request_ids,
            lambda rid: self.reject(actor=actor, request_id=rid, reason=reason),
            result.rejected_ids,
            result.failed,
            "rejection",
        )
        return result

    def list_my_requests(self, *, user_id: int) -> List[VacationRequestGroup]:
        return group_requests(self._requests.list_requests(user_id=int(user_id)))

    def list_pending_for(self, *, actor: Actor) -> List[VacationRequestGroup]:
        scope = AccessScopeGate.from_repository(self._teams).resolve(actor)
        teams = [t for t in scope.visible_team_ids if scope.can_adjudicate(t)]
        if not teams:
            return []
        pending = self._requests.list_requests(team_ids=sorted(teams), statuses=[RequestStatus.PENDING])
        return group_requests(pending)
