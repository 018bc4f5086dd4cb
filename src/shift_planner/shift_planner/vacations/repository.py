from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import RequestStatus
from ..shifts.model import ShiftRecord
from .model import VacationRequest, VacationRequestGroup


class VacationRequestRepository(Protocol):
    # Group writes: each call is all-or-nothing.
    def create_group(self, group: VacationRequestGroup) -> Sequence[int]:
        """Insert one pending request per date; returns the new request ids in date order."""

        raise NotImplementedError

    def replace_group(self, *, request_ids: Sequence[int], group: VacationRequestGroup) -> Sequence[int]:
        """Delete request_ids and insert group in the same transaction."""

        raise NotImplementedError

    def delete_requests(self, *, request_ids: Sequence[int]) -> int:
        raise NotImplementedError

    # Reads
    def get(self, *, request_id: int) -> Optional[VacationRequest]:
        raise NotImplementedError

    def list_by_group(self, *, group_id: str) -> Sequence[VacationRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        team_ids: Optional[Iterable[int]] = None,
        user_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        statuses: Optional[Iterable[RequestStatus]] = None,
        limit: Optional[int] = DEFAULT_LIST_LIMIT,
    ) -> Sequence[VacationRequest]:
        raise NotImplementedError

    def list_active_for_user_dates(self, *, user_id: int, dates: Iterable[date]) -> Sequence[VacationRequest]:
        """Pending and approved requests of user_id on any of dates."""

        raise NotImplementedError

    # Adjudication
    def apply_approval(
        self,
        *,
        request_ids: Sequence[int],
        approver_id: int,
        decided_at: datetime,
        shift_records: Sequence[ShiftRecord],
    ) -> None:
        """Atomically: drop shift records for the (user, date) pairs, approve the
        still-pending requests, insert the vacation shift records."""

        raise NotImplementedError

    def apply_rejection(
        self,
        *,
        request_ids: Sequence[int],
        approver_id: int,
        decided_at: datetime,
        reason: str,
    ) -> None:
        raise NotImplementedError
