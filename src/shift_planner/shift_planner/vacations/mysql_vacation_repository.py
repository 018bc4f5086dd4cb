from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import RequestStatus
from ..core.exceptions import DuplicateRecordError, InvalidRequestError, OverlapError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from ..shifts.model import ShiftRecord
from .model import VacationRequest, VacationRequestGroup
from .repository import VacationRequestRepository

logger = logging.getLogger(__name__)

_COLUMNS = """
    request_id, user_id, team_id, requested_date, is_full_day, start_time, end_time,
    status, notes, rejection_reason, approver_id, request_group_id, selected_approver_id,
    created_at, approved_at, rejected_at
"""


def row_to_request(r: dict) -> VacationRequest:
    return VacationRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        team_id=int(r["team_id"]),
        requested_date=r["requested_date"],
        is_full_day=bool(r["is_full_day"]),
        start_time=normalize_mysql_time(r.get("start_time")),
        end_time=normalize_mysql_time(r.get("end_time")),
        status=RequestStatus(r["status"]),
        notes=r.get("notes"),
        rejection_reason=r.get("rejection_reason"),
        approver_id=r.get("approver_id"),
        request_group_id=r.get("request_group_id"),
        selected_approver_id=r.get("selected_approver_id"),
        created_at=r.get("created_at"),
        approved_at=r.get("approved_at"),
        rejected_at=r.get("rejected_at"),
    )


class MySQLVacationRequestRepository(VacationRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Group writes --------
    @staticmethod
    def _insert_group(cur, group: VacationRequestGroup) -> List[int]:
        ids: List[int] = []
        for day in group.dates:
            cur.execute(
                """
                INSERT INTO vacation_requests(
                    user_id, team_id, requested_date, is_full_day, start_time, end_time,
                    status, notes, request_group_id, selected_approver_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(group.user_id),
                    int(group.team_id),
                    day,
                    1 if group.is_full_day else 0,
                    None if group.is_full_day else group.start_time,
                    None if group.is_full_day else group.end_time,
                    RequestStatus.PENDING.value,
                    group.notes,
                    group.group_id,
                    group.selected_approver_id,
                ),
            )
            ids.append(int(cur.lastrowid))
        return ids

    def create_group(self, group: VacationRequestGroup) -> Sequence[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                return self._insert_group(cur, group)
        except DuplicateRecordError as exc:
            # Lost the race against a concurrent submission for the same window.
            raise OverlapError("A vacation request already exists for this date/time") from exc

    def replace_group(self, *, request_ids: Sequence[int], group: VacationRequestGroup) -> Sequence[int]:
        ids = [int(i) for i in request_ids]
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                if ids:
                    cur.execute(
                        f"DELETE FROM vacation_requests WHERE status=%s AND request_id IN ({in_clause(ids)})",
                        tuple([RequestStatus.PENDING.value] + ids),
                    )
                    if cur.rowcount != len(ids):
                        raise InvalidRequestError("Only pending requests can be edited")
                return self._insert_group(cur, group)
        except DuplicateRecordError as exc:
            raise OverlapError("A vacation request already exists for this date/time") from exc

    def delete_requests(self, *, request_ids: Sequence[int]) -> int:
        ids = [int(i) for i in request_ids]
        if not ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM vacation_requests WHERE request_id IN ({in_clause(ids)})", tuple(ids))
            return int(cur.rowcount)

    # -------- Reads --------
    def get(self, *, request_id: int) -> Optional[VacationRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM vacation_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return row_to_request(r) if r else None

    def list_by_group(self, *, group_id: str) -> Sequence[VacationRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM vacation_requests WHERE request_group_id=%s ORDER BY requested_date ASC",
                (str(group_id),),
            )
            return [row_to_request(r) for r in fetchall(cur)]

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
        clauses = ["1=1"]
        params: list[object] = []

        if team_ids is not None:
            ids = [int(t) for t in team_ids]
            if not ids:
                return []
            clauses.append(f"team_id IN ({in_clause(ids)})")
            params.extend(ids)
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if start is not None:
            clauses.append("requested_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("requested_date <= %s")
            params.append(end)
        if statuses is not None:
            values = [RequestStatus(s).value for s in statuses]
            if not values:
                return []
            clauses.append(f"status IN ({in_clause(values)})")
            params.extend(values)

        where = " AND ".join(clauses)
        page = ""
        if limit is not None:
            page = "LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM vacation_requests
                WHERE {where}
                ORDER BY requested_date ASC, request_id ASC
                {page}
                """,
                tuple(params),
            )
            return [row_to_request(r) for r in fetchall(cur)]

    def list_active_for_user_dates(self, *, user_id: int, dates: Iterable[date]) -> Sequence[VacationRequest]:
        days = list(dates)
        if not days:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM vacation_requests
                WHERE user_id=%s AND status IN (%s,%s) AND requested_date IN ({in_clause(days)})
                """,
                tuple([int(user_id), RequestStatus.PENDING.value, RequestStatus.APPROVED.value] + days),
            )
            return [row_to_request(r) for r in fetchall(cur)]

    # -------- Adjudication --------
    def apply_approval(
        self,
        *,
        request_ids: Sequence[int],
        approver_id: int,
        decided_at: datetime,
        shift_records: Sequence[ShiftRecord],
    ) -> None:
        ids = [int(i) for i in request_ids]
        with db_cursor(self._conn_factory) as (_, cur):
            for rec in shift_records:
                cur.execute(
                    "DELETE FROM shift_records WHERE user_id=%s AND work_date=%s",
                    (int(rec.user_id), rec.work_date),
                )

            cur.execute(
                f"""
                UPDATE vacation_requests
                SET status=%s, approver_id=%s, approved_at=%s
                WHERE status=%s AND request_id IN ({in_clause(ids)})
                """,
                tuple([RequestStatus.APPROVED.value, int(approver_id), decided_at, RequestStatus.PENDING.value] + ids),
            )
            if cur.rowcount != len(ids):
                raise InvalidRequestError("Request has already been processed")

            for rec in shift_records:
                cur.execute(
                    """
                    INSERT INTO shift_records(
                        user_id, team_id, work_date, activity_type, availability_status, notes, created_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(rec.user_id),
                        int(rec.team_id),
                        rec.work_date,
                        rec.activity_type.value,
                        rec.availability_status.value,
                        rec.notes,
                        rec.created_by,
                    ),
                )
        logger.debug("Approval transaction committed for requests %s", ids)

    def apply_rejection(
        self,
        *,
        request_ids: Sequence[int],
        approver_id: int,
        decided_at: datetime,
        reason: str,
    ) -> None:
        ids = [int(i) for i in request_ids]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE vacation_requests
                SET status=%s, approver_id=%s, rejected_at=%s, rejection_reason=%s
                WHERE status=%s AND request_id IN ({in_clause(ids)})
                """,
                tuple(
                    [RequestStatus.REJECTED.value, int(approver_id), decided_at, reason, RequestStatus.PENDING.value]
                    + ids
                ),
            )
            if cur.rowcount != len(ids):
                raise InvalidRequestError("Request has already been processed")
