from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import ActivityType, AvailabilityStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from .model import ShiftRecord
from .repository import ShiftRecordRepository

_COLUMNS = "record_id, user_id, team_id, work_date, activity_type, availability_status, notes, created_by"


def row_to_shift(r: dict) -> ShiftRecord:
    return ShiftRecord(
        record_id=int(r["record_id"]),
        user_id=int(r["user_id"]),
        team_id=int(r["team_id"]),
        work_date=r["work_date"],
        activity_type=ActivityType(r["activity_type"]),
        availability_status=AvailabilityStatus(r["availability_status"]),
        notes=r.get("notes"),
        created_by=r.get("created_by"),
    )


class MySQLShiftRecordRepository(ShiftRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_range(
        self,
        *,
        start: date,
        end: date,
        team_ids: Optional[Iterable[int]] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[ShiftRecord]:
        clauses = ["work_date BETWEEN %s AND %s"]
        params: list[object] = [start, end]

        if team_ids is not None:
            ids = [int(t) for t in team_ids]
            if not ids:
                return []
            clauses.append(f"team_id IN ({in_clause(ids)})")
            params.extend(ids)
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM shift_records WHERE {where} ORDER BY work_date ASC, user_id ASC",
                tuple(params),
            )
            return [row_to_shift(r) for r in fetchall(cur)]

