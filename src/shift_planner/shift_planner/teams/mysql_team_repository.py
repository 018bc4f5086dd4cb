from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from .model import Team, TeamCapacityConfig, TeamMembership
from .repository import TeamRepository


class MySQLTeamRepository(TeamRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_teams(self) -> Sequence[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT team_id, name, parent_team_id FROM teams ORDER BY name ASC")
            return [
                Team(
                    team_id=int(r["team_id"]),
                    name=r["name"],
                    parent_team_id=int(r["parent_team_id"]) if r.get("parent_team_id") is not None else None,
                )
                for r in fetchall(cur)
            ]

    def list_memberships(
        self,
        *,
        team_ids: Optional[Iterable[int]] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[TeamMembership]:
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

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT team_id, user_id, is_manager
                FROM team_members
                WHERE {where}
                ORDER BY team_id ASC, user_id ASC
                """,
                tuple(params),
            )
            return [
                TeamMembership(
                    team_id=int(r["team_id"]),
                    user_id=int(r["user_id"]),
                    is_manager=bool(r["is_manager"]),
                )
                for r in fetchall(cur)
            ]

    def list_capacity_configs(self, *, team_ids: Iterable[int]) -> Sequence[TeamCapacityConfig]:
        ids = [int(t) for t in team_ids]
        if not ids:
            return []

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT team_id, min_staff_required FROM team_capacity_config WHERE team_id IN ({in_clause(ids)})",
                tuple(ids),
            )
            return [
                TeamCapacityConfig(team_id=int(r["team_id"]), min_staff_required=int(r["min_staff_required"]))
                for r in fetchall(cur)
            ]
