from __future__ import annotations

import logging
from typing import FrozenSet

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import RoleRepository

logger = logging.getLogger(__name__)


class MySQLRoleRepository(RoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_roles(self, user_id: int) -> FrozenSet[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role FROM user_roles WHERE user_id=%s", (int(user_id),))
            roles = set()
            for r in fetchall(cur):
                try:
                    roles.add(Role(r["role"]))
                except ValueError:
                    logger.warning("Ignoring unknown role %r for user %s", r["role"], user_id)
            return frozenset(roles)
