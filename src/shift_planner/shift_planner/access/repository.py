from __future__ import annotations

from typing import FrozenSet, Protocol

from ..core.enums import Role


class RoleRepository(Protocol):
    def get_roles(self, user_id: int) -> FrozenSet[Role]:
        raise NotImplementedError
