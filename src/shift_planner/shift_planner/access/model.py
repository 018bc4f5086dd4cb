from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from ..core.enums import DetailLevel, Role


@dataclass(frozen=True)
class Actor:
    """Whoever performs an operation: the logged-in user and their roles."""

    user_id: int
    roles: FrozenSet[Role] = field(default_factory=frozenset)

    @classmethod
    def of(cls, user_id: int, *roles: Role | str) -> "Actor":
        return cls(user_id=int(user_id), roles=frozenset(Role(r) for r in roles))

    def has(self, role: Role) -> bool:
        return role in self.roles

    @property
    def is_unrestricted(self) -> bool:
        return Role.ADMIN in self.roles or Role.PLANNER in self.roles

    @property
    def is_manager(self) -> bool:
        return Role.MANAGER in self.roles and not self.is_unrestricted


@dataclass(frozen=True)
class AccessScope:
    """Declarative outcome of the access policy for one actor and query.

    visible_team_ids: teams whose requests and capacity reach the caller.
    observable_team_ids: teams whose schedule may be listed (possibly downgraded).
    full_detail_user_ids / full_detail_team_ids: where activity details may be shown.
    """

    actor_id: int
    visible_team_ids: FrozenSet[int]
    observable_team_ids: FrozenSet[int]
    detail_level: DetailLevel
    full_detail_team_ids: FrozenSet[int] = frozenset()
    full_detail_user_ids: FrozenSet[int] = frozenset()
    unrestricted: bool = False
    collapse_activity: bool = False

    def can_view_team(self, team_id: int) -> bool:
        return team_id in self.visible_team_ids

    def can_adjudicate(self, team_id: int) -> bool:
        return self.unrestricted or team_id in self.full_detail_team_ids

    def detail_level_for(self, user_id: int) -> DetailLevel:
        if self.unrestricted or user_id in self.full_detail_user_ids:
            return DetailLevel.FULL
        return DetailLevel.AVAILABILITY_ONLY

    def to_dict(self) -> dict:
        return {
            "visible_team_ids": sorted(self.visible_team_ids),
            "detail_level": self.detail_level.value,
            "unrestricted": self.unrestricted,
        }
