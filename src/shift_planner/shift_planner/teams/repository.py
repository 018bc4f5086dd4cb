from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Team, TeamCapacityConfig, TeamMembership


class TeamRepository(Protocol):
    """Read access to the team forest and its memberships.

    Note: services depend on this interface, not on a concrete database.
    """

    def list_teams(self) -> Sequence[Team]:
        raise NotImplementedError

    def list_memberships(
        self,
        *,
        team_ids: Optional[Iterable[int]] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[TeamMembership]:
        raise NotImplementedError

    def list_capacity_configs(self, *, team_ids: Iterable[int]) -> Sequence[TeamCapacityConfig]:
        raise NotImplementedError
