from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Team:
    """Domain entity: a team. Teams form a forest through parent_team_id."""

    team_id: int
    name: str
    parent_team_id: Optional[int] = None


@dataclass(frozen=True)
class TeamMembership:
    team_id: int
    user_id: int
    is_manager: bool = False


@dataclass(frozen=True)
class TeamCapacityConfig:
    team_id: int
    min_staff_required: int
