from __future__ import annotations

import logging
from collections import deque
from typing import Dict, FrozenSet, Iterable, List, Optional

from ..core.exceptions import HierarchyCycleError, InvalidRequestError
from .model import Team

logger = logging.getLogger(__name__)


class TeamHierarchyResolver:
    """Ancestor/descendant queries over one snapshot of the team forest.

    Build one resolver per operation: closures are memoized for the lifetime of
    the instance and never invalidated.
    """

    def __init__(self, teams: Iterable[Team]):
        self._teams: Dict[int, Team] = {t.team_id: t for t in teams}
        self._children: Dict[int, List[Team]] = {}
        for team in self._teams.values():
            if team.parent_team_id is not None:
                self._children.setdefault(team.parent_team_id, []).append(team)
        for children in self._children.values():
            children.sort(key=lambda t: (t.name, t.team_id))
        self._descendants: Dict[int, FrozenSet[int]] = {}

    @property
    def team_ids(self) -> FrozenSet[int]:
        return frozenset(self._teams)

    def get(self, team_id: int) -> Optional[Team]:
        return self._teams.get(team_id)

    def roots(self) -> List[Team]:
        """Top-level teams sorted by name. A parent id pointing outside the snapshot counts as top level."""
        return sorted(
            (t for t in self._teams.values() if t.parent_team_id is None or t.parent_team_id not in self._teams),
            key=lambda t: (t.name, t.team_id),
        )

    def children(self, team_id: int) -> List[Team]:
        return list(self._children.get(team_id, []))

    def descendants(self, team_id: int) -> FrozenSet[int]:
        cached = self._descendants.get(team_id)
        if cached is not None:
            return cached

        found: set[int] = set()
        queue = deque(child.team_id for child in self._children.get(team_id, []))
        limit = len(self._teams)
        while queue:
            current = queue.popleft()
            if current == team_id or current in found or len(found) >= limit:
                logger.error("Team hierarchy cycle detected below team %s", team_id)
                raise HierarchyCycleError(f"Team hierarchy contains a cycle through team {team_id}")
            found.add(current)
            queue.extend(child.team_id for child in self._children.get(current, []))

        result = frozenset(found)
        self._descendants[team_id] = result
        return result

    def closure(self, team_id: int) -> FrozenSet[int]:
        """The team together with all of its descendants."""
        return self.descendants(team_id) | {team_id}

    def ancestor_chain(self, team_id: int) -> List[Team]:
        """Teams from the root down to (and including) team_id."""
        team = self._teams.get(team_id)
        if team is None:
            raise InvalidRequestError(f"Unknown team {team_id}")

        chain = [team]
        seen = {team.team_id}
        while team.parent_team_id is not None and team.parent_team_id in self._teams:
            team = self._teams[team.parent_team_id]
            if team.team_id in seen or len(chain) > len(self._teams):
                logger.error("Team hierarchy cycle detected above team %s", team_id)
                raise HierarchyCycleError(f"Parent chain of team {team_id} does not terminate")
            seen.add(team.team_id)
            chain.append(team)

        chain.reverse()
        return chain

    def is_top_level(self, team_id: int) -> bool:
        return len(self.ancestor_chain(team_id)) == 1

    def is_mid_level(self, team_id: int) -> bool:
        return not self.is_top_level(team_id) and bool(self._children.get(team_id))

    def display_name(self, team_id: int) -> str:
        """Child team name without its parent's name prefix ("Ops - Berlin" under "Ops" -> "Berlin")."""
        team = self._teams.get(team_id)
        if team is None:
            return ""
        parent = self._teams.get(team.parent_team_id) if team.parent_team_id is not None else None
        if parent is None:
            return team.name
        return team.name.replace(parent.name, "").strip(" -") or team.name
