from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, TypeVar

from ..core.enums import DetailLevel, Role
from ..core.exceptions import AccessDeniedError, InvalidRequestError
from ..shifts.model import ShiftRecord, ShiftView, collapse_availability
from ..teams.hierarchy import TeamHierarchyResolver
from ..teams.model import Team, TeamMembership
from ..teams.repository import TeamRepository
from .model import AccessScope, Actor

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ScopeKey = Tuple[int, FrozenSet[Role], Optional[int]]


class AccessScopeGate:
    """The single access policy: who sees which teams, and in how much detail.

    A gate is built from one snapshot of teams and memberships. Scopes are
    memoized per (actor id, role snapshot, requested team); after a membership
    change build a new gate or call invalidate().
    """

    def __init__(self, teams: Iterable[Team], memberships: Iterable[TeamMembership]):
        self._resolver = TeamHierarchyResolver(teams)
        self._memberships: List[TeamMembership] = list(memberships)
        self._cache: Dict[_ScopeKey, AccessScope] = {}

    @classmethod
    def from_repository(cls, teams: TeamRepository) -> "AccessScopeGate":
        return cls(teams.list_teams(), teams.list_memberships())

    @property
    def resolver(self) -> TeamHierarchyResolver:
        return self._resolver

    def invalidate(self) -> None:
        self._cache.clear()

    def resolve(self, actor: Actor, requested_team_id: Optional[int] = None) -> AccessScope:
        key = (actor.user_id, actor.roles, requested_team_id)
        scope = self._cache.get(key)
        if scope is None:
            scope = self._compute(actor, requested_team_id)
            self._cache[key] = scope
        return scope

    def _compute(self, actor: Actor, requested_team_id: Optional[int]) -> AccessScope:
        all_teams = self._resolver.team_ids
        if requested_team_id is not None and requested_team_id not in all_teams:
            raise InvalidRequestError(f"Unknown team {requested_team_id}")

        if actor.is_unrestricted:
            teams = frozenset({requested_team_id}) if requested_team_id is not None else all_teams
            return AccessScope(
                actor_id=actor.user_id,
                visible_team_ids=teams,
                observable_team_ids=teams,
                detail_level=DetailLevel.FULL,
                full_detail_team_ids=teams,
                unrestricted=True,
            )

        if actor.is_manager:
            managed = [
                m.team_id for m in self._memberships if m.user_id == actor.user_id and m.is_manager and m.team_id in all_teams
            ]
            scope_teams: FrozenSet[int] = frozenset().union(*(self._resolver.closure(t) for t in managed))
            scope_users = frozenset(m.user_id for m in self._memberships if m.team_id in scope_teams)

            if requested_team_id is not None:
                # Explicit selection: that team only, no hierarchy expansion.
                visible = frozenset({requested_team_id}) & scope_teams
                observable = frozenset({requested_team_id})
            else:
                visible = scope_teams
                observable = all_teams

            return AccessScope(
                actor_id=actor.user_id,
                visible_team_ids=visible,
                observable_team_ids=observable,
                detail_level=DetailLevel.FULL,
                full_detail_team_ids=scope_teams,
                full_detail_user_ids=scope_users,
            )

        own_teams = frozenset(m.team_id for m in self._memberships if m.user_id == actor.user_id)
        if requested_team_id is not None:
            if requested_team_id not in own_teams:
                raise AccessDeniedError(f"Team {requested_team_id} is outside your teams")
            own_teams = frozenset({requested_team_id})

        return AccessScope(
            actor_id=actor.user_id,
            visible_team_ids=own_teams,
            observable_team_ids=own_teams,
            detail_level=DetailLevel.AVAILABILITY_ONLY,
            collapse_activity=True,
        )

    def require_adjudication(self, actor: Actor, team_id: int) -> AccessScope:
        """Scope of an actor allowed to approve/reject for team_id, or AccessDeniedError."""
        scope = self.resolve(actor)
        if not scope.can_adjudicate(team_id):
            logger.warning("User %s denied adjudication for team %s", actor.user_id, team_id)
            raise AccessDeniedError("You cannot approve or reject requests for this team")
        return scope


def redact_shift(scope: AccessScope, record: ShiftRecord) -> ShiftView:
    """Apply the per-record detail downgrade."""
    detail = scope.detail_level_for(record.user_id)
    if detail is DetailLevel.FULL:
        return ShiftView(
            user_id=record.user_id,
            team_id=record.team_id,
            work_date=record.work_date,
            availability_status=record.availability_status,
            detail_level=detail,
            activity_type=record.activity_type,
            notes=record.notes,
        )

    availability = collapse_availability(record.activity_type) if scope.collapse_activity else record.availability_status
    return ShiftView(
        user_id=record.user_id,
        team_id=record.team_id,
        work_date=record.work_date,
        availability_status=availability,
        detail_level=detail,
    )


def filter_by_team(scope: AccessScope, items: Sequence[T]) -> List[T]:
    """Keep items (anything with a team_id) whose team is visible."""
    return [item for item in items if scope.can_view_team(getattr(item, "team_id"))]
