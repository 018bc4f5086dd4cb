from __future__ import annotations

import pytest

from src.shift_planner.shift_planner.core.exceptions import HierarchyCycleError, InvalidRequestError
from src.shift_planner.shift_planner.teams.hierarchy import TeamHierarchyResolver
from src.shift_planner.shift_planner.teams.model import Team


def _forest() -> TeamHierarchyResolver:
    return TeamHierarchyResolver(
        [
            Team(1, "Operations"),
            Team(2, "Operations - Berlin", parent_team_id=1),
            Team(3, "Berlin Night", parent_team_id=2),
            Team(4, "Operations - Lisbon", parent_team_id=1),
            Team(5, "Finance"),
        ]
    )


def test_closure_contains_team_and_all_descendants():
    resolver = _forest()

    assert resolver.closure(1) == {1, 2, 3, 4}
    assert resolver.closure(2) == {2, 3}
    assert resolver.closure(3) == {3}
    assert resolver.descendants(5) == frozenset()


def test_ancestor_chain_runs_root_first():
    resolver = _forest()

    assert [t.team_id for t in resolver.ancestor_chain(3)] == [1, 2, 3]
    assert resolver.is_top_level(1)
    assert resolver.is_mid_level(2)
    assert not resolver.is_mid_level(3)


def test_roots_and_children_are_sorted_by_name():
    resolver = _forest()

    assert [t.name for t in resolver.roots()] == ["Finance", "Operations"]
    assert [t.team_id for t in resolver.children(1)] == [2, 4]


def test_display_name_strips_parent_prefix():
    resolver = _forest()

    assert resolver.display_name(2) == "Berlin"
    assert resolver.display_name(3) == "Berlin Night"
    assert resolver.display_name(1) == "Operations"


def test_unknown_team_in_ancestor_chain_is_rejected():
    with pytest.raises(InvalidRequestError):
        _forest().ancestor_chain(99)


def test_cycle_is_reported_instead_of_looping():
    resolver = TeamHierarchyResolver(
        [
            Team(1, "A", parent_team_id=2),
            Team(2, "B", parent_team_id=1),
            Team(3, "C"),
        ]
    )

    with pytest.raises(HierarchyCycleError):
        resolver.descendants(1)
    with pytest.raises(HierarchyCycleError):
        resolver.ancestor_chain(2)
    assert resolver.closure(3) == {3}
