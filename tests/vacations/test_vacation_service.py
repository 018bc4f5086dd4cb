from __future__ import annotations

import itertools
from datetime import date, datetime

import pytest

from src.shift_planner.shift_planner.access.model import Actor
from src.shift_planner.shift_planner.core.enums import (
    ActivityType,
    AvailabilityStatus,
    NotificationEvent,
    RequestStatus,
    Role,
)
from src.shift_planner.shift_planner.core.exceptions import (
    AccessDeniedError,
    InvalidRequestError,
    OverlapError,
    PersistenceError,
    RequestNotFoundError,
)
from src.shift_planner.shift_planner.notifications.notifier import LogOnlyNotifier
from src.shift_planner.shift_planner.shifts.model import ShiftRecord
from src.shift_planner.shift_planner.teams.model import Team, TeamMembership
from src.shift_planner.shift_planner.vacations.service import VacationPeriod, VacationRequestService
from tests.fakes import FailingNotifier, InMemoryShifts, InMemoryTeams, InMemoryVacations

NOW = datetime(2025, 6, 1, 12, 0)

ADMIN = Actor.of(1, Role.ADMIN)
MANAGER = Actor.of(10, Role.MANAGER)
OTHER_MANAGER = Actor.of(20, Role.MANAGER)
USER = Actor.of(11, Role.TEAM_MEMBER)
TWO_TEAM_USER = Actor.of(12, Role.TEAM_MEMBER)


def _teams() -> InMemoryTeams:
    return InMemoryTeams(
        teams=[Team(1, "Support"), Team(2, "Sales")],
        memberships=[
            TeamMembership(1, 10, is_manager=True),
            TeamMembership(1, 11),
            TeamMembership(1, 12),
            TeamMembership(2, 12),
            TeamMembership(2, 20, is_manager=True),
        ],
    )


def _build(*, notifier=None, fail_approval_write=False, shifts=None):
    shifts = shifts or InMemoryShifts()
    vacations = InMemoryVacations(shifts, fail_approval_write=fail_approval_write)
    notifier = notifier or LogOnlyNotifier()
    ids = itertools.count(1)
    service = VacationRequestService(
        vacations,
        _teams(),
        notifier,
        clock=lambda: NOW,
        group_id_factory=lambda: f"group-{next(ids)}",
    )
    return service, vacations, notifier


def _full_day(start: date, end: date | None = None, **kwargs) -> VacationPeriod:
    return VacationPeriod(start_date=start, end_date=end, **kwargs)


def _partial(day: date, start: str, end: str, **kwargs) -> VacationPeriod:
    return VacationPeriod(start_date=day, is_full_day=False, start_time=start, end_time=end, **kwargs)


# -------- submit --------
def test_single_day_request_is_a_group_without_group_id():
    service, vacations, notifier = _build()

    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 10)))

    assert group.dates == (date(2025, 6, 10),)
    assert group.group_id is None
    assert group.team_id == 1
    assert vacations.get(request_id=group.primary_request_id).status is RequestStatus.PENDING
    assert notifier.sent == [(group.primary_request_id, NotificationEvent.REQUEST)]


def test_range_expands_to_working_days_with_shared_group_id():
    service, vacations, _ = _build()

    # Friday to Monday
    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 13), date(2025, 6, 16)))

    assert group.dates == (date(2025, 6, 13), date(2025, 6, 16))
    assert group.group_id == "group-1"
    assert {r.request_group_id for r in vacations.requests.values()} == {"group-1"}


def test_single_weekend_day_is_allowed_but_weekend_only_range_is_not():
    service, _, _ = _build()

    service.submit(actor=USER, period=_full_day(date(2025, 6, 14)))
    with pytest.raises(InvalidRequestError):
        service.submit(actor=USER, period=_full_day(date(2025, 6, 21), date(2025, 6, 22)))


def test_approved_full_day_blocks_same_day_but_not_partial_next_day():
    service, vacations, _ = _build()
    vacations.seed(user_id=11, team_id=1, requested_date=date(2025, 6, 10), status=RequestStatus.APPROVED)

    with pytest.raises(OverlapError):
        service.submit(actor=USER, period=_full_day(date(2025, 6, 10)))

    group = service.submit(actor=USER, period=_partial(date(2025, 6, 11), "09:00", "12:00"))
    assert group.start_time.hour == 9


def test_overlap_on_a_later_day_of_a_range_creates_nothing():
    service, vacations, _ = _build()
    vacations.seed(user_id=11, team_id=1, requested_date=date(2025, 6, 12), status=RequestStatus.APPROVED)
    before = dict(vacations.requests)

    with pytest.raises(OverlapError) as exc:
        service.submit(actor=USER, period=_full_day(date(2025, 6, 10), date(2025, 6, 13)))

    assert "2025-06-12" in str(exc.value)
    assert vacations.requests == before


def test_partial_windows_are_half_open():
    service, _, _ = _build()
    day = date(2025, 6, 11)
    service.submit(actor=USER, period=_partial(day, "09:00", "12:00"))

    service.submit(actor=USER, period=_partial(day, "12:00", "15:00"))
    with pytest.raises(OverlapError):
        service.submit(actor=USER, period=_partial(day, "11:00", "13:00"))
    with pytest.raises(OverlapError):
        service.submit(actor=USER, period=_full_day(day))


def test_rejected_request_does_not_block():
    service, vacations, _ = _build()
    vacations.seed(
        user_id=11,
        team_id=1,
        requested_date=date(2025, 6, 10),
        status=RequestStatus.REJECTED,
        rejection_reason="busy",
    )

    service.submit(actor=USER, period=_full_day(date(2025, 6, 10)))


@pytest.mark.parametrize(
    "period",
    [
        VacationPeriod(start_date=date(2025, 6, 12), end_date=date(2025, 6, 10)),
        VacationPeriod(start_date=date(2025, 6, 12), is_full_day=False, start_time="09:00"),
        VacationPeriod(start_date=date(2025, 6, 12), is_full_day=False, start_time="13:00", end_time="09:00"),
    ],
)
def test_invalid_periods_are_rejected(period):
    service, vacations, _ = _build()

    with pytest.raises(InvalidRequestError):
        service.submit(actor=USER, period=period)
    assert vacations.requests == {}


def test_admins_planners_and_managers_submit_for_others():
    service, _, _ = _build()

    with pytest.raises(AccessDeniedError):
        service.submit(actor=USER, user_id=12, team_id=1, period=_full_day(date(2025, 6, 10)))
    # 12 belongs to team 2 as well, which MANAGER does not run
    with pytest.raises(AccessDeniedError):
        service.submit(actor=MANAGER, user_id=12, team_id=2, period=_full_day(date(2025, 6, 10)))
    with pytest.raises(AccessDeniedError):
        service.submit(actor=MANAGER, user_id=20, period=_full_day(date(2025, 6, 10)))

    assert service.submit(actor=ADMIN, user_id=11, period=_full_day(date(2025, 6, 10))).user_id == 11
    assert service.submit(actor=MANAGER, user_id=12, team_id=1, period=_full_day(date(2025, 6, 10))).user_id == 12


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def notify(self, request_id, event):
        self.events.append((request_id, event))


def test_manual_entry_is_approved_in_the_same_call():
    notifier = RecordingNotifier()
    service, vacations, _ = _build(notifier=notifier)

    group = service.submit(
        actor=MANAGER,
        user_id=11,
        period=_full_day(date(2025, 6, 10), date(2025, 6, 11)),
        approve_immediately=True,
    )

    assert group.status is RequestStatus.APPROVED
    assert {r.status for r in vacations.requests.values()} == {RequestStatus.APPROVED}
    assert {r.approver_id for r in vacations.requests.values()} == {10}
    assert sorted(r.work_date for r in vacations.shifts.records) == [date(2025, 6, 10), date(2025, 6, 11)]
    assert notifier.events == [(group.primary_request_id, NotificationEvent.APPROVAL)]


def test_manual_entry_needs_approval_rights_and_writes_nothing_otherwise():
    service, vacations, _ = _build()

    with pytest.raises(AccessDeniedError):
        service.submit(actor=USER, period=_full_day(date(2025, 6, 10)), approve_immediately=True)
    with pytest.raises(AccessDeniedError):
        service.submit(
            actor=OTHER_MANAGER, user_id=11, period=_full_day(date(2025, 6, 10)), approve_immediately=True
        )

    assert vacations.requests == {}
    assert vacations.shifts.records == []


def test_team_must_be_chosen_among_own_teams():
    service, _, _ = _build()

    with pytest.raises(InvalidRequestError):
        service.submit(actor=TWO_TEAM_USER, period=_full_day(date(2025, 6, 10)))
    with pytest.raises(InvalidRequestError):
        service.submit(actor=USER, team_id=2, period=_full_day(date(2025, 6, 10)))

    group = service.submit(actor=TWO_TEAM_USER, team_id=2, period=_full_day(date(2025, 6, 10)))
    assert group.team_id == 2


# -------- approve / reject --------
def test_approval_replaces_existing_shift_records_for_the_whole_group():
    shifts = InMemoryShifts(
        [
            ShiftRecord(11, 1, date(2025, 6, 13), ActivityType.WORK, AvailabilityStatus.AVAILABLE),
            ShiftRecord(10, 1, date(2025, 6, 13), ActivityType.WORK, AvailabilityStatus.AVAILABLE),
        ]
    )
    service, vacations, notifier = _build(shifts=shifts)
    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 13), date(2025, 6, 16)))

    approved = service.approve(actor=MANAGER, request_id=group.request_ids[1])

    assert approved.status is RequestStatus.APPROVED
    for rid in group.request_ids:
        req = vacations.get(request_id=rid)
        assert req.status is RequestStatus.APPROVED
        assert req.approver_id == 10
        assert req.approved_at == NOW

    user_records = sorted((r for r in shifts.records if r.user_id == 11), key=lambda r: r.work_date)
    assert [(r.work_date, r.activity_type, r.notes) for r in user_records] == [
        (date(2025, 6, 13), ActivityType.VACATION, "Vacation - Full Day"),
        (date(2025, 6, 16), ActivityType.VACATION, "Vacation - Full Day"),
    ]
    assert all(r.availability_status is AvailabilityStatus.UNAVAILABLE for r in user_records)
    assert any(r.user_id == 10 for r in shifts.records)
    assert notifier.sent[-1] == (group.primary_request_id, NotificationEvent.APPROVAL)


def test_partial_day_note_carries_window_and_notes():
    service, vacations, _ = _build()
    group = service.submit(actor=USER, period=_partial(date(2025, 6, 11), "09:00", "12:00", notes="dentist"))

    service.approve(actor=MANAGER, request_id=group.primary_request_id)

    assert [r.notes for r in vacations.shifts.records] == ["Vacation - 09:00 - 12:00 | dentist"]


def test_notification_failure_does_not_undo_approval():
    notifier = FailingNotifier()
    service, vacations, _ = _build(notifier=notifier)
    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 10)))

    service.approve(actor=MANAGER, request_id=group.primary_request_id)

    assert vacations.get(request_id=group.primary_request_id).status is RequestStatus.APPROVED
    assert notifier.attempts[-1] == (group.primary_request_id, NotificationEvent.APPROVAL)


def test_store_failure_leaves_request_pending_and_shifts_untouched():
    existing = ShiftRecord(11, 1, date(2025, 6, 10), ActivityType.WORK, AvailabilityStatus.AVAILABLE)
    service, vacations, notifier = _build(fail_approval_write=True, shifts=InMemoryShifts([existing]))
    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 10)))

    with pytest.raises(PersistenceError):
        service.approve(actor=MANAGER, request_id=group.primary_request_id)

    assert vacations.get(request_id=group.primary_request_id).status is RequestStatus.PENDING
    assert vacations.shifts.records == [existing]
    assert all(event is not NotificationEvent.APPROVAL for _, event in notifier.sent)


def test_approval_requires_scope_and_pending_state():
    service, _, _ = _build()
    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 10)))

    with pytest.raises(AccessDeniedError):
        service.approve(actor=OTHER_MANAGER, request_id=group.primary_request_id)
    with pytest.raises(AccessDeniedError):
        service.approve(actor=USER, request_id=group.primary_request_id)

    service.approve(actor=MANAGER, request_id=group.primary_request_id)
    with pytest.raises(InvalidRequestError):
        service.approve(actor=MANAGER, request_id=group.primary_request_id)


def test_unknown_request_is_not_found():
    service, _, _ = _build()

    with pytest.raises(RequestNotFoundError):
        service.approve(actor=MANAGER, request_id=404)


def test_rejection_needs_reason_and_leaves_shifts_alone():
    shifts = InMemoryShifts([ShiftRecord(11, 1, date(2025, 6, 10), ActivityType.WORK, AvailabilityStatus.AVAILABLE)])
    service, vacations, notifier = _build(shifts=shifts)
    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 10)))

    with pytest.raises(InvalidRequestError):
        service.reject(actor=MANAGER, request_id=group.primary_request_id, reason="  ")

    rejected = service.reject(actor=MANAGER, request_id=group.primary_request_id, reason="Team offsite")

    req = vacations.get(request_id=group.primary_request_id)
    assert rejected.rejection_reason == "Team offsite"
    assert (req.status, req.rejection_reason, req.rejected_at) == (RequestStatus.REJECTED, "Team offsite", NOW)
    assert len(shifts.records) == 1
    assert shifts.records[0].activity_type is ActivityType.WORK
    assert notifier.sent[-1] == (group.primary_request_id, NotificationEvent.REJECTION)


# -------- edit / cancel --------
def test_edit_replaces_pending_group_and_ignores_its_own_overlap():
    service, vacations, _ = _build()
    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 10), date(2025, 6, 11)))

    updated = service.edit(
        actor=USER,
        request_id=group.primary_request_id,
        period=_partial(date(2025, 6, 11), "13:00", "17:00"),
    )

    assert updated.dates == (date(2025, 6, 11),)
    assert set(vacations.requests) == set(updated.request_ids)
    assert not set(group.request_ids) & set(updated.request_ids)


def test_only_requester_edits_and_only_while_pending():
    service, _, _ = _build()
    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 10)))

    with pytest.raises(AccessDeniedError):
        service.edit(actor=MANAGER, request_id=group.primary_request_id, period=_full_day(date(2025, 6, 12)))

    service.approve(actor=MANAGER, request_id=group.primary_request_id)
    with pytest.raises(InvalidRequestError):
        service.edit(actor=USER, request_id=group.primary_request_id, period=_full_day(date(2025, 6, 12)))
    with pytest.raises(InvalidRequestError):
        service.cancel(actor=USER, request_id=group.primary_request_id)


def test_cancel_deletes_the_whole_group():
    service, vacations, _ = _build()
    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 10), date(2025, 6, 12)))

    assert service.cancel(actor=USER, request_id=group.request_ids[-1]) == 3
    assert vacations.requests == {}


# -------- bulk + listings --------
def test_bulk_approve_isolates_failures_and_skips_repeated_group_members():
    service, vacations, _ = _build()
    first = service.submit(actor=USER, period=_full_day(date(2025, 6, 10), date(2025, 6, 11)))
    second = service.submit(actor=TWO_TEAM_USER, team_id=1, period=_full_day(date(2025, 6, 12)))
    foreign = service.submit(actor=TWO_TEAM_USER, team_id=2, period=_full_day(date(2025, 6, 13)))

    result = service.bulk_approve(
        actor=MANAGER,
        request_ids=[first.request_ids[0], first.request_ids[1], second.primary_request_id, foreign.primary_request_id, 999],
    )

    assert result.approved_ids == [*first.request_ids, second.primary_request_id]
    assert set(result.failed) == {foreign.primary_request_id, 999}
    assert vacations.get(request_id=foreign.primary_request_id).status is RequestStatus.PENDING


def test_bulk_reject_shares_one_reason_and_isolates_failures():
    service, vacations, _ = _build()
    first = service.submit(actor=USER, period=_full_day(date(2025, 6, 10), date(2025, 6, 11)))
    foreign = service.submit(actor=TWO_TEAM_USER, team_id=2, period=_full_day(date(2025, 6, 13)))

    result = service.bulk_reject(
        actor=MANAGER,
        request_ids=[first.request_ids[0], first.request_ids[1], foreign.primary_request_id],
        reason="Release week",
    )

    assert result.rejected_ids == list(first.request_ids)
    assert result.approved_ids == []
    assert set(result.failed) == {foreign.primary_request_id}
    assert {vacations.get(request_id=rid).rejection_reason for rid in first.request_ids} == {"Release week"}
    assert vacations.get(request_id=foreign.primary_request_id).status is RequestStatus.PENDING


def test_bulk_reject_requires_a_reason_before_touching_anything():
    service, vacations, _ = _build()
    group = service.submit(actor=USER, period=_full_day(date(2025, 6, 10)))

    with pytest.raises(InvalidRequestError):
        service.bulk_reject(actor=MANAGER, request_ids=[group.primary_request_id], reason="  ")

    assert vacations.get(request_id=group.primary_request_id).status is RequestStatus.PENDING


def test_pending_list_is_limited_to_adjudicable_teams():
    service, _, _ = _build()
    mine = service.submit(actor=USER, period=_full_day(date(2025, 6, 10), date(2025, 6, 11)))
    service.submit(actor=TWO_TEAM_USER, team_id=2, period=_full_day(date(2025, 6, 13)))

    pending = service.list_pending_for(actor=MANAGER)

    assert [g.request_ids for g in pending] == [mine.request_ids]
    assert service.list_pending_for(actor=USER) == []
    assert len(service.list_pending_for(actor=ADMIN)) == 2


def test_my_requests_are_grouped():
    service, _, _ = _build()
    service.submit(actor=USER, period=_full_day(date(2025, 6, 10), date(2025, 6, 11)))
    service.submit(actor=USER, period=_full_day(date(2025, 6, 20)))

    groups = service.list_my_requests(user_id=11)

    assert [len(g.dates) for g in groups] == [2, 1]
