from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import ActivityType, AvailabilityStatus, DetailLevel

# Activities that keep a person counted as working.
AVAILABLE_ACTIVITIES = frozenset({ActivityType.WORK, ActivityType.HOTLINE_SUPPORT})


@dataclass(frozen=True)
class ShiftRecord:
    """Domain entity: what a user does on a day for a team."""

    user_id: int
    team_id: int
    work_date: date
    activity_type: ActivityType
    availability_status: AvailabilityStatus
    notes: Optional[str] = None
    created_by: Optional[int] = None
    record_id: Optional[int] = None


@dataclass(frozen=True)
class ShiftView:
    """A ShiftRecord as one observer is allowed to see it.

    With availability-only detail the activity type and notes are withheld.
    """

    user_id: int
    team_id: int
    work_date: date
    availability_status: AvailabilityStatus
    detail_level: DetailLevel
    activity_type: Optional[ActivityType] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "team_id": self.team_id,
            "work_date": self.work_date.strftime("%Y-%m-%d"),
            "availability_status": self.availability_status.value,
            "detail_level": self.detail_level.value,
            "activity_type": self.activity_type.value if self.activity_type else None,
            "notes": self.notes,
        }


def collapse_availability(activity_type: ActivityType) -> AvailabilityStatus:
    if activity_type in AVAILABLE_ACTIVITIES:
        return AvailabilityStatus.AVAILABLE
    return AvailabilityStatus.UNAVAILABLE
