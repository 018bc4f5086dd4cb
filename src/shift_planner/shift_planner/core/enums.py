from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Application roles. A user may hold several."""

    ADMIN = "admin"
    PLANNER = "planner"
    MANAGER = "manager"
    TEAM_MEMBER = "team_member"


class RequestStatus(str, Enum):
    """Vacation request lifecycle. APPROVED and REJECTED are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DetailLevel(str, Enum):
    FULL = "full"
    AVAILABILITY_ONLY = "availability-only"


class RiskLevel(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"


class ConflictSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ActivityType(str, Enum):
    WORK = "work"
    HOTLINE_SUPPORT = "hotline_support"
    VACATION = "vacation"
    SICK = "sick"
    TRAINING = "training"
    OUT_OF_OFFICE = "out_of_office"
    FLEXTIME = "flextime"
    OTHER = "other"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class Decision(str, Enum):
    """Hypothetical adjudication used by the what-if simulation."""

    APPROVE = "approve"
    REJECT = "reject"


class NotificationEvent(str, Enum):
    REQUEST = "request"
    APPROVAL = "approval"
    REJECTION = "rejection"
