"""
Status and type enumerations for the intake pipeline.

All enums subclass ``str`` so values persist as readable strings and compare
equal to their stored column values.
"""

from enum import Enum


class IntakeStatus(str, Enum):
    """Pipeline phase of a client.  The state variable of the lifecycle."""

    PENDING = "PENDING"
    PREQUAL_REVIEW = "PREQUAL_REVIEW"
    PREQUAL_APPROVED = "PREQUAL_APPROVED"
    NEEDS_MORE_INFO = "NEEDS_MORE_INFO"
    PHONE_ISSUED = "PHONE_ISSUED"
    IN_EXECUTION = "IN_EXECUTION"
    READY_FOR_APPROVAL = "READY_FOR_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    INACTIVE = "INACTIVE"
    PARTNERSHIP_ENDED = "PARTNERSHIP_ENDED"


class PlatformType(str, Enum):
    """Third-party platforms an agent registers a client on."""

    DRAFTKINGS = "DRAFTKINGS"
    FANDUEL = "FANDUEL"
    BETMGM = "BETMGM"
    CAESARS = "CAESARS"
    FANATICS = "FANATICS"
    BALLYBET = "BALLYBET"
    BETRIVERS = "BETRIVERS"
    BET365 = "BET365"
    BANK = "BANK"
    PAYPAL = "PAYPAL"
    EDGEBOOST = "EDGEBOOST"


class PlatformStatus(str, Enum):
    """Verification state of one (client, platform) record."""

    NOT_STARTED = "NOT_STARTED"
    PENDING_REVIEW = "PENDING_REVIEW"
    VERIFIED = "VERIFIED"
    RETRY_PENDING = "RETRY_PENDING"


class EventType(str, Enum):
    STATUS_CHANGE = "STATUS_CHANGE"
    PLATFORM_STATUS_CHANGE = "PLATFORM_STATUS_CHANGE"


class TaskType(str, Enum):
    UPLOAD_SCREENSHOT = "UPLOAD_SCREENSHOT"
    EXECUTION = "EXECUTION"
    PHONE_SIGNOUT = "PHONE_SIGNOUT"
    PHONE_RETURN = "PHONE_RETURN"
    PROVIDE_INFO = "PROVIDE_INFO"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    OVERDUE = "OVERDUE"


# Tasks in these states are still actionable and may be cancelled.
OPEN_TASK_STATUSES: frozenset[TaskStatus] = frozenset({
    TaskStatus.PENDING,
    TaskStatus.IN_PROGRESS,
})


class NotificationType(str, Enum):
    APPROVAL = "APPROVAL"
    REJECTION = "REJECTION"
    PLATFORM_RETRY = "PLATFORM_RETRY"
    PLATFORM_RESUBMITTED = "PLATFORM_RESUBMITTED"


class UserRole(str, Enum):
    AGENT = "AGENT"
    BACKOFFICE = "BACKOFFICE"
    ADMIN = "ADMIN"
