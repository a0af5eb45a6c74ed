"""
Pure domain layer.

Value objects, enumerations, the lifecycle adjacency table and collaborator
protocols, with NO dependencies on the ORM, the database or I/O.
"""

from intake_kernel.domain.actors import ActingUser
from intake_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
    add_business_days,
)
from intake_kernel.domain.notices import Notice
from intake_kernel.domain.outcomes import GateOutcome, GateStatus, TransitionRecord
from intake_kernel.domain.policy import (
    DEFAULT_PLATFORMS,
    DEFAULT_POLICY,
    LifecyclePolicy,
    PlatformEntry,
)
from intake_kernel.domain.ports import (
    AuditEntry,
    AuditLogSink,
    CommissionBootstrapper,
    NotificationSink,
    TaskSink,
    UserDirectory,
)
from intake_kernel.domain.statuses import (
    OPEN_TASK_STATUSES,
    EventType,
    IntakeStatus,
    NotificationType,
    PlatformStatus,
    PlatformType,
    TaskStatus,
    TaskType,
    UserRole,
)
from intake_kernel.domain.tasks import TaskFilter, TaskSpec
from intake_kernel.domain.transitions import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    is_allowed,
    validate_transition,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ActingUser",
    "AuditEntry",
    "AuditLogSink",
    "Clock",
    "CommissionBootstrapper",
    "DEFAULT_PLATFORMS",
    "DEFAULT_POLICY",
    "DeterministicClock",
    "EventType",
    "GateOutcome",
    "GateStatus",
    "IntakeStatus",
    "LifecyclePolicy",
    "Notice",
    "NotificationSink",
    "NotificationType",
    "OPEN_TASK_STATUSES",
    "PlatformEntry",
    "PlatformStatus",
    "PlatformType",
    "SystemClock",
    "TERMINAL_STATUSES",
    "TaskFilter",
    "TaskSink",
    "TaskSpec",
    "TaskStatus",
    "TaskType",
    "TransitionRecord",
    "UserDirectory",
    "UserRole",
    "add_business_days",
    "is_allowed",
    "validate_transition",
]
