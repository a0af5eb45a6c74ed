"""
Collaborator protocols (``intake_kernel.domain.ports``).

The transition engine and the platform gate talk to their collaborators
only through these protocols.  The SQLAlchemy-backed implementations live
in ``intake_kernel.services``; tests may substitute fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence, runtime_checkable
from uuid import UUID

from intake_kernel.domain.statuses import EventType, NotificationType, UserRole
from intake_kernel.domain.tasks import TaskFilter, TaskSpec


@dataclass(frozen=True)
class AuditEntry:
    """An event log entry to append.  Immutable once written."""

    event_type: EventType
    client_id: UUID
    user_id: UUID | None
    old_value: str | None
    new_value: str | None
    description: str
    metadata: dict[str, Any] | None = field(default=None, hash=False)


@runtime_checkable
class AuditLogSink(Protocol):
    def append(self, entry: AuditEntry) -> Any: ...


@runtime_checkable
class TaskSink(Protocol):
    def create_many(self, specs: Sequence[TaskSpec]) -> list[Any]: ...

    def cancel_many(self, task_filter: TaskFilter) -> int: ...


@runtime_checkable
class NotificationSink(Protocol):
    def send(
        self,
        user_id: UUID,
        notification_type: NotificationType,
        title: str,
        message: str,
        link: str | None,
        client_id: UUID | None = None,
    ) -> None: ...


@runtime_checkable
class UserDirectory(Protocol):
    """Resolves a role set to the ids of active users holding those roles."""

    def active_user_ids(self, roles: frozenset[UserRole]) -> list[UUID]: ...


@runtime_checkable
class CommissionBootstrapper(Protocol):
    def bootstrap(self, client_id: UUID) -> None: ...
