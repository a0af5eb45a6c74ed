"""
Task value objects and templates (``intake_kernel.domain.tasks``).

Responsibility
--------------
Describe the tasks a transition creates or cancels, without touching the
store.  ``TaskSpec`` is what the engine hands to a ``TaskSink``;
``TaskFilter`` selects open tasks to cancel.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from intake_kernel.domain.policy import LifecyclePolicy
from intake_kernel.domain.statuses import PlatformType, TaskType


@dataclass(frozen=True)
class TaskSpec:
    """A task to be created.  Frozen; carries no identity."""

    client_id: UUID
    task_type: TaskType
    title: str
    priority: int
    due_at: datetime | None
    assigned_to_id: UUID
    created_by_id: UUID
    description: str | None = None
    platform_type: PlatformType | None = None
    step_number: int | None = None


@dataclass(frozen=True)
class TaskFilter:
    """
    Selects a client's open tasks.

    ``task_types=None`` matches every type; otherwise only the listed ones.
    Only PENDING and IN_PROGRESS tasks are ever matched.
    """

    client_id: UUID
    task_types: frozenset[TaskType] | None = None


def execution_tasks(
    client_id: UUID,
    agent_id: UUID,
    actor_id: UUID,
    deadline: datetime,
    policy: LifecyclePolicy,
) -> list[TaskSpec]:
    """One upload task per platform, in policy order, plus the umbrella task."""
    specs = [
        TaskSpec(
            client_id=client_id,
            task_type=TaskType.UPLOAD_SCREENSHOT,
            title=f"Upload screenshot for {entry.display_name}",
            description=(
                f"Upload a screenshot confirming {entry.display_name} "
                "account registration."
            ),
            priority=1,
            due_at=deadline,
            assigned_to_id=agent_id,
            created_by_id=actor_id,
            platform_type=entry.platform_type,
            step_number=index + 1,
        )
        for index, entry in enumerate(policy.platforms)
    ]
    specs.append(
        TaskSpec(
            client_id=client_id,
            task_type=TaskType.EXECUTION,
            title="Complete all platform registrations",
            description=(
                f"Register the client on all {len(policy.platforms)} platforms "
                "before the execution deadline."
            ),
            priority=2,
            due_at=deadline,
            assigned_to_id=agent_id,
            created_by_id=actor_id,
        )
    )
    return specs


def phone_return_tasks(
    client_id: UUID,
    agent_id: UUID,
    actor_id: UUID,
    now: datetime,
    policy: LifecyclePolicy,
) -> list[TaskSpec]:
    return [
        TaskSpec(
            client_id=client_id,
            task_type=TaskType.PHONE_SIGNOUT,
            title="Sign out of all platform accounts on phone",
            priority=2,
            due_at=now + timedelta(days=policy.phone_signout_due_days),
            assigned_to_id=agent_id,
            created_by_id=actor_id,
        ),
        TaskSpec(
            client_id=client_id,
            task_type=TaskType.PHONE_RETURN,
            title="Return company phone",
            priority=1,
            due_at=now + timedelta(days=policy.phone_return_due_days),
            assigned_to_id=agent_id,
            created_by_id=actor_id,
        ),
    ]


def provide_info_tasks(
    client_id: UUID,
    agent_id: UUID,
    actor_id: UUID,
    now: datetime,
    policy: LifecyclePolicy,
    reason: str | None = None,
) -> list[TaskSpec]:
    return [
        TaskSpec(
            client_id=client_id,
            task_type=TaskType.PROVIDE_INFO,
            title="Provide additional information requested",
            description=reason,
            priority=2,
            due_at=now + timedelta(days=policy.provide_info_due_days),
            assigned_to_id=agent_id,
            created_by_id=actor_id,
        )
    ]
