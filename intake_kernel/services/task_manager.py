"""
TaskManager -- agent task lifecycle.

Responsibility:
    Creates tasks in batches, cancels open tasks in batches, completes
    individual tasks and sweeps overdue ones.  Implements the ``TaskSink``
    protocol used by the transition engine.

Architecture position:
    Kernel > Services -- imperative shell, flush-only.

Invariants enforced:
    - cancel_many only touches PENDING and IN_PROGRESS tasks.
    - A CANCELLED task is never completed.
    - mark_overdue only flips open tasks whose due_at is in the past.

Failure modes:
    - TaskNotFoundError: complete() on an unknown task id.
    - TaskStateError: complete() on a cancelled task.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from intake_kernel.domain.clock import Clock, SystemClock
from intake_kernel.domain.statuses import OPEN_TASK_STATUSES, TaskStatus, TaskType
from intake_kernel.domain.tasks import TaskFilter, TaskSpec
from intake_kernel.exceptions import TaskNotFoundError, TaskStateError
from intake_kernel.logging_config import get_logger
from intake_kernel.models.task import Task
from intake_kernel.services.base import BaseService

logger = get_logger("services.tasks")

_OPEN_VALUES = [s.value for s in OPEN_TASK_STATUSES]


class TaskManager(BaseService):
    """Task persistence and state changes for one session."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def create_many(self, specs: Sequence[TaskSpec]) -> list[Task]:
        now = self._clock.now()
        tasks = [
            Task(
                client_id=spec.client_id,
                task_type=spec.task_type.value,
                status=TaskStatus.PENDING.value,
                title=spec.title,
                description=spec.description,
                priority=spec.priority,
                due_at=spec.due_at,
                platform_type=spec.platform_type.value if spec.platform_type else None,
                step_number=spec.step_number,
                assigned_to_id=spec.assigned_to_id,
                created_by_id=spec.created_by_id,
                created_at=now,
            )
            for spec in specs
        ]
        if not tasks:
            return tasks

        self.session.add_all(tasks)
        self.session.flush()
        logger.info(
            "tasks_created",
            extra={
                "count": len(tasks),
                "task_types": sorted({t.task_type for t in tasks}),
            },
        )
        return tasks

    def cancel_many(self, task_filter: TaskFilter) -> int:
        tasks = self._select_open(task_filter.client_id, task_filter.task_types)
        for task in tasks:
            task.status = TaskStatus.CANCELLED.value
        self.session.flush()

        if tasks:
            logger.info(
                "tasks_cancelled",
                extra={
                    "count": len(tasks),
                    "task_types": (
                        sorted(t.value for t in task_filter.task_types)
                        if task_filter.task_types is not None
                        else "all"
                    ),
                },
            )
        return len(tasks)

    def open_tasks(
        self,
        client_id: UUID,
        types: frozenset[TaskType] | None = None,
    ) -> list[Task]:
        return self._select_open(client_id, types)

    def tasks_for_client(self, client_id: UUID) -> list[Task]:
        return list(
            self.session.scalars(
                select(Task)
                .where(Task.client_id == client_id)
                .order_by(Task.created_at, Task.step_number, Task.id)
            )
        )

    def complete(self, task_id: UUID, at: datetime | None = None) -> Task:
        task = self.session.get(Task, task_id)
        if task is None:
            raise TaskNotFoundError(str(task_id))
        if task.status == TaskStatus.CANCELLED.value:
            raise TaskStateError(
                str(task_id), task.status, TaskStatus.COMPLETED.value
            )
        if task.status == TaskStatus.COMPLETED.value:
            return task

        task.status = TaskStatus.COMPLETED.value
        task.completed_at = at or self._clock.now()
        self.session.flush()
        logger.info("task_completed", extra={"task_id": str(task_id)})
        return task

    def mark_overdue(self, now: datetime | None = None) -> list[UUID]:
        """Flip open tasks past their due date to OVERDUE.  Returns their ids."""
        cutoff = now or self._clock.now()
        tasks = list(
            self.session.scalars(
                select(Task).where(
                    Task.status.in_(_OPEN_VALUES),
                    Task.due_at.is_not(None),
                    Task.due_at < cutoff,
                )
            )
        )
        for task in tasks:
            task.status = TaskStatus.OVERDUE.value
        self.session.flush()

        if tasks:
            logger.info("tasks_marked_overdue", extra={"count": len(tasks)})
        return [task.id for task in tasks]

    def _select_open(
        self,
        client_id: UUID,
        types: frozenset[TaskType] | None,
    ) -> list[Task]:
        stmt = select(Task).where(
            Task.client_id == client_id,
            Task.status.in_(_OPEN_VALUES),
        )
        if types is not None:
            stmt = stmt.where(Task.task_type.in_([t.value for t in types]))
        return list(self.session.scalars(stmt))
