"""
TransitionEngine -- the client lifecycle authority.

Responsibility:
    Validates a requested ``IntakeStatus`` change against the adjacency
    table and applies it with every transactional effect it implies.
    ``TransitionEffects`` runs the detached effects after commit.

Architecture position:
    Kernel > Services -- imperative shell, flush-only.

Two phases:

    apply()                                  (transactional, caller commits)
      1. SELECT client ... FOR UPDATE
      2. validate (current -> target) against ALLOWED_TRANSITIONS
      3. write intake_status, status_changed_at (+ execution_deadline)
      4. append one STATUS_CHANGE event log entry
      5. cancel / create tasks keyed on the destination
         -> TransitionRecord

    TransitionEffects.run(record)            (detached, after commit)
      6. APPROVED: commission bootstrap, once
      7. APPROVED / REJECTED: notify the owning agent

    Detached failures are logged and swallowed; they never change the
    reported outcome of a committed transition.

Failure modes:
    - ClientNotFoundError: unknown client id.
    - IllegalTransitionError: edge not in the table.  Raised before any
      write, so the caller's transaction holds no changes from this call.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from intake_kernel.domain.clock import Clock, add_business_days
from intake_kernel.domain.notices import Notice, approval_notice, rejection_notice
from intake_kernel.domain.outcomes import TransitionRecord
from intake_kernel.domain.policy import LifecyclePolicy
from intake_kernel.domain.ports import (
    AuditEntry,
    AuditLogSink,
    CommissionBootstrapper,
    TaskSink,
)
from intake_kernel.domain.statuses import EventType, IntakeStatus, TaskType
from intake_kernel.domain.tasks import (
    TaskFilter,
    TaskSpec,
    execution_tasks,
    phone_return_tasks,
    provide_info_tasks,
)
from intake_kernel.domain.transitions import validate_transition
from intake_kernel.exceptions import ClientNotFoundError
from intake_kernel.logging_config import get_logger
from intake_kernel.models.client import Client
from intake_kernel.services.base import BaseService
from intake_kernel.services.notifications import NotificationDispatcher

logger = get_logger("services.transition_engine")

# Destinations that close out every open task
_CANCEL_ALL_ON = frozenset({IntakeStatus.REJECTED, IntakeStatus.INACTIVE})


def describe_status_change(
    old: IntakeStatus, new: IntakeStatus, reason: str | None = None
) -> str:
    description = f"Status changed from {old.value} to {new.value}"
    if reason:
        description += f": {reason}"
    return description


class TransitionEngine(BaseService):
    """
    Applies validated status transitions within the caller's transaction.

    Contract:
        ``apply`` either raises before writing anything, or leaves the
        status write, exactly one event log entry and the task effects
        flushed in the session.
    """

    def __init__(
        self,
        session: Session,
        audit_log: AuditLogSink,
        tasks: TaskSink,
        clock: Clock,
        policy: LifecyclePolicy,
    ):
        super().__init__(session)
        self._audit_log = audit_log
        self._tasks = tasks
        self._clock = clock
        self._policy = policy

    def load_client(self, client_id: UUID, lock: bool = True) -> Client:
        """Read a client, row-locked by default.  Raises ClientNotFoundError."""
        stmt = select(Client).where(Client.id == client_id)
        if lock:
            stmt = stmt.with_for_update()
        client = self.session.scalar(stmt)
        if client is None:
            raise ClientNotFoundError(str(client_id))
        return client

    def apply(
        self,
        client_id: UUID,
        target: IntakeStatus,
        actor_id: UUID,
        reason: str | None = None,
    ) -> TransitionRecord:
        client = self.load_client(client_id)
        current = client.status

        validate_transition(str(client_id), current, target)

        now = self._clock.now()
        client.intake_status = target.value
        client.status_changed_at = now
        if target == IntakeStatus.IN_EXECUTION:
            client.execution_deadline = add_business_days(
                now, self._policy.execution_window_business_days
            )

        self._audit_log.append(
            AuditEntry(
                event_type=EventType.STATUS_CHANGE,
                client_id=client.id,
                user_id=actor_id,
                old_value=current.value,
                new_value=target.value,
                description=describe_status_change(current, target, reason),
            )
        )

        self._apply_task_effects(client, current, target, actor_id, reason)
        self.session.flush()

        logger.info(
            "transition_applied",
            extra={
                "from_status": current.value,
                "to_status": target.value,
                "has_agent": client.agent_id is not None,
            },
        )

        return TransitionRecord(
            client_id=client.id,
            old_status=current,
            new_status=target,
            actor_id=actor_id,
            agent_id=client.agent_id,
            client_name=client.full_name,
            occurred_at=now,
            reason=reason,
            execution_deadline=client.execution_deadline,
        )

    def _apply_task_effects(
        self,
        client: Client,
        current: IntakeStatus,
        target: IntakeStatus,
        actor_id: UUID,
        reason: str | None,
    ) -> None:
        if target in _CANCEL_ALL_ON:
            self._tasks.cancel_many(TaskFilter(client_id=client.id))

        if target == IntakeStatus.IN_EXECUTION and current == IntakeStatus.NEEDS_MORE_INFO:
            self._tasks.cancel_many(
                TaskFilter(
                    client_id=client.id,
                    task_types=frozenset({TaskType.PROVIDE_INFO}),
                )
            )

        if client.agent_id is None:
            return

        specs: list[TaskSpec] = []
        now = client.status_changed_at
        if target == IntakeStatus.IN_EXECUTION:
            specs = execution_tasks(
                client.id, client.agent_id, actor_id,
                client.execution_deadline, self._policy,
            )
        elif target == IntakeStatus.APPROVED:
            specs = phone_return_tasks(
                client.id, client.agent_id, actor_id, now, self._policy,
            )
        elif target == IntakeStatus.NEEDS_MORE_INFO:
            specs = provide_info_tasks(
                client.id, client.agent_id, actor_id, now, self._policy, reason,
            )

        if specs:
            self._tasks.create_many(specs)


class TransitionEffects:
    """
    Detached effects of a committed transition.

    Contract:
        ``run`` never raises.  Each step is guarded on its own so a failed
        commission bootstrap does not suppress the agent notification.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        commission: CommissionBootstrapper | None,
        policy: LifecyclePolicy,
    ):
        self._dispatcher = dispatcher
        self._commission = commission
        self._policy = policy

    def notices_for(self, record: TransitionRecord) -> tuple[Notice, ...]:
        if record.agent_id is None:
            return ()
        link = self._policy.client_link(record.client_id)
        if record.new_status == IntakeStatus.APPROVED:
            return (
                approval_notice(record.agent_id, record.client_id, record.client_name, link),
            )
        if record.new_status == IntakeStatus.REJECTED:
            return (
                rejection_notice(
                    record.agent_id, record.client_id, record.client_name,
                    link, record.reason,
                ),
            )
        return ()

    def run(self, record: TransitionRecord) -> None:
        if record.new_status == IntakeStatus.APPROVED:
            self._bootstrap_commission(record.client_id)

        for notice in self.notices_for(record):
            self._dispatcher.deliver(notice)

    def _bootstrap_commission(self, client_id: UUID) -> None:
        if self._commission is None:
            return
        try:
            self._commission.bootstrap(client_id)
        except Exception:
            logger.warning(
                "commission_bootstrap_failed",
                extra={"client_id": str(client_id)},
                exc_info=True,
            )
