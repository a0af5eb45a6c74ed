"""
ClientLifecycleService -- transaction owner for every lifecycle action.

Responsibility:
    Wraps the kernel's TransitionEngine and PlatformGateWorkflow with
    authorization, a per-call logging context, the transaction boundary
    and the detached phase.  Domain errors come back as ``LifecycleResult``
    values; infrastructure errors propagate.

Architecture position:
    Services layer.  The only place in the system that commits or rolls
    back a lifecycle transaction.

Per call:

    1. bind LogContext (correlation_id, client_id, actor_id, action)
    2. role check                          -> UNAUTHORIZED, nothing read
    3. session_scope:
         kernel work (flush only)          -> domain error: rollback, typed result
       commit
    4. detached phase: commission bootstrap, notifications
       (guarded; never changes the result)

Failure modes:
    - Domain errors (IntakeKernelError with a mapped status) never escape.
    - ImmutabilityViolationError, SQLAlchemy errors and any other
      exception are logged with exc_info and re-raised after rollback.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from intake_kernel.db.engine import get_session_factory, session_scope
from intake_kernel.domain.actors import ActingUser
from intake_kernel.domain.clock import Clock, SystemClock
from intake_kernel.domain.notices import Notice
from intake_kernel.domain.outcomes import GateStatus, TransitionRecord
from intake_kernel.domain.policy import DEFAULT_POLICY, LifecyclePolicy
from intake_kernel.domain.ports import CommissionBootstrapper
from intake_kernel.domain.statuses import IntakeStatus, PlatformStatus
from intake_kernel.exceptions import (
    AuthorizationError,
    CooldownNotExpiredError,
    EvidenceRequiredError,
    IllegalTransitionError,
    IntakeKernelError,
    LookupFailedError,
)
from intake_kernel.logging_config import LogContext, get_logger
from intake_kernel.services.commission import BonusPoolBootstrapper
from intake_kernel.services.event_log_writer import EventLogWriter
from intake_kernel.services.notifications import (
    NotificationDispatcher,
    NotificationStore,
)
from intake_kernel.services.platform_gate import PlatformGateWorkflow
from intake_kernel.services.task_manager import TaskManager
from intake_kernel.services.transition_engine import (
    TransitionEffects,
    TransitionEngine,
)
from intake_services import authority

logger = get_logger("services.lifecycle")


class LifecycleStatus(str, Enum):
    """Outcome category of a lifecycle action."""

    SUCCESS = "success"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    ILLEGAL_TRANSITION = "illegal_transition"
    COOLDOWN_NOT_EXPIRED = "cooldown_not_expired"
    INVALID_REQUEST = "invalid_request"


# Checked in order; the first matching base class wins.
_ERROR_STATUS: tuple[tuple[type[IntakeKernelError], LifecycleStatus], ...] = (
    (AuthorizationError, LifecycleStatus.UNAUTHORIZED),
    (LookupFailedError, LifecycleStatus.NOT_FOUND),
    (IllegalTransitionError, LifecycleStatus.ILLEGAL_TRANSITION),
    (CooldownNotExpiredError, LifecycleStatus.COOLDOWN_NOT_EXPIRED),
    (EvidenceRequiredError, LifecycleStatus.INVALID_REQUEST),
)


def status_for_error(exc: IntakeKernelError) -> LifecycleStatus | None:
    """Result status for a domain error, or None if it must propagate."""
    for error_type, status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return None


@dataclass(frozen=True)
class LifecycleResult:
    """Result of a lifecycle action.  Frozen; safe to hand to renderers."""

    status: LifecycleStatus
    message: str | None = None
    error_code: str | None = None
    client_id: UUID | None = None
    transition: TransitionRecord | None = None
    platform_status: PlatformStatus | None = None
    retry_count: int | None = None
    retry_after: datetime | None = None
    gate_status: GateStatus | None = None
    affected_ids: tuple[UUID, ...] = ()

    @property
    def is_success(self) -> bool:
        return self.status == LifecycleStatus.SUCCESS


@dataclass(frozen=True)
class _Committed:
    """What the transactional phase hands to the detached phase."""

    result: LifecycleResult
    transition: TransitionRecord | None = None
    notices: tuple[Notice, ...] = ()


@dataclass
class _Kernel:
    session: Session
    engine: TransitionEngine
    gate: PlatformGateWorkflow
    tasks: TaskManager


class ClientLifecycleService:
    """
    Entry point for every lifecycle action.

    Contract:
        Each public method returns a ``LifecycleResult``.  SUCCESS is
        reported once the transaction commits; the detached phase cannot
        turn it into a failure.

    Usage:
        service = ClientLifecycleService(session_factory, clock, policy)
        result = service.transition_status(client_id, IntakeStatus.PREQUAL_REVIEW, actor)
        if not result.is_success:
            render(result.error_code, result.message)
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        policy: LifecyclePolicy | None = None,
        dispatcher: NotificationDispatcher | None = None,
        commission: CommissionBootstrapper | None = None,
    ):
        self._session_factory = session_factory or get_session_factory()
        self._clock = clock or SystemClock()
        self._policy = policy or DEFAULT_POLICY

        if dispatcher is None:
            store = NotificationStore(self._session_factory, self._clock)
            dispatcher = NotificationDispatcher(store, store)
        if commission is None:
            commission = BonusPoolBootstrapper(self._session_factory, self._clock)

        self._dispatcher = dispatcher
        self._effects = TransitionEffects(dispatcher, commission, self._policy)

    # ------------------------------------------------------------------
    # Generic transitions
    # ------------------------------------------------------------------

    def transition_status(
        self,
        client_id: UUID,
        target_status: IntakeStatus,
        actor: ActingUser | None,
        reason: str | None = None,
    ) -> LifecycleResult:
        def work(kernel: _Kernel) -> _Committed:
            record = kernel.engine.apply(client_id, target_status, actor.id, reason)
            return _Committed(
                result=LifecycleResult(
                    status=LifecycleStatus.SUCCESS,
                    message=f"Status changed from {record.old_status.value} "
                    f"to {record.new_status.value}",
                    client_id=client_id,
                    transition=record,
                ),
                transition=record,
            )

        return self._execute(authority.TRANSITION_STATUS, actor, client_id, work)

    # ------------------------------------------------------------------
    # Platform gate
    # ------------------------------------------------------------------

    def approve_gate(
        self, client_id: UUID, actor: ActingUser | None
    ) -> LifecycleResult:
        def work(kernel: _Kernel) -> _Committed:
            outcome = kernel.gate.approve(client_id, actor.id)
            return _Committed(
                result=LifecycleResult(
                    status=LifecycleStatus.SUCCESS,
                    message=f"{self._policy.gated_platform_name} verified",
                    client_id=client_id,
                    transition=outcome.transition,
                    platform_status=outcome.platform_status,
                    retry_count=outcome.retry_count,
                ),
                transition=outcome.transition,
                notices=outcome.notices,
            )

        return self._execute(authority.APPROVE_GATE, actor, client_id, work)

    def reject_gate_permanently(
        self,
        client_id: UUID,
        actor: ActingUser | None,
        reason: str | None = None,
    ) -> LifecycleResult:
        def work(kernel: _Kernel) -> _Committed:
            record = kernel.gate.reject_permanently(client_id, actor.id, reason)
            return _Committed(
                result=LifecycleResult(
                    status=LifecycleStatus.SUCCESS,
                    message="Client rejected",
                    client_id=client_id,
                    transition=record,
                ),
                transition=record,
            )

        return self._execute(authority.REJECT_GATE, actor, client_id, work)

    def reject_gate_with_retry(
        self,
        client_id: UUID,
        actor: ActingUser | None,
        reason: str | None = None,
    ) -> LifecycleResult:
        def work(kernel: _Kernel) -> _Committed:
            outcome = kernel.gate.reject_with_retry(client_id, actor.id, reason)
            return _Committed(
                result=LifecycleResult(
                    status=LifecycleStatus.SUCCESS,
                    message=(
                        f"{self._policy.gated_platform_name} sent back for "
                        "resubmission"
                    ),
                    client_id=client_id,
                    platform_status=outcome.platform_status,
                    retry_count=outcome.retry_count,
                    retry_after=outcome.retry_after,
                ),
                notices=outcome.notices,
            )

        return self._execute(authority.REJECT_GATE_WITH_RETRY, actor, client_id, work)

    def resubmit_gate(
        self,
        client_id: UUID,
        actor: ActingUser | None,
        agent_result: str,
        evidence: Sequence[str],
    ) -> LifecycleResult:
        def work(kernel: _Kernel) -> _Committed:
            client = kernel.engine.load_client(client_id)
            authority.require_ownership(actor, client, authority.RESUBMIT_GATE)
            outcome = kernel.gate.resubmit(client_id, actor.id, agent_result, evidence)
            return _Committed(
                result=LifecycleResult(
                    status=LifecycleStatus.SUCCESS,
                    message=(
                        f"{self._policy.gated_platform_name} resubmitted for review"
                    ),
                    client_id=client_id,
                    platform_status=outcome.platform_status,
                    retry_count=outcome.retry_count,
                ),
                notices=outcome.notices,
            )

        return self._execute(authority.RESUBMIT_GATE, actor, client_id, work)

    def gate_status(
        self, client_id: UUID, actor: ActingUser | None
    ) -> LifecycleResult:
        def work(kernel: _Kernel) -> _Committed:
            client = kernel.engine.load_client(client_id, lock=False)
            authority.require_ownership(actor, client, authority.VIEW_GATE_STATUS)
            status = kernel.gate.gate_status(client_id)
            return _Committed(
                result=LifecycleResult(
                    status=LifecycleStatus.SUCCESS,
                    client_id=client_id,
                    platform_status=status.status,
                    retry_count=status.retry_count,
                    retry_after=status.retry_after,
                    gate_status=status,
                )
            )

        return self._execute(authority.VIEW_GATE_STATUS, actor, client_id, work)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def mark_overdue_tasks(self, actor: ActingUser | None) -> LifecycleResult:
        def work(kernel: _Kernel) -> _Committed:
            ids = kernel.tasks.mark_overdue()
            return _Committed(
                result=LifecycleResult(
                    status=LifecycleStatus.SUCCESS,
                    message=f"{len(ids)} task(s) marked overdue",
                    affected_ids=tuple(ids),
                )
            )

        return self._execute(authority.MARK_OVERDUE_TASKS, actor, None, work)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _kernel(self, session: Session) -> _Kernel:
        audit_log = EventLogWriter(session, self._clock)
        tasks = TaskManager(session, self._clock)
        engine = TransitionEngine(session, audit_log, tasks, self._clock, self._policy)
        gate = PlatformGateWorkflow(
            session, engine, audit_log, self._clock, self._policy
        )
        return _Kernel(session=session, engine=engine, gate=gate, tasks=tasks)

    def _execute(
        self,
        action: str,
        actor: ActingUser | None,
        client_id: UUID | None,
        work: Callable[[_Kernel], _Committed],
    ) -> LifecycleResult:
        with LogContext.bind(
            correlation_id=str(uuid4()),
            client_id=str(client_id) if client_id is not None else None,
            actor_id=str(actor.id) if actor is not None else None,
            action=action,
        ):
            logger.info("lifecycle_action_started")
            t0 = time.monotonic()

            try:
                authority.require_authority(actor, action, self._policy)
                with session_scope(self._session_factory) as session:
                    committed = work(self._kernel(session))
            except IntakeKernelError as exc:
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                status = status_for_error(exc)
                if status is None:
                    logger.error(
                        "lifecycle_action_failed",
                        extra={"duration_ms": duration_ms},
                        exc_info=True,
                    )
                    raise
                logger.warning(
                    "lifecycle_action_rejected",
                    extra={
                        "status": status.value,
                        "error_code": exc.code,
                        "reason": str(exc),
                        "duration_ms": duration_ms,
                    },
                )
                return LifecycleResult(
                    status=status,
                    message=str(exc),
                    error_code=exc.code,
                    client_id=client_id,
                    retry_after=getattr(exc, "retry_after", None),
                )
            except Exception:
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                logger.error(
                    "lifecycle_action_failed",
                    extra={"duration_ms": duration_ms},
                    exc_info=True,
                )
                raise

            self._run_detached(committed)

            logger.info(
                "lifecycle_action_completed",
                extra={
                    "status": committed.result.status.value,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return committed.result

    def _run_detached(self, committed: _Committed) -> None:
        """Commission and notifications.  Runs after commit; never raises."""
        try:
            if committed.transition is not None:
                self._effects.run(committed.transition)
            for notice in committed.notices:
                self._dispatcher.deliver(notice)
        except Exception:
            logger.warning("detached_effects_failed", exc_info=True)
