"""
PlatformGateWorkflow -- bounded retry cycle for the gated platform.

Responsibility:
    Gates the PREQUAL_REVIEW -> PREQUAL_APPROVED edge behind verification
    of one platform record (BetMGM by default), and runs the
    reject-with-retry / resubmit cycle that can repeat any number of times
    before a reviewer approves or rejects for good.

Architecture position:
    Kernel > Services -- imperative shell, flush-only.  Calls the
    TransitionEngine inside the same transaction when a gate operation
    moves the client.

Platform record state machine:

    NOT_STARTED -> PENDING_REVIEW -> VERIFIED            (approve; terminal)
                                  -> RETRY_PENDING       (reject_with_retry)
    RETRY_PENDING -> PENDING_REVIEW                      (resubmit, after cooldown)

Invariants enforced:
    - reject_with_retry never changes the client's intake_status.
    - retry_count increases by exactly one on every reject_with_retry and
      every successful resubmit.
    - A resubmit before retry_after changes nothing.
    - Every mutating operation locks the client row before the gated
      record, matching the order TransitionEngine.apply uses.

Failure modes:
    - PlatformRecordNotFoundError: no gated record for the client, OR the
      record is not in the state the operation requires.  The two cases
      share one message.
    - CooldownNotExpiredError: resubmit before retry_after.
    - EvidenceRequiredError: resubmit without evidence references.
    - ClientNotFoundError / IllegalTransitionError: from the engine.
"""

from collections.abc import Sequence
from datetime import timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from intake_kernel.domain.clock import Clock
from intake_kernel.domain.notices import resubmitted_notice, retry_notice
from intake_kernel.domain.outcomes import GateOutcome, GateStatus, TransitionRecord
from intake_kernel.domain.policy import LifecyclePolicy
from intake_kernel.domain.ports import AuditEntry, AuditLogSink
from intake_kernel.domain.statuses import EventType, IntakeStatus, PlatformStatus
from intake_kernel.exceptions import (
    CooldownNotExpiredError,
    EvidenceRequiredError,
    PlatformRecordNotFoundError,
)
from intake_kernel.logging_config import get_logger
from intake_kernel.models.platform_verification import PlatformVerification
from intake_kernel.services.base import BaseService
from intake_kernel.services.transition_engine import TransitionEngine

logger = get_logger("services.platform_gate")


class PlatformGateWorkflow(BaseService):
    """Approve, reject, reject-with-retry and resubmit the gated platform."""

    def __init__(
        self,
        session: Session,
        engine: TransitionEngine,
        audit_log: AuditLogSink,
        clock: Clock,
        policy: LifecyclePolicy,
    ):
        super().__init__(session)
        self._engine = engine
        self._audit_log = audit_log
        self._clock = clock
        self._policy = policy

    # ------------------------------------------------------------------
    # Reviewer operations
    # ------------------------------------------------------------------

    def approve(self, client_id: UUID, actor_id: UUID) -> GateOutcome:
        """
        Verify the gated record and move the client to PREQUAL_APPROVED.

        The record flip and the client transition share the caller's
        transaction; an illegal client status rolls both back.
        """
        self._engine.load_client(client_id)
        record = self._find_gated(client_id, PlatformStatus.PENDING_REVIEW)

        record.status = PlatformStatus.VERIFIED.value
        record.reviewed_by = actor_id
        record.reviewed_at = self._clock.now()
        self.session.flush()

        transition = self._engine.apply(
            client_id, IntakeStatus.PREQUAL_APPROVED, actor_id
        )

        logger.info(
            "platform_gate_approved",
            extra={"platform_type": self._policy.gated_platform.value},
        )
        return GateOutcome(
            client_id=client_id,
            platform_status=PlatformStatus.VERIFIED,
            retry_count=record.retry_count,
            transition=transition,
        )

    def reject_permanently(
        self, client_id: UUID, actor_id: UUID, reason: str | None = None
    ) -> TransitionRecord:
        """Reject the client outright.  The platform record is not touched."""
        return self._engine.apply(client_id, IntakeStatus.REJECTED, actor_id, reason)

    def reject_with_retry(
        self, client_id: UUID, actor_id: UUID, reason: str | None = None
    ) -> GateOutcome:
        client = self._engine.load_client(client_id)
        record = self._find_gated(client_id, PlatformStatus.PENDING_REVIEW)

        now = self._clock.now()
        hours = self._policy.retry_cooldown_hours
        record.status = PlatformStatus.RETRY_PENDING.value
        record.retry_after = now + timedelta(hours=hours)
        record.review_notes = reason or None
        record.retry_count = record.retry_count + 1
        record.reviewed_by = actor_id
        record.reviewed_at = now

        name = self._policy.gated_platform_name
        description = f"{name} rejected with retry"
        description += f": {reason}" if reason else " (no reason given)"
        self._audit_log.append(
            AuditEntry(
                event_type=EventType.PLATFORM_STATUS_CHANGE,
                client_id=client_id,
                user_id=actor_id,
                old_value=PlatformStatus.PENDING_REVIEW.value,
                new_value=PlatformStatus.RETRY_PENDING.value,
                description=description,
                metadata={
                    "platform_type": self._policy.gated_platform.value,
                    "retry_count": record.retry_count,
                    "retry_after": record.retry_after.isoformat(),
                },
            )
        )
        self.session.flush()

        notices = ()
        if client.agent_id is not None:
            notices = (
                retry_notice(
                    client.agent_id,
                    client_id,
                    client.full_name,
                    name,
                    hours,
                    self._policy.client_link(client_id),
                    reason,
                ),
            )

        logger.info(
            "platform_retry_scheduled",
            extra={
                "platform_type": self._policy.gated_platform.value,
                "retry_count": record.retry_count,
                "retry_after": record.retry_after,
            },
        )
        return GateOutcome(
            client_id=client_id,
            platform_status=PlatformStatus.RETRY_PENDING,
            retry_count=record.retry_count,
            retry_after=record.retry_after,
            notices=notices,
        )

    # ------------------------------------------------------------------
    # Agent operation
    # ------------------------------------------------------------------

    def resubmit(
        self,
        client_id: UUID,
        actor_id: UUID,
        agent_result: str,
        evidence: Sequence[str],
    ) -> GateOutcome:
        client = self._engine.load_client(client_id)
        record = self._find_gated(client_id, PlatformStatus.RETRY_PENDING)

        now = self._clock.now()
        if record.retry_after is not None and now < record.retry_after:
            logger.info(
                "platform_resubmit_too_early",
                extra={"retry_after": record.retry_after},
            )
            raise CooldownNotExpiredError(str(client_id), record.retry_after)

        if isinstance(evidence, str):
            evidence = [evidence]
        references = [ref for ref in evidence if ref and ref.strip()]
        if not references:
            raise EvidenceRequiredError(str(client_id))


        record.status = PlatformStatus.PENDING_REVIEW.value
        record.retry_count = record.retry_count + 1
        record.retry_after = None
        record.evidence = references
        record.agent_result = agent_result

        name = self._policy.gated_platform_name
        self._audit_log.append(
            AuditEntry(
                event_type=EventType.PLATFORM_STATUS_CHANGE,
                client_id=client_id,
                user_id=actor_id,
                old_value=PlatformStatus.RETRY_PENDING.value,
                new_value=PlatformStatus.PENDING_REVIEW.value,
                description=(
                    f"{name} resubmitted by agent "
                    f"(attempt {record.retry_count}, agent result: {agent_result})"
                ),
                metadata={
                    "platform_type": self._policy.gated_platform.value,
                    "retry_count": record.retry_count,
                    "evidence": references,
                },
            )
        )
        self.session.flush()

        logger.info(
            "platform_resubmitted",
            extra={
                "platform_type": self._policy.gated_platform.value,
                "retry_count": record.retry_count,
                "evidence_count": len(references),
            },
        )
        return GateOutcome(
            client_id=client_id,
            platform_status=PlatformStatus.PENDING_REVIEW,
            retry_count=record.retry_count,
            notices=(
                resubmitted_notice(
                    self._policy.review_roles,
                    client_id,
                    client.full_name,
                    name,
                    record.retry_count,
                    agent_result,
                    self._policy.review_link(client_id),
                ),
            ),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def gate_status(self, client_id: UUID) -> GateStatus:
        """Status of the gated record; NOT_STARTED when there is none."""
        self._engine.load_client(client_id, lock=False)
        record = self.session.scalar(
            select(PlatformVerification).where(
                PlatformVerification.client_id == client_id,
                PlatformVerification.platform_type == self._policy.gated_platform.value,
            )
        )
        if record is None:
            return GateStatus(client_id=client_id, status=PlatformStatus.NOT_STARTED)
        return GateStatus(
            client_id=client_id,
            status=record.current_status,
            retry_count=record.retry_count,
            retry_after=record.retry_after,
            review_notes=record.review_notes,
        )

    def _find_gated(
        self, client_id: UUID, required: PlatformStatus
    ) -> PlatformVerification:
        record = self.session.scalar(
            select(PlatformVerification)
            .where(
                PlatformVerification.client_id == client_id,
                PlatformVerification.platform_type == self._policy.gated_platform.value,
                PlatformVerification.status == required.value,
            )
            .with_for_update()
        )
        if record is None:
            raise PlatformRecordNotFoundError(
                str(client_id), self._policy.gated_platform_name
            )
        return record
