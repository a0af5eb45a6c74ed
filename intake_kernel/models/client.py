"""
Module: intake_kernel.models.client
Responsibility: ORM persistence for clients moving through the intake
    pipeline.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - intake_status is the single source of truth for the pipeline phase.
      It is mutated only by TransitionEngine (services/transition_engine.py);
      nothing else in the kernel writes it.
    - status_changed_at is refreshed on every transition.
    - execution_deadline is written only on entering IN_EXECUTION.

Failure modes:
    - IntegrityError if agent_id references a missing user.

Audit relevance:
    Every intake_status change is paired with exactly one STATUS_CHANGE
    row in event_log written in the same transaction.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from intake_kernel.db.base import Base
from intake_kernel.db.types import UUIDString
from intake_kernel.domain.statuses import IntakeStatus


class Client(Base):
    """
    A client record in the onboarding pipeline.

    Contract:
        Created by onboarding and never hard-deleted.  A client without an
        agent still transitions, but no task or notification effects fire.
    """

    __tablename__ = "clients"

    __table_args__ = (
        Index("idx_client_status", "intake_status"),
        Index("idx_client_agent", "agent_id"),
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    intake_status: Mapped[IntakeStatus] = mapped_column(
        String(32),
        nullable=False,
        default=IntakeStatus.PENDING,
    )

    status_changed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    execution_deadline: Mapped[datetime | None] = mapped_column(nullable=True)

    # Owning agent
    agent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def status(self) -> IntakeStatus:
        """intake_status coerced to the enum (loaded rows hold plain strings)."""
        return IntakeStatus(self.intake_status)

    def __repr__(self) -> str:
        return f"<Client {self.full_name} status={self.intake_status}>"
