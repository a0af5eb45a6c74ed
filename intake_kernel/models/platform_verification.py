"""
Module: intake_kernel.models.platform_verification
Responsibility: ORM persistence for per-platform verification records.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One record per (client, platform): UNIQUE(client_id, platform_type).
    - retry_count only ever increases (enforced by PlatformGateWorkflow).
    - Status moves NOT_STARTED -> PENDING_REVIEW -> {VERIFIED, RETRY_PENDING}
      and RETRY_PENDING -> PENDING_REVIEW (resubmit, after cooldown).

Failure modes:
    - IntegrityError on a duplicate (client, platform) pair.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from intake_kernel.db.base import Base
from intake_kernel.db.types import UUIDString
from intake_kernel.domain.statuses import PlatformStatus, PlatformType


class PlatformVerification(Base):
    """Verification state of one platform account for one client."""

    __tablename__ = "platform_verifications"

    __table_args__ = (
        UniqueConstraint(
            "client_id", "platform_type", name="uq_platform_verification_client_platform"
        ),
        Index("idx_platform_verification_status", "platform_type", "status"),
    )

    client_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("clients.id"),
        nullable=False,
    )

    platform_type: Mapped[PlatformType] = mapped_column(String(32), nullable=False)

    status: Mapped[PlatformStatus] = mapped_column(
        String(20),
        nullable=False,
        default=PlatformStatus.NOT_STARTED,
    )

    # Cooldown expiry; set by reject-with-retry, cleared by resubmit
    retry_after: Mapped[datetime | None] = mapped_column(nullable=True)

    retry_count: Mapped[int] = mapped_column(nullable=False, default=0)

    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Evidence references (e.g. screenshot paths), JSON array of strings
    evidence: Mapped[list | None] = mapped_column(JSON, nullable=True)

    agent_result: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def current_status(self) -> PlatformStatus:
        return PlatformStatus(self.status)

    def __repr__(self) -> str:
        return (
            f"<PlatformVerification {self.platform_type} client={self.client_id} "
            f"status={self.status} retries={self.retry_count}>"
        )
