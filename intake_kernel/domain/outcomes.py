"""
Outcome value objects returned by the kernel services.

``TransitionRecord`` describes a committed-to-be status change;
``GateOutcome`` bundles what a platform gate operation did with the notices
it wants delivered after commit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from intake_kernel.domain.notices import Notice
from intake_kernel.domain.statuses import IntakeStatus, PlatformStatus


@dataclass(frozen=True)
class TransitionRecord:
    client_id: UUID
    old_status: IntakeStatus
    new_status: IntakeStatus
    actor_id: UUID
    agent_id: UUID | None
    client_name: str
    occurred_at: datetime
    reason: str | None = None
    execution_deadline: datetime | None = None


@dataclass(frozen=True)
class GateOutcome:
    """
    Result of a platform gate operation.

    Attributes:
        platform_status: Status of the gated record after the operation.
        retry_count: Retry counter after the operation.
        transition: Status change bundled with the operation, if any.
        notices: Notifications to deliver after commit.
    """

    client_id: UUID
    platform_status: PlatformStatus
    retry_count: int
    transition: TransitionRecord | None = None
    retry_after: datetime | None = None
    notices: tuple[Notice, ...] = ()


@dataclass(frozen=True)
class GateStatus:
    """Read-only view of the gated record for one client."""

    client_id: UUID
    status: PlatformStatus
    retry_count: int = 0
    retry_after: datetime | None = None
    review_notes: str | None = None

    @property
    def verified(self) -> bool:
        return self.status == PlatformStatus.VERIFIED
