"""
Module: intake_kernel.models.event_log
Responsibility: ORM persistence for the append-only client event log.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: UPDATE and DELETE raise ImmutabilityViolationError via
      the listeners in db/immutability.py.
    - Each entry is written in the same transaction as the mutation it
      documents.

Audit relevance:
    The event log is the client timeline.  A STATUS_CHANGE entry's
    old_value/new_value are the pre/post intake statuses.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from intake_kernel.db.base import Base
from intake_kernel.db.types import UUIDString
from intake_kernel.domain.statuses import EventType


class EventLogEntry(Base):
    """One immutable timeline entry for a client."""

    __tablename__ = "event_log"

    __table_args__ = (
        Index("idx_event_log_client_created", "client_id", "created_at"),
        Index("idx_event_log_type", "event_type"),
    )

    event_type: Mapped[EventType] = mapped_column(String(40), nullable=False)

    old_value: Mapped[str | None] = mapped_column(String(100), nullable=True)
    new_value: Mapped[str | None] = mapped_column(String(100), nullable=True)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    client_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("clients.id"),
        nullable=False,
    )

    # Acting user; None for system-initiated entries
    user_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # "metadata" is reserved on declarative classes
    event_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<EventLogEntry {self.event_type} client={self.client_id} "
            f"{self.old_value} -> {self.new_value}>"
        )
