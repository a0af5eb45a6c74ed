"""
EventLogWriter -- append-only client timeline.

Responsibility:
    Persists ``AuditEntry`` value objects as ``EventLogEntry`` rows inside
    the caller's transaction.  Implements the ``AuditLogSink`` protocol.

Architecture position:
    Kernel > Services -- imperative shell, flush-only.

Invariants enforced:
    - Entries are only ever inserted.  UPDATE/DELETE are blocked by the
      ORM listeners in ``intake_kernel.db.immutability``.
    - created_at comes from the injected clock.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from intake_kernel.domain.clock import Clock, SystemClock
from intake_kernel.domain.ports import AuditEntry
from intake_kernel.logging_config import get_logger
from intake_kernel.models.event_log import EventLogEntry
from intake_kernel.services.base import BaseService

logger = get_logger("services.event_log")


class EventLogWriter(BaseService):
    """Appends entries to the event log."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def append(self, entry: AuditEntry) -> EventLogEntry:
        row = EventLogEntry(
            event_type=entry.event_type.value,
            old_value=entry.old_value,
            new_value=entry.new_value,
            description=entry.description,
            client_id=entry.client_id,
            user_id=entry.user_id,
            created_at=self._clock.now(),
            event_metadata=dict(entry.metadata) if entry.metadata else None,
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "event_log_appended",
            extra={
                "event_log_id": str(row.id),
                "event_type": entry.event_type.value,
                "old_value": entry.old_value,
                "new_value": entry.new_value,
            },
        )
        return row

    def entries_for_client(self, client_id: UUID) -> list[EventLogEntry]:
        """Timeline for a client, oldest first."""
        return list(
            self.session.scalars(
                select(EventLogEntry)
                .where(EventLogEntry.client_id == client_id)
                .order_by(EventLogEntry.created_at, EventLogEntry.id)
            )
        )
