"""
Module: intake_kernel.db.types
Responsibility: Portable column types shared by every model.
Architecture position: Kernel > DB.  No imports from models/, services/,
    domain/, or outer layers.

Invariants enforced:
    - UUIDs round-trip as ``uuid.UUID`` regardless of backend.
    - Datetimes round-trip as timezone-aware UTC values.  SQLite drops
      tzinfo on storage; UTCDateTime re-attaches it on load so cooldown and
      deadline comparisons never mix naive and aware values.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import DateTime, String
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return value if isinstance(value, UUID) else UUID(str(value))
        return None


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime normalized to UTC.

    Contract:
        Bound values must be timezone-aware; naive values are rejected
        rather than guessed.

    Guarantees:
        - Values are converted to UTC before storage.
        - Loaded values are always tz-aware UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value!r}")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
