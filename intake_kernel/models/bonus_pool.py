"""
Module: intake_kernel.models.bonus_pool
Responsibility: ORM persistence for per-client bonus pools.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one pool per client: UNIQUE(client_id).  The bootstrapper
      checks first and the constraint backs it up under concurrency.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from intake_kernel.db.base import Base
from intake_kernel.db.types import UUIDString


class BonusPool(Base):
    __tablename__ = "bonus_pools"

    client_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("clients.id"),
        nullable=False,
        unique=True,
    )

    # Agent credited with closing the client
    closer_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<BonusPool client={self.client_id} status={self.status}>"
