"""
Module: intake_kernel.models.user
Responsibility: ORM persistence for staff and agent accounts.

Architecture position: Kernel > Models.  May import from db/base.py only.

Users are read for notification fan-out by role and as owning agents of
clients.  Authentication is out of scope; the acting user of every call is
passed in explicitly.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from intake_kernel.db.base import Base
from intake_kernel.domain.statuses import UserRole


class User(Base):
    """An agent, backoffice or admin account."""

    __tablename__ = "users"

    __table_args__ = (
        Index("idx_user_role_active", "role", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        String(20),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User {self.name} role={self.role}>"
