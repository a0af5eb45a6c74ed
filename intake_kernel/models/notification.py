"""
Module: intake_kernel.models.notification
Responsibility: ORM persistence for in-app user notifications.

Architecture position: Kernel > Models.  May import from db/base.py only.

Notifications are written by NotificationStore in their own transaction,
after the lifecycle transaction they describe has committed.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from intake_kernel.db.base import Base
from intake_kernel.db.types import UUIDString
from intake_kernel.domain.statuses import NotificationType


class Notification(Base):
    __tablename__ = "notifications"

    __table_args__ = (
        Index("idx_notification_user_read", "user_id", "is_read"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=False,
    )

    notification_type: Mapped[NotificationType] = mapped_column(
        "type", String(40), nullable=False
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str | None] = mapped_column(String(500), nullable=True)

    client_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Notification {self.notification_type} user={self.user_id} read={self.is_read}>"
