"""
Module: intake_kernel.models.task
Responsibility: ORM persistence for agent follow-up tasks.

Architecture position: Kernel > Models.  May import from db/base.py only.

Tasks are created and cancelled in batches by transition effects and
completed or swept to OVERDUE by TaskManager.  Upload tasks carry the
platform they cover and a 1-based step number.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from intake_kernel.db.base import Base
from intake_kernel.db.types import UUIDString
from intake_kernel.domain.statuses import PlatformType, TaskStatus, TaskType


class Task(Base):
    __tablename__ = "tasks"

    __table_args__ = (
        Index("idx_task_client_status", "client_id", "status"),
        Index("idx_task_assignee_status", "assigned_to_id", "status"),
    )

    client_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("clients.id"),
        nullable=False,
    )

    task_type: Mapped[TaskType] = mapped_column("type", String(32), nullable=False)

    status: Mapped[TaskStatus] = mapped_column(
        String(20),
        nullable=False,
        default=TaskStatus.PENDING,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[int] = mapped_column(nullable=False, default=2)
    due_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Upload tasks only
    platform_type: Mapped[PlatformType | None] = mapped_column(String(32), nullable=True)
    step_number: Mapped[int | None] = mapped_column(nullable=True)

    assigned_to_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Task {self.task_type} client={self.client_id} status={self.status}>"
