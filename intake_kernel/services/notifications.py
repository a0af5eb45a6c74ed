"""
Notification delivery and inbox.

Responsibility:
    ``NotificationStore`` persists notifications and answers inbox queries.
    It is the default ``NotificationSink`` and ``UserDirectory``.
    ``NotificationDispatcher`` delivers ``Notice`` objects to one user or
    fans out to every active user holding a role.

Architecture position:
    Kernel > Services.  Detached phase: the store opens its own session per
    call via ``session_scope`` so a failed delivery can never touch the
    lifecycle transaction that produced it, which has already committed.

Failure modes:
    - NotificationDispatcher never raises.  Any exception from the sink or
      directory is logged as ``notification_delivery_failed`` and reported
      as a False / zero return value.
"""

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, sessionmaker

from intake_kernel.db.engine import session_scope
from intake_kernel.domain.clock import Clock, SystemClock
from intake_kernel.domain.notices import Notice
from intake_kernel.domain.ports import NotificationSink, UserDirectory
from intake_kernel.domain.statuses import NotificationType, UserRole
from intake_kernel.logging_config import get_logger
from intake_kernel.models.notification import Notification
from intake_kernel.models.user import User

logger = get_logger("services.notifications")

DEFAULT_INBOX_LIMIT = 20


class NotificationStore:
    """
    SQLAlchemy-backed notification sink, inbox and user directory.

    Every method runs in its own transaction.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def send(
        self,
        user_id: UUID,
        notification_type: NotificationType,
        title: str,
        message: str,
        link: str | None,
        client_id: UUID | None = None,
    ) -> None:
        with session_scope(self._session_factory) as session:
            session.add(
                Notification(
                    user_id=user_id,
                    notification_type=notification_type.value,
                    title=title,
                    message=message,
                    link=link,
                    client_id=client_id,
                    is_read=False,
                    created_at=self._clock.now(),
                )
            )

    def active_user_ids(self, roles: frozenset[UserRole]) -> list[UUID]:
        with session_scope(self._session_factory) as session:
            return list(
                session.scalars(
                    select(User.id)
                    .where(
                        User.role.in_([r.value for r in roles]),
                        User.is_active.is_(True),
                    )
                    .order_by(User.created_at, User.id)
                )
            )

    def for_user(
        self,
        user_id: UUID,
        unread_only: bool = False,
        limit: int = DEFAULT_INBOX_LIMIT,
    ) -> list[Notification]:
        """Newest first."""
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id).limit(limit)
        with session_scope(self._session_factory) as session:
            return list(session.scalars(stmt))

    def unread_count(self, user_id: UUID) -> int:
        with session_scope(self._session_factory) as session:
            return session.scalar(
                select(func.count())
                .select_from(Notification)
                .where(
                    Notification.user_id == user_id,
                    Notification.is_read.is_(False),
                )
            ) or 0

    def mark_as_read(self, notification_id: UUID, user_id: UUID) -> bool:
        """
        Mark one notification read.

        Returns False when the notification does not exist or belongs to
        another user.
        """
        with session_scope(self._session_factory) as session:
            notification = session.get(Notification, notification_id)
            if notification is None or notification.user_id != user_id:
                return False
            if not notification.is_read:
                notification.is_read = True
                notification.read_at = self._clock.now()
            return True

    def mark_all_as_read(self, user_id: UUID) -> int:
        with session_scope(self._session_factory) as session:
            result = session.execute(
                update(Notification)
                .where(
                    Notification.user_id == user_id,
                    Notification.is_read.is_(False),
                )
                .values(is_read=True, read_at=self._clock.now())
            )
            return result.rowcount or 0


class NotificationDispatcher:
    """
    Best-effort notification delivery.

    Contract:
        Never raises.  A failed delivery is logged and reported through the
        return value only.
    """

    def __init__(self, sink: NotificationSink, directory: UserDirectory):
        self._sink = sink
        self._directory = directory

    def notify(
        self,
        user_id: UUID,
        notification_type: NotificationType,
        title: str,
        message: str,
        link: str | None = None,
        client_id: UUID | None = None,
    ) -> bool:
        try:
            self._sink.send(
                user_id, notification_type, title, message, link, client_id
            )
        except Exception:
            logger.warning(
                "notification_delivery_failed",
                extra={
                    "recipient_id": str(user_id),
                    "notification_type": notification_type.value,
                },
                exc_info=True,
            )
            return False

        logger.info(
            "notification_sent",
            extra={
                "recipient_id": str(user_id),
                "notification_type": notification_type.value,
            },
        )
        return True

    def notify_role(
        self,
        roles: frozenset[UserRole],
        notification_type: NotificationType,
        title: str,
        message: str,
        link: str | None = None,
        client_id: UUID | None = None,
    ) -> int:
        """Send to every active user holding one of ``roles``.  Returns deliveries."""
        try:
            recipients = self._directory.active_user_ids(roles)
        except Exception:
            logger.warning(
                "notification_delivery_failed",
                extra={
                    "recipient_roles": sorted(r.value for r in roles),
                    "notification_type": notification_type.value,
                },
                exc_info=True,
            )
            return 0

        return sum(
            self.notify(user_id, notification_type, title, message, link, client_id)
            for user_id in recipients
        )

    def deliver(self, notice: Notice) -> bool:
        """Deliver a notice built during the transactional phase."""
        if notice.recipient_id is not None:
            return self.notify(
                notice.recipient_id,
                notice.notification_type,
                notice.title,
                notice.message,
                notice.link,
                notice.client_id,
            )
        delivered = self.notify_role(
            notice.recipient_roles,
            notice.notification_type,
            notice.title,
            notice.message,
            notice.link,
            notice.client_id,
        )
        return delivered > 0
