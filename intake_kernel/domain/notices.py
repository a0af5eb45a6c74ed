"""
Notification notices (``intake_kernel.domain.notices``).

A ``Notice`` is a notification decided during the transactional phase and
delivered in the detached phase, after commit.  Building one never sends
anything.

Exactly one of ``recipient_id`` and ``recipient_roles`` is set: a notice
goes either to one user or to every active user holding one of the roles.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from intake_kernel.domain.statuses import NotificationType, UserRole


@dataclass(frozen=True)
class Notice:
    notification_type: NotificationType
    title: str
    message: str
    link: str | None
    client_id: UUID | None = None
    recipient_id: UUID | None = None
    recipient_roles: frozenset[UserRole] | None = None

    def __post_init__(self) -> None:
        if (self.recipient_id is None) == (self.recipient_roles is None):
            raise ValueError("Notice needs exactly one of recipient_id or recipient_roles")


def approval_notice(
    agent_id: UUID, client_id: UUID, client_name: str, link: str
) -> Notice:
    return Notice(
        notification_type=NotificationType.APPROVAL,
        title="Client approved",
        message=(
            f"{client_name} has been approved. "
            "Phone sign-out and phone return tasks have been created."
        ),
        link=link,
        client_id=client_id,
        recipient_id=agent_id,
    )


def rejection_notice(
    agent_id: UUID,
    client_id: UUID,
    client_name: str,
    link: str,
    reason: str | None = None,
) -> Notice:
    message = f"{client_name} has been rejected."
    if reason:
        message += f" Reason: {reason}"
    return Notice(
        notification_type=NotificationType.REJECTION,
        title="Client rejected",
        message=message,
        link=link,
        client_id=client_id,
        recipient_id=agent_id,
    )


def retry_notice(
    agent_id: UUID,
    client_id: UUID,
    client_name: str,
    platform_name: str,
    cooldown_hours: int,
    link: str,
    reason: str | None = None,
) -> Notice:
    message = (
        f"{platform_name} verification for {client_name} needs resubmission. "
        f"You can resubmit after {cooldown_hours} hours."
    )
    if reason:
        message += f" Reason: {reason}"
    return Notice(
        notification_type=NotificationType.PLATFORM_RETRY,
        title=f"{platform_name} needs resubmission",
        message=message,
        link=link,
        client_id=client_id,
        recipient_id=agent_id,
    )


def resubmitted_notice(
    roles: frozenset[UserRole],
    client_id: UUID,
    client_name: str,
    platform_name: str,
    attempt: int,
    agent_result: str,
    link: str,
) -> Notice:
    return Notice(
        notification_type=NotificationType.PLATFORM_RESUBMITTED,
        title=f"{platform_name} resubmitted for review",
        message=(
            f"{client_name}'s {platform_name} verification was resubmitted "
            f"(attempt {attempt}, agent result: {agent_result}) and awaits review."
        ),
        link=link,
        client_id=client_id,
        recipient_roles=roles,
    )
