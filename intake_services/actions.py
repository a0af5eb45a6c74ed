"""
Function-style action surface.

Each function forwards to a process-wide ``ClientLifecycleService`` and
returns its ``LifecycleResult``.  The default service is built lazily from
``intake_config.get_active_settings()``; callers that manage their own
engine or clock install a service with ``set_lifecycle_service``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from uuid import UUID

from intake_config import get_active_settings
from intake_kernel.db.engine import (
    get_session_factory,
    init_engine_from_url,
    is_initialized,
)
from intake_kernel.db.immutability import register_immutability_listeners
from intake_kernel.domain.actors import ActingUser
from intake_kernel.domain.statuses import IntakeStatus
from intake_kernel.logging_config import configure_logging
from intake_services.lifecycle import ClientLifecycleService, LifecycleResult

_service: ClientLifecycleService | None = None
_lock = threading.Lock()


def get_lifecycle_service() -> ClientLifecycleService:
    """Return the installed service, building the default one on first use."""
    global _service
    with _lock:
        if _service is None:
            settings = get_active_settings()
            configure_logging(level=logging.getLevelName(settings.log_level))
            if not is_initialized():
                init_engine_from_url(
                    settings.database.url, echo=settings.database.echo
                )
            register_immutability_listeners()
            _service = ClientLifecycleService(
                session_factory=get_session_factory(),
                policy=settings.policy,
            )
        return _service


def set_lifecycle_service(service: ClientLifecycleService | None) -> None:
    """Install ``service`` for the action functions.  None resets to default."""
    global _service
    with _lock:
        _service = service


def transition_client_status(
    client_id: UUID,
    target_status: IntakeStatus,
    acting_user: ActingUser | None,
    reason: str | None = None,
) -> LifecycleResult:
    return get_lifecycle_service().transition_status(
        client_id, target_status, acting_user, reason
    )


def approve_platform_gate(
    client_id: UUID, acting_user: ActingUser | None
) -> LifecycleResult:
    return get_lifecycle_service().approve_gate(client_id, acting_user)


def reject_platform_gate_permanently(
    client_id: UUID,
    acting_user: ActingUser | None,
    reason: str | None = None,
) -> LifecycleResult:
    return get_lifecycle_service().reject_gate_permanently(
        client_id, acting_user, reason
    )


def reject_platform_gate_with_retry(
    client_id: UUID,
    acting_user: ActingUser | None,
    reason: str | None = None,
) -> LifecycleResult:
    return get_lifecycle_service().reject_gate_with_retry(
        client_id, acting_user, reason
    )


def resubmit_platform_gate(
    client_id: UUID,
    acting_user: ActingUser | None,
    agent_result: str,
    evidence: Sequence[str],
) -> LifecycleResult:
    return get_lifecycle_service().resubmit_gate(
        client_id, acting_user, agent_result, evidence
    )


def check_platform_gate_status(
    client_id: UUID, acting_user: ActingUser | None
) -> LifecycleResult:
    return get_lifecycle_service().gate_status(client_id, acting_user)


def mark_overdue_tasks(acting_user: ActingUser | None) -> LifecycleResult:
    return get_lifecycle_service().mark_overdue_tasks(acting_user)
