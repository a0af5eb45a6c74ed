"""
ORM-Level Immutability Enforcement for the event log.

===============================================================================
WHY THIS EXISTS
===============================================================================

The event log is the client timeline backoffice staff and agents rely on to
reconstruct who moved a client, when, and why.  Entries are append-only:
a correction is a new entry, never an edit.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _check_event_log_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_event_log_delete() ---------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

If a check fails the flush aborts and the surrounding transaction rolls
back.  Bulk ``update()``/``delete()`` statements bypass mapper events; the
kernel never issues them against ``event_log``.

===============================================================================
USAGE
===============================================================================

    from intake_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from intake_kernel.exceptions import ImmutabilityViolationError
from intake_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_event_log_immutability(mapper, connection, target):
    """Prevent any updates to EventLogEntry records."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "EventLogEntry",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="EventLogEntry",
        entity_id=str(target.id),
        reason="Event log entries are immutable and cannot be modified",
    )


def _check_event_log_delete(mapper, connection, target):
    """Prevent deletion of EventLogEntry records."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "EventLogEntry",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="EventLogEntry",
        entity_id=str(target.id),
        reason="Event log entries cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register immutability enforcement listeners.

    Idempotent: registering twice does not stack listeners.
    """
    from intake_kernel.models.event_log import EventLogEntry

    if not event.contains(EventLogEntry, "before_update", _check_event_log_immutability):
        event.listen(EventLogEntry, "before_update", _check_event_log_immutability)
    if not event.contains(EventLogEntry, "before_delete", _check_event_log_delete):
        event.listen(EventLogEntry, "before_delete", _check_event_log_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement listeners.

    WARNING: Only use this in tests that deliberately violate the rule.
    """
    from intake_kernel.models.event_log import EventLogEntry

    _safe_remove_listener(EventLogEntry, "before_update", _check_event_log_immutability)
    _safe_remove_listener(EventLogEntry, "before_delete", _check_event_log_delete)
