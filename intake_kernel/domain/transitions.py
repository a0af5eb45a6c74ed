"""
Client lifecycle adjacency table (``intake_kernel.domain.transitions``).

Responsibility
--------------
The single authority on which ``IntakeStatus`` changes are legal.  The
table is data: adding or auditing an edge is an edit to
``ALLOWED_TRANSITIONS``, never to engine logic.

Architecture position
---------------------
**Kernel domain layer** -- pure.  ZERO I/O.  No imports from ``db/``,
``models/`` or ``services/``.

Invariants enforced
-------------------
* Every ``IntakeStatus`` member is a key of ``ALLOWED_TRANSITIONS``.
* Terminal statuses map to the empty set, so no edge leaves them,
  including edges to another terminal status.
* Any pair not listed is illegal; there is no implicit self-loop.
"""

from __future__ import annotations

from intake_kernel.domain.statuses import IntakeStatus
from intake_kernel.exceptions import IllegalTransitionError

ALLOWED_TRANSITIONS: dict[IntakeStatus, frozenset[IntakeStatus]] = {
    IntakeStatus.PENDING: frozenset({
        IntakeStatus.PREQUAL_REVIEW,
    }),
    IntakeStatus.PREQUAL_REVIEW: frozenset({
        IntakeStatus.PREQUAL_APPROVED,
        IntakeStatus.REJECTED,
        IntakeStatus.NEEDS_MORE_INFO,
        IntakeStatus.READY_FOR_APPROVAL,
    }),
    IntakeStatus.PREQUAL_APPROVED: frozenset({
        IntakeStatus.READY_FOR_APPROVAL,
        IntakeStatus.INACTIVE,
    }),
    IntakeStatus.NEEDS_MORE_INFO: frozenset({
        IntakeStatus.IN_EXECUTION,
    }),
    IntakeStatus.PHONE_ISSUED: frozenset({
        IntakeStatus.IN_EXECUTION,
    }),
    IntakeStatus.IN_EXECUTION: frozenset({
        IntakeStatus.READY_FOR_APPROVAL,
    }),
    IntakeStatus.READY_FOR_APPROVAL: frozenset({
        IntakeStatus.APPROVED,
        IntakeStatus.REJECTED,
    }),
    IntakeStatus.APPROVED: frozenset({
        IntakeStatus.PARTNERSHIP_ENDED,
    }),
    # Terminal states -- no transitions allowed
    IntakeStatus.REJECTED: frozenset(),
    IntakeStatus.INACTIVE: frozenset(),
    IntakeStatus.PARTNERSHIP_ENDED: frozenset(),
}

TERMINAL_STATUSES: frozenset[IntakeStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def allowed_targets(current: IntakeStatus) -> frozenset[IntakeStatus]:
    """Statuses reachable from ``current`` in one step."""
    return ALLOWED_TRANSITIONS.get(current, frozenset())


def is_allowed(current: IntakeStatus, target: IntakeStatus) -> bool:
    return target in allowed_targets(current)


def is_terminal(status: IntakeStatus) -> bool:
    return status in TERMINAL_STATUSES


def validate_transition(
    client_id: str,
    current: IntakeStatus,
    target: IntakeStatus,
) -> None:
    """
    Raise IllegalTransitionError unless ``current -> target`` is listed.

    Both endpoints are carried on the exception and named in its message.
    """
    if not is_allowed(current, target):
        raise IllegalTransitionError(
            client_id=client_id,
            from_status=current.value,
            to_status=target.value,
        )
