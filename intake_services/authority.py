"""
intake_services.authority -- role checks at the lifecycle boundary.

Responsibility:
    Decide whether an acting user may perform a lifecycle action.  Role
    checks are a pure function of (actor, action, policy) and run before
    any state is read.  The ownership check for agent actions needs the
    client row and runs inside the transaction.

Invariants:
    - The kernel stays actor-agnostic beyond recording actor ids; all role
      decisions live here.
    - A missing actor is denied with the same error type as a wrong role.
"""

from __future__ import annotations

from intake_kernel.domain.actors import ActingUser
from intake_kernel.domain.policy import LifecyclePolicy
from intake_kernel.domain.statuses import UserRole
from intake_kernel.exceptions import UnauthorizedError
from intake_kernel.models.client import Client

TRANSITION_STATUS = "transition_status"
APPROVE_GATE = "approve_gate"
REJECT_GATE = "reject_gate"
REJECT_GATE_WITH_RETRY = "reject_gate_with_retry"
RESUBMIT_GATE = "resubmit_gate"
VIEW_GATE_STATUS = "view_gate_status"
MARK_OVERDUE_TASKS = "mark_overdue_tasks"

# Actions open to the reviewer roles configured on the policy
REVIEWER_ACTIONS: frozenset[str] = frozenset({
    TRANSITION_STATUS,
    APPROVE_GATE,
    REJECT_GATE,
    REJECT_GATE_WITH_RETRY,
    MARK_OVERDUE_TASKS,
})

# Actions only the owning agent may take
AGENT_ACTIONS: frozenset[str] = frozenset({RESUBMIT_GATE})

# Actions open to reviewers and to the owning agent
SHARED_ACTIONS: frozenset[str] = frozenset({VIEW_GATE_STATUS})


def roles_for_action(action: str, policy: LifecyclePolicy) -> frozenset[UserRole]:
    """Roles permitted to perform ``action``.  Unknown actions permit nobody."""
    if action in REVIEWER_ACTIONS:
        return policy.review_roles
    if action in AGENT_ACTIONS:
        return frozenset({UserRole.AGENT})
    if action in SHARED_ACTIONS:
        return policy.review_roles | {UserRole.AGENT}
    return frozenset()


def check_authority(
    actor: ActingUser | None,
    action: str,
    policy: LifecyclePolicy,
) -> tuple[bool, str]:
    """
    Returns:
        (allowed, reason).  reason is empty when allowed.
    """
    if actor is None:
        return (False, "no acting user")
    allowed = roles_for_action(action, policy)
    if actor.role not in allowed:
        return (False, f"role {actor.role.value} may not perform {action}")
    return (True, "")


def require_authority(
    actor: ActingUser | None,
    action: str,
    policy: LifecyclePolicy,
) -> None:
    allowed, reason = check_authority(actor, action, policy)
    if not allowed:
        raise UnauthorizedError(action, reason)


def require_ownership(actor: ActingUser, client: Client, action: str) -> None:
    """Agents may act only on clients they own.  Reviewers pass unchecked."""
    if not actor.has_role(UserRole.AGENT):
        return
    if client.agent_id != actor.id:
        raise UnauthorizedError(action, "acting agent does not own this client")
