"""
Typed Exception Hierarchy for the Intake Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the lifecycle engine render failures back to backoffice staff and
agents. Parsing message strings to decide what went wrong is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        engine.apply(client_id, IntakeStatus.APPROVED, actor_id)
    except IllegalTransitionError as e:
        render(code=e.code, current=e.from_status, requested=e.to_status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    IntakeKernelError (base)
    |
    +-- AuthorizationError
    |   +-- UnauthorizedError
    |
    +-- LookupFailedError
    |   +-- ClientNotFoundError
    |   +-- PlatformRecordNotFoundError
    |   +-- TaskNotFoundError
    |
    +-- TransitionError
    |   +-- IllegalTransitionError
    |
    +-- GateError
    |   +-- CooldownNotExpiredError
    |   +-- EvidenceRequiredError
    |
    +-- TaskStateError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Authorization   | UNAUTHORIZED                | No actor, wrong role, or not the owner
----------------|-----------------------------|-----------------------------------------
Lookup          | CLIENT_NOT_FOUND            | Client ID doesn't exist
                | PLATFORM_RECORD_NOT_FOUND   | Gated record absent OR in wrong state
                | TASK_NOT_FOUND              | Task ID doesn't exist
----------------|-----------------------------|-----------------------------------------
Transition      | ILLEGAL_TRANSITION          | Edge not in the adjacency table
----------------|-----------------------------|-----------------------------------------
Gate            | COOLDOWN_NOT_EXPIRED        | Resubmit before retry_after
                | EVIDENCE_REQUIRED           | Resubmit without evidence references
----------------|-----------------------------|-----------------------------------------
Task            | TASK_STATE_CONFLICT         | Completing a cancelled task
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Updating/deleting an event log row
----------------|-----------------------------|-----------------------------------------
Config          | CONFIGURATION_INVALID       | Settings file fails validation

===============================================================================
"""

from datetime import datetime


class IntakeKernelError(Exception):
    """
    Base exception for all intake kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INTAKE_KERNEL_ERROR"


# Authorization


class AuthorizationError(IntakeKernelError):
    """Base exception for authorization failures."""

    code: str = "AUTHORIZATION_ERROR"


class UnauthorizedError(AuthorizationError):
    """Actor is missing, holds the wrong role, or does not own the client."""

    code: str = "UNAUTHORIZED"

    def __init__(self, action: str, reason: str):
        self.action = action
        self.reason = reason
        super().__init__(f"Not authorized to {action}: {reason}")


# Lookups


class LookupFailedError(IntakeKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class ClientNotFoundError(LookupFailedError):
    """Client with given ID was not found."""

    code: str = "CLIENT_NOT_FOUND"

    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__(f"Client not found: {client_id}")


class PlatformRecordNotFoundError(LookupFailedError):
    """
    Gated platform verification record not found.

    Raised both when no record exists and when the record exists but is not
    in the state the gate operation requires. The two cases share one
    message.
    """

    code: str = "PLATFORM_RECORD_NOT_FOUND"

    def __init__(self, client_id: str, platform_type: str):
        self.client_id = client_id
        self.platform_type = platform_type
        super().__init__(f"{platform_type} platform record not found")


class TaskNotFoundError(LookupFailedError):
    """Task with given ID was not found."""

    code: str = "TASK_NOT_FOUND"

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


# Transitions


class TransitionError(IntakeKernelError):
    """Base exception for status transition errors."""

    code: str = "TRANSITION_ERROR"


class IllegalTransitionError(TransitionError):
    """Requested edge is not in the adjacency table."""

    code: str = "ILLEGAL_TRANSITION"

    def __init__(self, client_id: str, from_status: str, to_status: str):
        self.client_id = client_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot transition from {from_status} to {to_status}")


# Platform gate


class GateError(IntakeKernelError):
    """Base exception for platform verification gate errors."""

    code: str = "GATE_ERROR"


class CooldownNotExpiredError(GateError):
    """Resubmission attempted before the retry cooldown elapsed."""

    code: str = "COOLDOWN_NOT_EXPIRED"

    def __init__(self, client_id: str, retry_after: datetime):
        self.client_id = client_id
        self.retry_after = retry_after
        super().__init__(
            f"Retry cooldown has not expired yet (resubmission allowed after "
            f"{retry_after.isoformat()})"
        )


class EvidenceRequiredError(GateError):
    """Resubmission carried no evidence references."""

    code: str = "EVIDENCE_REQUIRED"

    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__("At least one evidence reference is required")


# Tasks


class TaskStateError(IntakeKernelError):
    """Task cannot move to the requested state."""

    code: str = "TASK_STATE_CONFLICT"

    def __init__(self, task_id: str, current_status: str, requested_status: str):
        self.task_id = task_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Task {task_id} is {current_status} and cannot become {requested_status}"
        )


# Immutability


class ImmutabilityError(IntakeKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )


# Configuration


class ConfigurationError(IntakeKernelError):
    """Settings failed validation."""

    code: str = "CONFIGURATION_INVALID"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid setting '{field}': {reason}")
