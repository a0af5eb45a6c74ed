"""Acting user value object.  Every call names who is acting explicitly."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from intake_kernel.domain.statuses import UserRole


@dataclass(frozen=True)
class ActingUser:
    """The authenticated caller of a lifecycle action."""

    id: UUID
    role: UserRole

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles
