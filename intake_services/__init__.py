"""
intake_services -- outer shell around the intake kernel.

Owns transaction boundaries, role authorization, logging context and the
conversion of domain errors into ``LifecycleResult`` values.
"""

from intake_services.lifecycle import (
    ClientLifecycleService,
    LifecycleResult,
    LifecycleStatus,
)

__all__ = [
    "ClientLifecycleService",
    "LifecycleResult",
    "LifecycleStatus",
]
