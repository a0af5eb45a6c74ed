"""
IntakeSettings schema.

The parsed, validated form of a settings file.  ``policy`` is the part the
kernel consumes; the rest configures the outer shell (database, logging).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from intake_kernel.domain.policy import DEFAULT_POLICY, LifecyclePolicy


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite:///intake.db"
    echo: bool = False


@dataclass(frozen=True)
class IntakeSettings:
    """Frozen runtime settings.  ``checksum`` identifies the source document."""

    config_id: str = "intake-default"
    version: int = 1
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    log_level: str = "INFO"
    policy: LifecyclePolicy = DEFAULT_POLICY
    checksum: str = ""
