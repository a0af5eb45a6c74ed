"""
Settings loader (``intake_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a frozen ``IntakeSettings``.
Runtime callers go through ``intake_config.get_active_settings()``; the
functions here are exposed for tooling and tests.

Invariants enforced
-------------------
* Windows and due offsets are positive integers.
* The platform list is non-empty, has no duplicates and contains the
  gated platform.
* Platform types and role names are members of the kernel enums.
* ``compute_checksum`` is deterministic for identical input.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``ConfigurationError`` naming the offending field.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from intake_config.schema import DatabaseSettings, IntakeSettings
from intake_kernel.domain.policy import DEFAULT_POLICY, LifecyclePolicy, PlatformEntry
from intake_kernel.domain.statuses import PlatformType, UserRole
from intake_kernel.exceptions import ConfigurationError

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def load_settings(path: Path) -> IntakeSettings:
    return parse_settings(load_yaml_file(path))


def parse_settings(data: dict[str, Any]) -> IntakeSettings:
    """Parse and validate a settings mapping.  Missing sections use defaults."""
    if not isinstance(data, dict):
        raise ConfigurationError("<root>", "settings document must be a mapping")

    database = data.get("database") or {}
    logging_section = data.get("logging") or {}
    log_level = str(logging_section.get("level", "INFO")).upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigurationError("logging.level", f"unknown level {log_level!r}")

    return IntakeSettings(
        config_id=str(data.get("config_id", "intake-default")),
        version=_positive_int(data.get("version", 1), "version"),
        database=DatabaseSettings(
            url=str(database.get("url", DatabaseSettings.url)),
            echo=bool(database.get("echo", False)),
        ),
        log_level=log_level,
        policy=parse_policy(data.get("lifecycle") or {}),
        checksum=compute_checksum(data),
    )


def parse_policy(data: dict[str, Any]) -> LifecyclePolicy:
    defaults = DEFAULT_POLICY
    due = data.get("task_due_days") or {}
    links = data.get("links") or {}

    platforms = (
        _parse_platforms(data["platforms"])
        if "platforms" in data
        else defaults.platforms
    )
    gated = _enum(
        PlatformType,
        data.get("gated_platform", defaults.gated_platform.value),
        "lifecycle.gated_platform",
    )
    if gated not in {entry.platform_type for entry in platforms}:
        raise ConfigurationError(
            "lifecycle.gated_platform",
            f"{gated.value} is not in the platform list",
        )

    review_roles = defaults.review_roles
    if "review_roles" in data:
        review_roles = frozenset(
            _enum(UserRole, role, "lifecycle.review_roles")
            for role in data["review_roles"] or []
        )
        if not review_roles:
            raise ConfigurationError("lifecycle.review_roles", "must not be empty")
        if UserRole.AGENT in review_roles:
            raise ConfigurationError(
                "lifecycle.review_roles", "agents cannot review their own clients"
            )

    return LifecyclePolicy(
        execution_window_business_days=_positive_int(
            data.get("execution_window_business_days", defaults.execution_window_business_days),
            "lifecycle.execution_window_business_days",
        ),
        retry_cooldown_hours=_positive_int(
            data.get("retry_cooldown_hours", defaults.retry_cooldown_hours),
            "lifecycle.retry_cooldown_hours",
        ),
        gated_platform=gated,
        platforms=platforms,
        provide_info_due_days=_positive_int(
            due.get("provide_info", defaults.provide_info_due_days),
            "lifecycle.task_due_days.provide_info",
        ),
        phone_signout_due_days=_positive_int(
            due.get("phone_signout", defaults.phone_signout_due_days),
            "lifecycle.task_due_days.phone_signout",
        ),
        phone_return_due_days=_positive_int(
            due.get("phone_return", defaults.phone_return_due_days),
            "lifecycle.task_due_days.phone_return",
        ),
        review_roles=review_roles,
        client_link_template=_template(
            links.get("client", defaults.client_link_template), "lifecycle.links.client"
        ),
        review_link_template=_template(
            links.get("review", defaults.review_link_template), "lifecycle.links.review"
        ),
    )


def _parse_platforms(raw: Any) -> tuple[PlatformEntry, ...]:
    if not raw:
        raise ConfigurationError("lifecycle.platforms", "must not be empty")

    entries: list[PlatformEntry] = []
    seen: set[PlatformType] = set()
    for item in raw:
        if not isinstance(item, dict) or "type" not in item:
            raise ConfigurationError(
                "lifecycle.platforms", f"entry {item!r} needs a 'type'"
            )
        platform_type = _enum(PlatformType, item["type"], "lifecycle.platforms")
        if platform_type in seen:
            raise ConfigurationError(
                "lifecycle.platforms", f"duplicate platform {platform_type.value}"
            )
        seen.add(platform_type)
        entries.append(
            PlatformEntry(platform_type, str(item.get("name") or platform_type.value))
        )
    return tuple(entries)


def _positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(field, f"must be a positive integer, got {value!r}")
    return value


def _enum(enum_cls, value: Any, field: str):
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        raise ConfigurationError(field, f"unknown value {value!r}") from None


def _template(value: Any, field: str) -> str:
    template = str(value)
    if "{client_id}" not in template:
        raise ConfigurationError(field, "template must contain {client_id}")
    return template
