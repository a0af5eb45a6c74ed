"""
intake_config -- single public entrypoint for intake settings.

Responsibility:
    ``get_active_settings()`` is the only way runtime code obtains
    settings.  It returns a frozen ``IntakeSettings`` whose ``policy`` is
    handed to the kernel.  The kernel never imports this package.

Failure modes:
    - ``FileNotFoundError`` -- settings file missing.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ConfigurationError`` -- a value failed validation.

Audit relevance:
    Every call emits an ``INTAKE_CONFIG_TRACE`` log entry carrying the
    config id, version and checksum, tying lifecycle behaviour to the exact
    settings document that governed it.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from intake_config.loader import load_settings
from intake_config.schema import DatabaseSettings, IntakeSettings
from intake_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults.yaml"


@lru_cache(maxsize=1)
def _load_default() -> IntakeSettings:
    return load_settings(DEFAULT_SETTINGS_PATH)


def get_active_settings(path: Path | str | None = None) -> IntakeSettings:
    """
    The ONLY public settings entrypoint.

    Args:
        path: Settings file to load.  Defaults to the packaged
            ``defaults.yaml``, which is parsed once and cached.
    """
    settings = _load_default() if path is None else load_settings(Path(path))

    _logger.info(
        "INTAKE_CONFIG_TRACE",
        extra={
            "trace_type": "INTAKE_CONFIG_TRACE",
            "config_id": settings.config_id,
            "config_version": settings.version,
            "checksum": settings.checksum,
            "gated_platform": settings.policy.gated_platform.value,
            "platform_count": len(settings.policy.platforms),
        },
    )
    return settings


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "DatabaseSettings",
    "IntakeSettings",
    "get_active_settings",
]
