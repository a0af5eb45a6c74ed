"""
Structured JSON logging for the intake kernel.

Every record under the ``intake_kernel`` logger becomes one JSON line:

    {"ts": ..., "level": ..., "logger": ..., "message": "transition_applied",
     "correlation_id": ..., "client_id": ..., "actor_id": ..., "action": ...,
     <extra fields>, <exc_* fields>}

Messages are event names (``lifecycle_action_started``); detail goes in
``extra``.  Request-scoped fields come from ``LogContext`` which the
lifecycle service binds once per action.  When a record carries an
``IntakeKernelError`` its ``code`` and public attributes are flattened into
``exc_*`` fields so a rejected action can be queried by error code.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from datetime import UTC, date, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

_LOGGER_PREFIX = "intake_kernel"

# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------

CONTEXT_FIELDS: tuple[str, ...] = ("correlation_id", "client_id", "actor_id", "action")

_context: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"intake_log_{name}", default=None) for name in CONTEXT_FIELDS
}


def _context_var(name: str) -> ContextVar[str | None]:
    try:
        return _context[name]
    except KeyError:
        raise TypeError(f"unknown log context field {name!r}") from None


class LogContext:
    """
    Request-scoped log fields, safe across threads and asyncio tasks.

    Fields: correlation_id, client_id, actor_id, action.  Unknown field
    names raise TypeError.  None values are ignored.
    """

    @staticmethod
    def set(**fields: str | None) -> None:
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                var.set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        return {
            name: value
            for name in CONTEXT_FIELDS
            if (value := _context[name].get()) is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _context.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of the block, then restore them."""
        tokens = []
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                tokens.append((var, var.set(value)))
        try:
            yield LogContext
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON formatting
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _json_value(obj: Any) -> Any:
    """``json.dumps`` hook for the value types the lifecycle logs."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted((_json_value(item) for item in obj), key=str)
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STDLIB_KEYS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_value)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``intake_kernel`` namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``intake_kernel`` logger.

    Only the first call has an effect until ``reset_logging`` runs.  The
    logger does not propagate, so host applications keep their own root
    configuration.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    kernel_logger.setLevel(level)
    kernel_logger.propagate = False

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    kernel_logger.addHandler(handler)


def reset_logging() -> None:
    """Remove the handlers ``configure_logging`` installed.  Tests only."""
    global _configured
    with _lock:
        _configured = False
    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    for handler in list(kernel_logger.handlers):
        if isinstance(handler.formatter, StructuredFormatter):
            kernel_logger.removeHandler(handler)
    kernel_logger.setLevel(logging.WARNING)
