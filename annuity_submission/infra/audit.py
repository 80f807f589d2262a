"""Integration-call audit logging.

One INTEGRATION_AUDIT record per live gateway call. Bodies pass through
sanitize_for_logging first: credentials and personal identifiers never
reach the log.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, final

logger = logging.getLogger(__name__)

REDACTED = "***REDACTED***"

_SENSITIVE_SUFFIXES: tuple[str, ...] = (
    "password",
    "apikey",
    "secret",
    "token",
    "authorization",
    "ssn",
    "ein",
    "accountnumber",
    "routingnumber",
    "creditcard",
    "cvv",
    "pin",
    "secretkey",
    "privatekey",
)


def _is_sensitive(key: str) -> bool:
    folded = key.lower().replace("-", "").replace("_", "")
    return folded.endswith(_SENSITIVE_SUFFIXES)


def sanitize_for_logging(value: Any) -> Any:
    """Deep copy of value with sensitive keys masked."""
    if isinstance(value, dict):
        return {
            k: REDACTED if isinstance(k, str) and _is_sensitive(k) else sanitize_for_logging(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [sanitize_for_logging(v) for v in value]
    return value


@final
@dataclass(frozen=True, slots=True)
class IntegrationCall:
    operation: str
    method: str
    endpoint: str
    duration_ms: float  # latency metric, not financial arithmetic
    success: bool
    status_code: int | None = None
    error: str | None = None
    request: Any = None
    response: Any = None


def log_integration_call(call: IntegrationCall) -> None:
    record = {
        "type": "INTEGRATION_AUDIT",
        "integration": "firelight",
        "operation": call.operation,
        "method": call.method,
        "endpoint": call.endpoint,
        "duration_ms": round(call.duration_ms, 1),
        "success": call.success,
        "status_code": call.status_code,
        "error": call.error,
        "request": sanitize_for_logging(call.request),
        "response": sanitize_for_logging(call.response),
    }
    if call.success:
        logger.info("INTEGRATION_AUDIT %s", record)
    else:
        logger.warning("INTEGRATION_AUDIT %s", record)


class Timer:
    """Monotonic stopwatch: `with Timer() as t: ...; t.elapsed_ms`."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: float | None = None

    def __enter__(self) -> Timer:
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc: object) -> None:
        self._end = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        end = self._end if self._end is not None else time.perf_counter()
        return (end - self._start) * 1000
