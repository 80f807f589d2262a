"""Canonical serialization and content hashing.

canonical_bytes(obj) -> Result[bytes, str]: deterministic JSON bytes.
content_hash(obj) -> Result[str, str]: SHA-256 hex of canonical bytes.

Used to derive deterministic simulation identifiers and to fingerprint
compliance artifacts (ACORD documents, 1035 packages) for audit.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import UtcDatetime


def _to_serializable(obj: object) -> Any:  # noqa: PLR0911
    """Recursively convert a domain object to a JSON-compatible Python value."""
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, Decimal):
        # 100 and 100.00 must hash identically
        if obj == 0:
            return "0"
        return str(obj.normalize())
    if isinstance(obj, UtcDatetime):
        return obj.value.isoformat()
    if isinstance(obj, datetime):
        if obj.tzinfo is None:
            msg = "Cannot serialize naive datetime — use UtcDatetime"
            raise TypeError(msg)
        return obj.astimezone(UTC).isoformat()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (tuple, list)):
        return [_to_serializable(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): _to_serializable(v) for k, v in sorted(obj.items())}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        result: dict[str, Any] = {"_type": type(obj).__name__}
        for name in sorted(f.name for f in dataclasses.fields(obj)):
            result[name] = _to_serializable(getattr(obj, name))
        return result
    msg = f"Cannot serialize {type(obj).__name__}"
    raise TypeError(msg)


def canonical_bytes(obj: object) -> Ok[bytes] | Err[str]:
    """Convert a domain value to canonical JSON bytes (sorted keys, no spaces)."""
    try:
        serializable = _to_serializable(obj)
    except TypeError as e:
        return Err(f"Unsupported type in canonical serialization: {e}")
    return Ok(
        json.dumps(serializable, sort_keys=True, separators=(",", ":")).encode("utf-8")
    )


def content_hash(obj: object) -> Ok[str] | Err[str]:
    """SHA-256 hex digest of canonical_bytes(obj)."""
    match canonical_bytes(obj):
        case Ok(data):
            return Ok(hashlib.sha256(data).hexdigest())
        case Err(e):
            return Err(e)


def text_hash(text: str) -> str:
    """SHA-256 hex digest of a UTF-8 string (documents, webhook bodies)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
