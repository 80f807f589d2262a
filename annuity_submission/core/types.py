"""Core value types: UtcDatetime, IdempotencyKey, NonEmptyStr, Clock."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import final

from annuity_submission.core.result import Err, Ok


@final
@dataclass(frozen=True, slots=True)
class UtcDatetime:
    """Timezone-aware UTC datetime. Naive datetimes are rejected."""

    value: datetime

    def __post_init__(self) -> None:
        if self.value.tzinfo is None:
            raise TypeError("UtcDatetime requires timezone-aware datetime, got naive")

    @staticmethod
    def parse(raw: datetime) -> Ok[UtcDatetime] | Err[str]:
        if raw.tzinfo is None:
            return Err("UtcDatetime requires timezone-aware datetime, got naive")
        return Ok(UtcDatetime(value=raw.astimezone(UTC)))

    @staticmethod
    def parse_iso(raw: str) -> Ok[UtcDatetime] | Err[str]:
        """Parse an ISO-8601 timestamp as sent by the carrier gateway.

        A trailing ``Z`` is accepted; a timestamp without offset is read as UTC,
        since the gateway documents all of its timestamps in UTC.
        """
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return Err(f"Invalid ISO-8601 timestamp: {raw!r}")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return Ok(UtcDatetime(value=parsed.astimezone(UTC)))

    @staticmethod
    def now() -> UtcDatetime:
        return UtcDatetime(value=datetime.now(tz=UTC))

    def isoformat(self) -> str:
        return self.value.isoformat()


type Clock = Callable[[], UtcDatetime]


def system_clock() -> UtcDatetime:
    """Default Clock. Tests inject a fixed one instead."""
    return UtcDatetime.now()


@final
@dataclass(frozen=True, slots=True)
class NonEmptyStr:
    """String constrained to be non-empty after stripping whitespace."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise TypeError("NonEmptyStr requires non-empty string")

    @staticmethod
    def parse(raw: str) -> Ok[NonEmptyStr] | Err[str]:
        if not raw or not raw.strip():
            return Err("NonEmptyStr requires non-empty string")
        return Ok(NonEmptyStr(value=raw.strip()))


@final
@dataclass(frozen=True, slots=True)
class IdempotencyKey:
    """Caller-supplied key that identifies one submission attempt.

    A createApplication call whose outcome is unknown is reconciled against
    this key; it is never silently re-sent under a fresh one.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise TypeError("IdempotencyKey requires non-empty string")

    @staticmethod
    def create(raw: str) -> Ok[IdempotencyKey] | Err[str]:
        if not raw:
            return Err("IdempotencyKey requires non-empty string")
        return Ok(IdempotencyKey(value=raw))
