"""ReconciliationEntry — a gateway call whose outcome is unknown.

Recorded when create_application times out or is cancelled in flight, or
when the carrier accepted it but the local save failed. The carrier may
hold an application the local record does not know about, so submit is
refused until a person checks the carrier side and resolves the entry.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import final

from annuity_submission.core.types import IdempotencyKey, UtcDatetime


class ReconciliationReason(Enum):
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"  # carrier accepted, local save failed


@final
@dataclass(frozen=True, slots=True)
class ReconciliationEntry:
    entry_id: str
    application_ref: str
    idempotency_key: IdempotencyKey
    operation: str
    reason: ReconciliationReason
    detail: str
    recorded_at: UtcDatetime
    resolved_at: UtcDatetime | None = None
    resolution: str | None = None

    @property
    def is_open(self) -> bool:
        return self.resolved_at is None

    def resolve(self, resolution: str, resolved_at: UtcDatetime) -> ReconciliationEntry:
        return replace(self, resolution=resolution, resolved_at=resolved_at)
