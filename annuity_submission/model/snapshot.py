"""Carrier status snapshot — ephemeral data pulled from (or pushed by) the gateway.

Not authoritative: a snapshot is the input the reconciler folds into the
state machine, never stored as the state itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import final

from annuity_submission.core.types import UtcDatetime
from annuity_submission.model.status import ApplicationStatus


@final
@dataclass(frozen=True, slots=True)
class IssuedContract:
    """Contract fields the carrier returns once the application is ISSUED."""

    contract_number: str
    issue_date: date | None = None
    effective_date: date | None = None
    contract_value: Decimal | None = None

    def __post_init__(self) -> None:
        if not self.contract_number:
            raise TypeError("IssuedContract requires a contract_number")


@final
@dataclass(frozen=True, slots=True)
class DtccStatus:
    status: str
    status_date: UtcDatetime | None = None


@final
@dataclass(frozen=True, slots=True)
class CarrierStatusSnapshot:
    application_id: str
    status: ApplicationStatus
    status_date: UtcDatetime
    notes: str | None = None
    contract: IssuedContract | None = None
    dtcc: DtccStatus | None = None
