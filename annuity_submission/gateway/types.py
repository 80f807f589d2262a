"""Gateway result and request types.

What the carrier gateway hands back for each of its six operations, in
domain terms. The status operation returns model.CarrierStatusSnapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import final

from annuity_submission.core.errors import ValidationWarning
from annuity_submission.core.types import UtcDatetime
from annuity_submission.infra.config import Environment
from annuity_submission.model.status import ApplicationStatus

SIMULATION_ID_PREFIX = "SIM-"


class SignerRole(Enum):
    ANNUITANT = "Annuitant"
    OWNER = "Owner"
    JOINT_OWNER = "Joint Owner"
    AGENT = "Agent"


@final
@dataclass(frozen=True, slots=True)
class CreateApplicationResult:
    application_id: str
    confirmation_number: str
    status: ApplicationStatus
    created_at: UtcDatetime
    dtcc_reference: str | None = None
    warnings: tuple[ValidationWarning, ...] = ()

    @property
    def simulated(self) -> bool:
        return self.application_id.startswith(SIMULATION_ID_PREFIX)


@final
@dataclass(frozen=True, slots=True)
class Signer:
    role: SignerRole
    name: str
    email: str


@final
@dataclass(frozen=True, slots=True)
class SigningUrl:
    role: SignerRole
    url: str


@final
@dataclass(frozen=True, slots=True)
class SignatureSession:
    """One e-signature session: a URL per signer, valid until expires_at."""

    application_id: str
    session_id: str
    urls: tuple[SigningUrl, ...]
    expires_at: UtcDatetime

    def __post_init__(self) -> None:
        if not self.session_id:
            raise TypeError("SignatureSession requires a session_id")
        if not self.urls:
            raise TypeError("SignatureSession requires at least one signing URL")


@final
@dataclass(frozen=True, slots=True)
class ExistingPolicy:
    """The losing carrier's contract, as sent with a 1035 submission."""

    carrier: str
    policy_number: str
    policy_type: str
    account_value: Decimal
    surrender_value: Decimal
    cost_basis: Decimal | None = None


@final
@dataclass(frozen=True, slots=True)
class TransferAuthorization:
    """Proof that the client authorized the transfer of funds."""

    signed: bool
    signed_date: date | None = None
    document_url: str | None = None


@final
@dataclass(frozen=True, slots=True)
class ExchangeRequest:
    application_id: str
    existing_policy: ExistingPolicy
    authorization: TransferAuthorization


@final
@dataclass(frozen=True, slots=True)
class ExchangeAcknowledgement:
    application_id: str
    received_at: UtcDatetime
    reference: str | None = None
    message: str | None = None


@final
@dataclass(frozen=True, slots=True)
class GatewayHealth:
    healthy: bool
    message: str
    checked_at: UtcDatetime
    environment: Environment | None = None
    version: str | None = None
    simulated: bool = False
