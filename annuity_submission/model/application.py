"""Application — the aggregate root of the submission core.

Created as a DRAFT when a quote is converted to a submission request.
Frozen: every change produces a new value with version + 1, and only the
state machine produces values whose state differs. Never deleted;
cancellation is the terminal Cancelled state.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import final

from annuity_submission.core.types import UtcDatetime
from annuity_submission.model.funding import (
    AchDetails,
    AdditionalPremium,
    Exchange1035,
    PaymentMethod,
    Premium,
    Rollover,
    SourceOfFunds,
)
from annuity_submission.model.parties import Annuitant, Beneficiary, Owner
from annuity_submission.model.state import (
    ApplicationState,
    Draft,
    SubmissionReceipt,
    receipt_of,
    status_of,
)
from annuity_submission.model.status import ApplicationStatus
from annuity_submission.model.suitability import SuitabilityRecord


class AnnuityType(Enum):
    FIXED = "FIXED"
    FIXED_INDEXED = "FIXED_INDEXED"
    VARIABLE = "VARIABLE"
    RILA = "RILA"  # Registered Index-Linked Annuity
    IMMEDIATE = "IMMEDIATE"
    DEFERRED = "DEFERRED"
    MYGA = "MYGA"  # Multi-Year Guaranteed Annuity


class DeathBenefitOption(Enum):
    STANDARD = "Standard"
    ENHANCED = "Enhanced"
    RETURN_OF_PREMIUM = "Return of Premium"
    STEPPED_UP = "Stepped Up"


@final
@dataclass(frozen=True, slots=True)
class ProductReference:
    carrier_id: str
    carrier_name: str
    product_id: str
    product_name: str
    annuity_type: AnnuityType


@final
@dataclass(frozen=True, slots=True)
class QuoteReference:
    """Upstream quote record, consumed read-only."""

    quote_id: str
    product: ProductReference
    initial_premium: Decimal
    external_quote_id: str | None = None


@final
@dataclass(frozen=True, slots=True)
class AgentInfo:
    agent_id: str
    name: str
    email: str | None = None
    license_number: str | None = None
    npn: str | None = None  # National Producer Number


@final
@dataclass(frozen=True, slots=True)
class ComplianceInfo:
    electronic_consent: bool = True
    replacement_form: bool = False
    state_specific_forms: tuple[str, ...] = ()


@final
@dataclass(frozen=True, slots=True)
class ContractOptions:
    death_benefit: DeathBenefitOption | None = None
    living_benefit: bool = False
    nursing_home_waiver: bool = False
    terminal_illness_waiver: bool = False


_DEFAULT_COMPLIANCE = ComplianceInfo()
_DRAFT = Draft()


@final
@dataclass(frozen=True, slots=True)
class Application:
    application_ref: str  # local identifier; the carrier id lives on the receipt
    product: ProductReference
    annuitant: Annuitant
    owner: Owner
    beneficiaries: tuple[Beneficiary, ...]
    premium: Premium
    suitability: SuitabilityRecord
    agent: AgentInfo
    created_at: UtcDatetime
    joint_owner: Owner | None = None
    compliance: ComplianceInfo = _DEFAULT_COMPLIANCE
    options: ContractOptions | None = None
    quote_id: str | None = None
    external_quote_id: str | None = None
    state: ApplicationState = _DRAFT
    version: int = 0

    def __post_init__(self) -> None:
        if not self.application_ref:
            raise TypeError("Application requires an application_ref")
        if self.version < 0:
            raise TypeError(f"Application.version must be >= 0, got {self.version}")

    @property
    def status(self) -> ApplicationStatus:
        return status_of(self.state)

    @property
    def receipt(self) -> SubmissionReceipt | None:
        return receipt_of(self.state)

    @property
    def carrier_application_id(self) -> str | None:
        receipt = self.receipt
        return receipt.application_id if receipt is not None else None

    @staticmethod
    def from_quote(
        quote: QuoteReference,
        *,
        application_ref: str,
        annuitant: Annuitant,
        owner: Owner,
        beneficiaries: tuple[Beneficiary, ...],
        suitability: SuitabilityRecord,
        agent: AgentInfo,
        created_at: UtcDatetime,
        source_of_funds: SourceOfFunds,
        payment_method: PaymentMethod,
        joint_owner: Owner | None = None,
        additional_premium: AdditionalPremium | None = None,
        source_details: str | None = None,
        ach: AchDetails | None = None,
        exchange_1035: Exchange1035 | None = None,
        rollover: Rollover | None = None,
        compliance: ComplianceInfo = _DEFAULT_COMPLIANCE,
        options: ContractOptions | None = None,
    ) -> Application:
        """Convert a quote into a DRAFT submission request."""
        premium = Premium(
            initial_premium=quote.initial_premium,
            source_of_funds=source_of_funds,
            payment_method=payment_method,
            additional_premium=additional_premium,
            source_details=source_details,
            ach=ach,
            exchange_1035=exchange_1035,
            rollover=rollover,
        )
        return Application(
            application_ref=application_ref,
            product=quote.product,
            annuitant=annuitant,
            owner=owner,
            beneficiaries=beneficiaries,
            premium=premium,
            suitability=suitability,
            agent=agent,
            created_at=created_at,
            joint_owner=joint_owner,
            compliance=compliance,
            options=options,
            quote_id=quote.quote_id,
            external_quote_id=quote.external_quote_id,
        )
