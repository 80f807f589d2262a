"""Premium and funding records, including 1035-exchange and rollover sub-records."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import final


class SourceOfFunds(Enum):
    SAVINGS = "Savings"
    INVESTMENT_PROCEEDS = "Investment Proceeds"
    INHERITANCE = "Inheritance"
    RETIREMENT_FUNDS = "Retirement Funds"
    EXCHANGE_1035 = "1035 Exchange"
    ROLLOVER = "Rollover"
    OTHER = "Other"


class PaymentMethod(Enum):
    CHECK = "Check"
    WIRE_TRANSFER = "Wire Transfer"
    ACH = "ACH"
    EXCHANGE_1035 = "1035 Exchange"
    ROLLOVER = "Rollover"


class PremiumFrequency(Enum):
    ONE_TIME = "One-Time"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUAL = "Annual"


class BankAccountType(Enum):
    CHECKING = "Checking"
    SAVINGS = "Savings"


class RolloverType(Enum):
    DIRECT = "Direct"
    INDIRECT = "Indirect"


@final
@dataclass(frozen=True, slots=True)
class AdditionalPremium:
    """Recurring or planned additional premium."""

    amount: Decimal
    frequency: PremiumFrequency | None = None


@final
@dataclass(frozen=True, slots=True)
class AchDetails:
    bank_name: str | None
    account_type: BankAccountType | None
    routing_number: str | None
    account_number: str | None


@final
@dataclass(frozen=True, slots=True)
class Exchange1035:
    """The contract being surrendered in a tax-free 1035 exchange."""

    existing_carrier: str
    policy_number: str
    account_value: Decimal | None
    surrender_value: Decimal | None
    surrender_charges: Decimal | None = None
    policy_type: str | None = None
    cost_basis: Decimal | None = None


@final
@dataclass(frozen=True, slots=True)
class Rollover:
    """Qualified money moving from another custodian."""

    from_institution: str
    account_number: str
    account_value: Decimal | None
    rollover_type: RolloverType | None


@final
@dataclass(frozen=True, slots=True)
class Premium:
    initial_premium: Decimal
    source_of_funds: SourceOfFunds
    payment_method: PaymentMethod
    additional_premium: AdditionalPremium | None = None
    source_details: str | None = None
    ach: AchDetails | None = None
    exchange_1035: Exchange1035 | None = None
    rollover: Rollover | None = None

    @property
    def is_1035_exchange(self) -> bool:
        return (
            self.source_of_funds == SourceOfFunds.EXCHANGE_1035
            or self.payment_method == PaymentMethod.EXCHANGE_1035
        )

    @property
    def is_rollover(self) -> bool:
        return (
            self.source_of_funds == SourceOfFunds.ROLLOVER
            or self.payment_method == PaymentMethod.ROLLOVER
        )
