"""Suitability questionnaire record.

Enum answers are Optional because the questionnaire can be saved half-done;
the suitability validator turns a None into a blocking error.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import final


class InvestmentObjective(Enum):
    INCOME = "Income"
    GROWTH = "Growth"
    BALANCED = "Balanced"
    PRESERVATION = "Preservation"
    SPECULATION = "Speculation"


class TimeHorizon(Enum):
    ONE_TO_THREE = "1-3 years"
    FOUR_TO_SEVEN = "4-7 years"
    EIGHT_TO_TEN = "8-10 years"
    TEN_PLUS = "10+ years"


class RiskTolerance(Enum):
    CONSERVATIVE = "Conservative"
    MODERATE = "Moderate"
    AGGRESSIVE = "Aggressive"


class LiquidityNeeds(Enum):
    IMMEDIATE = "Immediate"
    SHORT_TERM = "Short-Term"
    LONG_TERM = "Long-Term"
    NONE = "None"


class YesNo(Enum):
    YES = "Yes"
    NO = "No"


@final
@dataclass(frozen=True, slots=True)
class ExistingAnnuity:
    carrier: str
    product_type: str
    value: Decimal
    year_purchased: int


@final
@dataclass(frozen=True, slots=True)
class SuitabilityRecord:
    investment_objective: InvestmentObjective | None
    time_horizon: TimeHorizon | None
    risk_tolerance: RiskTolerance | None
    liquidity_needs: LiquidityNeeds | None
    emergency_funds: YesNo | None
    other_investments: YesNo | None
    purpose: str | None
    understands_surrender_charges: bool
    understands_liquidity_restrictions: bool
    existing_annuities: tuple[ExistingAnnuity, ...] = ()
