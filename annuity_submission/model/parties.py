"""Parties to an annuity application: annuitant, owner variants, beneficiaries.

Owner = IndividualOwner | TrustOwner | BusinessOwner | IraOwner | Qualified401kOwner
Beneficiary = IndividualBeneficiary | TrustBeneficiary | EstateBeneficiary
              | CharityBeneficiary

Types here are structural only. Completeness (required fields, formats,
the 100% beneficiary invariant) is the party assembler's job, because the
questionnaire UI hands over partially-filled records and the agent must see
every problem at once rather than the first constructor failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import final

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Gender(Enum):
    MALE = "Male"
    FEMALE = "Female"


class Citizenship(Enum):
    US_CITIZEN = "US Citizen"
    RESIDENT_ALIEN = "Resident Alien"
    NON_RESIDENT_ALIEN = "Non-Resident Alien"


class PhoneType(Enum):
    MOBILE = "Mobile"
    HOME = "Home"
    WORK = "Work"


class EmploymentStatus(Enum):
    EMPLOYED = "Employed"
    SELF_EMPLOYED = "Self-Employed"
    RETIRED = "Retired"
    UNEMPLOYED = "Unemployed"


class OwnerType(Enum):
    INDIVIDUAL = "Individual"
    TRUST = "Trust"
    BUSINESS = "Business"
    IRA = "IRA"
    QUALIFIED_401K = "401K"


class PlanType(Enum):
    TRADITIONAL_IRA = "Traditional IRA"
    ROTH_IRA = "Roth IRA"
    SEP_IRA = "SEP IRA"
    SIMPLE_IRA = "Simple IRA"
    PLAN_401K = "401K"
    PLAN_403B = "403B"
    OTHER = "Other"


IRA_PLAN_TYPES: frozenset[PlanType] = frozenset({
    PlanType.TRADITIONAL_IRA,
    PlanType.ROTH_IRA,
    PlanType.SEP_IRA,
    PlanType.SIMPLE_IRA,
})

EMPLOYER_PLAN_TYPES: frozenset[PlanType] = frozenset({
    PlanType.PLAN_401K,
    PlanType.PLAN_403B,
    PlanType.OTHER,
})


class Tranche(Enum):
    PRIMARY = "Primary"
    CONTINGENT = "Contingent"


class BeneficiaryDesignation(Enum):
    INDIVIDUAL = "Individual"
    TRUST = "Trust"
    ESTATE = "Estate"
    CHARITY = "Charity"


# ---------------------------------------------------------------------------
# Shared records
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class Address:
    street1: str
    city: str
    state: str  # two-letter USPS code
    zip_code: str
    street2: str | None = None
    country: str | None = None


@final
@dataclass(frozen=True, slots=True)
class TaxWithholding:
    """Withholding election, in percent."""

    federal: Decimal
    state: Decimal | None = None


# ---------------------------------------------------------------------------
# Annuitant
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class Annuitant:
    """The person whose life measures the contract's benefits."""

    first_name: str
    last_name: str
    ssn: str
    date_of_birth: date | None
    gender: Gender | None
    citizenship: Citizenship | None
    email: str
    phone: str
    address: Address | None
    middle_name: str | None = None
    suffix: str | None = None
    phone_type: PhoneType | None = None
    occupation: str | None = None
    employer: str | None = None
    employment_status: EmploymentStatus | None = None
    annual_income: Decimal | None = None
    net_worth: Decimal | None = None
    liquid_net_worth: Decimal | None = None
    tax_withholding: TaxWithholding | None = None

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name, self.suffix]
        return " ".join(p.strip() for p in parts if p and p.strip())


# ---------------------------------------------------------------------------
# Owner variants
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class QualifiedPlan:
    """Qualified-plan descriptor for IRA and employer-plan owners."""

    plan_type: PlanType | None
    custodian: str
    account_number: str


@final
@dataclass(frozen=True, slots=True)
class IndividualOwner:
    first_name: str
    last_name: str
    ssn: str
    date_of_birth: date | None
    address: Address | None
    middle_name: str | None = None
    email: str | None = None
    phone: str | None = None

    @property
    def owner_type(self) -> OwnerType:
        return OwnerType.INDIVIDUAL

    @property
    def display_name(self) -> str:
        return " ".join(p.strip() for p in (self.first_name, self.last_name) if p.strip())


@final
@dataclass(frozen=True, slots=True)
class TrustOwner:
    entity_name: str
    ein: str
    trust_date: date | None
    address: Address | None
    signer_name: str | None = None  # trustee signing on behalf of the trust
    email: str | None = None

    @property
    def owner_type(self) -> OwnerType:
        return OwnerType.TRUST

    @property
    def display_name(self) -> str:
        return self.entity_name.strip()


@final
@dataclass(frozen=True, slots=True)
class BusinessOwner:
    entity_name: str
    ein: str
    address: Address | None
    signer_name: str | None = None  # authorized officer
    email: str | None = None

    @property
    def owner_type(self) -> OwnerType:
        return OwnerType.BUSINESS

    @property
    def display_name(self) -> str:
        return self.entity_name.strip()


@final
@dataclass(frozen=True, slots=True)
class IraOwner:
    """Custodian-owned IRA (the custodian holds title FBO the annuitant)."""

    entity_name: str
    ein: str
    address: Address | None
    qualified_plan: QualifiedPlan | None
    signer_name: str | None = None
    email: str | None = None

    @property
    def owner_type(self) -> OwnerType:
        return OwnerType.IRA

    @property
    def display_name(self) -> str:
        return self.entity_name.strip()


@final
@dataclass(frozen=True, slots=True)
class Qualified401kOwner:
    """Employer-sponsored plan trust as owner."""

    entity_name: str
    ein: str
    address: Address | None
    qualified_plan: QualifiedPlan | None
    signer_name: str | None = None
    email: str | None = None

    @property
    def owner_type(self) -> OwnerType:
        return OwnerType.QUALIFIED_401K

    @property
    def display_name(self) -> str:
        return self.entity_name.strip()


type Owner = IndividualOwner | TrustOwner | BusinessOwner | IraOwner | Qualified401kOwner
type EntityOwner = TrustOwner | BusinessOwner | IraOwner | Qualified401kOwner


def owner_is_annuitant(owner: Owner, annuitant: Annuitant) -> bool:
    """True when an individual owner is the same person as the annuitant."""
    match owner:
        case IndividualOwner(ssn=ssn):
            return _digits(ssn) != "" and _digits(ssn) == _digits(annuitant.ssn)
        case _:
            return False


def _digits(raw: str) -> str:
    return "".join(c for c in raw if c.isdigit())


# ---------------------------------------------------------------------------
# Beneficiary variants
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class IndividualBeneficiary:
    tranche: Tranche
    percentage: Decimal
    first_name: str
    last_name: str
    relationship: str
    middle_name: str | None = None
    date_of_birth: date | None = None
    ssn: str | None = None
    address: Address | None = None

    @property
    def designation(self) -> BeneficiaryDesignation:
        return BeneficiaryDesignation.INDIVIDUAL


@final
@dataclass(frozen=True, slots=True)
class TrustBeneficiary:
    tranche: Tranche
    percentage: Decimal
    entity_name: str
    ein: str | None = None
    trust_date: date | None = None
    address: Address | None = None

    @property
    def designation(self) -> BeneficiaryDesignation:
        return BeneficiaryDesignation.TRUST


@final
@dataclass(frozen=True, slots=True)
class EstateBeneficiary:
    """Proceeds payable to the owner's estate."""

    tranche: Tranche
    percentage: Decimal
    estate_of: str | None = None

    @property
    def designation(self) -> BeneficiaryDesignation:
        return BeneficiaryDesignation.ESTATE


@final
@dataclass(frozen=True, slots=True)
class CharityBeneficiary:
    tranche: Tranche
    percentage: Decimal
    entity_name: str
    ein: str | None = None
    address: Address | None = None

    @property
    def designation(self) -> BeneficiaryDesignation:
        return BeneficiaryDesignation.CHARITY


type Beneficiary = (
    IndividualBeneficiary | TrustBeneficiary | EstateBeneficiary | CharityBeneficiary
)
