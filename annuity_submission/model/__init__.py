"""annuity_submission.model — parties, funding, suitability, state, and the Application root."""

from annuity_submission.model.application import AgentInfo as AgentInfo
from annuity_submission.model.application import AnnuityType as AnnuityType
from annuity_submission.model.application import Application as Application
from annuity_submission.model.application import ComplianceInfo as ComplianceInfo
from annuity_submission.model.application import ContractOptions as ContractOptions
from annuity_submission.model.application import DeathBenefitOption as DeathBenefitOption
from annuity_submission.model.application import ProductReference as ProductReference
from annuity_submission.model.application import QuoteReference as QuoteReference
from annuity_submission.model.funding import AchDetails as AchDetails
from annuity_submission.model.funding import AdditionalPremium as AdditionalPremium
from annuity_submission.model.funding import BankAccountType as BankAccountType
from annuity_submission.model.funding import Exchange1035 as Exchange1035
from annuity_submission.model.funding import PaymentMethod as PaymentMethod
from annuity_submission.model.funding import Premium as Premium
from annuity_submission.model.funding import PremiumFrequency as PremiumFrequency
from annuity_submission.model.funding import Rollover as Rollover
from annuity_submission.model.funding import RolloverType as RolloverType
from annuity_submission.model.funding import SourceOfFunds as SourceOfFunds
from annuity_submission.model.parties import Address as Address
from annuity_submission.model.parties import Annuitant as Annuitant
from annuity_submission.model.parties import Beneficiary as Beneficiary
from annuity_submission.model.parties import BusinessOwner as BusinessOwner
from annuity_submission.model.parties import CharityBeneficiary as CharityBeneficiary
from annuity_submission.model.parties import Citizenship as Citizenship
from annuity_submission.model.parties import EstateBeneficiary as EstateBeneficiary
from annuity_submission.model.parties import Gender as Gender
from annuity_submission.model.parties import IndividualBeneficiary as IndividualBeneficiary
from annuity_submission.model.parties import IndividualOwner as IndividualOwner
from annuity_submission.model.parties import IraOwner as IraOwner
from annuity_submission.model.parties import Owner as Owner
from annuity_submission.model.parties import OwnerType as OwnerType
from annuity_submission.model.parties import PlanType as PlanType
from annuity_submission.model.parties import Qualified401kOwner as Qualified401kOwner
from annuity_submission.model.parties import QualifiedPlan as QualifiedPlan
from annuity_submission.model.parties import TaxWithholding as TaxWithholding
from annuity_submission.model.parties import Tranche as Tranche
from annuity_submission.model.parties import TrustBeneficiary as TrustBeneficiary
from annuity_submission.model.parties import TrustOwner as TrustOwner
from annuity_submission.model.reconciliation import ReconciliationEntry as ReconciliationEntry
from annuity_submission.model.reconciliation import (
    ReconciliationReason as ReconciliationReason,
)
from annuity_submission.model.snapshot import CarrierStatusSnapshot as CarrierStatusSnapshot
from annuity_submission.model.snapshot import DtccStatus as DtccStatus
from annuity_submission.model.snapshot import IssuedContract as IssuedContract
from annuity_submission.model.state import ApplicationState as ApplicationState
from annuity_submission.model.state import Approved as Approved
from annuity_submission.model.state import Cancelled as Cancelled
from annuity_submission.model.state import Declined as Declined
from annuity_submission.model.state import Draft as Draft
from annuity_submission.model.state import InReview as InReview
from annuity_submission.model.state import Issued as Issued
from annuity_submission.model.state import PendingReview as PendingReview
from annuity_submission.model.state import SubmissionReceipt as SubmissionReceipt
from annuity_submission.model.state import Submitted as Submitted
from annuity_submission.model.status import ApplicationStatus as ApplicationStatus
from annuity_submission.model.suitability import ExistingAnnuity as ExistingAnnuity
from annuity_submission.model.suitability import InvestmentObjective as InvestmentObjective
from annuity_submission.model.suitability import LiquidityNeeds as LiquidityNeeds
from annuity_submission.model.suitability import RiskTolerance as RiskTolerance
from annuity_submission.model.suitability import SuitabilityRecord as SuitabilityRecord
from annuity_submission.model.suitability import TimeHorizon as TimeHorizon
from annuity_submission.model.suitability import YesNo as YesNo
