"""Hypothesis profiles and pytest fixtures for the submission core.

Fixtures build a valid DRAFT application and the in-memory collaborators
(store, reconciliation log, simulation gateway) around a manual clock, so
every test controls time explicitly.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest
from hypothesis import HealthCheck, settings

from annuity_submission.core.types import UtcDatetime
from annuity_submission.gateway.simulation import SimulationGateway
from annuity_submission.infra.config import FeatureFlags
from annuity_submission.infra.memory_adapter import (
    InMemoryApplicationStore,
    InMemoryReconciliationLog,
)
from annuity_submission.lifecycle.machine import ApplicationStateMachine
from annuity_submission.lifecycle.reconciler import StatusReconciler
from annuity_submission.model.application import (
    AgentInfo,
    AnnuityType,
    Application,
    ComplianceInfo,
    ProductReference,
)
from annuity_submission.model.funding import (
    Exchange1035,
    PaymentMethod,
    Premium,
    SourceOfFunds,
)
from annuity_submission.model.parties import (
    Address,
    Annuitant,
    Citizenship,
    Gender,
    IndividualBeneficiary,
    IndividualOwner,
    Tranche,
)
from annuity_submission.model.suitability import (
    ExistingAnnuity,
    InvestmentObjective,
    LiquidityNeeds,
    RiskTolerance,
    SuitabilityRecord,
    TimeHorizon,
    YesNo,
)

# ---------------------------------------------------------------------------
# Hypothesis global settings
# ---------------------------------------------------------------------------

settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.register_profile(
    "dev",
    max_examples=50,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.load_profile("dev")


# ===================================================================
# CLOCK
# ===================================================================

START = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


class ManualClock:
    """Clock that only moves when a test says so."""

    def __init__(self, start: datetime = START) -> None:
        self.now = UtcDatetime(value=start)

    def __call__(self) -> UtcDatetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = UtcDatetime(value=self.now.value + timedelta(**delta))


# ===================================================================
# APPLICATION BUILDING BLOCKS
# ===================================================================

ADDRESS = Address(street1="100 Main St", city="Des Moines", state="IA", zip_code="50309")

ANNUITANT = Annuitant(
    first_name="Jane",
    last_name="Doe",
    ssn="123-45-6789",
    date_of_birth=date(1960, 3, 14),
    gender=Gender.FEMALE,
    citizenship=Citizenship.US_CITIZEN,
    email="jane.doe@example.com",
    phone="515-555-0100",
    address=ADDRESS,
)

SELF_OWNER = IndividualOwner(
    first_name="Jane",
    last_name="Doe",
    ssn="123456789",
    date_of_birth=date(1960, 3, 14),
    address=ADDRESS,
    email="jane.doe@example.com",
)

SPOUSE = IndividualBeneficiary(
    tranche=Tranche.PRIMARY,
    percentage=Decimal("100"),
    first_name="John",
    last_name="Doe",
    relationship="Spouse",
)

SUITABILITY = SuitabilityRecord(
    investment_objective=InvestmentObjective.INCOME,
    time_horizon=TimeHorizon.EIGHT_TO_TEN,
    risk_tolerance=RiskTolerance.CONSERVATIVE,
    liquidity_needs=LiquidityNeeds.LONG_TERM,
    emergency_funds=YesNo.YES,
    other_investments=YesNo.YES,
    purpose="Guaranteed retirement income",
    understands_surrender_charges=True,
    understands_liquidity_restrictions=True,
)

PRODUCT = ProductReference(
    carrier_id="CARRIER-01",
    carrier_name="Midland Life",
    product_id="MYGA-5",
    product_name="Guarantee Plus 5",
    annuity_type=AnnuityType.MYGA,
)

AGENT = AgentInfo(
    agent_id="AG-1001", name="Pat Agent", email="pat.agent@example.com", npn="1234567",
)

CHECK_PREMIUM = Premium(
    initial_premium=Decimal("100000"),
    source_of_funds=SourceOfFunds.SAVINGS,
    payment_method=PaymentMethod.CHECK,
)

EXCHANGE_PREMIUM = Premium(
    initial_premium=Decimal("250000"),
    source_of_funds=SourceOfFunds.EXCHANGE_1035,
    payment_method=PaymentMethod.EXCHANGE_1035,
    exchange_1035=Exchange1035(
        existing_carrier="Old Mutual",
        policy_number="OM-55501",
        account_value=Decimal("260000"),
        surrender_value=Decimal("250000"),
        surrender_charges=Decimal("0"),
    ),
)

type ApplicationFactory = Callable[..., Application]


def build_application(ref: str = "APP-0001", **overrides: Any) -> Application:
    app = Application(
        application_ref=ref,
        product=PRODUCT,
        annuitant=ANNUITANT,
        owner=SELF_OWNER,
        beneficiaries=(SPOUSE,),
        premium=CHECK_PREMIUM,
        suitability=SUITABILITY,
        agent=AGENT,
        created_at=UtcDatetime(value=START),
    )
    return dataclasses.replace(app, **overrides) if overrides else app


def build_exchange_application(ref: str = "APP-1035", **overrides: Any) -> Application:
    """A DRAFT funded by a fully documented 1035 exchange."""
    fields: dict[str, Any] = {
        "premium": EXCHANGE_PREMIUM,
        "compliance": ComplianceInfo(replacement_form=True),
        "suitability": dataclasses.replace(
            SUITABILITY,
            existing_annuities=(ExistingAnnuity(
                carrier="Old Mutual", product_type="Fixed",
                value=Decimal("260000"), year_purchased=2015,
            ),),
        ),
    }
    fields.update(overrides)
    return build_application(ref, **fields)


# ===================================================================
# FIXTURES
# ===================================================================


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def application_factory() -> ApplicationFactory:
    return build_application


@pytest.fixture
def exchange_application_factory() -> ApplicationFactory:
    return build_exchange_application


@pytest.fixture
def draft() -> Application:
    return build_application()


@pytest.fixture
def features() -> FeatureFlags:
    return FeatureFlags()


@pytest.fixture
def store() -> InMemoryApplicationStore:
    return InMemoryApplicationStore()


@pytest.fixture
def reconciliation_log() -> InMemoryReconciliationLog:
    return InMemoryReconciliationLog()


@pytest.fixture
def gateway(clock: ManualClock) -> SimulationGateway:
    return SimulationGateway(clock=clock)


@pytest.fixture
def machine(
    gateway: SimulationGateway,
    store: InMemoryApplicationStore,
    reconciliation_log: InMemoryReconciliationLog,
    features: FeatureFlags,
    clock: ManualClock,
) -> ApplicationStateMachine:
    return ApplicationStateMachine(
        gateway, store, reconciliation_log, features=features, clock=clock,
    )


@pytest.fixture
def reconciler(
    machine: ApplicationStateMachine,
    store: InMemoryApplicationStore,
    gateway: SimulationGateway,
    clock: ManualClock,
) -> StatusReconciler:
    return StatusReconciler(machine, store, gateway, clock=clock)
