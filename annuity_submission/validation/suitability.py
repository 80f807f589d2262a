"""Suitability validator — is this annuity purchase appropriate for the client?

Pure function over the SuitabilityRecord and the Premium. Never cached: the
record is mutable while the application is a DRAFT, so submit re-runs it.

Blocking: any unanswered question, a blank purpose, either acknowledgment
not given. Warnings are findings the agent may proceed past with documented
awareness (no emergency funds, immediate liquidity needs, ...).
"""

from __future__ import annotations

from annuity_submission.core.errors import FieldViolation, ValidationWarning
from annuity_submission.model.funding import Premium
from annuity_submission.model.suitability import (
    InvestmentObjective,
    LiquidityNeeds,
    RiskTolerance,
    SuitabilityRecord,
    TimeHorizon,
    YesNo,
)
from annuity_submission.validation.report import ValidationReport, violation, warning

NO_EMERGENCY_FUNDS_MESSAGE = "Client indicated no emergency funds - review suitability"

_REQUIRED_ANSWERS: tuple[str, ...] = (
    "investment_objective",
    "time_horizon",
    "risk_tolerance",
    "liquidity_needs",
    "emergency_funds",
    "other_investments",
)


def validate_suitability(
    record: SuitabilityRecord,
    premium: Premium,
    *,
    include_warnings: bool = True,
) -> ValidationReport:
    """Blocking errors and advisory warnings for one suitability record.

    include_warnings=False is the suitability_checks feature flag turned
    off: the blocking completeness checks still run.
    """
    errors: list[FieldViolation] = []
    for name in _REQUIRED_ANSWERS:
        if getattr(record, name) is None:
            errors.append(violation(f"suitability.{name}", "required", None))

    if record.purpose is None or not record.purpose.strip():
        errors.append(violation("suitability.purpose", "required", record.purpose))

    if record.understands_surrender_charges is not True:
        errors.append(violation(
            "suitability.understands_surrender_charges",
            "surrender charges must be acknowledged",
            record.understands_surrender_charges,
        ))
    if record.understands_liquidity_restrictions is not True:
        errors.append(violation(
            "suitability.understands_liquidity_restrictions",
            "liquidity restrictions must be acknowledged",
            record.understands_liquidity_restrictions,
        ))

    if not include_warnings:
        return ValidationReport(errors=tuple(errors))
    return ValidationReport(
        errors=tuple(errors),
        warnings=tuple(suitability_warnings(record, premium)),
    )


def suitability_warnings(
    record: SuitabilityRecord, premium: Premium,
) -> list[ValidationWarning]:
    """Non-blocking findings. Also used by the simulation gateway."""
    found: list[ValidationWarning] = []
    if record.emergency_funds == YesNo.NO:
        found.append(warning(
            "suitability.emergency_funds", NO_EMERGENCY_FUNDS_MESSAGE, "NO_EMERGENCY_FUNDS",
        ))
    if record.liquidity_needs == LiquidityNeeds.IMMEDIATE:
        found.append(warning(
            "suitability.liquidity_needs",
            "Client has immediate liquidity needs - surrender charges may apply",
            "IMMEDIATE_LIQUIDITY",
        ))
    if record.time_horizon == TimeHorizon.ONE_TO_THREE:
        found.append(warning(
            "suitability.time_horizon",
            "Time horizon of 1-3 years is shorter than a typical surrender period",
            "SHORT_TIME_HORIZON",
        ))
    if (
        record.investment_objective == InvestmentObjective.SPECULATION
        and record.risk_tolerance == RiskTolerance.CONSERVATIVE
    ):
        found.append(warning(
            "suitability.investment_objective",
            "Speculative objective conflicts with conservative risk tolerance",
            "OBJECTIVE_RISK_MISMATCH",
        ))
    if premium.is_1035_exchange and not record.existing_annuities:
        found.append(warning(
            "suitability.existing_annuities",
            "1035 exchange funding but no existing annuities disclosed",
            "EXCHANGE_WITHOUT_DISCLOSURE",
        ))
    return found
