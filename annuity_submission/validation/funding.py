"""Premium/funding processor.

Funding-source invariant: a 1035 Exchange source (or payment method)
carries the exchange_1035 sub-record, a Rollover carries the rollover
sub-record. ACH carries bank details; every other payment method must not.
"""

from __future__ import annotations

from decimal import Decimal

from annuity_submission.core.errors import FieldViolation, ValidationWarning
from annuity_submission.model.funding import (
    AchDetails,
    Exchange1035,
    PaymentMethod,
    Premium,
    Rollover,
)
from annuity_submission.validation.report import ValidationReport, violation, warning

_ZERO = Decimal(0)
_ABA_WEIGHTS = (3, 7, 1, 3, 7, 1, 3, 7, 1)


def aba_checksum_ok(routing_number: str) -> bool:
    """ABA routing number check digit (weights 3-7-1, sum divisible by 10)."""
    if len(routing_number) != 9 or not routing_number.isdigit():
        return False
    total = sum(int(d) * w for d, w in zip(routing_number, _ABA_WEIGHTS, strict=True))
    return total % 10 == 0


def _check_exchange(
    ex: Exchange1035, errors: list[FieldViolation], warnings: list[ValidationWarning],
) -> None:
    path = "premium.exchange_1035"
    if not ex.existing_carrier.strip():
        errors.append(violation(f"{path}.existing_carrier", "required", ex.existing_carrier))
    if not ex.policy_number.strip():
        errors.append(violation(f"{path}.policy_number", "required", ex.policy_number))
    for label, amount in (
        ("account_value", ex.account_value),
        ("surrender_value", ex.surrender_value),
        ("surrender_charges", ex.surrender_charges),
        ("cost_basis", ex.cost_basis),
    ):
        if amount is not None and amount < _ZERO:
            errors.append(violation(f"{path}.{label}", "must not be negative", str(amount)))
    if (
        ex.account_value is not None
        and ex.surrender_value is not None
        and ex.surrender_value > ex.account_value
    ):
        errors.append(FieldViolation(
            path=f"{path}.surrender_value",
            constraint="surrender value must not exceed account value",
            actual_value=f"{ex.surrender_value} > {ex.account_value}",
        ))
    if ex.surrender_charges is not None and ex.surrender_charges != _ZERO:
        warnings.append(warning(
            f"{path}.surrender_charges",
            f"Client will incur surrender charges of {ex.surrender_charges} on the exchange",
            "SURRENDER_CHARGES",
        ))


def _check_rollover(r: Rollover, errors: list[FieldViolation]) -> None:
    path = "premium.rollover"
    if not r.from_institution.strip():
        errors.append(violation(f"{path}.from_institution", "required", r.from_institution))
    if not r.account_number.strip():
        errors.append(violation(f"{path}.account_number", "required", r.account_number))
    if r.rollover_type is None:
        errors.append(violation(f"{path}.rollover_type", "required", None))
    if r.account_value is not None and r.account_value < _ZERO:
        errors.append(violation(f"{path}.account_value", "must not be negative", str(r.account_value)))


def _check_ach(ach: AchDetails | None, errors: list[FieldViolation]) -> None:
    path = "premium.ach"
    if ach is None:
        errors.append(violation(path, "bank details required for ACH", None))
        return
    routing = (ach.routing_number or "").strip()
    if not routing:
        errors.append(violation(f"{path}.routing_number", "required", ach.routing_number))
    elif not aba_checksum_ok(routing):
        errors.append(violation(
            f"{path}.routing_number", "must be a valid 9-digit ABA routing number", routing,
        ))
    account = (ach.account_number or "").strip()
    if not account:
        errors.append(violation(f"{path}.account_number", "required", ach.account_number))
    elif not account.isdigit() or not 4 <= len(account) <= 17:
        errors.append(violation(f"{path}.account_number", "must be 4 to 17 digits", "***"))
    if ach.account_type is None:
        errors.append(violation(f"{path}.account_type", "required", None))


def _ach_present(ach: AchDetails | None) -> bool:
    if ach is None:
        return False
    return any(
        v is not None and str(v).strip()
        for v in (ach.routing_number, ach.account_number)
    )


def validate_funding(premium: Premium) -> ValidationReport:
    errors: list[FieldViolation] = []
    warnings: list[ValidationWarning] = []

    if premium.initial_premium <= _ZERO:
        errors.append(violation(
            "premium.initial_premium", "must be greater than 0", str(premium.initial_premium),
        ))
    if premium.additional_premium is not None and premium.additional_premium.amount <= _ZERO:
        errors.append(violation(
            "premium.additional_premium.amount", "must be greater than 0",
            str(premium.additional_premium.amount),
        ))

    if premium.is_1035_exchange:
        if premium.exchange_1035 is None:
            errors.append(violation(
                "premium.exchange_1035", "required for 1035 Exchange funding", None,
            ))
        else:
            _check_exchange(premium.exchange_1035, errors, warnings)
    if premium.is_rollover:
        if premium.rollover is None:
            errors.append(violation("premium.rollover", "required for Rollover funding", None))
        else:
            _check_rollover(premium.rollover, errors)

    if premium.payment_method == PaymentMethod.ACH:
        _check_ach(premium.ach, errors)
    elif _ach_present(premium.ach):
        errors.append(violation(
            "premium.ach",
            f"routing/account numbers must be absent for {premium.payment_method.value}",
            "***",
        ))

    return ValidationReport(errors=tuple(errors), warnings=tuple(warnings))
