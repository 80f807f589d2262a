"""Party/beneficiary assembler — completeness checks and canonical shape.

validate_parties reports every problem at once; normalize_parties trims
strings and turns blank optional fields into None so the gateway payload
never carries "" where it means "absent"; assemble_parties does both.

Beneficiary invariant, checked per tranche: Primary shares sum to exactly
100, Contingent shares sum to exactly 100 if any exist, at least one
Primary, every share in (0, 100].
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, final

from dateutil.relativedelta import relativedelta

from annuity_submission.core.errors import FieldViolation, ValidationError
from annuity_submission.core.result import Err, Ok
from annuity_submission.model.parties import (
    EMPLOYER_PLAN_TYPES,
    IRA_PLAN_TYPES,
    Address,
    Annuitant,
    Beneficiary,
    BusinessOwner,
    CharityBeneficiary,
    EstateBeneficiary,
    IndividualBeneficiary,
    IndividualOwner,
    IraOwner,
    Owner,
    PlanType,
    Qualified401kOwner,
    QualifiedPlan,
    Tranche,
    TrustBeneficiary,
    TrustOwner,
)
from annuity_submission.validation.report import ValidationReport, violation

MAX_ANNUITANT_AGE = 115
_HUNDRED = Decimal(100)


@final
@dataclass(frozen=True, slots=True)
class Parties:
    """Normalized, validated party set ready for the gateway payload."""

    annuitant: Annuitant
    owner: Owner
    joint_owner: Owner | None
    beneficiaries: tuple[Beneficiary, ...]


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _normalize(obj: Any) -> Any:
    if isinstance(obj, tuple):
        return tuple(_normalize(x) for x in obj)
    if not dataclasses.is_dataclass(obj) or isinstance(obj, type):
        return obj
    changes: dict[str, Any] = {}
    for f in dataclasses.fields(obj):
        value = getattr(obj, f.name)
        optional = "None" in str(f.type)
        if isinstance(value, str):
            stripped = value.strip()
            new: Any = None if (optional and not stripped) else stripped
        else:
            new = _normalize(value)
        if new is not value:
            changes[f.name] = new
    return dataclasses.replace(obj, **changes) if changes else obj


def normalize_parties(
    annuitant: Annuitant,
    owner: Owner,
    joint_owner: Owner | None,
    beneficiaries: tuple[Beneficiary, ...],
) -> Parties:
    return Parties(
        annuitant=_normalize(annuitant),
        owner=_normalize(owner),
        joint_owner=_normalize(joint_owner) if joint_owner is not None else None,
        beneficiaries=_normalize(beneficiaries),
    )


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _digits(raw: str) -> str:
    return "".join(c for c in raw if c.isdigit())


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _require_text(value: str | None, path: str, errors: list[FieldViolation]) -> None:
    if _blank(value):
        errors.append(violation(path, "required", value))


def _check_nine_digits(
    value: str | None, path: str, label: str, errors: list[FieldViolation],
) -> None:
    if _blank(value):
        errors.append(violation(path, "required", value))
    elif len(_digits(value or "")) != 9:
        errors.append(violation(path, f"{label} must be 9 digits", value))


def _check_email(
    value: str | None, path: str, errors: list[FieldViolation], *, required: bool,
) -> None:
    if _blank(value):
        if required:
            errors.append(violation(path, "required", value))
        return
    local, _, domain = (value or "").strip().partition("@")
    if not local or "." not in domain:
        errors.append(violation(path, "must be a valid email address", value))


def check_address(
    address: Address | None, path: str, errors: list[FieldViolation],
) -> None:
    if address is None:
        errors.append(violation(path, "required", None))
        return
    _require_text(address.street1, f"{path}.street1", errors)
    _require_text(address.city, f"{path}.city", errors)
    state = address.state.strip()
    if len(state) != 2 or not state.isalpha():
        errors.append(violation(f"{path}.state", "must be a 2-letter state code", address.state))
    zip_digits = _digits(address.zip_code)
    if len(zip_digits) not in (5, 9):
        errors.append(violation(f"{path}.zip_code", "must be 5 or 9 digits", address.zip_code))


def age_on(date_of_birth: date, as_of: date) -> int:
    return relativedelta(as_of, date_of_birth).years


# ---------------------------------------------------------------------------
# Annuitant and owners
# ---------------------------------------------------------------------------


def _check_annuitant(a: Annuitant, as_of: date, errors: list[FieldViolation]) -> None:
    _require_text(a.first_name, "annuitant.first_name", errors)
    _require_text(a.last_name, "annuitant.last_name", errors)
    _check_nine_digits(a.ssn, "annuitant.ssn", "SSN", errors)
    if a.date_of_birth is None:
        errors.append(violation("annuitant.date_of_birth", "required", None))
    else:
        age = age_on(a.date_of_birth, as_of)
        if not 0 <= age <= MAX_ANNUITANT_AGE:
            errors.append(violation(
                "annuitant.date_of_birth",
                f"annuitant age must be between 0 and {MAX_ANNUITANT_AGE}",
                a.date_of_birth.isoformat(),
            ))
    if a.gender is None:
        errors.append(violation("annuitant.gender", "required", None))
    if a.citizenship is None:
        errors.append(violation("annuitant.citizenship", "required", None))
    _check_email(a.email, "annuitant.email", errors, required=True)
    if len(_digits(a.phone)) < 10:
        errors.append(violation("annuitant.phone", "must have at least 10 digits", a.phone))
    check_address(a.address, "annuitant.address", errors)
    if a.tax_withholding is not None:
        for label, pct in (
            ("federal", a.tax_withholding.federal),
            ("state", a.tax_withholding.state),
        ):
            if pct is not None and not Decimal(0) <= pct <= _HUNDRED:
                errors.append(violation(
                    f"annuitant.tax_withholding.{label}",
                    "withholding must be between 0 and 100 percent",
                    str(pct),
                ))


def _check_plan(
    plan: QualifiedPlan | None,
    allowed: frozenset[PlanType],
    path: str,
    errors: list[FieldViolation],
) -> None:
    if plan is None:
        errors.append(violation(path, "qualified plan required", None))
        return
    if plan.plan_type is None:
        errors.append(violation(f"{path}.plan_type", "required", None))
    elif plan.plan_type not in allowed:
        errors.append(violation(
            f"{path}.plan_type",
            "plan type not allowed for owner type: "
            + ", ".join(sorted(p.value for p in allowed)),
            plan.plan_type.value,
        ))
    _require_text(plan.custodian, f"{path}.custodian", errors)
    _require_text(plan.account_number, f"{path}.account_number", errors)


def check_owner(owner: Owner, path: str, errors: list[FieldViolation]) -> None:
    """Required fields per owner variant."""
    match owner:
        case IndividualOwner():
            _require_text(owner.first_name, f"{path}.first_name", errors)
            _require_text(owner.last_name, f"{path}.last_name", errors)
            _check_nine_digits(owner.ssn, f"{path}.ssn", "SSN", errors)
            if owner.date_of_birth is None:
                errors.append(violation(f"{path}.date_of_birth", "required", None))
            _check_email(owner.email, f"{path}.email", errors, required=False)
        case TrustOwner():
            _require_text(owner.entity_name, f"{path}.entity_name", errors)
            _check_nine_digits(owner.ein, f"{path}.ein", "EIN", errors)
            if owner.trust_date is None:
                errors.append(violation(f"{path}.trust_date", "required", None))
            _check_email(owner.email, f"{path}.email", errors, required=False)
        case BusinessOwner():
            _require_text(owner.entity_name, f"{path}.entity_name", errors)
            _check_nine_digits(owner.ein, f"{path}.ein", "EIN", errors)
            _require_text(owner.signer_name, f"{path}.signer_name", errors)
            _check_email(owner.email, f"{path}.email", errors, required=False)
        case IraOwner():
            _require_text(owner.entity_name, f"{path}.entity_name", errors)
            _check_nine_digits(owner.ein, f"{path}.ein", "EIN", errors)
            _check_plan(owner.qualified_plan, IRA_PLAN_TYPES, f"{path}.qualified_plan", errors)
            _check_email(owner.email, f"{path}.email", errors, required=False)
        case Qualified401kOwner():
            _require_text(owner.entity_name, f"{path}.entity_name", errors)
            _check_nine_digits(owner.ein, f"{path}.ein", "EIN", errors)
            _check_plan(
                owner.qualified_plan, EMPLOYER_PLAN_TYPES, f"{path}.qualified_plan", errors,
            )
            _check_email(owner.email, f"{path}.email", errors, required=False)
    check_address(owner.address, f"{path}.address", errors)


# ---------------------------------------------------------------------------
# Beneficiaries
# ---------------------------------------------------------------------------


def _check_beneficiary(b: Beneficiary, path: str, errors: list[FieldViolation]) -> None:
    if not Decimal(0) < b.percentage <= _HUNDRED:
        errors.append(violation(
            f"{path}.percentage", "must be greater than 0 and at most 100", str(b.percentage),
        ))
    match b:
        case IndividualBeneficiary():
            _require_text(b.first_name, f"{path}.first_name", errors)
            _require_text(b.last_name, f"{path}.last_name", errors)
            _require_text(b.relationship, f"{path}.relationship", errors)
            if not _blank(b.ssn):
                _check_nine_digits(b.ssn, f"{path}.ssn", "SSN", errors)
            if b.address is not None:
                check_address(b.address, f"{path}.address", errors)
        case TrustBeneficiary() | CharityBeneficiary():
            _require_text(b.entity_name, f"{path}.entity_name", errors)
            if not _blank(b.ein):
                _check_nine_digits(b.ein, f"{path}.ein", "EIN", errors)
            if b.address is not None:
                check_address(b.address, f"{path}.address", errors)
        case EstateBeneficiary():
            pass


def check_beneficiaries(
    beneficiaries: tuple[Beneficiary, ...], errors: list[FieldViolation],
) -> None:
    for i, b in enumerate(beneficiaries):
        _check_beneficiary(b, f"beneficiaries[{i}]", errors)

    primary = [b for b in beneficiaries if b.tranche == Tranche.PRIMARY]
    contingent = [b for b in beneficiaries if b.tranche == Tranche.CONTINGENT]
    if not primary:
        errors.append(violation(
            "beneficiaries.primary", "at least one primary beneficiary required", 0,
        ))
    else:
        total = sum((b.percentage for b in primary), Decimal(0))
        if total != _HUNDRED:
            errors.append(FieldViolation(
                path="beneficiaries.primary",
                constraint="percentages must sum to 100",
                actual_value=str(total),
            ))
    if contingent:
        total = sum((b.percentage for b in contingent), Decimal(0))
        if total != _HUNDRED:
            errors.append(FieldViolation(
                path="beneficiaries.contingent",
                constraint="percentages must sum to 100",
                actual_value=str(total),
            ))


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def validate_parties(
    annuitant: Annuitant,
    owner: Owner,
    joint_owner: Owner | None,
    beneficiaries: tuple[Beneficiary, ...],
    as_of: date,
) -> ValidationReport:
    errors: list[FieldViolation] = []
    _check_annuitant(annuitant, as_of, errors)
    check_owner(owner, "owner", errors)
    if joint_owner is not None:
        if not isinstance(joint_owner, IndividualOwner):
            errors.append(violation(
                "joint_owner", "joint owner must be an individual",
                joint_owner.owner_type.value,
            ))
        else:
            check_owner(joint_owner, "joint_owner", errors)
            if (
                isinstance(owner, IndividualOwner)
                and _digits(owner.ssn)
                and _digits(owner.ssn) == _digits(joint_owner.ssn)
            ):
                errors.append(violation(
                    "joint_owner.ssn", "joint owner must differ from owner", joint_owner.ssn,
                ))
    check_beneficiaries(beneficiaries, errors)
    return ValidationReport(errors=tuple(errors))


def assemble_parties(
    annuitant: Annuitant,
    owner: Owner,
    joint_owner: Owner | None,
    beneficiaries: tuple[Beneficiary, ...],
    *,
    as_of: date,
) -> Ok[Parties] | Err[ValidationError]:
    """Normalize, then validate the normalized shape."""
    parties = normalize_parties(annuitant, owner, joint_owner, beneficiaries)
    report = validate_parties(
        parties.annuitant, parties.owner, parties.joint_owner, parties.beneficiaries, as_of,
    )
    match report.to_result("validation.parties.assemble_parties"):
        case Ok(_):
            return Ok(parties)
        case Err(e):
            return Err(e)
