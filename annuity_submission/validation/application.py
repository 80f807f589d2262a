"""Whole-application validation: parties, funding, suitability in one report."""

from __future__ import annotations

import dataclasses
from datetime import date

from annuity_submission.core.errors import ValidationError, ValidationWarning
from annuity_submission.core.result import Err, Ok
from annuity_submission.infra.config import FeatureFlags
from annuity_submission.model.application import Application
from annuity_submission.validation.funding import validate_funding
from annuity_submission.validation.parties import normalize_parties, validate_parties
from annuity_submission.validation.report import ValidationReport, violation
from annuity_submission.validation.suitability import validate_suitability

_DEFAULT_FEATURES = FeatureFlags()


def validate_application(
    app: Application,
    *,
    as_of: date,
    features: FeatureFlags = _DEFAULT_FEATURES,
) -> ValidationReport:
    report = validate_parties(
        app.annuitant, app.owner, app.joint_owner, app.beneficiaries, as_of,
    )
    report = report.merge(validate_funding(app.premium))
    report = report.merge(validate_suitability(
        app.suitability, app.premium, include_warnings=features.suitability_checks,
    ))
    if not app.compliance.electronic_consent and features.e_signature:
        report = report.merge(ValidationReport(errors=(violation(
            "compliance.electronic_consent",
            "electronic consent required for e-signature", False,
        ),)))
    if app.premium.is_1035_exchange and not app.compliance.replacement_form:
        report = report.merge(ValidationReport(errors=(violation(
            "compliance.replacement_form",
            "replacement form required for 1035 exchange", False,
        ),)))
    return report


def check_submittable(
    app: Application,
    *,
    as_of: date,
    features: FeatureFlags = _DEFAULT_FEATURES,
) -> Ok[tuple[ValidationWarning, ...]] | Err[ValidationError]:
    """Ok(warnings) when nothing blocks submission."""
    return validate_application(app, as_of=as_of, features=features).to_result(
        "validation.application.check_submittable",
    )


def normalize_application(app: Application) -> Application:
    """The application with its parties in the canonical gateway shape.

    Strings are trimmed and blank optional fields become None, so the
    gateway never receives padded or empty values.
    """
    parties = normalize_parties(app.annuitant, app.owner, app.joint_owner, app.beneficiaries)
    return dataclasses.replace(
        app,
        annuitant=parties.annuitant,
        owner=parties.owner,
        joint_owner=parties.joint_owner,
        beneficiaries=parties.beneficiaries,
    )
