"""annuity_submission.validation — suitability, party and funding checks."""

from annuity_submission.validation.application import check_submittable as check_submittable
from annuity_submission.validation.application import (
    validate_application as validate_application,
)
from annuity_submission.validation.funding import aba_checksum_ok as aba_checksum_ok
from annuity_submission.validation.funding import validate_funding as validate_funding
from annuity_submission.validation.parties import Parties as Parties
from annuity_submission.validation.parties import assemble_parties as assemble_parties
from annuity_submission.validation.parties import normalize_parties as normalize_parties
from annuity_submission.validation.parties import validate_parties as validate_parties
from annuity_submission.validation.report import ValidationReport as ValidationReport
from annuity_submission.validation.suitability import (
    NO_EMERGENCY_FUNDS_MESSAGE as NO_EMERGENCY_FUNDS_MESSAGE,
)
from annuity_submission.validation.suitability import (
    suitability_warnings as suitability_warnings,
)
from annuity_submission.validation.suitability import (
    validate_suitability as validate_suitability,
)
