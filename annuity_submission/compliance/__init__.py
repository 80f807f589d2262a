"""annuity_submission.compliance — 1035 exchange packages and ACORD artifacts."""

from annuity_submission.compliance.exchange import AcordArtifact as AcordArtifact
from annuity_submission.compliance.exchange import (
    ExchangeComplianceHandler as ExchangeComplianceHandler,
)
