"""annuity_submission.esign — signer sessions for submitted applications."""

from annuity_submission.esign.orchestrator import (
    ESignatureOrchestrator as ESignatureOrchestrator,
)
from annuity_submission.esign.orchestrator import is_expired as is_expired
