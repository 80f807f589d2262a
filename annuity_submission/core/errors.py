"""Error value hierarchy — no domain function raises exceptions.

Every error is a frozen dataclass value that can be pattern-matched,
serialized, and shown to the agent. Base class SubmissionError, @final
subclasses for each row of the error taxonomy:

  ValidationError          local, blocking (never reaches the gateway)
  IllegalTransitionError   operation not allowed in the current state
  InconsistentStatusError  external status is not a legal forward move
  GatewayError             remote failure with a known outcome
  GatewayTimeoutError      remote call timed out, outcome may be unknown
  ComplianceError          1035 / ACORD / e-signature gating
  PersistenceError         store failure or version conflict

ValidationWarning is not an error: it rides alongside results and is
never dropped, even on a successful path.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import final

from annuity_submission.core.types import UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class FieldViolation:
    """A single blocking field problem."""

    path: str  # e.g. "beneficiaries.primary"
    constraint: str  # e.g. "percentages must sum to 100"
    actual_value: str  # e.g. "90"


@final
@dataclass(frozen=True, slots=True)
class ValidationWarning:
    """A non-blocking finding the agent must acknowledge."""

    path: str
    message: str
    code: str


def _warnings_dict(warnings: tuple[ValidationWarning, ...]) -> list[dict[str, str]]:
    return [{"path": w.path, "message": w.message, "code": w.code} for w in warnings]


@dataclass(frozen=True, slots=True)
class SubmissionError:
    """Base error value. NOT @final — has subclasses."""

    message: str
    code: str
    timestamp: UtcDatetime
    source: str  # "module.function" that produced this error

    def with_context(self, context: str) -> SubmissionError:
        """Return a copy with context prepended to message."""
        return replace(self, message=f"{context}: {self.message}")

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "code": self.code,
            "timestamp": self.timestamp.value.isoformat(),
            "source": self.source,
        }


@final
@dataclass(frozen=True, slots=True)
class ValidationError(SubmissionError):
    """One or more fields failed validation."""

    fields: tuple[FieldViolation, ...]
    warnings: tuple[ValidationWarning, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            **SubmissionError.to_dict(self),
            "fields": [
                {"path": f.path, "constraint": f.constraint, "actual_value": f.actual_value}
                for f in self.fields
            ],
            "warnings": _warnings_dict(self.warnings),
        }


@final
@dataclass(frozen=True, slots=True)
class IllegalTransitionError(SubmissionError):
    """State transition or state-gated operation is not allowed."""

    from_state: str
    to_state: str

    def to_dict(self) -> dict[str, object]:
        return {
            **SubmissionError.to_dict(self),
            "from_state": self.from_state,
            "to_state": self.to_state,
        }


@final
@dataclass(frozen=True, slots=True)
class InconsistentStatusError(SubmissionError):
    """The carrier reported a status that cannot follow the current one."""

    application_id: str
    current_status: str
    reported_status: str

    def to_dict(self) -> dict[str, object]:
        return {
            **SubmissionError.to_dict(self),
            "application_id": self.application_id,
            "current_status": self.current_status,
            "reported_status": self.reported_status,
        }


@final
@dataclass(frozen=True, slots=True)
class GatewayError(SubmissionError):
    """The carrier gateway answered with a failure, or could not be reached."""

    operation: str
    status_code: int | None = None
    details: tuple[str, ...] = ()

    @property
    def retryable(self) -> bool:
        """Transport failures, 429 and 5xx may succeed on a later attempt."""
        if self.status_code is None:
            return self.code == "TRANSPORT_ERROR"
        return self.status_code == 429 or self.status_code >= 500

    def to_dict(self) -> dict[str, object]:
        return {
            **SubmissionError.to_dict(self),
            "operation": self.operation,
            "status_code": self.status_code,
            "details": list(self.details),
        }


@final
@dataclass(frozen=True, slots=True)
class GatewayTimeoutError(SubmissionError):
    """A gateway call exceeded its time budget.

    outcome_unknown is True for mutating calls: the carrier may or may not
    have acted. For createApplication that means manual reconciliation.
    """

    operation: str
    timeout_s: float  # configuration value, not financial arithmetic
    outcome_unknown: bool

    @property
    def requires_reconciliation(self) -> bool:
        return self.outcome_unknown

    def to_dict(self) -> dict[str, object]:
        return {
            **SubmissionError.to_dict(self),
            "operation": self.operation,
            "timeout_s": self.timeout_s,
            "outcome_unknown": self.outcome_unknown,
        }


@final
@dataclass(frozen=True, slots=True)
class ComplianceError(SubmissionError):
    """A compliance gate (1035 authorization, ACORD, e-signature) refused."""

    requirement: str

    def to_dict(self) -> dict[str, object]:
        return {**SubmissionError.to_dict(self), "requirement": self.requirement}


@final
@dataclass(frozen=True, slots=True)
class PersistenceError(SubmissionError):
    """Store operation failed."""

    operation: str

    def to_dict(self) -> dict[str, object]:
        return {**SubmissionError.to_dict(self), "operation": self.operation}


type CarrierFailure = GatewayError | GatewayTimeoutError
