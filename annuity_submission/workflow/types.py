"""Workflow data types for the durable annuity submission.

SubmissionRequest is the workflow input; ApplicationResult its output.
Everything in between is an activity input/output wrapper.

All types: @final @dataclass(frozen=True, slots=True).
Activity outputs carry either a result or an error string, never both:
domain failures travel as values, Temporal retries are reserved for
transport problems.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import final

from annuity_submission.core.errors import FieldViolation, ValidationWarning
from annuity_submission.model.snapshot import CarrierStatusSnapshot
from annuity_submission.model.state import SubmissionReceipt
from annuity_submission.model.status import ApplicationStatus

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ApplicationOutcome(Enum):
    """Terminal outcomes of the submission workflow."""

    ISSUED = "Issued"
    DECLINED = "Declined"
    CANCELLED = "Cancelled"
    REJECTED_VALIDATION = "RejectedValidation"
    SUBMISSION_FAILED = "SubmissionFailed"
    RECONCILIATION_REQUIRED = "ReconciliationRequired"
    MONITORING_EXPIRED = "MonitoringExpired"


# ---------------------------------------------------------------------------
# Workflow input
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class SubmissionRequest:
    """Submit one stored DRAFT and follow it to a terminal state.

    application_ref doubles as the Temporal workflow id, so one application
    never has two submission workflows.
    """

    application_ref: str
    idempotency_key: str
    poll_interval_s: int = 3600
    max_polls: int = 24 * 120

    def __post_init__(self) -> None:
        if not self.application_ref:
            raise TypeError("SubmissionRequest requires an application_ref")
        if not self.idempotency_key:
            raise TypeError("SubmissionRequest requires an idempotency_key")
        if self.poll_interval_s <= 0:
            raise TypeError(f"poll_interval_s must be > 0, got {self.poll_interval_s}")
        if self.max_polls < 0:
            raise TypeError(f"max_polls must be >= 0, got {self.max_polls}")


# ---------------------------------------------------------------------------
# Activity I/O: validation
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class ValidationOutput:
    """Output of validate_application activity."""

    violations: tuple[FieldViolation, ...] = ()
    warnings: tuple[ValidationWarning, ...] = ()
    error: str | None = None  # the application could not be loaded

    @property
    def passed(self) -> bool:
        return self.error is None and not self.violations

    @property
    def rejection_reasons(self) -> tuple[str, ...]:
        if self.error is not None:
            return (self.error,)
        return tuple(f"{v.path}: {v.constraint}" for v in self.violations)


# ---------------------------------------------------------------------------
# Activity I/O: submission
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class SubmitInput:
    application_ref: str
    idempotency_key: str


@final
@dataclass(frozen=True, slots=True)
class SubmitOutput:
    """Output of submit_application activity."""

    receipt: SubmissionReceipt | None = None
    warnings: tuple[ValidationWarning, ...] = ()
    simulated: bool = False
    error: str | None = None
    error_code: str | None = None
    requires_reconciliation: bool = False

    def __post_init__(self) -> None:
        if (self.receipt is None) == (self.error is None):
            raise TypeError("SubmitOutput must have exactly one of receipt or error")
        if self.requires_reconciliation and self.error is None:
            raise TypeError("requires_reconciliation is only meaningful on an error")


# ---------------------------------------------------------------------------
# Activity I/O: status
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class ApplySnapshotInput:
    application_ref: str
    snapshot: CarrierStatusSnapshot


@final
@dataclass(frozen=True, slots=True)
class CancelInput:
    application_ref: str
    reason: str


@final
@dataclass(frozen=True, slots=True)
class StatusOutput:
    """Stored status after a poll, a pushed report or a cancellation.

    status is always the stored value: on error it is the last known state.
    """

    status: ApplicationStatus
    changed: bool = False
    notes: str | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Workflow output
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class ApplicationResult:
    """Terminal outcome of the workflow."""

    application_ref: str
    outcome: ApplicationOutcome
    final_status: ApplicationStatus
    application_id: str | None = None
    confirmation_number: str | None = None
    warnings: tuple[ValidationWarning, ...] = ()
    reasons: tuple[str, ...] = ()
    rejected_reports: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        submitted = self.outcome in (
            ApplicationOutcome.ISSUED, ApplicationOutcome.DECLINED,
        )
        if submitted and self.application_id is None:
            raise TypeError(f"{self.outcome.value} outcome requires application_id")
