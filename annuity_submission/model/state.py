"""ApplicationState — closed tagged union of lifecycle states.

Draft | Submitted | PendingReview | InReview | Approved | Declined | Issued | Cancelled

Every state past DRAFT carries the SubmissionReceipt returned by the
carrier, so "submitted without a confirmation number" cannot be built.
Issued carries the IssuedContract. Handlers match on the variant; a
missing case is caught by assert_never in the type checker.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import assert_never, final

from annuity_submission.core.types import IdempotencyKey, UtcDatetime
from annuity_submission.model.snapshot import IssuedContract
from annuity_submission.model.status import ApplicationStatus


@final
@dataclass(frozen=True, slots=True)
class SubmissionReceipt:
    """What the carrier handed back when it accepted the application."""

    application_id: str
    confirmation_number: str
    submitted_at: UtcDatetime
    idempotency_key: IdempotencyKey
    dtcc_reference: str | None = None

    def __post_init__(self) -> None:
        if not self.application_id:
            raise TypeError("SubmissionReceipt requires an application_id")
        if not self.confirmation_number:
            raise TypeError("SubmissionReceipt requires a confirmation_number")


@final
@dataclass(frozen=True, slots=True)
class Draft:
    """Local only. Mutable through amend_draft until submitted."""


@final
@dataclass(frozen=True, slots=True)
class Submitted:
    receipt: SubmissionReceipt


@final
@dataclass(frozen=True, slots=True)
class PendingReview:
    receipt: SubmissionReceipt
    updated_at: UtcDatetime
    notes: str | None = None


@final
@dataclass(frozen=True, slots=True)
class InReview:
    receipt: SubmissionReceipt
    updated_at: UtcDatetime
    notes: str | None = None


@final
@dataclass(frozen=True, slots=True)
class Approved:
    receipt: SubmissionReceipt
    updated_at: UtcDatetime
    notes: str | None = None


@final
@dataclass(frozen=True, slots=True)
class Declined:
    receipt: SubmissionReceipt
    updated_at: UtcDatetime
    reason: str | None = None


@final
@dataclass(frozen=True, slots=True)
class Issued:
    receipt: SubmissionReceipt
    updated_at: UtcDatetime
    contract: IssuedContract


@final
@dataclass(frozen=True, slots=True)
class Cancelled:
    """Terminal. The application is kept, never deleted."""

    cancelled_from: ApplicationStatus
    cancelled_at: UtcDatetime
    reason: str
    receipt: SubmissionReceipt | None = None

    def __post_init__(self) -> None:
        if self.cancelled_from.is_terminal:
            raise TypeError(
                f"Cannot cancel from terminal state {self.cancelled_from.value}"
            )
        if (self.cancelled_from == ApplicationStatus.DRAFT) != (self.receipt is None):
            raise TypeError("Cancelled carries a receipt exactly when it was submitted")


type ApplicationState = (
    Draft | Submitted | PendingReview | InReview | Approved | Declined | Issued | Cancelled
)


def status_of(state: ApplicationState) -> ApplicationStatus:
    """Wire status for a state variant."""
    match state:
        case Draft():
            return ApplicationStatus.DRAFT
        case Submitted():
            return ApplicationStatus.SUBMITTED
        case PendingReview():
            return ApplicationStatus.PENDING_REVIEW
        case InReview():
            return ApplicationStatus.IN_REVIEW
        case Approved():
            return ApplicationStatus.APPROVED
        case Declined():
            return ApplicationStatus.DECLINED
        case Issued():
            return ApplicationStatus.ISSUED
        case Cancelled():
            return ApplicationStatus.CANCELLED
        case _:
            assert_never(state)


def receipt_of(state: ApplicationState) -> SubmissionReceipt | None:
    match state:
        case Draft():
            return None
        case (
            Submitted(receipt=r) | PendingReview(receipt=r) | InReview(receipt=r)
            | Approved(receipt=r) | Declined(receipt=r) | Issued(receipt=r)
            | Cancelled(receipt=r)
        ):
            return r
        case _:
            assert_never(state)
