"""Application status — the flat wire enumeration and its ordering.

The carrier gateway reports statuses as these strings. Locally the
lifecycle is held as the tagged ApplicationState union (model.state);
this enum is the discriminator both sides agree on.

Monotonic ordering:
  DRAFT < SUBMITTED < PENDING_REVIEW < IN_REVIEW < {APPROVED, DECLINED} < ISSUED
CANCELLED has no rank: it short-circuits from any non-terminal state.
"""

from __future__ import annotations

from enum import Enum


class ApplicationStatus(Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    PENDING_REVIEW = "PENDING_REVIEW"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"
    ISSUED = "ISSUED"
    CANCELLED = "CANCELLED"

    @property
    def rank(self) -> int | None:
        """Position in the monotonic ordering; None for CANCELLED."""
        return _RANK.get(self)

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


_RANK: dict[ApplicationStatus, int] = {
    ApplicationStatus.DRAFT: 0,
    ApplicationStatus.SUBMITTED: 1,
    ApplicationStatus.PENDING_REVIEW: 2,
    ApplicationStatus.IN_REVIEW: 3,
    ApplicationStatus.APPROVED: 4,
    ApplicationStatus.DECLINED: 4,
    ApplicationStatus.ISSUED: 5,
}

TERMINAL_STATUSES: frozenset[ApplicationStatus] = frozenset({
    ApplicationStatus.DECLINED,
    ApplicationStatus.ISSUED,
    ApplicationStatus.CANCELLED,
})

# States in which the application has been accepted by the carrier and is
# still live. E-signature and 1035 submission are gated on this set.
ACTIVE_SUBMITTED_STATUSES: frozenset[ApplicationStatus] = frozenset({
    ApplicationStatus.SUBMITTED,
    ApplicationStatus.PENDING_REVIEW,
    ApplicationStatus.IN_REVIEW,
    ApplicationStatus.APPROVED,
})


def parse_status(raw: object) -> ApplicationStatus | None:
    """Map a wire value to ApplicationStatus, case-insensitively."""
    if not isinstance(raw, str):
        return None
    try:
        return ApplicationStatus(raw.strip().upper())
    except ValueError:
        return None
