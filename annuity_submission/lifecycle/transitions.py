"""Application lifecycle transition table and report classification.

  DRAFT -> SUBMITTED -> PENDING_REVIEW -> IN_REVIEW -> {APPROVED, DECLINED}
  APPROVED -> ISSUED
  {DRAFT, SUBMITTED, PENDING_REVIEW, IN_REVIEW, APPROVED} -> CANCELLED

classify_report decides what an externally reported status means for the
current one. It is pure and clock-free, so workflow code can call it.
"""

from __future__ import annotations

from enum import Enum

from annuity_submission.core.errors import IllegalTransitionError
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import UtcDatetime
from annuity_submission.model.status import ApplicationStatus

type TransitionTable = frozenset[tuple[ApplicationStatus, ApplicationStatus]]

_S = ApplicationStatus

TRANSITIONS: TransitionTable = frozenset({
    (_S.DRAFT, _S.SUBMITTED),
    (_S.SUBMITTED, _S.PENDING_REVIEW),
    (_S.PENDING_REVIEW, _S.IN_REVIEW),
    (_S.IN_REVIEW, _S.APPROVED),
    (_S.IN_REVIEW, _S.DECLINED),
    (_S.APPROVED, _S.ISSUED),
    (_S.DRAFT, _S.CANCELLED),
    (_S.SUBMITTED, _S.CANCELLED),
    (_S.PENDING_REVIEW, _S.CANCELLED),
    (_S.IN_REVIEW, _S.CANCELLED),
    (_S.APPROVED, _S.CANCELLED),
})


def check_transition(
    from_state: ApplicationStatus,
    to_state: ApplicationStatus,
    transitions: TransitionTable = TRANSITIONS,
) -> Ok[None] | Err[IllegalTransitionError]:
    """Validate a single edge against the transition table."""
    if (from_state, to_state) in transitions:
        return Ok(None)
    return Err(IllegalTransitionError(
        message=f"Invalid transition: {from_state.value} -> {to_state.value}",
        code="ILLEGAL_TRANSITION",
        timestamp=UtcDatetime.now(),
        source="lifecycle.transitions.check_transition",
        from_state=from_state.value,
        to_state=to_state.value,
    ))


def reachable(
    from_state: ApplicationStatus,
    to_state: ApplicationStatus,
    transitions: TransitionTable = TRANSITIONS,
) -> bool:
    """True when to_state lies on a forward path from from_state.

    CANCELLED edges are not followed through: cancellation is only ever a
    direct edge.
    """
    frontier = [from_state]
    seen: set[ApplicationStatus] = set()
    while frontier:
        current = frontier.pop()
        for src, dst in transitions:
            if src != current or dst in seen:
                continue
            if dst == to_state:
                return True
            if dst != ApplicationStatus.CANCELLED:
                seen.add(dst)
                frontier.append(dst)
    return False


class ReportDisposition(Enum):
    APPLY = "APPLY"  # legal forward move
    DUPLICATE = "DUPLICATE"  # same status redelivered; silent success
    STALE = "STALE"  # behind the current status; discarded
    INCONSISTENT = "INCONSISTENT"  # cannot follow the current status; rejected


def classify_report(
    current: ApplicationStatus, reported: ApplicationStatus,
) -> ReportDisposition:
    if reported == current:
        return ReportDisposition.DUPLICATE
    if current == ApplicationStatus.CANCELLED:
        return ReportDisposition.STALE
    if current == ApplicationStatus.DRAFT:
        # Only submit leaves DRAFT; a carrier report here is a jump.
        return ReportDisposition.INCONSISTENT
    if reported == ApplicationStatus.CANCELLED:
        if current.is_terminal:
            return ReportDisposition.INCONSISTENT
        return ReportDisposition.APPLY
    current_rank = current.rank
    reported_rank = reported.rank
    if current_rank is not None and reported_rank is not None and reported_rank < current_rank:
        return ReportDisposition.STALE
    if not current.is_terminal and reachable(current, reported):
        return ReportDisposition.APPLY
    return ReportDisposition.INCONSISTENT
