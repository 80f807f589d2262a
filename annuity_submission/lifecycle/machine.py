"""ApplicationStateMachine — the only component that changes Application.state.

  create_draft  store a new DRAFT
  amend_draft   edit a DRAFT (the record is mutable until submission)
  submit        DRAFT -> SUBMITTED via the carrier gateway
  advance       fold a carrier status report into the state
  cancel        any non-terminal state -> CANCELLED

Every write is a compare-and-swap on Application.version. submit re-runs
every validator on the normalized parties; nothing is cached between drafts.

Failure semantics of submit:
  validation failure      DRAFT unchanged, nothing sent
  GatewayError            DRAFT unchanged, error returned
  timeout / cancellation  DRAFT unchanged, ReconciliationEntry recorded,
                          further submits refused until it is resolved
Cancelling the submit call never cancels the application.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, final

from annuity_submission.core.errors import (
    GatewayError,
    GatewayTimeoutError,
    IllegalTransitionError,
    InconsistentStatusError,
    PersistenceError,
    ValidationError,
    ValidationWarning,
)
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import Clock, IdempotencyKey, system_clock
from annuity_submission.gateway.protocol import CarrierGateway
from annuity_submission.gateway.types import CreateApplicationResult
from annuity_submission.infra.config import FeatureFlags
from annuity_submission.infra.protocols import ApplicationStore, ReconciliationLog
from annuity_submission.lifecycle.transitions import (
    ReportDisposition,
    check_transition,
    classify_report,
)
from annuity_submission.model.application import Application
from annuity_submission.model.reconciliation import ReconciliationEntry, ReconciliationReason
from annuity_submission.model.snapshot import CarrierStatusSnapshot
from annuity_submission.model.state import (
    ApplicationState,
    Approved,
    Cancelled,
    Declined,
    InReview,
    Issued,
    PendingReview,
    SubmissionReceipt,
    Submitted,
)
from annuity_submission.model.status import ApplicationStatus
from annuity_submission.validation.application import check_submittable, normalize_application
from annuity_submission.validation.report import violation

logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = frozenset({"application_ref", "created_at", "state", "version"})

type SubmitFailure = (
    ValidationError | IllegalTransitionError | GatewayError | GatewayTimeoutError
    | PersistenceError
)


@final
@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    """A SUBMITTED application plus every warning raised on the way."""

    application: Application
    warnings: tuple[ValidationWarning, ...]
    simulated: bool


@final
@dataclass(frozen=True, slots=True)
class AdvanceOutcome:
    application: Application
    disposition: ReportDisposition
    previous_status: ApplicationStatus

    @property
    def changed(self) -> bool:
        return self.disposition == ReportDisposition.APPLY


def merge_warnings(
    *groups: tuple[ValidationWarning, ...],
) -> tuple[ValidationWarning, ...]:
    """Concatenate, dropping repeats of the same message."""
    seen: set[str] = set()
    merged: list[ValidationWarning] = []
    for group in groups:
        for w in group:
            if w.message not in seen:
                seen.add(w.message)
                merged.append(w)
    return tuple(merged)


class ApplicationStateMachine:
    def __init__(
        self,
        gateway: CarrierGateway,
        store: ApplicationStore,
        reconciliation_log: ReconciliationLog,
        *,
        features: FeatureFlags = FeatureFlags(),
        clock: Clock = system_clock,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._log = reconciliation_log
        self._features = features
        self._clock = clock

    # -- helpers ----------------------------------------------------------

    def _illegal(
        self, app: Application, to_state: ApplicationStatus, operation: str,
        message: str | None = None, code: str = "ILLEGAL_TRANSITION",
    ) -> Err[IllegalTransitionError]:
        return Err(IllegalTransitionError(
            message=message or (
                f"{operation} not allowed from {app.status.value} "
                f"({app.application_ref})"
            ),
            code=code,
            timestamp=self._clock(),
            source=f"lifecycle.machine.ApplicationStateMachine.{operation}",
            from_state=app.status.value,
            to_state=to_state.value,
        ))

    def _save(
        self, previous: Application, state: ApplicationState,
    ) -> Ok[Application] | Err[PersistenceError]:
        updated = dataclasses.replace(previous, state=state, version=previous.version + 1)
        match self._store.put(updated, expected_version=previous.version):
            case Err(e):
                return Err(e)
            case Ok(_):
                return Ok(updated)

    def _record_unknown_outcome(
        self,
        app: Application,
        key: IdempotencyKey,
        reason: ReconciliationReason,
        detail: str,
    ) -> None:
        now = self._clock()
        entry = ReconciliationEntry(
            entry_id=f"{app.application_ref}:{key.value}:{now.isoformat()}",
            application_ref=app.application_ref,
            idempotency_key=key,
            operation="createApplication",
            reason=reason,
            detail=detail,
            recorded_at=now,
        )
        match self._log.record(entry):
            case Err(e):
                logger.error(
                    "Could not record reconciliation entry for %s: %s",
                    app.application_ref, e.message,
                )
            case Ok(_):
                logger.warning(
                    "Submission of %s needs manual reconciliation (%s): %s",
                    app.application_ref, reason.value, detail,
                )

    def _bad_amendment(
        self, detail: str, names: list[str], changes: dict[str, Any],
    ) -> ValidationError:
        return ValidationError(
            message=f"Invalid amendment: {detail}",
            code="INVALID_AMENDMENT",
            timestamp=self._clock(),
            source="lifecycle.machine.ApplicationStateMachine.amend_draft",
            fields=tuple(violation(name, "not amendable", changes[name]) for name in names),
        )

    # -- operations -------------------------------------------------------

    def create_draft(self, app: Application) -> Ok[Application] | Err[
        IllegalTransitionError | PersistenceError
    ]:
        if app.status != ApplicationStatus.DRAFT:
            return self._illegal(app, ApplicationStatus.DRAFT, "create_draft")
        match self._store.put(app, expected_version=None):
            case Err(e):
                return Err(e)
            case Ok(_):
                logger.info("Draft %s created", app.application_ref)
                return Ok(app)

    def amend_draft(
        self, app: Application, **changes: Any,
    ) -> Ok[Application] | Err[IllegalTransitionError | ValidationError | PersistenceError]:
        if app.status != ApplicationStatus.DRAFT:
            return self._illegal(
                app, app.status, "amend_draft",
                message=f"{app.application_ref} is {app.status.value}; only a DRAFT can change",
            )
        forbidden = sorted(set(changes) & _IMMUTABLE_FIELDS)
        if forbidden:
            return Err(self._bad_amendment(
                f"cannot amend {', '.join(forbidden)}", forbidden, changes,
            ))
        try:
            updated = dataclasses.replace(app, **changes, version=app.version + 1)
        except TypeError as e:
            return Err(self._bad_amendment(str(e), sorted(changes), changes))
        match self._store.put(updated, expected_version=app.version):
            case Err(e):
                return Err(e)
            case Ok(_):
                return Ok(updated)

    async def submit(
        self, app: Application, *, idempotency_key: IdempotencyKey,
    ) -> Ok[SubmissionOutcome] | Err[SubmitFailure]:
        if app.status != ApplicationStatus.DRAFT:
            return self._illegal(app, ApplicationStatus.SUBMITTED, "submit")

        match self._log.open_entries(app.application_ref):
            case Err(e):
                return Err(e)
            case Ok(entries) if entries:
                return self._illegal(
                    app, ApplicationStatus.SUBMITTED, "submit",
                    message=(
                        f"{app.application_ref} has {len(entries)} unresolved "
                        "reconciliation entr(ies); resolve before resubmitting"
                    ),
                    code="RECONCILIATION_PENDING",
                )
            case Ok(_):
                pass

        # Validated, sent and stored in canonical form.
        app = normalize_application(app)
        match check_submittable(
            app, as_of=self._clock().value.date(), features=self._features,
        ):
            case Err(e):
                logger.info(
                    "Submission of %s blocked by %d validation error(s)",
                    app.application_ref, len(e.fields),
                )
                return Err(e)
            case Ok(local_warnings):
                pass

        try:
            created = await self._gateway.create_application(
                app, idempotency_key=idempotency_key.value,
            )
        except asyncio.CancelledError:
            self._record_unknown_outcome(
                app, idempotency_key, ReconciliationReason.CANCELLED,
                "create_application cancelled in flight",
            )
            raise

        match created:
            case Err(GatewayTimeoutError() as timeout):
                self._record_unknown_outcome(
                    app, idempotency_key, ReconciliationReason.TIMEOUT, timeout.message,
                )
                return Err(timeout)
            case Err(GatewayError() as error):
                logger.warning(
                    "Carrier rejected %s: %s %s",
                    app.application_ref, error.message, list(error.details),
                )
                return Err(error)
            case Ok(result):
                return self._accept(app, idempotency_key, result, local_warnings)

    def _accept(
        self,
        app: Application,
        key: IdempotencyKey,
        result: CreateApplicationResult,
        local_warnings: tuple[ValidationWarning, ...],
    ) -> Ok[SubmissionOutcome] | Err[PersistenceError]:
        receipt = SubmissionReceipt(
            application_id=result.application_id,
            confirmation_number=result.confirmation_number,
            submitted_at=result.created_at,
            idempotency_key=key,
            dtcc_reference=result.dtcc_reference if self._features.dtcc_integration else None,
        )
        match self._save(app, Submitted(receipt=receipt)):
            case Err(e):
                self._record_unknown_outcome(
                    app, key, ReconciliationReason.PERSISTENCE_FAILED,
                    f"carrier accepted as {result.application_id} but save failed: {e.message}",
                )
                return Err(e)
            case Ok(submitted):
                logger.info(
                    "%s submitted as %s (confirmation %s)",
                    app.application_ref, receipt.application_id, receipt.confirmation_number,
                )
                return Ok(SubmissionOutcome(
                    application=submitted,
                    warnings=merge_warnings(local_warnings, result.warnings),
                    simulated=result.simulated,
                ))

    def advance(
        self, app: Application, snapshot: CarrierStatusSnapshot,
    ) -> Ok[AdvanceOutcome] | Err[InconsistentStatusError | PersistenceError]:
        """Fold one carrier report into the application. Driven by the reconciler."""
        disposition = classify_report(app.status, snapshot.status)
        match disposition:
            case ReportDisposition.DUPLICATE | ReportDisposition.STALE:
                logger.debug(
                    "%s: %s report %s ignored (current %s)",
                    app.application_ref, disposition.value.lower(),
                    snapshot.status.value, app.status.value,
                )
                return Ok(AdvanceOutcome(app, disposition, app.status))
            case ReportDisposition.INCONSISTENT:
                return Err(self._inconsistent(app, snapshot, "not a legal forward transition"))
            case ReportDisposition.APPLY:
                pass

        state = self._state_for(app, snapshot)
        if isinstance(state, InconsistentStatusError):
            return Err(state)
        match self._save(app, state):
            case Err(e):
                return Err(e)
            case Ok(updated):
                logger.info(
                    "%s advanced %s -> %s",
                    app.application_ref, app.status.value, updated.status.value,
                )
                return Ok(AdvanceOutcome(updated, disposition, app.status))

    def _inconsistent(
        self, app: Application, snapshot: CarrierStatusSnapshot, reason: str,
    ) -> InconsistentStatusError:
        logger.warning(
            "Inconsistent carrier status for %s: %s reported while %s (%s)",
            app.application_ref, snapshot.status.value, app.status.value, reason,
        )
        return InconsistentStatusError(
            message=(
                f"Carrier reported {snapshot.status.value} for {app.application_ref} "
                f"while {app.status.value}: {reason}"
            ),
            code="INCONSISTENT_STATUS",
            timestamp=self._clock(),
            source="lifecycle.machine.ApplicationStateMachine.advance",
            application_id=snapshot.application_id,
            current_status=app.status.value,
            reported_status=snapshot.status.value,
        )

    def _state_for(
        self, app: Application, snapshot: CarrierStatusSnapshot,
    ) -> ApplicationState | InconsistentStatusError:
        receipt = app.receipt
        if receipt is None:
            return self._inconsistent(app, snapshot, "application was never submitted")
        if snapshot.application_id != receipt.application_id:
            return self._inconsistent(
                app, snapshot, f"report is for carrier id {snapshot.application_id}",
            )
        at = snapshot.status_date
        match snapshot.status:
            case ApplicationStatus.PENDING_REVIEW:
                return PendingReview(receipt=receipt, updated_at=at, notes=snapshot.notes)
            case ApplicationStatus.IN_REVIEW:
                return InReview(receipt=receipt, updated_at=at, notes=snapshot.notes)
            case ApplicationStatus.APPROVED:
                return Approved(receipt=receipt, updated_at=at, notes=snapshot.notes)
            case ApplicationStatus.DECLINED:
                return Declined(receipt=receipt, updated_at=at, reason=snapshot.notes)
            case ApplicationStatus.ISSUED:
                if snapshot.contract is None:
                    return self._inconsistent(app, snapshot, "ISSUED without contract details")
                return Issued(receipt=receipt, updated_at=at, contract=snapshot.contract)
            case ApplicationStatus.CANCELLED:
                return Cancelled(
                    cancelled_from=app.status,
                    cancelled_at=at,
                    reason=snapshot.notes or "Cancelled by carrier",
                    receipt=receipt,
                )
            case ApplicationStatus.DRAFT | ApplicationStatus.SUBMITTED:
                return self._inconsistent(app, snapshot, "carrier cannot report this status")

    def cancel(
        self, app: Application, *, reason: str,
    ) -> Ok[Application] | Err[IllegalTransitionError | PersistenceError]:
        match check_transition(app.status, ApplicationStatus.CANCELLED):
            case Err(_):
                return self._illegal(app, ApplicationStatus.CANCELLED, "cancel")
            case Ok(_):
                pass
        state = Cancelled(
            cancelled_from=app.status,
            cancelled_at=self._clock(),
            reason=reason,
            receipt=app.receipt,
        )
        match self._save(app, state):
            case Err(e):
                return Err(e)
            case Ok(cancelled):
                logger.info(
                    "%s cancelled from %s: %s", app.application_ref, app.status.value, reason,
                )
                return Ok(cancelled)

    def resolve_reconciliation(
        self, entry_id: str, *, resolution: str,
    ) -> Ok[ReconciliationEntry] | Err[PersistenceError]:
        """Close an unknown-outcome entry once the carrier side has been checked."""
        match self._log.resolve(entry_id, resolution=resolution, resolved_at=self._clock()):
            case Err(e):
                return Err(e)
            case Ok(entry):
                logger.info("Reconciliation %s resolved: %s", entry_id, resolution)
                return Ok(entry)
