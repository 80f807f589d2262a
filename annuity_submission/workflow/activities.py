"""Activity implementations for the annuity submission workflow.

Activities are thin IO wrappers around the state machine and the status
reconciler. The gateway, the store and the reconciliation log are injected
once, when the worker builds SubmissionActivities.

Each activity:
- Is an @activity.defn method on SubmissionActivities
- Takes a single input (a ref or a frozen dataclass)
- Returns a frozen-dataclass output with an optional error field
- Is safe to re-run, except submit_application, which the workflow
  never retries
"""

from __future__ import annotations

from temporalio import activity

from annuity_submission.core.errors import GatewayTimeoutError
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import Clock, IdempotencyKey, system_clock
from annuity_submission.gateway.protocol import CarrierGateway
from annuity_submission.infra.config import FeatureFlags
from annuity_submission.infra.protocols import ApplicationStore, ReconciliationLog
from annuity_submission.lifecycle.machine import AdvanceOutcome, ApplicationStateMachine
from annuity_submission.lifecycle.reconciler import StatusReconciler
from annuity_submission.model.application import Application
from annuity_submission.validation.application import validate_application
from annuity_submission.workflow.types import (
    ApplySnapshotInput,
    CancelInput,
    StatusOutput,
    SubmitInput,
    SubmitOutput,
    ValidationOutput,
)


def _status_output(
    result: Ok[AdvanceOutcome] | Err[object], fallback: Application,
) -> StatusOutput:
    match result:
        case Ok(outcome):
            return StatusOutput(
                status=outcome.application.status,
                changed=outcome.changed,
                notes=getattr(outcome.application.state, "notes", None),
            )
        case Err(e):
            return StatusOutput(status=fallback.status, error=getattr(e, "message", str(e)))


class SubmissionActivities:
    def __init__(
        self,
        gateway: CarrierGateway,
        store: ApplicationStore,
        reconciliation_log: ReconciliationLog,
        *,
        features: FeatureFlags = FeatureFlags(),
        clock: Clock = system_clock,
    ) -> None:
        self._store = store
        self._features = features
        self._clock = clock
        self._machine = ApplicationStateMachine(
            gateway, store, reconciliation_log, features=features, clock=clock,
        )
        self._reconciler = StatusReconciler(self._machine, store, gateway, clock=clock)

    # -------------------------------------------------------------------
    # 1. validate_application
    # -------------------------------------------------------------------

    @activity.defn(name="validate_application")
    async def validate_application(self, application_ref: str) -> ValidationOutput:
        """Run every validator against the stored application.

        Retries: 3 | Idempotent: yes (reads only)
        """
        activity.logger.info("Validating application %s", application_ref)
        match self._store.get(application_ref):
            case Err(e):
                return ValidationOutput(error=e.message)
            case Ok(app):
                pass
        report = validate_application(
            app, as_of=self._clock().value.date(), features=self._features,
        )
        return ValidationOutput(violations=report.errors, warnings=report.warnings)

    # -------------------------------------------------------------------
    # 2. submit_application
    # -------------------------------------------------------------------

    @activity.defn(name="submit_application")
    async def submit_application(self, inp: SubmitInput) -> SubmitOutput:
        """DRAFT -> SUBMITTED through the carrier gateway.

        Retries: 1 (never retried: a repeated create may duplicate the
        application at the carrier). Timeouts come back as
        requires_reconciliation.
        """
        activity.logger.info("Submitting application %s", inp.application_ref)
        match self._store.get(inp.application_ref):
            case Err(e):
                return SubmitOutput(error=e.message, error_code=e.code)
            case Ok(app):
                pass
        submitted = await self._machine.submit(
            app, idempotency_key=IdempotencyKey(value=inp.idempotency_key),
        )
        match submitted:
            case Ok(outcome):
                receipt = outcome.application.receipt
                assert receipt is not None  # Submitted always carries one
                return SubmitOutput(
                    receipt=receipt,
                    warnings=outcome.warnings,
                    simulated=outcome.simulated,
                )
            case Err(GatewayTimeoutError() as timeout):
                activity.logger.warning(
                    "Submission of %s timed out; outcome unknown", inp.application_ref,
                )
                return SubmitOutput(
                    error=timeout.message,
                    error_code=timeout.code,
                    requires_reconciliation=timeout.outcome_unknown,
                )
            case Err(e):
                return SubmitOutput(error=e.message, error_code=e.code)

    # -------------------------------------------------------------------
    # 3. poll_status
    # -------------------------------------------------------------------

    @activity.defn(name="poll_status")
    async def poll_status(self, application_ref: str) -> StatusOutput:
        """Pull the carrier status and fold it into the store.

        Retries: 3 | Idempotent: yes (duplicate reports are no-ops)
        """
        activity.logger.info("Polling carrier status for %s", application_ref)
        match self._store.get(application_ref):
            case Err(e):
                raise RuntimeError(f"cannot load {application_ref}: {e.message}")
            case Ok(app):
                pass
        return _status_output(await self._reconciler.poll(application_ref), app)

    # -------------------------------------------------------------------
    # 4. apply_status_report
    # -------------------------------------------------------------------

    @activity.defn(name="apply_status_report")
    async def apply_status_report(self, inp: ApplySnapshotInput) -> StatusOutput:
        """Fold a pushed (webhook) report into the store.

        Retries: 3 | Idempotent: yes
        """
        activity.logger.info(
            "Applying %s report for %s", inp.snapshot.status.value, inp.application_ref,
        )
        match self._store.get(inp.application_ref):
            case Err(e):
                raise RuntimeError(f"cannot load {inp.application_ref}: {e.message}")
            case Ok(app):
                pass
        result = await self._reconciler.apply_snapshot(inp.application_ref, inp.snapshot)
        return _status_output(result, app)

    # -------------------------------------------------------------------
    # 5. cancel_application
    # -------------------------------------------------------------------

    @activity.defn(name="cancel_application")
    async def cancel_application(self, inp: CancelInput) -> StatusOutput:
        """Any non-terminal state -> CANCELLED.

        Retries: 3 | Idempotent: yes (an already cancelled app is reported as such)
        """
        activity.logger.info("Cancelling application %s", inp.application_ref)
        match self._store.get(inp.application_ref):
            case Err(e):
                raise RuntimeError(f"cannot load {inp.application_ref}: {e.message}")
            case Ok(app):
                pass
        match self._machine.cancel(app, reason=inp.reason):
            case Ok(cancelled):
                return StatusOutput(status=cancelled.status, changed=True, notes=inp.reason)
            case Err(e):
                return StatusOutput(status=app.status, error=e.message)
