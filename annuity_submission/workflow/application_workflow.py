"""Durable workflow for one annuity application.

Steps: validate -> submit (once) -> (wait for report | poll) x N -> terminal.

Reports pushed through the carrier_status signal and reports pulled by the
poll activity are both folded with classify_report: duplicates and stale
reports are dropped here, inconsistent ones are recorded and ignored, and
only forward moves reach the apply activity. The workflow id is the
application_ref, so each application has exactly one mailbox.

Determinism contract: this module contains NO I/O, NO randomness,
NO system clock access, NO mutable globals. All external interaction is
delegated to activities.
"""

from __future__ import annotations

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError

with workflow.unsafe.imports_passed_through():
    from annuity_submission.core.errors import ValidationWarning
    from annuity_submission.lifecycle.transitions import ReportDisposition, classify_report
    from annuity_submission.model.snapshot import CarrierStatusSnapshot
    from annuity_submission.model.state import SubmissionReceipt
    from annuity_submission.model.status import ApplicationStatus
    from annuity_submission.workflow.activities import SubmissionActivities
    from annuity_submission.workflow.types import (
        ApplicationOutcome,
        ApplicationResult,
        ApplySnapshotInput,
        CancelInput,
        StatusOutput,
        SubmissionRequest,
        SubmitInput,
    )

# -- Retry policies --

VALIDATION_RETRY = RetryPolicy(
    initial_interval=timedelta(seconds=1),
    backoff_coefficient=2.0,
    maximum_interval=timedelta(seconds=10),
    maximum_attempts=3,
)

# createApplication is never retried blindly.
SUBMIT_RETRY = RetryPolicy(maximum_attempts=1)

STATUS_RETRY = RetryPolicy(
    initial_interval=timedelta(seconds=2),
    backoff_coefficient=2.0,
    maximum_interval=timedelta(seconds=60),
    maximum_attempts=3,
)

ACTIVITY_TIMEOUT = timedelta(seconds=60)


@workflow.defn(name="AnnuityApplicationSubmission")
class AnnuityApplicationWorkflow:
    """One application from DRAFT to a terminal state.

    Invariants maintained:
    - submit_application runs at most once per workflow
    - the tracked status only moves along the transition graph
    - every run ends with exactly one ApplicationOutcome
    """

    def __init__(self) -> None:
        self._status = ApplicationStatus.DRAFT
        self._phase = "RECEIVED"
        self._reports: list[CarrierStatusSnapshot] = []
        self._rejected: list[str] = []
        self._cancel_reason: str | None = None
        self._receipt: SubmissionReceipt | None = None
        self._warnings: tuple[ValidationWarning, ...] = ()

    # -- Signals --

    @workflow.signal
    async def carrier_status(self, snapshot: CarrierStatusSnapshot) -> None:
        """A status report pushed by the carrier (webhook)."""
        self._reports.append(snapshot)

    @workflow.signal
    async def cancel(self, reason: str) -> None:
        if self._cancel_reason is None:
            self._cancel_reason = reason or "Cancelled by request"

    # -- Queries --

    @workflow.query
    def get_status(self) -> str:
        return self._status.value

    @workflow.query
    def get_phase(self) -> str:
        return self._phase

    @workflow.query
    def get_warnings(self) -> tuple[ValidationWarning, ...]:
        return self._warnings

    # -- Helpers --

    def _result(
        self, request: SubmissionRequest, outcome: ApplicationOutcome,
        reasons: tuple[str, ...] = (),
    ) -> ApplicationResult:
        self._phase = "COMPLETED"
        receipt = self._receipt
        return ApplicationResult(
            application_ref=request.application_ref,
            outcome=outcome,
            final_status=self._status,
            application_id=receipt.application_id if receipt else None,
            confirmation_number=receipt.confirmation_number if receipt else None,
            warnings=self._warnings,
            reasons=reasons,
            rejected_reports=tuple(self._rejected),
        )

    def _track(self, output: StatusOutput) -> None:
        if output.error is not None:
            workflow.logger.warning("Status update failed: %s", output.error)
        self._status = output.status

    async def _cancel(self, request: SubmissionRequest) -> ApplicationResult:
        assert self._cancel_reason is not None
        self._phase = "CANCELLING"
        output = await workflow.execute_activity_method(
            SubmissionActivities.cancel_application,
            CancelInput(application_ref=request.application_ref, reason=self._cancel_reason),
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=STATUS_RETRY,
        )
        self._track(output)
        if self._status == ApplicationStatus.CANCELLED:
            return self._result(request, ApplicationOutcome.CANCELLED, (self._cancel_reason,))
        # The carrier reached a terminal state first.
        return self._finished(request)

    def _finished(self, request: SubmissionRequest) -> ApplicationResult:
        match self._status:
            case ApplicationStatus.ISSUED:
                return self._result(request, ApplicationOutcome.ISSUED)
            case ApplicationStatus.DECLINED:
                return self._result(request, ApplicationOutcome.DECLINED)
            case _:
                return self._result(request, ApplicationOutcome.CANCELLED)

    async def _fold(self, request: SubmissionRequest, snapshot: CarrierStatusSnapshot) -> None:
        match classify_report(self._status, snapshot.status):
            case ReportDisposition.DUPLICATE | ReportDisposition.STALE:
                return
            case ReportDisposition.INCONSISTENT:
                self._rejected.append(
                    f"{snapshot.status.value} reported while {self._status.value}",
                )
                return
            case ReportDisposition.APPLY:
                output = await workflow.execute_activity_method(
                    SubmissionActivities.apply_status_report,
                    ApplySnapshotInput(
                        application_ref=request.application_ref, snapshot=snapshot,
                    ),
                    start_to_close_timeout=ACTIVITY_TIMEOUT,
                    retry_policy=STATUS_RETRY,
                )
                self._track(output)

    # -- Main workflow --

    @workflow.run
    async def run(self, request: SubmissionRequest) -> ApplicationResult:
        # --- Step 1: Validate ---
        self._phase = "VALIDATING"
        validation = await workflow.execute_activity_method(
            SubmissionActivities.validate_application,
            request.application_ref,
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=VALIDATION_RETRY,
        )
        self._warnings = validation.warnings
        if not validation.passed:
            return self._result(
                request, ApplicationOutcome.REJECTED_VALIDATION, validation.rejection_reasons,
            )
        if self._cancel_reason is not None:
            return await self._cancel(request)

        # --- Step 2: Submit (exactly once) ---
        self._phase = "SUBMITTING"
        try:
            submitted = await workflow.execute_activity_method(
                SubmissionActivities.submit_application,
                SubmitInput(
                    application_ref=request.application_ref,
                    idempotency_key=request.idempotency_key,
                ),
                start_to_close_timeout=ACTIVITY_TIMEOUT,
                retry_policy=SUBMIT_RETRY,
            )
        except ActivityError as exc:
            # The activity itself was lost; the carrier may hold the application.
            return self._result(
                request, ApplicationOutcome.RECONCILIATION_REQUIRED, (str(exc.cause or exc),),
            )
        if submitted.receipt is None:
            outcome = (
                ApplicationOutcome.RECONCILIATION_REQUIRED
                if submitted.requires_reconciliation
                else ApplicationOutcome.SUBMISSION_FAILED
            )
            return self._result(request, outcome, (submitted.error or "submission failed",))
        self._receipt = submitted.receipt
        self._warnings = submitted.warnings
        self._status = ApplicationStatus.SUBMITTED

        # --- Step 3: Follow the carrier until terminal ---
        self._phase = "MONITORING"
        polls = 0
        while not self._status.is_terminal:
            if self._cancel_reason is not None:
                return await self._cancel(request)
            try:
                await workflow.wait_condition(
                    lambda: bool(self._reports) or self._cancel_reason is not None,
                    timeout=timedelta(seconds=request.poll_interval_s),
                )
            except TimeoutError:
                if polls >= request.max_polls:
                    return self._result(
                        request, ApplicationOutcome.MONITORING_EXPIRED,
                        (f"No terminal status after {polls} polls",),
                    )
                polls += 1
                output = await workflow.execute_activity_method(
                    SubmissionActivities.poll_status,
                    request.application_ref,
                    start_to_close_timeout=ACTIVITY_TIMEOUT,
                    retry_policy=STATUS_RETRY,
                )
                self._track(output)
                continue
            while self._reports and not self._status.is_terminal:
                await self._fold(request, self._reports.pop(0))
            self._reports.clear()

        return self._finished(request)
