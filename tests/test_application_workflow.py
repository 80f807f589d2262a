"""Integration tests for AnnuityApplicationWorkflow.

Uses Temporal's time-skipping test environment -- no real server needed.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import pytest
from temporalio import activity
from temporalio.client import WorkflowHandle
from temporalio.testing import WorkflowEnvironment
from temporalio.worker import Worker

from annuity_submission.core.errors import FieldViolation, ValidationWarning
from annuity_submission.core.result import unwrap
from annuity_submission.core.types import IdempotencyKey, UtcDatetime
from annuity_submission.gateway.simulation import SimulationGateway
from annuity_submission.infra.memory_adapter import (
    InMemoryApplicationStore,
    InMemoryReconciliationLog,
)
from annuity_submission.model.application import Application
from annuity_submission.model.snapshot import CarrierStatusSnapshot, IssuedContract
from annuity_submission.model.state import SubmissionReceipt
from annuity_submission.model.status import ApplicationStatus
from annuity_submission.workflow.activities import SubmissionActivities
from annuity_submission.workflow.application_workflow import AnnuityApplicationWorkflow
from annuity_submission.workflow.converter import SUBMISSION_DATA_CONVERTER
from annuity_submission.workflow.types import (
    ApplicationOutcome,
    ApplicationResult,
    ApplySnapshotInput,
    CancelInput,
    StatusOutput,
    SubmissionRequest,
    SubmitInput,
    SubmitOutput,
    ValidationOutput,
)
from annuity_submission.workflow.worker import build_worker

# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------

_NOW = UtcDatetime(value=datetime(2025, 6, 15, 12, 0, tzinfo=UTC))
_APP_ID = "FL-2025-0001"

TASK_QUEUE = "test-annuity"


async def _start_env() -> WorkflowEnvironment:
    """Start a time-skipping Temporal test environment with the submission converter."""
    return await WorkflowEnvironment.start_time_skipping(
        data_converter=SUBMISSION_DATA_CONVERTER,
    )


def _request(ref: str, **kwargs: int) -> SubmissionRequest:
    return SubmissionRequest(
        application_ref=ref, idempotency_key=f"idem-{ref}", poll_interval_s=60, **kwargs,
    )


def _receipt() -> SubmissionReceipt:
    return SubmissionReceipt(
        application_id=_APP_ID,
        confirmation_number="CONF-1",
        submitted_at=_NOW,
        idempotency_key=IdempotencyKey(value="idem"),
    )


async def _wait_for_phase(handle: WorkflowHandle[Any, Any], phase: str) -> None:
    for _ in range(50):
        if await handle.query(AnnuityApplicationWorkflow.get_phase) == phase:
            return
        await asyncio.sleep(0.1)
    pytest.fail(f"workflow never reached {phase}")


# ---------------------------------------------------------------------------
# Mock activities (override the real ones by name)
# ---------------------------------------------------------------------------


@activity.defn(name="validate_application")
async def mock_validate(application_ref: str) -> ValidationOutput:
    return ValidationOutput(warnings=(
        ValidationWarning(path="suitability", message="Review liquidity", code="W1"),
    ))


@activity.defn(name="validate_application")
async def mock_validate_fail(application_ref: str) -> ValidationOutput:
    return ValidationOutput(violations=(
        FieldViolation(
            path="annuitant.ssn", constraint="9 digits", actual_value="'12'",
        ),
    ))


@activity.defn(name="submit_application")
async def mock_submit(inp: SubmitInput) -> SubmitOutput:
    return SubmitOutput(receipt=_receipt())


@activity.defn(name="submit_application")
async def mock_submit_rejected(inp: SubmitInput) -> SubmitOutput:
    return SubmitOutput(error="Carrier rejected application", error_code="CARRIER_REJECTED")


@activity.defn(name="submit_application")
async def mock_submit_timeout(inp: SubmitInput) -> SubmitOutput:
    return SubmitOutput(
        error="createApplication timed out after 30.0s",
        error_code="GATEWAY_TIMEOUT",
        requires_reconciliation=True,
    )


@activity.defn(name="submit_application")
async def mock_submit_crash(inp: SubmitInput) -> SubmitOutput:
    raise RuntimeError("worker lost connection")


@activity.defn(name="poll_status")
async def mock_poll_issued(application_ref: str) -> StatusOutput:
    return StatusOutput(status=ApplicationStatus.ISSUED, changed=True)


@activity.defn(name="poll_status")
async def mock_poll_in_review(application_ref: str) -> StatusOutput:
    return StatusOutput(status=ApplicationStatus.IN_REVIEW)


@activity.defn(name="apply_status_report")
async def mock_apply(inp: ApplySnapshotInput) -> StatusOutput:
    return StatusOutput(status=inp.snapshot.status, changed=True)


@activity.defn(name="cancel_application")
async def mock_cancel(inp: CancelInput) -> StatusOutput:
    return StatusOutput(status=ApplicationStatus.CANCELLED, changed=True, notes=inp.reason)


# ---------------------------------------------------------------------------
# Activity sets
# ---------------------------------------------------------------------------

_HAPPY_ACTIVITIES = [mock_validate, mock_submit, mock_poll_issued, mock_apply, mock_cancel]

_WAITING_ACTIVITIES = [mock_validate, mock_submit, mock_poll_in_review, mock_apply, mock_cancel]

_INVALID_ACTIVITIES = [
    mock_validate_fail, mock_submit, mock_poll_issued, mock_apply, mock_cancel,
]

_REJECTED_ACTIVITIES = [
    mock_validate, mock_submit_rejected, mock_poll_issued, mock_apply, mock_cancel,
]

_TIMEOUT_ACTIVITIES = [
    mock_validate, mock_submit_timeout, mock_poll_issued, mock_apply, mock_cancel,
]

_CRASH_ACTIVITIES = [
    mock_validate, mock_submit_crash, mock_poll_issued, mock_apply, mock_cancel,
]


async def _execute(
    activities: Sequence[Callable[..., Any]], request: SubmissionRequest,
) -> ApplicationResult:
    async with await _start_env() as env:
        async with Worker(
            env.client, task_queue=TASK_QUEUE,
            workflows=[AnnuityApplicationWorkflow],
            activities=activities,
        ):
            return await env.client.execute_workflow(
                AnnuityApplicationWorkflow.run,
                request,
                id=request.application_ref,
                task_queue=TASK_QUEUE,
            )


# ---------------------------------------------------------------------------
# Tests: mocked activities
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_issued_by_poll() -> None:
    """Validate -> submit -> first poll reports ISSUED."""
    result = await _execute(_HAPPY_ACTIVITIES, _request("APP-HAPPY"))
    assert result.outcome == ApplicationOutcome.ISSUED
    assert result.final_status == ApplicationStatus.ISSUED
    assert result.application_id == _APP_ID
    assert result.confirmation_number == "CONF-1"


@pytest.mark.asyncio
async def test_validation_rejected() -> None:
    result = await _execute(_INVALID_ACTIVITIES, _request("APP-INVALID"))
    assert result.outcome == ApplicationOutcome.REJECTED_VALIDATION
    assert result.final_status == ApplicationStatus.DRAFT
    assert result.reasons == ("annuitant.ssn: 9 digits",)
    assert result.application_id is None


@pytest.mark.asyncio
async def test_carrier_rejection() -> None:
    result = await _execute(_REJECTED_ACTIVITIES, _request("APP-REJECT"))
    assert result.outcome == ApplicationOutcome.SUBMISSION_FAILED
    assert result.reasons == ("Carrier rejected application",)
    assert result.final_status == ApplicationStatus.DRAFT


@pytest.mark.asyncio
async def test_timeout_requires_reconciliation() -> None:
    result = await _execute(_TIMEOUT_ACTIVITIES, _request("APP-TIMEOUT"))
    assert result.outcome == ApplicationOutcome.RECONCILIATION_REQUIRED
    assert result.final_status == ApplicationStatus.DRAFT


@pytest.mark.asyncio
async def test_lost_submit_activity_not_retried() -> None:
    """A failed submit activity is never retried; the outcome is unknown."""
    result = await _execute(_CRASH_ACTIVITIES, _request("APP-CRASH"))
    assert result.outcome == ApplicationOutcome.RECONCILIATION_REQUIRED


@pytest.mark.asyncio
async def test_monitoring_expires() -> None:
    result = await _execute(_WAITING_ACTIVITIES, _request("APP-SLOW", max_polls=2))
    assert result.outcome == ApplicationOutcome.MONITORING_EXPIRED
    assert result.final_status == ApplicationStatus.IN_REVIEW
    assert result.reasons == ("No terminal status after 2 polls",)


@pytest.mark.asyncio
async def test_pushed_report() -> None:
    """A webhook report signalled in is applied without waiting for a poll."""
    async with await _start_env() as env:
        async with Worker(
            env.client, task_queue=TASK_QUEUE,
            workflows=[AnnuityApplicationWorkflow],
            activities=_WAITING_ACTIVITIES,
        ):
            handle = await env.client.start_workflow(
                AnnuityApplicationWorkflow.run,
                _request("APP-PUSH"),
                id="APP-PUSH",
                task_queue=TASK_QUEUE,
            )
            await _wait_for_phase(handle, "MONITORING")
            assert await handle.query(AnnuityApplicationWorkflow.get_status) == "SUBMITTED"
            # stale and backwards reports are dropped or recorded, never applied
            await handle.signal(
                AnnuityApplicationWorkflow.carrier_status,
                CarrierStatusSnapshot(
                    application_id=_APP_ID, status=ApplicationStatus.SUBMITTED,
                    status_date=_NOW,
                ),
            )
            await handle.signal(
                AnnuityApplicationWorkflow.carrier_status,
                CarrierStatusSnapshot(
                    application_id=_APP_ID, status=ApplicationStatus.APPROVED,
                    status_date=_NOW,
                ),
            )
            await handle.signal(
                AnnuityApplicationWorkflow.carrier_status,
                CarrierStatusSnapshot(
                    application_id=_APP_ID, status=ApplicationStatus.ISSUED,
                    status_date=_NOW,
                    contract=IssuedContract(contract_number="MYGA-1"),
                ),
            )
            result = await handle.result()
            assert result.outcome == ApplicationOutcome.ISSUED
            assert result.final_status == ApplicationStatus.ISSUED


@pytest.mark.asyncio
async def test_inconsistent_report_recorded() -> None:
    async with await _start_env() as env:
        async with Worker(
            env.client, task_queue=TASK_QUEUE,
            workflows=[AnnuityApplicationWorkflow],
            activities=_WAITING_ACTIVITIES,
        ):
            handle = await env.client.start_workflow(
                AnnuityApplicationWorkflow.run,
                _request("APP-INCONSISTENT"),
                id="APP-INCONSISTENT",
                task_queue=TASK_QUEUE,
            )
            await _wait_for_phase(handle, "MONITORING")
            for status in (ApplicationStatus.APPROVED, ApplicationStatus.DECLINED):
                await handle.signal(
                    AnnuityApplicationWorkflow.carrier_status,
                    CarrierStatusSnapshot(
                        application_id=_APP_ID, status=status, status_date=_NOW,
                    ),
                )
            await handle.signal(
                AnnuityApplicationWorkflow.carrier_status,
                CarrierStatusSnapshot(
                    application_id=_APP_ID, status=ApplicationStatus.ISSUED,
                    status_date=_NOW,
                    contract=IssuedContract(contract_number="MYGA-1"),
                ),
            )
            result = await handle.result()
            assert result.outcome == ApplicationOutcome.ISSUED
            assert result.rejected_reports == ("DECLINED reported while APPROVED",)


@pytest.mark.asyncio
async def test_cancel_while_monitoring() -> None:
    async with await _start_env() as env:
        async with Worker(
            env.client, task_queue=TASK_QUEUE,
            workflows=[AnnuityApplicationWorkflow],
            activities=_WAITING_ACTIVITIES,
        ):
            handle = await env.client.start_workflow(
                AnnuityApplicationWorkflow.run,
                _request("APP-CANCEL"),
                id="APP-CANCEL",
                task_queue=TASK_QUEUE,
            )
            await _wait_for_phase(handle, "MONITORING")
            await handle.signal(AnnuityApplicationWorkflow.cancel, "Client withdrew")
            result = await handle.result()
            assert result.outcome == ApplicationOutcome.CANCELLED
            assert result.final_status == ApplicationStatus.CANCELLED
            assert result.reasons == ("Client withdrew",)


@pytest.mark.asyncio
async def test_warnings_query() -> None:
    async with await _start_env() as env:
        async with Worker(
            env.client, task_queue=TASK_QUEUE,
            workflows=[AnnuityApplicationWorkflow],
            activities=_WAITING_ACTIVITIES,
        ):
            handle = await env.client.start_workflow(
                AnnuityApplicationWorkflow.run,
                _request("APP-WARN"),
                id="APP-WARN",
                task_queue=TASK_QUEUE,
            )
            await _wait_for_phase(handle, "MONITORING")
            # submit returned no warnings, so the validation ones were replaced
            assert await handle.query(AnnuityApplicationWorkflow.get_warnings) == ()
            await handle.signal(AnnuityApplicationWorkflow.cancel, "")
            result = await handle.result()
            assert result.reasons == ("Cancelled by request",)


# ---------------------------------------------------------------------------
# Tests: real activities over the simulation gateway
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_simulated_end_to_end(draft: Application) -> None:
    """Real activities: stored DRAFT -> simulated carrier -> ISSUED via poll."""
    gateway = SimulationGateway()
    store = InMemoryApplicationStore()
    unwrap(store.put(draft, expected_version=None))
    activities = SubmissionActivities(gateway, store, InMemoryReconciliationLog())

    async with await _start_env() as env:
        async with build_worker(env.client, activities, task_queue=TASK_QUEUE):
            handle = await env.client.start_workflow(
                AnnuityApplicationWorkflow.run,
                _request(draft.application_ref),
                id=draft.application_ref,
                task_queue=TASK_QUEUE,
            )
            await _wait_for_phase(handle, "MONITORING")
            application_id = unwrap(store.get(draft.application_ref)).carrier_application_id
            assert application_id is not None
            assert application_id.startswith("SIM-")
            gateway.script_status(
                application_id, ApplicationStatus.ISSUED,
                contract=IssuedContract(contract_number="MYGA-77"),
            )
            result = await handle.result()

    assert result.outcome == ApplicationOutcome.ISSUED
    assert result.application_id == application_id
    stored = unwrap(store.get(draft.application_ref))
    assert stored.status == ApplicationStatus.ISSUED
    assert gateway.created_count == 1


@pytest.mark.asyncio
async def test_simulated_invalid_draft(draft: Application) -> None:
    invalid = dataclasses.replace(
        draft, premium=dataclasses.replace(draft.premium, initial_premium=Decimal("0")),
    )
    gateway = SimulationGateway()
    store = InMemoryApplicationStore()
    unwrap(store.put(invalid, expected_version=None))
    activities = SubmissionActivities(gateway, store, InMemoryReconciliationLog())

    async with await _start_env() as env:
        async with build_worker(env.client, activities, task_queue=TASK_QUEUE):
            result = await env.client.execute_workflow(
                AnnuityApplicationWorkflow.run,
                _request(invalid.application_ref),
                id=invalid.application_ref,
                task_queue=TASK_QUEUE,
            )

    assert result.outcome == ApplicationOutcome.REJECTED_VALIDATION
    assert any(r.startswith("premium.initial_premium") for r in result.reasons)
    assert gateway.created_count == 0
