"""Worker configuration for the annuity submission workflow.

Starts a Temporal worker with the submission workflow and the activities
of one SubmissionActivities instance. The carrier gateway and the stores
are injected by the caller.

Usage::

    import asyncio, os
    from annuity_submission.gateway import build_gateway
    from annuity_submission.infra import GatewayConfig, TemporalConfig
    from annuity_submission.workflow.worker import run_worker

    config = GatewayConfig.from_env(os.environ).unwrap()
    asyncio.run(run_worker(build_gateway(config), store, reconciliation_log,
                           temporal=TemporalConfig.from_env(os.environ)))
"""

from __future__ import annotations

from temporalio.client import Client, WorkflowHandle
from temporalio.worker import Worker

from annuity_submission.core.types import Clock, system_clock
from annuity_submission.gateway.protocol import CarrierGateway
from annuity_submission.infra.config import FeatureFlags, TemporalConfig
from annuity_submission.infra.protocols import ApplicationStore, ReconciliationLog
from annuity_submission.workflow.activities import SubmissionActivities
from annuity_submission.workflow.application_workflow import AnnuityApplicationWorkflow
from annuity_submission.workflow.types import ApplicationResult, SubmissionRequest


def build_worker(
    client: Client, activities: SubmissionActivities, *, task_queue: str,
) -> Worker:
    return Worker(
        client,
        task_queue=task_queue,
        workflows=[AnnuityApplicationWorkflow],
        activities=[
            activities.validate_application,
            activities.submit_application,
            activities.poll_status,
            activities.apply_status_report,
            activities.cancel_application,
        ],
    )


async def run_worker(
    gateway: CarrierGateway,
    store: ApplicationStore,
    reconciliation_log: ReconciliationLog,
    *,
    temporal: TemporalConfig = TemporalConfig(),
    features: FeatureFlags = FeatureFlags(),
    clock: Clock = system_clock,
) -> None:
    """Connect to Temporal and run the worker until interrupted."""
    from annuity_submission.workflow.converter import SUBMISSION_DATA_CONVERTER

    client = await Client.connect(
        temporal.host, namespace=temporal.namespace,
        data_converter=SUBMISSION_DATA_CONVERTER,
    )
    activities = SubmissionActivities(
        gateway, store, reconciliation_log, features=features, clock=clock,
    )
    worker = build_worker(client, activities, task_queue=temporal.task_queue)
    await worker.run()


async def start_submission(
    client: Client,
    application_ref: str,
    idempotency_key: str,
    *,
    temporal: TemporalConfig = TemporalConfig(),
) -> WorkflowHandle[AnnuityApplicationWorkflow, ApplicationResult]:
    """Start the submission workflow; the application_ref is the workflow id."""
    request = SubmissionRequest(
        application_ref=application_ref,
        idempotency_key=idempotency_key,
        poll_interval_s=temporal.status_poll_interval_s,
    )
    return await client.start_workflow(
        AnnuityApplicationWorkflow.run,
        request,
        id=application_ref,
        task_queue=temporal.task_queue,
    )
