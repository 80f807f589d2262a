"""Tests for annuity_submission.lifecycle.reconciler — polling, webhooks, conflicts."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from annuity_submission.core.errors import GatewayError, IllegalTransitionError, PersistenceError
from annuity_submission.core.result import Err, Ok, unwrap
from annuity_submission.core.types import Clock, IdempotencyKey, UtcDatetime
from annuity_submission.gateway.simulation import SIMULATION_REVIEW_NOTE, SimulationGateway
from annuity_submission.infra.memory_adapter import (
    InMemoryApplicationStore,
    InMemoryReconciliationLog,
)
from annuity_submission.lifecycle.machine import ApplicationStateMachine
from annuity_submission.lifecycle.reconciler import MAX_CONFLICT_RETRIES, StatusReconciler
from annuity_submission.lifecycle.transitions import ReportDisposition
from annuity_submission.lifecycle.webhooks import WebhookEvent, parse_webhook
from annuity_submission.model.application import Application
from annuity_submission.model.snapshot import CarrierStatusSnapshot, IssuedContract
from annuity_submission.model.state import InReview
from annuity_submission.model.status import ApplicationStatus

_TS = UtcDatetime(value=datetime(2025, 6, 20, 8, 0, tzinfo=UTC))


async def _submit(machine: ApplicationStateMachine, app: Application) -> Application:
    unwrap(machine.create_draft(app))
    key = IdempotencyKey(value=f"key-{app.application_ref}")
    return unwrap(await machine.submit(app, idempotency_key=key)).application


def _event(event: str, application_id: str, **data: object) -> WebhookEvent:
    body = json.dumps({
        "event": event,
        "data": {"applicationId": application_id, **data},
        "timestamp": "2025-06-20T08:00:00Z",
    })
    return unwrap(parse_webhook(body, received_at=_TS))


class _ConflictingStore:
    """Delegating store whose first `conflicts` puts lose a race."""

    def __init__(self, inner: InMemoryApplicationStore, conflicts: int) -> None:
        self._inner = inner
        self._conflicts = conflicts
        self.puts = 0

    def get(self, application_ref: str):  # type: ignore[no-untyped-def]
        return self._inner.get(application_ref)

    def put(self, app: Application, *, expected_version: int | None):  # type: ignore[no-untyped-def]
        self.puts += 1
        if self._conflicts > 0:
            self._conflicts -= 1
            return Err(PersistenceError(
                message="lost race", code="VERSION_CONFLICT", timestamp=_TS,
                source="test", operation="put",
            ))
        return self._inner.put(app, expected_version=expected_version)

    def find_by_carrier_id(self, application_id: str):  # type: ignore[no-untyped-def]
        return self._inner.find_by_carrier_id(application_id)

    def list_refs(self):  # type: ignore[no-untyped-def]
        return self._inner.list_refs()


def _racing_reconciler(
    store: InMemoryApplicationStore, gateway: SimulationGateway, clock: Clock, conflicts: int,
) -> tuple[StatusReconciler, _ConflictingStore]:
    flaky = _ConflictingStore(store, conflicts)
    machine = ApplicationStateMachine(gateway, flaky, InMemoryReconciliationLog(), clock=clock)
    return StatusReconciler(machine, flaky, gateway, clock=clock), flaky


# ---------------------------------------------------------------------------
# poll
# ---------------------------------------------------------------------------


class TestPoll:
    @pytest.mark.asyncio
    async def test_poll_applies_carrier_status(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        store: InMemoryApplicationStore, draft: Application,
    ) -> None:
        await _submit(machine, draft)
        outcome = unwrap(await reconciler.poll(draft.application_ref))
        assert outcome.disposition == ReportDisposition.APPLY
        stored = unwrap(store.get(draft.application_ref))
        assert isinstance(stored.state, InReview)
        assert stored.state.notes == SIMULATION_REVIEW_NOTE

    @pytest.mark.asyncio
    async def test_repeat_poll_is_duplicate(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        draft: Application,
    ) -> None:
        await _submit(machine, draft)
        await reconciler.poll(draft.application_ref)
        outcome = unwrap(await reconciler.poll(draft.application_ref))
        assert outcome.disposition == ReportDisposition.DUPLICATE

    @pytest.mark.asyncio
    async def test_poll_draft_refused(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        gateway: SimulationGateway, draft: Application,
    ) -> None:
        unwrap(machine.create_draft(draft))
        match await reconciler.poll(draft.application_ref):
            case Err(IllegalTransitionError() as e):
                assert e.code == "NOT_SUBMITTED"
            case other:
                pytest.fail(f"expected NOT_SUBMITTED, got {other}")
        assert "getApplicationStatus" not in gateway.calls

    @pytest.mark.asyncio
    async def test_poll_unknown_ref(self, reconciler: StatusReconciler) -> None:
        result = await reconciler.poll("APP-MISSING")
        assert isinstance(result, Err)
        assert result.error.code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_gateway_failure_keeps_state(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        gateway: SimulationGateway, store: InMemoryApplicationStore, draft: Application,
    ) -> None:
        await _submit(machine, draft)
        gateway.fail_next("getApplicationStatus", GatewayError(
            message="Service unavailable", code="HTTP_503", timestamp=_TS,
            source="test", operation="getApplicationStatus", status_code=503,
        ))
        result = await reconciler.poll(draft.application_ref)
        assert isinstance(result, Err)
        assert unwrap(store.get(draft.application_ref)).status == ApplicationStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_poll_active_skips_drafts_and_terminal(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        gateway: SimulationGateway, application_factory: Callable[..., Application],
        draft: Application,
    ) -> None:
        active = await _submit(machine, draft)
        unwrap(machine.create_draft(application_factory("APP-DRAFT")))
        issued = await _submit(machine, application_factory("APP-DONE"))
        assert issued.carrier_application_id is not None
        gateway.script_status(
            issued.carrier_application_id, ApplicationStatus.ISSUED,
            contract=IssuedContract(contract_number="C-1"),
        )
        unwrap(await reconciler.poll("APP-DONE"))

        results = await reconciler.poll_active()
        assert set(results) == {active.application_ref}
        assert isinstance(results[active.application_ref], Ok)


# ---------------------------------------------------------------------------
# apply_snapshot concurrency
# ---------------------------------------------------------------------------


class TestApplySnapshot:
    @pytest.mark.asyncio
    async def test_conflict_is_retried(
        self, machine: ApplicationStateMachine, store: InMemoryApplicationStore,
        gateway: SimulationGateway, clock: Clock, draft: Application,
    ) -> None:
        app = await _submit(machine, draft)
        reconciler, flaky = _racing_reconciler(store, gateway, clock, conflicts=1)
        snapshot = CarrierStatusSnapshot(
            application_id=app.carrier_application_id,  # type: ignore[arg-type]
            status=ApplicationStatus.IN_REVIEW, status_date=_TS,
        )
        outcome = unwrap(await reconciler.apply_snapshot(app.application_ref, snapshot))
        assert outcome.application.status == ApplicationStatus.IN_REVIEW
        assert flaky.puts == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_conflicts(
        self, machine: ApplicationStateMachine, store: InMemoryApplicationStore,
        gateway: SimulationGateway, clock: Clock, draft: Application,
    ) -> None:
        app = await _submit(machine, draft)
        reconciler, flaky = _racing_reconciler(
            store, gateway, clock, conflicts=MAX_CONFLICT_RETRIES,
        )
        snapshot = CarrierStatusSnapshot(
            application_id=app.carrier_application_id,  # type: ignore[arg-type]
            status=ApplicationStatus.IN_REVIEW, status_date=_TS,
        )
        match await reconciler.apply_snapshot(app.application_ref, snapshot):
            case Err(PersistenceError() as e):
                assert e.code == "VERSION_CONFLICT"
                assert "gave up" in e.message
            case other:
                pytest.fail(f"expected VERSION_CONFLICT, got {other}")
        assert flaky.puts == MAX_CONFLICT_RETRIES

    @pytest.mark.asyncio
    async def test_concurrent_reports_serialize(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        store: InMemoryApplicationStore, draft: Application,
    ) -> None:
        app = await _submit(machine, draft)
        snapshot = CarrierStatusSnapshot(
            application_id=app.carrier_application_id,  # type: ignore[arg-type]
            status=ApplicationStatus.IN_REVIEW, status_date=_TS,
        )
        first, second = await asyncio.gather(
            reconciler.apply_snapshot(app.application_ref, snapshot),
            reconciler.apply_snapshot(app.application_ref, snapshot),
        )
        dispositions = {unwrap(first).disposition, unwrap(second).disposition}
        assert dispositions == {ReportDisposition.APPLY, ReportDisposition.DUPLICATE}
        assert unwrap(store.get(app.application_ref)).version == app.version + 1
        assert reconciler.lock_count() == 0

    @pytest.mark.asyncio
    async def test_locks_released_after_apply(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        application_factory: Callable[..., Application],
    ) -> None:
        for n in range(3):
            app = await _submit(machine, application_factory(f"APP-LOCK-{n}"))
            snapshot = CarrierStatusSnapshot(
                application_id=app.carrier_application_id,  # type: ignore[arg-type]
                status=ApplicationStatus.IN_REVIEW, status_date=_TS,
            )
            unwrap(await reconciler.apply_snapshot(app.application_ref, snapshot))
        assert reconciler.lock_count() == 0

    @pytest.mark.asyncio
    async def test_lock_released_on_failure(self, reconciler: StatusReconciler) -> None:
        snapshot = CarrierStatusSnapshot(
            application_id="FL-X", status=ApplicationStatus.IN_REVIEW, status_date=_TS,
        )
        result = await reconciler.apply_snapshot("APP-MISSING", snapshot)
        assert isinstance(result, Err)
        assert reconciler.lock_count() == 0


# ---------------------------------------------------------------------------
# handle_event
# ---------------------------------------------------------------------------


class TestHandleEvent:
    @pytest.mark.asyncio
    async def test_approval_event(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        store: InMemoryApplicationStore, draft: Application,
    ) -> None:
        app = await _submit(machine, draft)
        event = _event("application.approved", app.carrier_application_id)  # type: ignore[arg-type]
        outcome = unwrap(await reconciler.handle_event(event))
        assert outcome is not None
        assert outcome.application.status == ApplicationStatus.APPROVED
        assert unwrap(store.get(app.application_ref)).status == ApplicationStatus.APPROVED

    @pytest.mark.asyncio
    async def test_informational_event(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        draft: Application,
    ) -> None:
        app = await _submit(machine, draft)
        event = _event("esignature.completed", app.carrier_application_id)  # type: ignore[arg-type]
        assert await reconciler.handle_event(event) == Ok(None)

    @pytest.mark.asyncio
    async def test_unknown_carrier_id(self, reconciler: StatusReconciler) -> None:
        result = await reconciler.handle_event(_event("application.approved", "FL-NOBODY"))
        assert isinstance(result, Err)
        assert result.error.code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_issued_event_needs_contract(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        draft: Application,
    ) -> None:
        app = await _submit(machine, draft)
        event = _event("application.issued", app.carrier_application_id)  # type: ignore[arg-type]
        result = await reconciler.handle_event(event)
        assert isinstance(result, Err)
        assert result.error.code == "MALFORMED_RESPONSE"

    @pytest.mark.asyncio
    async def test_issued_event_with_contract(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        draft: Application,
    ) -> None:
        app = await _submit(machine, draft)
        event = _event(
            "application.issued", app.carrier_application_id,  # type: ignore[arg-type]
            contractNumber="MYGA-000777", issueDate="2025-07-01",
        )
        outcome = unwrap(await reconciler.handle_event(event))
        assert outcome is not None
        assert outcome.application.status == ApplicationStatus.ISSUED

    @pytest.mark.asyncio
    async def test_late_review_event_after_decline_discarded(
        self, machine: ApplicationStateMachine, reconciler: StatusReconciler,
        store: InMemoryApplicationStore, draft: Application,
    ) -> None:
        app = await _submit(machine, draft)
        decline = _event(
            "application.declined", app.carrier_application_id,  # type: ignore[arg-type]
            statusNotes="Suitability not met",
        )
        declined = unwrap(await reconciler.handle_event(decline))
        assert declined is not None
        assert declined.application.status == ApplicationStatus.DECLINED
        version = unwrap(store.get(app.application_ref)).version

        late = _event(
            "status.change", app.carrier_application_id,  # type: ignore[arg-type]
            status="IN_REVIEW",
        )
        outcome = unwrap(await reconciler.handle_event(late))
        assert outcome is not None
        assert outcome.disposition == ReportDisposition.STALE
        assert not outcome.changed
        stored = unwrap(store.get(app.application_ref))
        assert stored.status == ApplicationStatus.DECLINED
        assert stored.version == version
