"""StatusReconciler — folds polled and pushed carrier status into the store.

Concurrency: one asyncio.Lock per application_ref serializes reports for
the same application inside this process; compare-and-swap on
Application.version in the store covers writers in other processes. A lost
race re-reads the stored application and classifies the report again.
Different applications never share a lock, and a lock is dropped once no
task holds or awaits it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from annuity_submission.core.errors import (
    GatewayError,
    GatewayTimeoutError,
    IllegalTransitionError,
    InconsistentStatusError,
    PersistenceError,
)
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import Clock, system_clock
from annuity_submission.gateway.protocol import CarrierGateway
from annuity_submission.infra.protocols import ApplicationStore
from annuity_submission.lifecycle.machine import AdvanceOutcome, ApplicationStateMachine
from annuity_submission.lifecycle.webhooks import WebhookEvent, event_snapshot
from annuity_submission.model.snapshot import CarrierStatusSnapshot
from annuity_submission.model.status import ACTIVE_SUBMITTED_STATUSES

logger = logging.getLogger(__name__)

MAX_CONFLICT_RETRIES = 3

type ApplyFailure = InconsistentStatusError | PersistenceError
type PollFailure = (
    ApplyFailure | GatewayError | GatewayTimeoutError | IllegalTransitionError
)


class StatusReconciler:
    def __init__(
        self,
        machine: ApplicationStateMachine,
        store: ApplicationStore,
        gateway: CarrierGateway,
        *,
        clock: Clock = system_clock,
    ) -> None:
        self._machine = machine
        self._store = store
        self._gateway = gateway
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _serialized(self, application_ref: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(application_ref, asyncio.Lock())
        self._lock_users[application_ref] = self._lock_users.get(application_ref, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[application_ref] -= 1
            if self._lock_users[application_ref] == 0:
                del self._lock_users[application_ref]
                del self._locks[application_ref]

    def lock_count(self) -> int:
        """Test-only helper: number of per-application locks alive."""
        return len(self._locks)

    async def apply_snapshot(
        self, application_ref: str, snapshot: CarrierStatusSnapshot,
    ) -> Ok[AdvanceOutcome] | Err[ApplyFailure]:
        async with self._serialized(application_ref):
            for attempt in range(1, MAX_CONFLICT_RETRIES + 1):
                match self._store.get(application_ref):
                    case Err(e):
                        return Err(e)
                    case Ok(app):
                        pass
                match self._machine.advance(app, snapshot):
                    case Err(PersistenceError(code="VERSION_CONFLICT") as conflict):
                        logger.info(
                            "%s: version conflict on attempt %d, re-reading (%s)",
                            application_ref, attempt, conflict.message,
                        )
                        continue
                    case result:
                        return result
            return Err(PersistenceError(
                message=(
                    f"{application_ref}: gave up after {MAX_CONFLICT_RETRIES} "
                    "version conflicts"
                ),
                code="VERSION_CONFLICT",
                timestamp=self._clock(),
                source="lifecycle.reconciler.StatusReconciler.apply_snapshot",
                operation="put",
            ))

    async def poll(
        self, application_ref: str,
    ) -> Ok[AdvanceOutcome] | Err[PollFailure]:
        """Pull the carrier status once. On failure the stored state is kept."""
        match self._store.get(application_ref):
            case Err(e):
                return Err(e)
            case Ok(app):
                pass
        application_id = app.carrier_application_id
        if application_id is None:
            return Err(IllegalTransitionError(
                message=f"{application_ref} has not been submitted; nothing to poll",
                code="NOT_SUBMITTED",
                timestamp=self._clock(),
                source="lifecycle.reconciler.StatusReconciler.poll",
                from_state=app.status.value,
                to_state=app.status.value,
            ))
        match await self._gateway.get_application_status(application_id):
            case Err(e):
                logger.warning(
                    "Status poll for %s failed, keeping %s: %s",
                    application_ref, app.status.value, e.message,
                )
                return Err(e)
            case Ok(snapshot):
                return await self.apply_snapshot(application_ref, snapshot)

    async def poll_active(
        self,
    ) -> dict[str, Ok[AdvanceOutcome] | Err[PollFailure]]:
        """Poll every application the carrier still has open."""
        match self._store.list_refs():
            case Err(e):
                logger.error("Cannot list applications for polling: %s", e.message)
                return {}
            case Ok(refs):
                pass
        results: dict[str, Ok[AdvanceOutcome] | Err[PollFailure]] = {}
        for ref in refs:
            match self._store.get(ref):
                case Ok(app) if app.status in ACTIVE_SUBMITTED_STATUSES:
                    results[ref] = await self.poll(ref)
                case _:
                    continue
        return results

    async def handle_event(
        self, event: WebhookEvent,
    ) -> Ok[AdvanceOutcome | None] | Err[ApplyFailure | GatewayError]:
        """Apply a webhook. Informational events are Ok(None)."""
        match event_snapshot(event):
            case Err(e):
                return Err(e)
            case Ok(None):
                logger.info(
                    "Webhook %s for %s is informational",
                    event.event_type.value, event.application_id,
                )
                return Ok(None)
            case Ok(snapshot):
                pass
        match self._store.find_by_carrier_id(event.application_id):
            case Err(e):
                return Err(e)
            case Ok(None):
                logger.warning(
                    "Webhook %s for unknown carrier application %s",
                    event.event_type.value, event.application_id,
                )
                return Err(PersistenceError(
                    message=f"No application with carrier id {event.application_id}",
                    code="NOT_FOUND",
                    timestamp=self._clock(),
                    source="lifecycle.reconciler.StatusReconciler.handle_event",
                    operation="find_by_carrier_id",
                ))
            case Ok(app):
                return await self.apply_snapshot(app.application_ref, snapshot)
