"""SimulationGateway — deterministic offline stand-in for the carrier gateway.

Selected when no live credentials are configured. Every response is
clearly labelled: identifiers carry the SIM prefix (live ids never do),
the status report explains it is synthetic, the health check says so.

Identifiers are derived from a SHA-256 content hash of the application and
the idempotency key, so the same input always produces the same ids and a
repeated create under the same key returns the original result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import final

from annuity_submission.core.errors import GatewayError, GatewayTimeoutError, ValidationWarning
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.serialization import content_hash, text_hash
from annuity_submission.core.types import Clock, UtcDatetime, system_clock
from annuity_submission.gateway.acord import render_acord_xml
from annuity_submission.gateway.types import (
    SIMULATION_ID_PREFIX,
    CreateApplicationResult,
    ExchangeAcknowledgement,
    ExchangeRequest,
    GatewayHealth,
    SignatureSession,
    Signer,
    SigningUrl,
)
from annuity_submission.infra.config import Environment
from annuity_submission.model.application import Application
from annuity_submission.model.snapshot import CarrierStatusSnapshot, DtccStatus, IssuedContract
from annuity_submission.model.status import ApplicationStatus
from annuity_submission.validation.suitability import suitability_warnings

logger = logging.getLogger(__name__)

SIMULATION_REVIEW_NOTE = "Application is currently under review by carrier"
SIMULATION_BASE_URL = "https://simulation.firelight.invalid"
SESSION_TTL = timedelta(hours=24)

type _Failure = GatewayError | GatewayTimeoutError


@final
@dataclass(frozen=True, slots=True)
class _Submitted:
    app: Application
    result: CreateApplicationResult


@final
@dataclass(frozen=True, slots=True)
class _Scripted:
    status: ApplicationStatus
    notes: str | None
    contract: IssuedContract | None


class SimulationGateway:
    """In-process CarrierGateway. Not thread-safe; one per event loop."""

    def __init__(
        self,
        *,
        clock: Clock = system_clock,
        environment: Environment = Environment.SANDBOX,
        dtcc_enabled: bool = True,
    ) -> None:
        self._clock = clock
        self._environment = environment
        self._dtcc_enabled = dtcc_enabled
        self._by_id: dict[str, _Submitted] = {}
        self._by_key: dict[str, str] = {}
        self._scripted: dict[str, _Scripted] = {}
        self._failures: dict[str, list[_Failure]] = {}
        self.calls: list[str] = []

    # -- Test-only helpers ------------------------------------------------

    def script_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        *,
        notes: str | None = None,
        contract: IssuedContract | None = None,
    ) -> None:
        """Make get_application_status report status for this id from now on."""
        self._scripted[application_id] = _Scripted(status=status, notes=notes, contract=contract)

    def fail_next(self, operation: str, error: _Failure) -> None:
        """Make the next call to operation return error instead of a result."""
        self._failures.setdefault(operation, []).append(error)

    @property
    def created_count(self) -> int:
        return len(self._by_id)

    # -- internals --------------------------------------------------------

    def _take_failure(self, operation: str) -> _Failure | None:
        self.calls.append(operation)
        queue = self._failures.get(operation)
        if queue:
            return queue.pop(0)
        return None

    def _not_found(self, operation: str, application_id: str) -> Err[GatewayError]:
        return Err(GatewayError(
            message=f"Application {application_id} not found",
            code="NOT_FOUND",
            timestamp=self._clock(),
            source=f"gateway.simulation.SimulationGateway.{operation}",
            operation=operation,
            status_code=404,
        ))

    # -- CarrierGateway ---------------------------------------------------

    async def create_application(
        self, app: Application, *, idempotency_key: str,
    ) -> Ok[CreateApplicationResult] | Err[GatewayError | GatewayTimeoutError]:
        failure = self._take_failure("createApplication")
        if failure is not None:
            return Err(failure)
        existing = self._by_key.get(idempotency_key)
        if existing is not None:
            logger.info("Simulation replayed create for idempotency key %s", idempotency_key)
            return Ok(self._by_id[existing].result)

        digest = content_hash({"application": app, "idempotency_key": idempotency_key})
        if isinstance(digest, Err):
            return Err(GatewayError(
                message=f"Cannot fingerprint application: {digest.error}",
                code="SIMULATION_ERROR",
                timestamp=self._clock(),
                source="gateway.simulation.SimulationGateway.create_application",
                operation="createApplication",
                status_code=400,
            ))

        tag = digest.value.upper()
        warnings = tuple(
            ValidationWarning(path="carrier", message=w.message, code=w.code)
            for w in suitability_warnings(app.suitability, app.premium)
        )
        result = CreateApplicationResult(
            application_id=f"{SIMULATION_ID_PREFIX}{tag[:12]}",
            confirmation_number=f"SIMCONF-{tag[12:20]}",
            status=ApplicationStatus.SUBMITTED,
            created_at=self._clock(),
            dtcc_reference=f"SIMDTCC-{tag[20:28]}" if self._dtcc_enabled else None,
            warnings=warnings,
        )
        self._by_id[result.application_id] = _Submitted(app=app, result=result)
        self._by_key[idempotency_key] = result.application_id
        logger.info(
            "Simulation created application %s for %s",
            result.application_id, app.application_ref,
        )
        return Ok(result)

    async def get_application_status(
        self, application_id: str,
    ) -> Ok[CarrierStatusSnapshot] | Err[GatewayError | GatewayTimeoutError]:
        failure = self._take_failure("getApplicationStatus")
        if failure is not None:
            return Err(failure)
        now = self._clock()
        scripted = self._scripted.get(application_id)
        if scripted is not None:
            return Ok(CarrierStatusSnapshot(
                application_id=application_id,
                status=scripted.status,
                status_date=now,
                notes=scripted.notes,
                contract=scripted.contract,
                dtcc=DtccStatus(status="SUBMITTED", status_date=now) if self._dtcc_enabled else None,
            ))
        if application_id not in self._by_id:
            return self._not_found("getApplicationStatus", application_id)
        return Ok(CarrierStatusSnapshot(
            application_id=application_id,
            status=ApplicationStatus.IN_REVIEW,
            status_date=now,
            notes=SIMULATION_REVIEW_NOTE,
            dtcc=DtccStatus(status="SUBMITTED", status_date=now) if self._dtcc_enabled else None,
        ))

    async def request_e_signature(
        self, application_id: str, signers: tuple[Signer, ...],
    ) -> Ok[SignatureSession] | Err[GatewayError | GatewayTimeoutError]:
        failure = self._take_failure("requestESignature")
        if failure is not None:
            return Err(failure)
        if application_id not in self._by_id and application_id not in self._scripted:
            return self._not_found("requestESignature", application_id)
        now = self._clock()
        fingerprint = "|".join(
            [application_id, now.isoformat()] + [f"{s.role.value}:{s.email}" for s in signers]
        )
        session_id = f"SIMSESS-{text_hash(fingerprint)[:16].upper()}"
        return Ok(SignatureSession(
            application_id=application_id,
            session_id=session_id,
            urls=tuple(
                SigningUrl(
                    role=s.role,
                    url=f"{SIMULATION_BASE_URL}/esign/{session_id}/{s.role.name.lower()}",
                )
                for s in signers
            ),
            expires_at=UtcDatetime(value=now.value + SESSION_TTL),
        ))

    async def submit_1035_exchange(
        self, request: ExchangeRequest,
    ) -> Ok[ExchangeAcknowledgement] | Err[GatewayError | GatewayTimeoutError]:
        failure = self._take_failure("submit1035Exchange")
        if failure is not None:
            return Err(failure)
        if request.application_id not in self._by_id and request.application_id not in self._scripted:
            return self._not_found("submit1035Exchange", request.application_id)
        reference = text_hash(
            f"{request.application_id}|{request.existing_policy.policy_number}"
        )[:12].upper()
        return Ok(ExchangeAcknowledgement(
            application_id=request.application_id,
            received_at=self._clock(),
            reference=f"SIM1035-{reference}",
            message="1035 exchange documentation received (simulation)",
        ))

    async def generate_acord_xml(
        self, application_id: str,
    ) -> Ok[str] | Err[GatewayError | GatewayTimeoutError]:
        failure = self._take_failure("generateAcordXml")
        if failure is not None:
            return Err(failure)
        submitted = self._by_id.get(application_id)
        if submitted is None:
            return self._not_found("generateAcordXml", application_id)
        return Ok(render_acord_xml(
            submitted.app,
            application_id=submitted.result.application_id,
            confirmation_number=submitted.result.confirmation_number,
            submitted_on=submitted.result.created_at.value.date(),
            dtcc_reference=submitted.result.dtcc_reference,
        ))

    async def health_check(self) -> GatewayHealth:
        self.calls.append("healthCheck")
        return GatewayHealth(
            healthy=True,
            message="Simulation mode - no live carrier connection",
            checked_at=self._clock(),
            environment=self._environment,
            version="simulation",
            simulated=True,
        )
