"""CarrierGateway — the only seam through which the system talks to the carrier.

Two implementations, chosen once at construction (gateway.factory):
SimulationGateway (offline, deterministic) and LiveGateway (HTTPS).

All operations return Ok[T] | Err[GatewayError | GatewayTimeoutError].
Re-invoking get_application_status, generate_acord_xml or health_check has
no side effect. create_application is never retried blindly: a timeout
there has an unknown outcome and goes to manual reconciliation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from annuity_submission.core.errors import GatewayError, GatewayTimeoutError
from annuity_submission.core.result import Err, Ok
from annuity_submission.gateway.types import (
    CreateApplicationResult,
    ExchangeAcknowledgement,
    ExchangeRequest,
    GatewayHealth,
    SignatureSession,
    Signer,
)
from annuity_submission.model.application import Application
from annuity_submission.model.snapshot import CarrierStatusSnapshot


@runtime_checkable
class CarrierGateway(Protocol):
    """Carrier submission gateway."""

    async def create_application(
        self, app: Application, *, idempotency_key: str,
    ) -> Ok[CreateApplicationResult] | Err[GatewayError | GatewayTimeoutError]: ...

    async def get_application_status(
        self, application_id: str,
    ) -> Ok[CarrierStatusSnapshot] | Err[GatewayError | GatewayTimeoutError]: ...

    async def request_e_signature(
        self, application_id: str, signers: tuple[Signer, ...],
    ) -> Ok[SignatureSession] | Err[GatewayError | GatewayTimeoutError]: ...

    async def submit_1035_exchange(
        self, request: ExchangeRequest,
    ) -> Ok[ExchangeAcknowledgement] | Err[GatewayError | GatewayTimeoutError]: ...

    async def generate_acord_xml(
        self, application_id: str,
    ) -> Ok[str] | Err[GatewayError | GatewayTimeoutError]: ...

    async def health_check(self) -> GatewayHealth:
        """Never fails: an unreachable gateway is healthy=False with a message."""
        ...
