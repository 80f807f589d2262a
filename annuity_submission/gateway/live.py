"""LiveGateway — the carrier gateway over HTTPS.

JSON over HTTPS with bearer-token and partner-id headers. Every call is
bounded by asyncio.timeout (timeout_s for application calls,
health_timeout_s for the health check) and carries the same budget as its
httpx timeout; exceeding it is a GatewayTimeoutError, never a hang.

Read-only calls (status, ACORD, health) retry transient failures (transport
errors, timeouts, 429, 5xx) with exponential back-off. create_application,
e-signature and 1035 submission are never retried here: the caller owns
that decision, and an unknown create outcome goes to reconciliation.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from annuity_submission.core.errors import GatewayError, GatewayTimeoutError
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import Clock, system_clock
from annuity_submission.gateway.parser import (
    malformed,
    parse_create_response,
    parse_exchange_response,
    parse_health_response,
    parse_signature_response,
    parse_status_response,
    rejected,
)
from annuity_submission.gateway.payload import (
    application_payload,
    exchange_payload,
    signature_request_payload,
)
from annuity_submission.gateway.types import (
    CreateApplicationResult,
    ExchangeAcknowledgement,
    ExchangeRequest,
    GatewayHealth,
    SignatureSession,
    Signer,
)
from annuity_submission.infra.audit import IntegrationCall, Timer, log_integration_call
from annuity_submission.infra.config import GatewayConfig
from annuity_submission.model.application import Application
from annuity_submission.model.snapshot import CarrierStatusSnapshot

logger = logging.getLogger(__name__)

type _Failure = GatewayError | GatewayTimeoutError


class _TransientFailure(Exception):
    """Carries a retryable failure through tenacity."""

    def __init__(self, error: _Failure) -> None:
        super().__init__(error.message)
        self.error = error


def _is_transient(error: _Failure) -> bool:
    match error:
        case GatewayTimeoutError():
            return True
        case GatewayError():
            return error.retryable


def build_client(
    config: GatewayConfig, transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """AsyncClient with the gateway's base URL and auth headers."""
    return httpx.AsyncClient(
        base_url=config.base_url,
        headers={
            "Authorization": f"Bearer {config.api_key}",
            "X-Partner-ID": config.partner_id,
            "Content-Type": "application/json",
        },
        timeout=httpx.Timeout(config.timeout_s),
        transport=transport,
    )


class LiveGateway:
    """CarrierGateway backed by the carrier's HTTPS API."""

    def __init__(
        self,
        config: GatewayConfig,
        *,
        client: httpx.AsyncClient | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self._config = config
        self._client = client if client is not None else build_client(config)
        self._clock = clock

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> LiveGateway:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # -- transport --------------------------------------------------------

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout_s: float | None = None,
        outcome_unknown: bool = False,
    ) -> Ok[httpx.Response] | Err[_Failure]:
        budget = timeout_s if timeout_s is not None else self._config.timeout_s
        source = f"gateway.live.LiveGateway.{operation}"
        response: httpx.Response | None = None
        failure: _Failure | None = None
        with Timer() as timer:
            try:
                async with asyncio.timeout(budget):
                    response = await self._client.request(
                        method, path, json=body, headers=headers, timeout=budget,
                    )
            except (TimeoutError, httpx.TimeoutException):
                failure = GatewayTimeoutError(
                    message=f"{operation} timed out after {budget}s",
                    code="GATEWAY_TIMEOUT",
                    timestamp=self._clock(),
                    source=source,
                    operation=operation,
                    timeout_s=budget,
                    outcome_unknown=outcome_unknown,
                )
            except httpx.HTTPError as e:
                failure = GatewayError(
                    message=f"{operation} transport failure: {e}",
                    code="TRANSPORT_ERROR",
                    timestamp=self._clock(),
                    source=source,
                    operation=operation,
                )

        if response is not None and response.is_error:
            failure = self._http_failure(operation, response, source)
        log_integration_call(IntegrationCall(
            operation=operation,
            method=method,
            endpoint=path,
            duration_ms=timer.elapsed_ms,
            success=failure is None,
            status_code=response.status_code if response is not None else None,
            error=failure.message if failure is not None else None,
            request=body,
        ))
        if failure is not None:
            return Err(failure)
        assert response is not None
        return Ok(response)

    def _http_failure(
        self, operation: str, response: httpx.Response, source: str,
    ) -> GatewayError:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            return rejected(operation, body, source, status_code=response.status_code).error
        return GatewayError(
            message=f"{operation} failed with HTTP {response.status_code}",
            code=f"HTTP_{response.status_code}",
            timestamp=self._clock(),
            source=source,
            operation=operation,
            status_code=response.status_code,
            details=(response.text[:500],) if response.text else (),
        )

    def _json(
        self, operation: str, response: httpx.Response,
    ) -> Ok[dict[str, object]] | Err[GatewayError]:
        source = f"gateway.live.LiveGateway.{operation}"
        try:
            body = response.json()
        except ValueError:
            return malformed(operation, ["response body is not JSON"], source)
        if not isinstance(body, dict):
            return malformed(operation, ["response body is not a JSON object"], source)
        return Ok(body)

    async def _with_retry[T](
        self, call: Callable[[], Awaitable[Ok[T] | Err[_Failure]]],
    ) -> Ok[T] | Err[_Failure]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, self._config.retry_attempts)),
            wait=wait_exponential(
                multiplier=self._config.retry_initial_delay_s,
                max=self._config.retry_max_delay_s,
            ),
            retry=retry_if_exception_type(_TransientFailure),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    result = await call()
                    if isinstance(result, Err) and _is_transient(result.error):
                        logger.info(
                            "Transient gateway failure (attempt %d): %s",
                            attempt.retry_state.attempt_number, result.error.message,
                        )
                        raise _TransientFailure(result.error)
                    return result
        except _TransientFailure as exc:
            return Err(exc.error)
        msg = "retry loop exited without a result"
        raise RuntimeError(msg)

    # -- CarrierGateway ---------------------------------------------------

    async def create_application(
        self, app: Application, *, idempotency_key: str,
    ) -> Ok[CreateApplicationResult] | Err[GatewayError | GatewayTimeoutError]:
        match await self._request(
            "createApplication", "POST", "/applications",
            body=application_payload(app, idempotency_key=idempotency_key),
            headers={"Idempotency-Key": idempotency_key},
            outcome_unknown=True,
        ):
            case Err(e):
                return Err(e)
            case Ok(response):
                pass
        match self._json("createApplication", response):
            case Err(e):
                return Err(e)
            case Ok(body):
                return parse_create_response(body, received_at=self._clock())

    async def get_application_status(
        self, application_id: str,
    ) -> Ok[CarrierStatusSnapshot] | Err[GatewayError | GatewayTimeoutError]:
        path = f"/applications/{quote(application_id, safe='')}/status"

        async def attempt() -> Ok[CarrierStatusSnapshot] | Err[_Failure]:
            match await self._request("getApplicationStatus", "GET", path):
                case Err(e):
                    return Err(e)
                case Ok(response):
                    match self._json("getApplicationStatus", response):
                        case Err(e):
                            return Err(e)
                        case Ok(body):
                            return parse_status_response(
                                body, application_id, received_at=self._clock(),
                            )

        return await self._with_retry(attempt)

    async def request_e_signature(
        self, application_id: str, signers: tuple[Signer, ...],
    ) -> Ok[SignatureSession] | Err[GatewayError | GatewayTimeoutError]:
        match await self._request(
            "requestESignature", "POST",
            f"/applications/{quote(application_id, safe='')}/esignature",
            body=signature_request_payload(application_id, signers),
            outcome_unknown=True,
        ):
            case Err(e):
                return Err(e)
            case Ok(response):
                pass
        match self._json("requestESignature", response):
            case Err(e):
                return Err(e)
            case Ok(body):
                return parse_signature_response(body, application_id)

    async def submit_1035_exchange(
        self, request: ExchangeRequest,
    ) -> Ok[ExchangeAcknowledgement] | Err[GatewayError | GatewayTimeoutError]:
        match await self._request(
            "submit1035Exchange", "POST",
            f"/applications/{quote(request.application_id, safe='')}/1035-exchange",
            body=exchange_payload(request),
            outcome_unknown=True,
        ):
            case Err(e):
                return Err(e)
            case Ok(response):
                pass
        match self._json("submit1035Exchange", response):
            case Err(e):
                return Err(e)
            case Ok(body):
                return parse_exchange_response(
                    body, request.application_id, received_at=self._clock(),
                )

    async def generate_acord_xml(
        self, application_id: str,
    ) -> Ok[str] | Err[GatewayError | GatewayTimeoutError]:
        path = f"/applications/{quote(application_id, safe='')}/acord"

        async def attempt() -> Ok[str] | Err[_Failure]:
            match await self._request(
                "generateAcordXml", "GET", path, headers={"Accept": "application/xml"},
            ):
                case Err(e):
                    return Err(e)
                case Ok(response):
                    if not response.text.strip():
                        return malformed(
                            "generateAcordXml", ["empty document"],
                            "gateway.live.LiveGateway.generate_acord_xml",
                        )
                    return Ok(response.text)

        return await self._with_retry(attempt)

    async def health_check(self) -> GatewayHealth:
        async def attempt() -> Ok[GatewayHealth] | Err[_Failure]:
            match await self._request(
                "healthCheck", "GET", "/health", timeout_s=self._config.health_timeout_s,
            ):
                case Err(e):
                    return Err(e)
                case Ok(response):
                    match self._json("healthCheck", response):
                        case Err(e):
                            return Err(e)
                        case Ok(body):
                            return Ok(parse_health_response(
                                body,
                                checked_at=self._clock(),
                                default_environment=self._config.environment,
                            ))

        match await self._with_retry(attempt):
            case Ok(health):
                return health
            case Err(e):
                return GatewayHealth(
                    healthy=False,
                    message=e.message,
                    checked_at=self._clock(),
                    environment=self._config.environment,
                )
