"""1035 exchange packaging and ACORD artifact generation.

A 1035 package is only built for applications funded by a 1035 exchange,
once the carrier holds the application (SUBMITTED through APPROVED), and
only with a signed transfer authorization. An unsigned authorization is a
blocking ComplianceError; nothing is sent.

ACORD generation is read-only and available from SUBMITTED onward. The
returned document is parsed before it is handed out, and its PolNumber
must match the carrier application id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import final

from annuity_submission.core.errors import (
    ComplianceError,
    GatewayError,
    GatewayTimeoutError,
    IllegalTransitionError,
)
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.serialization import text_hash
from annuity_submission.core.types import Clock, UtcDatetime, system_clock
from annuity_submission.gateway.acord import parse_acord_xml
from annuity_submission.gateway.protocol import CarrierGateway
from annuity_submission.gateway.types import (
    ExchangeAcknowledgement,
    ExchangeRequest,
    ExistingPolicy,
    TransferAuthorization,
)
from annuity_submission.infra.config import FeatureFlags
from annuity_submission.model.application import Application
from annuity_submission.model.status import ACTIVE_SUBMITTED_STATUSES, ApplicationStatus

logger = logging.getLogger(__name__)

DEFAULT_POLICY_TYPE = "Annuity"

type ExchangeFailure = (
    ComplianceError | IllegalTransitionError | GatewayError | GatewayTimeoutError
)


@final
@dataclass(frozen=True, slots=True)
class AcordArtifact:
    """A parsed, hashed ACORD TXLife document kept for audit and DTCC matching."""

    application_id: str
    xml: str
    content_hash: str
    dtcc_reference: str | None
    generated_at: UtcDatetime


class ExchangeComplianceHandler:
    def __init__(
        self,
        gateway: CarrierGateway,
        *,
        features: FeatureFlags = FeatureFlags(),
        clock: Clock = system_clock,
    ) -> None:
        self._gateway = gateway
        self._features = features
        self._clock = clock

    def _compliance(self, message: str, requirement: str, operation: str) -> ComplianceError:
        return ComplianceError(
            message=message,
            code="COMPLIANCE_BLOCKED",
            timestamp=self._clock(),
            source=f"compliance.exchange.ExchangeComplianceHandler.{operation}",
            requirement=requirement,
        )

    def _not_submitted(self, app: Application, operation: str) -> IllegalTransitionError:
        return IllegalTransitionError(
            message=f"{operation} requires a submitted application; "
                    f"{app.application_ref} is {app.status.value}",
            code="ILLEGAL_TRANSITION",
            timestamp=self._clock(),
            source=f"compliance.exchange.ExchangeComplianceHandler.{operation}",
            from_state=app.status.value,
            to_state=ApplicationStatus.SUBMITTED.value,
        )

    def build_exchange_package(
        self, app: Application, authorization: TransferAuthorization,
    ) -> Ok[ExchangeRequest] | Err[ComplianceError | IllegalTransitionError]:
        op = "build_exchange_package"
        exchange = app.premium.exchange_1035
        if not app.premium.is_1035_exchange or exchange is None:
            return Err(self._compliance(
                f"{app.application_ref} is not funded by a 1035 exchange",
                "source_of_funds", op,
            ))
        receipt = app.receipt
        if app.status not in ACTIVE_SUBMITTED_STATUSES or receipt is None:
            return Err(self._not_submitted(app, op))
        if not authorization.signed:
            return Err(self._compliance(
                "Transfer authorization must be signed before a 1035 exchange is submitted",
                "transfer_authorization", op,
            ))
        if exchange.account_value is None or exchange.surrender_value is None:
            return Err(self._compliance(
                "Account and surrender values of the existing contract are required",
                "exchange_values", op,
            ))
        return Ok(ExchangeRequest(
            application_id=receipt.application_id,
            existing_policy=ExistingPolicy(
                carrier=exchange.existing_carrier,
                policy_number=exchange.policy_number,
                policy_type=exchange.policy_type or DEFAULT_POLICY_TYPE,
                account_value=exchange.account_value,
                surrender_value=exchange.surrender_value,
                cost_basis=exchange.cost_basis,
            ),
            authorization=authorization,
        ))

    async def submit_exchange(
        self, app: Application, authorization: TransferAuthorization,
    ) -> Ok[ExchangeAcknowledgement] | Err[ExchangeFailure]:
        match self.build_exchange_package(app, authorization):
            case Err(e):
                logger.info("1035 submission for %s refused: %s", app.application_ref, e.message)
                return Err(e)
            case Ok(request):
                pass
        match await self._gateway.submit_1035_exchange(request):
            case Err(e):
                logger.warning(
                    "1035 submission for %s failed: %s", app.application_ref, e.message,
                )
                return Err(e)
            case Ok(ack):
                logger.info(
                    "1035 exchange for %s acknowledged (reference %s)",
                    app.application_ref, ack.reference,
                )
                return Ok(ack)

    async def generate_acord(
        self, app: Application,
    ) -> Ok[AcordArtifact] | Err[ExchangeFailure]:
        op = "generate_acord"
        if not self._features.acord_xml:
            return Err(self._compliance(
                "ACORD XML generation is disabled for this integration", "feature_acord_xml", op,
            ))
        receipt = app.receipt
        if receipt is None:
            return Err(self._not_submitted(app, op))
        match await self._gateway.generate_acord_xml(receipt.application_id):
            case Err(e):
                return Err(e)
            case Ok(xml):
                pass
        match parse_acord_xml(xml):
            case Err(problem):
                return Err(self._compliance(problem, "acord_document", op))
            case Ok(summary):
                pass
        if summary.application_id != receipt.application_id:
            return Err(self._compliance(
                f"ACORD PolNumber {summary.application_id} does not match "
                f"{receipt.application_id}",
                "acord_document", op,
            ))
        return Ok(AcordArtifact(
            application_id=receipt.application_id,
            xml=xml,
            content_hash=text_hash(xml),
            dtcc_reference=summary.dtcc_reference or receipt.dtcc_reference,
            generated_at=self._clock(),
        ))
