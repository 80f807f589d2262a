"""E-signature orchestration for submitted applications.

Signers, in order: annuitant, owner (unless the owner is the annuitant),
joint owner (when present), writing agent. Every signer needs a name and
an email; a request with any gap is refused before the gateway is called.

A SignatureSession is valid until expires_at. An expired session is never
handed out again: the caller must request a fresh one.
"""

from __future__ import annotations

import logging

from annuity_submission.core.errors import (
    ComplianceError,
    GatewayError,
    GatewayTimeoutError,
    IllegalTransitionError,
)
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import Clock, UtcDatetime, system_clock
from annuity_submission.gateway.protocol import CarrierGateway
from annuity_submission.gateway.types import SignatureSession, Signer, SignerRole
from annuity_submission.infra.config import FeatureFlags
from annuity_submission.model.application import Application
from annuity_submission.model.parties import IndividualOwner, Owner, owner_is_annuitant
from annuity_submission.model.status import ACTIVE_SUBMITTED_STATUSES, ApplicationStatus

logger = logging.getLogger(__name__)

type SignatureFailure = (
    ComplianceError | IllegalTransitionError | GatewayError | GatewayTimeoutError
)


def _owner_contact(owner: Owner) -> tuple[str, str]:
    match owner:
        case IndividualOwner():
            return owner.display_name, (owner.email or "").strip()
        case _:
            name = (owner.signer_name or "").strip() or owner.display_name
            return name, (owner.email or "").strip()


def is_expired(session: SignatureSession, at: UtcDatetime) -> bool:
    return at.value >= session.expires_at.value


class ESignatureOrchestrator:
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
        self._sessions: dict[str, SignatureSession] = {}

    def _compliance(self, message: str, requirement: str, operation: str) -> ComplianceError:
        return ComplianceError(
            message=message,
            code="ESIGNATURE_BLOCKED",
            timestamp=self._clock(),
            source=f"esign.orchestrator.ESignatureOrchestrator.{operation}",
            requirement=requirement,
        )

    def required_signers(
        self, app: Application,
    ) -> Ok[tuple[Signer, ...]] | Err[ComplianceError]:
        """Signers in signing order, or every missing contact detail at once."""
        candidates: list[tuple[SignerRole, str, str]] = [
            (SignerRole.ANNUITANT, app.annuitant.full_name, app.annuitant.email.strip()),
        ]
        if not owner_is_annuitant(app.owner, app.annuitant):
            candidates.append((SignerRole.OWNER, *_owner_contact(app.owner)))
        if app.joint_owner is not None:
            candidates.append((SignerRole.JOINT_OWNER, *_owner_contact(app.joint_owner)))
        candidates.append(
            (SignerRole.AGENT, app.agent.name.strip(), (app.agent.email or "").strip()),
        )

        missing = [
            f"{role.value} {field}"
            for role, name, email in candidates
            for field, value in (("name", name), ("email", email))
            if not value
        ]
        if missing:
            return Err(self._compliance(
                f"Missing signer contact information: {', '.join(missing)}",
                "signer_contact", "required_signers",
            ))
        return Ok(tuple(Signer(role=r, name=n, email=e) for r, n, e in candidates))

    async def request_signatures(
        self, app: Application,
    ) -> Ok[SignatureSession] | Err[SignatureFailure]:
        if not self._features.e_signature:
            return Err(self._compliance(
                "E-signature is disabled for this integration",
                "feature_e_signature", "request_signatures",
            ))
        receipt = app.receipt
        if app.status not in ACTIVE_SUBMITTED_STATUSES or receipt is None:
            return Err(IllegalTransitionError(
                message=(
                    f"E-signature requires a submitted, non-terminal application; "
                    f"{app.application_ref} is {app.status.value}"
                ),
                code="ILLEGAL_TRANSITION",
                timestamp=self._clock(),
                source="esign.orchestrator.ESignatureOrchestrator.request_signatures",
                from_state=app.status.value,
                to_state=ApplicationStatus.SUBMITTED.value,
            ))
        match self.required_signers(app):
            case Err(e):
                return Err(e)
            case Ok(signers):
                pass
        match await self._gateway.request_e_signature(receipt.application_id, signers):
            case Err(e):
                logger.warning(
                    "E-signature request for %s failed: %s", app.application_ref, e.message,
                )
                return Err(e)
            case Ok(session):
                self._sessions[receipt.application_id] = session
                logger.info(
                    "E-signature session %s for %s: %d signer(s), expires %s",
                    session.session_id, app.application_ref, len(session.urls),
                    session.expires_at.isoformat(),
                )
                return Ok(session)

    def is_expired(self, session: SignatureSession) -> bool:
        return is_expired(session, self._clock())

    def active_session(self, application_id: str) -> SignatureSession | None:
        """The last session requested for application_id, unless it has expired."""
        session = self._sessions.get(application_id)
        if session is None or self.is_expired(session):
            return None
        return session

    def signing_url(
        self, session: SignatureSession, role: SignerRole,
    ) -> Ok[str] | Err[ComplianceError]:
        if self.is_expired(session):
            return Err(self._compliance(
                f"Signature session {session.session_id} expired at "
                f"{session.expires_at.isoformat()}; request a new session",
                "session_expired", "signing_url",
            ))
        for entry in session.urls:
            if entry.role == role:
                return Ok(entry.url)
        return Err(self._compliance(
            f"No {role.value} signer in session {session.session_id}",
            "signer_in_session", "signing_url",
        ))
