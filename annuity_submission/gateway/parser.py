"""Gateway wire shape -> domain types.

Every parse_* function is total: a malformed body is an Err[GatewayError]
listing every problem found, never an exception.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

from annuity_submission.core.errors import GatewayError, ValidationWarning
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import UtcDatetime
from annuity_submission.gateway.types import (
    CreateApplicationResult,
    ExchangeAcknowledgement,
    GatewayHealth,
    SignatureSession,
    SignerRole,
    SigningUrl,
)
from annuity_submission.infra.config import Environment
from annuity_submission.model.snapshot import CarrierStatusSnapshot, DtccStatus, IssuedContract
from annuity_submission.model.status import ApplicationStatus, parse_status

logger = logging.getLogger(__name__)

_HEALTHY_STATUSES = frozenset({"ok", "healthy", "up", "pass"})


def _extract_str(raw: dict[str, object], key: str) -> str | None:
    val = raw.get(key)
    if isinstance(val, str) and val.strip():
        return val.strip()
    return None


def _extract_decimal(raw: dict[str, object], key: str) -> Decimal | None:
    val = raw.get(key)
    if isinstance(val, bool):
        return None
    if isinstance(val, (int, float, str)):
        try:
            return Decimal(str(val))
        except InvalidOperation:
            return None
    return None


def _extract_date(raw: dict[str, object], key: str) -> date | None:
    val = _extract_str(raw, key)
    if val is None:
        return None
    try:
        return date.fromisoformat(val[:10])
    except ValueError:
        return None


def _extract_timestamp(raw: dict[str, object], key: str) -> UtcDatetime | None:
    val = _extract_str(raw, key)
    if val is None:
        return None
    match UtcDatetime.parse_iso(val):
        case Ok(ts):
            return ts
        case Err(_):
            return None


def _messages(raw: dict[str, object], key: str) -> tuple[str, ...]:
    val = raw.get(key)
    if isinstance(val, list):
        return tuple(str(v) for v in val if v)
    if isinstance(val, str) and val:
        return (val,)
    return ()


def malformed(operation: str, problems: list[str], source: str) -> Err[GatewayError]:
    return Err(GatewayError(
        message=f"Malformed {operation} response",
        code="MALFORMED_RESPONSE",
        timestamp=UtcDatetime.now(),
        source=source,
        operation=operation,
        details=tuple(problems),
    ))


def rejected(
    operation: str, raw: dict[str, object], source: str, status_code: int | None = None,
) -> Err[GatewayError]:
    """success=false (or non-2xx) body -> GatewayError carrying the carrier's messages."""
    details = _messages(raw, "errors") + _messages(raw, "error")
    message = _extract_str(raw, "message") or (details[0] if details else "request rejected")
    return Err(GatewayError(
        message=f"Carrier rejected {operation}: {message}",
        code="CARRIER_REJECTED",
        timestamp=UtcDatetime.now(),
        source=source,
        operation=operation,
        status_code=status_code,
        details=details,
    ))


def carrier_warnings(raw: dict[str, object]) -> tuple[ValidationWarning, ...]:
    return tuple(
        ValidationWarning(path="carrier", message=m, code="CARRIER_WARNING")
        for m in _messages(raw, "warnings")
    )


def parse_create_response(
    raw: dict[str, object], *, received_at: UtcDatetime,
) -> Ok[CreateApplicationResult] | Err[GatewayError]:
    source = "gateway.parser.parse_create_response"
    if raw.get("success") is False:
        return rejected("createApplication", raw, source)
    problems: list[str] = []
    application_id = _extract_str(raw, "applicationId")
    if application_id is None:
        problems.append("applicationId missing")
    confirmation = _extract_str(raw, "confirmationNumber")
    if confirmation is None:
        problems.append("confirmationNumber missing")
    status = parse_status(raw.get("status", ApplicationStatus.SUBMITTED.value))
    if status is None:
        problems.append(f"unknown status {raw.get('status')!r}")
    if problems or application_id is None or confirmation is None or status is None:
        return malformed("createApplication", problems, source)
    return Ok(CreateApplicationResult(
        application_id=application_id,
        confirmation_number=confirmation,
        status=status,
        created_at=_extract_timestamp(raw, "createdAt") or received_at,
        dtcc_reference=_extract_str(raw, "dtccReferenceNumber"),
        warnings=carrier_warnings(raw),
    ))


def parse_status_fields(
    raw: dict[str, object], application_id: str, *, received_at: UtcDatetime,
) -> Ok[CarrierStatusSnapshot] | Err[list[str]]:
    """Shared by the status poll and webhook payloads."""
    problems: list[str] = []
    status = parse_status(raw.get("status"))
    if status is None:
        problems.append(f"unknown status {raw.get('status')!r}")
    reported_id = _extract_str(raw, "applicationId")
    if reported_id is not None and reported_id != application_id:
        problems.append(f"applicationId {reported_id!r} does not match {application_id!r}")

    contract: IssuedContract | None = None
    contract_number = _extract_str(raw, "contractNumber")
    if contract_number is not None:
        contract = IssuedContract(
            contract_number=contract_number,
            issue_date=_extract_date(raw, "issueDate"),
            effective_date=_extract_date(raw, "effectiveDate"),
            contract_value=_extract_decimal(raw, "contractValue"),
        )
    if status == ApplicationStatus.ISSUED and contract is None:
        problems.append("ISSUED status without contractNumber")

    dtcc: DtccStatus | None = None
    dtcc_raw = _extract_str(raw, "dtccStatus")
    if dtcc_raw is not None:
        dtcc = DtccStatus(status=dtcc_raw, status_date=_extract_timestamp(raw, "dtccStatusDate"))

    if problems or status is None:
        return Err(problems)
    return Ok(CarrierStatusSnapshot(
        application_id=application_id,
        status=status,
        status_date=_extract_timestamp(raw, "statusDate") or received_at,
        notes=_extract_str(raw, "statusNotes"),
        contract=contract,
        dtcc=dtcc,
    ))


def parse_status_response(
    raw: dict[str, object], application_id: str, *, received_at: UtcDatetime,
) -> Ok[CarrierStatusSnapshot] | Err[GatewayError]:
    source = "gateway.parser.parse_status_response"
    if raw.get("success") is False:
        return rejected("getApplicationStatus", raw, source)
    match parse_status_fields(raw, application_id, received_at=received_at):
        case Ok(snapshot):
            return Ok(snapshot)
        case Err(problems):
            return malformed("getApplicationStatus", problems, source)


def _parse_role(raw: object) -> SignerRole | None:
    if not isinstance(raw, str):
        return None
    for role in SignerRole:
        if raw.strip().lower() in (role.value.lower(), role.name.lower()):
            return role
    return None


def parse_signature_response(
    raw: dict[str, object], application_id: str,
) -> Ok[SignatureSession] | Err[GatewayError]:
    source = "gateway.parser.parse_signature_response"
    if raw.get("success") is False:
        return rejected("requestESignature", raw, source)
    problems: list[str] = []
    session_id = _extract_str(raw, "sessionId")
    if session_id is None:
        problems.append("sessionId missing")
    expires_at = _extract_timestamp(raw, "expiresAt")
    if expires_at is None:
        problems.append("expiresAt missing or invalid")
    urls: list[SigningUrl] = []
    entries = raw.get("signatureUrls")
    if not isinstance(entries, list) or not entries:
        problems.append("signatureUrls missing")
    else:
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                problems.append(f"signatureUrls[{i}] is not an object")
                continue
            role = _parse_role(entry.get("role"))
            url = _extract_str(entry, "url")
            if role is None or url is None:
                problems.append(f"signatureUrls[{i}] needs a known role and a url")
                continue
            urls.append(SigningUrl(role=role, url=url))
    if problems or session_id is None or expires_at is None:
        return malformed("requestESignature", problems, source)
    return Ok(SignatureSession(
        application_id=application_id,
        session_id=session_id,
        urls=tuple(urls),
        expires_at=expires_at,
    ))


def parse_exchange_response(
    raw: dict[str, object], application_id: str, *, received_at: UtcDatetime,
) -> Ok[ExchangeAcknowledgement] | Err[GatewayError]:
    if raw.get("success") is False:
        return rejected("submit1035Exchange", raw, "gateway.parser.parse_exchange_response")
    return Ok(ExchangeAcknowledgement(
        application_id=application_id,
        received_at=_extract_timestamp(raw, "receivedAt") or received_at,
        reference=_extract_str(raw, "referenceNumber"),
        message=_extract_str(raw, "message"),
    ))


def parse_health_response(
    raw: dict[str, object],
    *,
    checked_at: UtcDatetime,
    default_environment: Environment | None = None,
) -> GatewayHealth:
    """Health from a 2xx /health body.

    A 2xx reply is healthy unless the body says otherwise: an explicit
    "healthy" flag wins, then a "status" other than ok. A missing or
    unknown environment falls back to default_environment.
    """
    environment = default_environment
    env_raw = _extract_str(raw, "environment")
    if env_raw is not None:
        try:
            environment = Environment(env_raw.lower())
        except ValueError:
            logger.warning("Unknown gateway environment in health reply: %r", env_raw)
    flag = raw.get("healthy")
    status = _extract_str(raw, "status")
    if isinstance(flag, bool):
        healthy = flag
    elif status is not None:
        healthy = status.lower() in _HEALTHY_STATUSES
    else:
        healthy = True
    return GatewayHealth(
        healthy=healthy,
        message=_extract_str(raw, "message") or ("ok" if healthy else "unhealthy"),
        checked_at=checked_at,
        environment=environment,
        version=_extract_str(raw, "version"),
    )
