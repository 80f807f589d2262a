"""Carrier webhook envelope: signature check, parsing, event -> status.

Envelope:
  {"event": "application.approved",
   "data": {"applicationId": "...", "status": "...", "statusDate": "...", ...},
   "timestamp": "2025-01-01T00:00:00Z"}

The signature header carries hex HMAC-SHA256 of the raw body, keyed with
the partner webhook secret (an optional "sha256=" prefix is accepted).
"""

from __future__ import annotations

import hashlib
import hmac
import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import final

from annuity_submission.core.errors import GatewayError
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import UtcDatetime
from annuity_submission.gateway.parser import malformed, parse_status_fields
from annuity_submission.model.snapshot import CarrierStatusSnapshot
from annuity_submission.model.status import ApplicationStatus

SIGNATURE_HEADER = "x-webhook-signature"
_OPERATION = "webhook"


class WebhookEventType(Enum):
    APPLICATION_SUBMITTED = "application.submitted"
    APPLICATION_APPROVED = "application.approved"
    APPLICATION_DECLINED = "application.declined"
    APPLICATION_ISSUED = "application.issued"
    CONTRACT_DELIVERED = "contract.delivered"
    STATUS_CHANGE = "status.change"
    ESIGNATURE_COMPLETED = "esignature.completed"
    EXCHANGE_1035_RECEIVED = "exchange.1035.received"


# Events that imply a status on their own. Everything else needs an
# explicit "status" in data or is informational.
EVENT_STATUS: Mapping[WebhookEventType, ApplicationStatus] = {
    WebhookEventType.APPLICATION_SUBMITTED: ApplicationStatus.SUBMITTED,
    WebhookEventType.APPLICATION_APPROVED: ApplicationStatus.APPROVED,
    WebhookEventType.APPLICATION_DECLINED: ApplicationStatus.DECLINED,
    WebhookEventType.APPLICATION_ISSUED: ApplicationStatus.ISSUED,
}


@final
@dataclass(frozen=True, slots=True)
class WebhookEvent:
    event_type: WebhookEventType
    application_id: str
    timestamp: UtcDatetime
    data: Mapping[str, object]


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Constant-time check of the hex HMAC-SHA256 signature."""
    if not signature or not secret:
        return False
    provided = signature.strip().removeprefix("sha256=").lower()
    return hmac.compare_digest(provided, sign_payload(payload, secret))


def sign_payload(payload: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of the raw body, as the carrier computes it."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def parse_webhook(
    payload: bytes | str, *, received_at: UtcDatetime,
) -> Ok[WebhookEvent] | Err[GatewayError]:
    source = "lifecycle.webhooks.parse_webhook"
    try:
        raw = json.loads(payload)
    except (ValueError, UnicodeDecodeError) as e:
        return malformed(_OPERATION, [f"body is not JSON: {e}"], source)
    if not isinstance(raw, dict):
        return malformed(_OPERATION, ["body is not an object"], source)

    problems: list[str] = []
    event_type: WebhookEventType | None = None
    try:
        event_type = WebhookEventType(raw.get("event"))
    except ValueError:
        problems.append(f"unknown event {raw.get('event')!r}")
    data = raw.get("data")
    application_id: str | None = None
    if not isinstance(data, dict):
        problems.append("data missing")
        data = {}
    else:
        app_id = data.get("applicationId")
        if isinstance(app_id, str) and app_id.strip():
            application_id = app_id.strip()
        else:
            problems.append("data.applicationId missing")
    timestamp = received_at
    ts_raw = raw.get("timestamp")
    if isinstance(ts_raw, str):
        match UtcDatetime.parse_iso(ts_raw):
            case Ok(ts):
                timestamp = ts
            case Err(msg):
                problems.append(msg)
    if problems or event_type is None or application_id is None:
        return malformed(_OPERATION, problems, source)
    return Ok(WebhookEvent(
        event_type=event_type,
        application_id=application_id,
        timestamp=timestamp,
        data=data,
    ))


def event_snapshot(
    event: WebhookEvent,
) -> Ok[CarrierStatusSnapshot | None] | Err[GatewayError]:
    """The status report an event carries, or None when it is informational.

    An explicit data.status wins over the status implied by the event name.
    """
    data = dict(event.data)
    if "status" not in data:
        implied = EVENT_STATUS.get(event.event_type)
        if implied is None:
            return Ok(None)
        data["status"] = implied.value
    if "statusDate" not in data:
        data["statusDate"] = event.timestamp.isoformat()
    match parse_status_fields(data, event.application_id, received_at=event.timestamp):
        case Ok(snapshot):
            return Ok(snapshot)
        case Err(problems):
            return malformed(_OPERATION, problems, "lifecycle.webhooks.event_snapshot")
