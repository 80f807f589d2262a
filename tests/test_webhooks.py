"""Tests for annuity_submission.lifecycle.webhooks — signature, envelope, event status."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from annuity_submission.core.errors import GatewayError
from annuity_submission.core.result import Err, Ok, unwrap
from annuity_submission.core.types import UtcDatetime
from annuity_submission.lifecycle.webhooks import (
    EVENT_STATUS,
    WebhookEventType,
    event_snapshot,
    parse_webhook,
    sign_payload,
    verify_signature,
)
from annuity_submission.model.status import ApplicationStatus

_SECRET = "whsec_test"
_RECEIVED = UtcDatetime(value=datetime(2025, 6, 20, 8, 30, tzinfo=UTC))


def _body(event: str = "application.approved", **data: object) -> bytes:
    envelope = {
        "event": event,
        "data": {"applicationId": "FL-1001", **data},
        "timestamp": "2025-06-20T08:00:00Z",
    }
    return json.dumps(envelope).encode("utf-8")


class TestSignature:
    def test_round_trip(self) -> None:
        body = _body()
        assert verify_signature(body, sign_payload(body, _SECRET), _SECRET)

    def test_prefix_and_case_accepted(self) -> None:
        body = _body()
        signature = "sha256=" + sign_payload(body, _SECRET).upper()
        assert verify_signature(body, signature, _SECRET)

    def test_tampered_body(self) -> None:
        signature = sign_payload(_body(), _SECRET)
        assert not verify_signature(_body(status="DECLINED"), signature, _SECRET)

    def test_wrong_secret(self) -> None:
        body = _body()
        assert not verify_signature(body, sign_payload(body, "other"), _SECRET)

    @pytest.mark.parametrize(("signature", "secret"), [("", _SECRET), ("abc", "")])
    def test_missing_inputs(self, signature: str, secret: str) -> None:
        assert not verify_signature(_body(), signature, secret)


class TestParseWebhook:
    def test_valid_envelope(self) -> None:
        event = unwrap(parse_webhook(_body(), received_at=_RECEIVED))
        assert event.event_type == WebhookEventType.APPLICATION_APPROVED
        assert event.application_id == "FL-1001"
        assert event.timestamp.value == datetime(2025, 6, 20, 8, 0, tzinfo=UTC)

    def test_missing_timestamp_uses_received_at(self) -> None:
        body = json.dumps({"event": "status.change", "data": {"applicationId": "FL-1"}})
        event = unwrap(parse_webhook(body, received_at=_RECEIVED))
        assert event.timestamp == _RECEIVED

    def test_not_json(self) -> None:
        match parse_webhook(b"{not json", received_at=_RECEIVED):
            case Err(GatewayError() as e):
                assert e.code == "MALFORMED_RESPONSE"
                assert e.details[0].startswith("body is not JSON")
            case other:
                pytest.fail(f"expected malformed, got {other}")

    def test_every_problem_listed(self) -> None:
        body = json.dumps({"event": "policy.lapsed", "data": {}, "timestamp": "soon"})
        result = parse_webhook(body, received_at=_RECEIVED)
        assert isinstance(result, Err)
        assert len(result.error.details) == 3

    def test_array_body(self) -> None:
        assert isinstance(parse_webhook("[]", received_at=_RECEIVED), Err)


class TestEventSnapshot:
    @pytest.mark.parametrize(("event_type", "status"), list(EVENT_STATUS.items()))
    def test_implied_status(
        self, event_type: WebhookEventType, status: ApplicationStatus,
    ) -> None:
        extra = {"contractNumber": "C-9"} if status == ApplicationStatus.ISSUED else {}
        event = unwrap(parse_webhook(_body(event_type.value, **extra), received_at=_RECEIVED))
        snapshot = unwrap(event_snapshot(event))
        assert snapshot is not None
        assert snapshot.status == status
        assert snapshot.status_date == event.timestamp

    def test_explicit_status_wins(self) -> None:
        event = unwrap(parse_webhook(
            _body("application.approved", status="IN_REVIEW"), received_at=_RECEIVED,
        ))
        snapshot = unwrap(event_snapshot(event))
        assert snapshot is not None
        assert snapshot.status == ApplicationStatus.IN_REVIEW

    def test_status_change_with_notes(self) -> None:
        event = unwrap(parse_webhook(
            _body("status.change", status="PENDING_REVIEW", statusNotes="Awaiting NIGO fix"),
            received_at=_RECEIVED,
        ))
        snapshot = unwrap(event_snapshot(event))
        assert snapshot is not None
        assert snapshot.notes == "Awaiting NIGO fix"

    @pytest.mark.parametrize("event", [
        "status.change", "esignature.completed", "exchange.1035.received", "contract.delivered",
    ])
    def test_informational(self, event: str) -> None:
        parsed = unwrap(parse_webhook(_body(event), received_at=_RECEIVED))
        assert event_snapshot(parsed) == Ok(None)

    def test_unknown_status_is_malformed(self) -> None:
        event = unwrap(parse_webhook(
            _body("status.change", status="LAPSED"), received_at=_RECEIVED,
        ))
        result = event_snapshot(event)
        assert isinstance(result, Err)
        assert result.error.details == ("unknown status 'LAPSED'",)
