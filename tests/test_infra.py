"""Tests for annuity_submission.infra — protocols, config, audit, health and memory adapters."""

from __future__ import annotations

import dataclasses
import logging
from datetime import UTC, datetime

import pytest

from annuity_submission.core.errors import PersistenceError, ValidationError
from annuity_submission.core.result import Err, Ok, unwrap
from annuity_submission.core.types import IdempotencyKey, UtcDatetime
from annuity_submission.gateway.simulation import SimulationGateway
from annuity_submission.infra.audit import (
    REDACTED,
    IntegrationCall,
    Timer,
    log_integration_call,
    sanitize_for_logging,
)
from annuity_submission.infra.config import (
    DEFAULT_BASE_URLS,
    Environment,
    FeatureFlags,
    GatewayConfig,
    TemporalConfig,
    validate_config,
)
from annuity_submission.infra.health import liveness_check, readiness_check
from annuity_submission.infra.memory_adapter import (
    InMemoryApplicationStore,
    InMemoryReconciliationLog,
)
from annuity_submission.infra.protocols import ApplicationStore, ReconciliationLog
from annuity_submission.model.application import Application
from annuity_submission.model.reconciliation import (
    ReconciliationEntry,
    ReconciliationReason,
)

_TS = UtcDatetime(value=datetime(2025, 6, 15, 12, 0, tzinfo=UTC))


def _entry(entry_id: str = "rec-1", ref: str = "APP-0001") -> ReconciliationEntry:
    return ReconciliationEntry(
        entry_id=entry_id,
        application_ref=ref,
        idempotency_key=IdempotencyKey(value="key-1"),
        operation="createApplication",
        reason=ReconciliationReason.TIMEOUT,
        detail="timed out",
        recorded_at=_TS,
    )


def _code(result: object) -> str:
    match result:
        case Err(PersistenceError() as e):
            return e.code
        case other:
            pytest.fail(f"expected PersistenceError, got {other}")


# ---------------------------------------------------------------------------
# Protocol structural typing checks
# ---------------------------------------------------------------------------


class TestProtocolStructuralTyping:
    def test_application_store(self) -> None:
        assert isinstance(InMemoryApplicationStore(), ApplicationStore)

    def test_reconciliation_log(self) -> None:
        assert isinstance(InMemoryReconciliationLog(), ReconciliationLog)


# ---------------------------------------------------------------------------
# GatewayConfig / TemporalConfig
# ---------------------------------------------------------------------------


class TestGatewayConfig:
    def test_defaults_are_simulation(self) -> None:
        config = unwrap(GatewayConfig.from_env({}))
        assert not config.is_live
        assert config.environment == Environment.SANDBOX
        assert config.base_url == DEFAULT_BASE_URLS[Environment.SANDBOX]
        assert config.timeout_s == 30.0
        assert config.retry_attempts == 3
        assert config.features == FeatureFlags()

    def test_live_configuration(self) -> None:
        config = unwrap(GatewayConfig.from_env({
            "FIRELIGHT_ENABLED": "true",
            "FIRELIGHT_API_KEY": "key",
            "FIRELIGHT_API_SECRET": "secret",
            "FIRELIGHT_PARTNER_ID": "partner",
            "FIRELIGHT_ENVIRONMENT": "Production",
            "FIRELIGHT_TIMEOUT": "15000",
            "FIRELIGHT_RETRY_DELAY": "250",
            "FIRELIGHT_FEATURE_DTCC": "off",
        }))
        assert config.is_live
        assert config.environment == Environment.PRODUCTION
        assert config.base_url == DEFAULT_BASE_URLS[Environment.PRODUCTION]
        assert config.timeout_s == 15.0
        assert config.retry_initial_delay_s == 0.25
        assert not config.features.dtcc_integration
        assert config.features.e_signature

    def test_enabled_without_key_stays_simulated(self) -> None:
        config = unwrap(GatewayConfig.from_env({
            "FIRELIGHT_ENABLED": "1", "FIRELIGHT_PARTNER_ID": "partner",
        }))
        assert not config.is_live

    def test_explicit_base_url(self) -> None:
        config = unwrap(GatewayConfig.from_env({"FIRELIGHT_BASE_URL": "https://carrier.test"}))
        assert config.base_url == "https://carrier.test"

    def test_invalid_values_collected(self) -> None:
        result = GatewayConfig.from_env({
            "FIRELIGHT_TIMEOUT": "thirty",
            "FIRELIGHT_ENVIRONMENT": "staging",
        })
        match result:
            case Err(ValidationError() as e):
                assert e.code == "INVALID_CONFIG"
                assert {f.path for f in e.fields} == {
                    "FIRELIGHT_TIMEOUT", "FIRELIGHT_ENVIRONMENT",
                }
            case other:
                pytest.fail(f"expected INVALID_CONFIG, got {other}")

    def test_repr_hides_credentials(self) -> None:
        config = GatewayConfig(api_key="k-123", api_secret="s-456", webhook_secret="w-789")
        text = repr(config)
        for secret in ("k-123", "s-456", "w-789"):
            assert secret not in text


class TestValidateConfig:
    def test_disabled_default_is_clean(self) -> None:
        assert validate_config(GatewayConfig()) == []

    def test_enabled_missing_credentials(self) -> None:
        assert validate_config(GatewayConfig(enabled=True)) == [
            "FIRELIGHT_API_KEY is required when the integration is enabled",
            "FIRELIGHT_API_SECRET is required when the integration is enabled",
            "FIRELIGHT_PARTNER_ID is required when the integration is enabled",
        ]

    def test_bad_numbers(self) -> None:
        config = GatewayConfig(timeout_s=0, health_timeout_s=-1, retry_attempts=-1)
        assert validate_config(config) == [
            "Timeout must be positive",
            "Health check timeout must be positive",
            "Retry attempts must not be negative",
        ]


class TestTemporalConfig:
    def test_defaults(self) -> None:
        assert TemporalConfig.from_env({}) == TemporalConfig()

    def test_overrides(self) -> None:
        config = TemporalConfig.from_env({
            "TEMPORAL_HOST": "temporal:7233",
            "TEMPORAL_TASK_QUEUE": "annuity-sandbox",
            "TEMPORAL_STATUS_POLL_INTERVAL_S": "60",
        })
        assert config.host == "temporal:7233"
        assert config.namespace == "default"
        assert config.task_queue == "annuity-sandbox"
        assert config.status_poll_interval_s == 60


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


class TestSanitize:
    def test_nested_keys_masked(self) -> None:
        body = {
            "annuitant": {"firstName": "Jane", "ssn": "123-45-6789"},
            "owner": {"ein": "12-3456789"},
            "premium": {"routingNumber": "011000015", "account_number": "9"},
            "headers": {"Authorization": "Bearer x", "X-Api-Key": "k"},
            "beneficiaries": [{"ssn": "1"}, {"name": "Ann"}],
        }
        clean = sanitize_for_logging(body)
        assert clean["annuitant"] == {"firstName": "Jane", "ssn": REDACTED}
        assert clean["owner"]["ein"] == REDACTED
        assert clean["premium"] == {"routingNumber": REDACTED, "account_number": REDACTED}
        assert clean["headers"] == {"Authorization": REDACTED, "X-Api-Key": REDACTED}
        assert clean["beneficiaries"] == [{"ssn": REDACTED}, {"name": "Ann"}]

    def test_original_untouched(self) -> None:
        body = {"ssn": "123-45-6789"}
        sanitize_for_logging(body)
        assert body == {"ssn": "123-45-6789"}

    def test_scalars_pass_through(self) -> None:
        assert sanitize_for_logging("text") == "text"
        assert sanitize_for_logging(None) is None
        assert sanitize_for_logging((1, 2)) == [1, 2]


class TestIntegrationAudit:
    def test_success_logged_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="annuity_submission.infra.audit"):
            log_integration_call(IntegrationCall(
                operation="createApplication", method="POST", endpoint="/applications",
                duration_ms=12.34, success=True, status_code=201,
                request={"annuitant": {"ssn": "123-45-6789"}},
            ))
        (record,) = caplog.records
        assert record.levelno == logging.INFO
        assert "INTEGRATION_AUDIT" in record.getMessage()
        assert "123-45-6789" not in record.getMessage()
        assert REDACTED in record.getMessage()

    def test_failure_logged_at_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="annuity_submission.infra.audit"):
            log_integration_call(IntegrationCall(
                operation="getApplicationStatus", method="GET",
                endpoint="/applications/FL-1/status", duration_ms=5.0, success=False,
                status_code=503, error="HTTP 503",
            ))
        (record,) = caplog.records
        assert record.levelno == logging.WARNING

    def test_timer(self) -> None:
        with Timer() as timer:
            pass
        assert timer.elapsed_ms >= 0.0


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_liveness(self) -> None:
        status = liveness_check()
        assert status.healthy
        assert (status.component, status.message) == ("process", "alive")

    @pytest.mark.asyncio
    async def test_readiness_in_simulation(self) -> None:
        health = await readiness_check(SimulationGateway())
        assert health.overall_healthy
        assert [c.component for c in health.checks] == [
            "process", "carrier_gateway.simulation",
        ]
        assert "Simulation mode" in health.checks[1].message


# ---------------------------------------------------------------------------
# InMemoryApplicationStore
# ---------------------------------------------------------------------------


class TestInMemoryApplicationStore:
    def test_get_missing(self) -> None:
        assert _code(InMemoryApplicationStore().get("APP-X")) == "NOT_FOUND"

    def test_insert_then_get(self, draft: Application) -> None:
        store = InMemoryApplicationStore()
        assert store.put(draft, expected_version=None) == Ok(None)
        assert unwrap(store.get(draft.application_ref)) == draft
        assert unwrap(store.list_refs()) == (draft.application_ref,)
        assert store.count() == 1

    def test_insert_twice_conflicts(self, draft: Application) -> None:
        store = InMemoryApplicationStore()
        unwrap(store.put(draft, expected_version=None))
        assert _code(store.put(draft, expected_version=None)) == "VERSION_CONFLICT"

    def test_update_missing(self, draft: Application) -> None:
        result = InMemoryApplicationStore().put(
            dataclasses.replace(draft, version=1), expected_version=0,
        )
        assert _code(result) == "NOT_FOUND"

    def test_compare_and_swap(self, draft: Application) -> None:
        store = InMemoryApplicationStore()
        unwrap(store.put(draft, expected_version=None))
        v1 = dataclasses.replace(draft, version=1)
        unwrap(store.put(v1, expected_version=0))
        # stale writer still holds version 0
        assert _code(store.put(v1, expected_version=0)) == "VERSION_CONFLICT"
        assert unwrap(store.get(draft.application_ref)) == v1

    def test_version_must_advance(self, draft: Application) -> None:
        store = InMemoryApplicationStore()
        unwrap(store.put(draft, expected_version=None))
        assert _code(store.put(draft, expected_version=0)) == "VERSION_CONFLICT"

    def test_find_by_carrier_id_absent(self, draft: Application) -> None:
        store = InMemoryApplicationStore()
        unwrap(store.put(draft, expected_version=None))
        assert store.find_by_carrier_id("FL-NOPE") == Ok(None)


# ---------------------------------------------------------------------------
# InMemoryReconciliationLog
# ---------------------------------------------------------------------------


class TestInMemoryReconciliationLog:
    def test_record_and_filter(self) -> None:
        log = InMemoryReconciliationLog()
        unwrap(log.record(_entry("rec-1", "APP-1")))
        unwrap(log.record(_entry("rec-2", "APP-2")))
        assert [e.entry_id for e in unwrap(log.open_entries())] == ["rec-1", "rec-2"]
        assert [e.entry_id for e in unwrap(log.open_entries("APP-2"))] == ["rec-2"]

    def test_duplicate_rejected(self) -> None:
        log = InMemoryReconciliationLog()
        unwrap(log.record(_entry()))
        assert _code(log.record(_entry())) == "PERSISTENCE_ERROR"
        assert log.count() == 1

    def test_resolve(self) -> None:
        log = InMemoryReconciliationLog()
        unwrap(log.record(_entry()))
        resolved = unwrap(log.resolve("rec-1", resolution="not on carrier", resolved_at=_TS))
        assert not resolved.is_open
        assert resolved.resolution == "not on carrier"
        assert unwrap(log.open_entries()) == ()

    def test_resolve_twice(self) -> None:
        log = InMemoryReconciliationLog()
        unwrap(log.record(_entry()))
        unwrap(log.resolve("rec-1", resolution="ok", resolved_at=_TS))
        assert _code(log.resolve("rec-1", resolution="again", resolved_at=_TS)) == (
            "PERSISTENCE_ERROR"
        )

    def test_resolve_unknown(self) -> None:
        result = InMemoryReconciliationLog().resolve("nope", resolution="x", resolved_at=_TS)
        assert _code(result) == "NOT_FOUND"
