"""Carrier gateway and worker configuration.

Pure configuration data, read once from the environment. An incomplete or
disabled gateway configuration is not an error: it selects simulation mode.
Credentials are never logged; repr hides them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import final

from annuity_submission.core.errors import FieldViolation, ValidationError
from annuity_submission.core.result import Err, Ok
from annuity_submission.core.types import UtcDatetime

ENV_PREFIX = "FIRELIGHT_"


class Environment(Enum):
    SANDBOX = "sandbox"
    PRODUCTION = "production"


DEFAULT_BASE_URLS: dict[Environment, str] = {
    Environment.SANDBOX: "https://sandbox.api.hexure.com/firelight/v1",
    Environment.PRODUCTION: "https://api.hexure.com/firelight/v1",
}


@final
@dataclass(frozen=True, slots=True)
class FeatureFlags:
    """Per-capability switches. Everything on unless configured off."""

    e_signature: bool = True
    acord_xml: bool = True
    dtcc_integration: bool = True
    suitability_checks: bool = True


@final
@dataclass(frozen=True, slots=True)
class GatewayConfig:
    """Carrier gateway connection settings."""

    api_key: str = field(default="", repr=False)
    api_secret: str = field(default="", repr=False)
    partner_id: str = ""
    environment: Environment = Environment.SANDBOX
    base_url: str = DEFAULT_BASE_URLS[Environment.SANDBOX]
    enabled: bool = False
    timeout_s: float = 30.0  # mutating and status calls
    health_timeout_s: float = 5.0
    retry_attempts: int = 3
    retry_initial_delay_s: float = 1.0
    retry_max_delay_s: float = 10.0
    webhook_secret: str = field(default="", repr=False)
    features: FeatureFlags = FeatureFlags()

    @property
    def is_live(self) -> bool:
        """Enabled and fully credentialed; anything less runs in simulation mode."""
        return bool(self.enabled and self.api_key and self.partner_id and self.base_url)

    @staticmethod
    def from_env(environ: Mapping[str, str]) -> Ok[GatewayConfig] | Err[ValidationError]:
        """Read FIRELIGHT_* variables. Timeouts and delays are in milliseconds."""
        violations: list[FieldViolation] = []

        env_raw = environ.get(f"{ENV_PREFIX}ENVIRONMENT", "sandbox").strip().lower()
        try:
            environment = Environment(env_raw)
        except ValueError:
            violations.append(FieldViolation(
                path=f"{ENV_PREFIX}ENVIRONMENT", constraint="sandbox or production",
                actual_value=repr(env_raw),
            ))
            environment = Environment.SANDBOX

        def _int(name: str, default: int) -> int:
            raw = environ.get(f"{ENV_PREFIX}{name}")
            if raw is None or not raw.strip():
                return default
            try:
                return int(raw)
            except ValueError:
                violations.append(FieldViolation(
                    path=f"{ENV_PREFIX}{name}", constraint="integer", actual_value=repr(raw),
                ))
                return default

        timeout_ms = _int("TIMEOUT", 30000)
        health_timeout_ms = _int("HEALTH_TIMEOUT", 5000)
        retry_attempts = _int("RETRY_ATTEMPTS", 3)
        retry_delay_ms = _int("RETRY_DELAY", 1000)
        retry_max_delay_ms = _int("RETRY_MAX_DELAY", 10000)

        if violations:
            return Err(ValidationError(
                message="Invalid gateway configuration",
                code="INVALID_CONFIG",
                timestamp=UtcDatetime.now(),
                source="infra.config.GatewayConfig.from_env",
                fields=tuple(violations),
            ))

        base_url = environ.get(f"{ENV_PREFIX}BASE_URL", "").strip()
        return Ok(GatewayConfig(
            api_key=environ.get(f"{ENV_PREFIX}API_KEY", ""),
            api_secret=environ.get(f"{ENV_PREFIX}API_SECRET", ""),
            partner_id=environ.get(f"{ENV_PREFIX}PARTNER_ID", ""),
            environment=environment,
            base_url=base_url or DEFAULT_BASE_URLS[environment],
            enabled=_flag(environ, "ENABLED", default=False),
            timeout_s=timeout_ms / 1000,
            health_timeout_s=health_timeout_ms / 1000,
            retry_attempts=retry_attempts,
            retry_initial_delay_s=retry_delay_ms / 1000,
            retry_max_delay_s=retry_max_delay_ms / 1000,
            webhook_secret=environ.get(f"{ENV_PREFIX}WEBHOOK_SECRET", ""),
            features=FeatureFlags(
                e_signature=_flag(environ, "FEATURE_ESIGNATURE", default=True),
                acord_xml=_flag(environ, "FEATURE_ACORD_XML", default=True),
                dtcc_integration=_flag(environ, "FEATURE_DTCC", default=True),
                suitability_checks=_flag(environ, "FEATURE_SUITABILITY_CHECKS", default=True),
            ),
        ))


def _flag(environ: Mapping[str, str], name: str, *, default: bool) -> bool:
    raw = environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def validate_config(config: GatewayConfig) -> list[str]:
    """Configuration problems that would stop live mode from working."""
    problems: list[str] = []
    if config.enabled:
        if not config.api_key:
            problems.append("FIRELIGHT_API_KEY is required when the integration is enabled")
        if not config.api_secret:
            problems.append("FIRELIGHT_API_SECRET is required when the integration is enabled")
        if not config.partner_id:
            problems.append("FIRELIGHT_PARTNER_ID is required when the integration is enabled")
    if config.timeout_s <= 0:
        problems.append("Timeout must be positive")
    if config.health_timeout_s <= 0:
        problems.append("Health check timeout must be positive")
    if config.retry_attempts < 0:
        problems.append("Retry attempts must not be negative")
    return problems


# ---------------------------------------------------------------------------
# Temporal worker configuration
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class TemporalConfig:
    """Connection settings for the submission worker."""

    host: str = "localhost:7233"
    namespace: str = "default"
    task_queue: str = "annuity-submission"
    status_poll_interval_s: int = 3600

    @staticmethod
    def from_env(environ: Mapping[str, str]) -> TemporalConfig:
        return TemporalConfig(
            host=environ.get("TEMPORAL_HOST", "localhost:7233"),
            namespace=environ.get("TEMPORAL_NAMESPACE", "default"),
            task_queue=environ.get("TEMPORAL_TASK_QUEUE", "annuity-submission"),
            status_poll_interval_s=int(environ.get("TEMPORAL_STATUS_POLL_INTERVAL_S", "3600")),
        )
