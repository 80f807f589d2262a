"""annuity_submission.infra — configuration, storage protocols and adapters, health, audit."""

from annuity_submission.infra.config import DEFAULT_BASE_URLS as DEFAULT_BASE_URLS
from annuity_submission.infra.config import Environment as Environment
from annuity_submission.infra.config import FeatureFlags as FeatureFlags
from annuity_submission.infra.config import GatewayConfig as GatewayConfig
from annuity_submission.infra.config import TemporalConfig as TemporalConfig
from annuity_submission.infra.config import validate_config as validate_config
from annuity_submission.infra.audit import IntegrationCall as IntegrationCall
from annuity_submission.infra.audit import Timer as Timer
from annuity_submission.infra.audit import log_integration_call as log_integration_call
from annuity_submission.infra.audit import sanitize_for_logging as sanitize_for_logging
from annuity_submission.infra.health import HealthStatus as HealthStatus
from annuity_submission.infra.health import SystemHealth as SystemHealth
from annuity_submission.infra.health import liveness_check as liveness_check
from annuity_submission.infra.health import readiness_check as readiness_check
from annuity_submission.infra.memory_adapter import (
    InMemoryApplicationStore as InMemoryApplicationStore,
)
from annuity_submission.infra.memory_adapter import (
    InMemoryReconciliationLog as InMemoryReconciliationLog,
)
from annuity_submission.infra.protocols import ApplicationStore as ApplicationStore
from annuity_submission.infra.protocols import ReconciliationLog as ReconciliationLog
