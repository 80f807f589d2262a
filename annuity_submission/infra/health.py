"""Health checks for the submission core.

Kubernetes probes:
  livenessProbe  -> GET /health/live   -> liveness_check()
  readinessProbe -> GET /health/ready  -> readiness_check(gateway)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, final

from annuity_submission.infra.audit import Timer

if TYPE_CHECKING:
    from annuity_submission.gateway.protocol import CarrierGateway


@final
@dataclass(frozen=True, slots=True)
class HealthStatus:
    """Status of a single health check."""

    healthy: bool
    component: str
    message: str
    checked_at: datetime
    latency_ms: float  # infra latency metric, not financial arithmetic


@final
@dataclass(frozen=True, slots=True)
class SystemHealth:
    """Aggregate health status of all dependencies."""

    overall_healthy: bool
    checks: tuple[HealthStatus, ...]
    checked_at: datetime


def liveness_check() -> HealthStatus:
    """Return healthy status — process is alive."""
    return HealthStatus(
        healthy=True, component="process", message="alive",
        checked_at=datetime.now(tz=UTC), latency_ms=0.0,
    )


async def readiness_check(gateway: CarrierGateway) -> SystemHealth:
    """Ready when the carrier gateway reports healthy.

    Simulation mode is always ready; the message says it is simulated.
    """
    with Timer() as timer:
        health = await gateway.health_check()
    component = "carrier_gateway.simulation" if health.simulated else "carrier_gateway"
    status = HealthStatus(
        healthy=health.healthy,
        component=component,
        message=health.message,
        checked_at=health.checked_at.value,
        latency_ms=timer.elapsed_ms,
    )
    return SystemHealth(
        overall_healthy=status.healthy,
        checks=(liveness_check(), status),
        checked_at=datetime.now(tz=UTC),
    )
