"""Pick the gateway implementation once, from configuration."""

from __future__ import annotations

import logging

import httpx

from annuity_submission.core.types import Clock, system_clock
from annuity_submission.gateway.live import LiveGateway, build_client
from annuity_submission.gateway.protocol import CarrierGateway
from annuity_submission.gateway.simulation import SimulationGateway
from annuity_submission.infra.config import GatewayConfig, validate_config

logger = logging.getLogger(__name__)


def build_gateway(
    config: GatewayConfig,
    *,
    clock: Clock = system_clock,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CarrierGateway:
    """LiveGateway when fully configured, SimulationGateway otherwise."""
    if config.is_live:
        for problem in validate_config(config):
            logger.warning("Gateway configuration: %s", problem)
        logger.info(
            "Carrier gateway: live (%s, %s)", config.environment.value, config.base_url,
        )
        return LiveGateway(config, client=build_client(config, transport), clock=clock)
    logger.info("Carrier gateway: simulation mode (integration disabled or not configured)")
    return SimulationGateway(
        clock=clock,
        environment=config.environment,
        dtcc_enabled=config.features.dtcc_integration,
    )
