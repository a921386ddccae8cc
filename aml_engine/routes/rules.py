"""Rules configuration endpoints for reading and updating thresholds."""

import logging

from fastapi import APIRouter, Request

from aml_engine.models import AmlConfig

router = APIRouter(prefix="/api")


@router.get("/rules", response_model=AmlConfig)
async def get_rules(request: Request) -> AmlConfig:
    """Return the current AML configuration."""
    return request.app.state.config


@router.put("/rules", response_model=AmlConfig)
async def update_rules(
    new_config: AmlConfig,
    request: Request,
) -> AmlConfig:
    """Replace the AML configuration.

    Every component holding a config reference is updated so that
    subsequent scans, scores and listings use the new thresholds at once.
    The root logger picks up the new `log_level` immediately.
    """
    state = request.app.state
    state.config = new_config
    state.orchestrator.config = new_config
    state.scorer.config = new_config
    state.dashboard.config = new_config
    state.queries.config = new_config
    logging.getLogger().setLevel(new_config.log_level)
    return new_config
