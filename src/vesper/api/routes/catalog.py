"""Catalog endpoints: models by role, actions and cost estimates."""

from fastapi import APIRouter, Depends, Query

from vesper.api.dependencies import get_registry
from vesper.models.actions import ExecutionMode
from vesper.models.phase import Phase
from vesper.registry.catalog import ModelRegistry

router = APIRouter(prefix="/api/v1", tags=["catalog"])


@router.get("/catalog/providers")
async def list_providers(registry: ModelRegistry = Depends(get_registry)):
    return {"providers": [p.model_dump(mode="json") for p in registry.providers]}


@router.get("/catalog/models")
async def models_for_roles(
    roles: list[str] = Query(default=[]),
    registry: ModelRegistry = Depends(get_registry),
):
    """Models serving any of ``roles``, fastest then cheapest first."""
    return {"models": [ref.model_dump() for ref in registry.models_for_roles(roles)]}


@router.get("/catalog/actions")
async def list_actions(
    phase: Phase | None = None,
    registry: ModelRegistry = Depends(get_registry),
):
    actions = registry.actions_for_phase(phase) if phase else registry.actions
    return {"actions": [a.model_dump(mode="json") for a in actions]}


@router.get("/catalog/cost")
async def estimate_cost(
    provider: str,
    model: str,
    units: int,
    mode: ExecutionMode = ExecutionMode.LIVE,
    registry: ModelRegistry = Depends(get_registry),
):
    cost = registry.estimate_cost(provider, model, units, mode)
    return {"provider": provider, "model": model, "units": units, "mode": mode.value, "cost_usd": cost}
