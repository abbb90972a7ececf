"""
Dashboard & Analytics Routes
Everything is computed from the current view: the latest result of each
active prompt.
"""

from typing import List

from fastapi import APIRouter, Depends

from geotracker.api.deps import get_prompt_registry, require_client
from geotracker.schemas import AnalyticsBundle, CitationItem, Client, CurrentView
from geotracker.services import PromptRegistry, metrics

router = APIRouter()


@router.get("/view", response_model=CurrentView)
async def get_current_view(
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    return await registry.current_view(client.id)


@router.get("/analytics", response_model=AnalyticsBundle)
async def get_analytics(
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    view = await registry.current_view(client.id)
    return AnalyticsBundle(
        summary=view.summary,
        model_stats=metrics.model_stats(view.results),
        competitor_gap=metrics.competitor_gap(client, view.results),
        top_sources=metrics.top_sources(view.results),
        insights=metrics.insights(view.summary, client),
        cost=metrics.cost_breakdown(view.results),
    )


@router.get("/citations", response_model=List[CitationItem])
async def get_citations(
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    view = await registry.current_view(client.id)
    return metrics.all_citations(view.results)
