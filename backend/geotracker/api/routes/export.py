"""
Export Routes
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from geotracker.api.deps import get_prompt_registry, require_client
from geotracker.clock import utcnow
from geotracker.schemas import Client
from geotracker.services import PromptRegistry
from geotracker.services.export_service import (
    export_filename,
    full_report,
    prompts_json,
    results_csv,
)

router = APIRouter()


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/csv")
async def export_csv(
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    """Current results as CSV"""
    prompts = await registry.list_prompts(client.id)
    view = await registry.current_view(client.id)
    return Response(
        content=results_csv(view.results, prompts),
        media_type="text/csv",
        headers=_attachment(export_filename(client, "results", "csv", utcnow())),
    )


@router.get("/json")
async def export_json(
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    """Prompt list as JSON, in the same shape the import endpoint accepts"""
    now = utcnow()
    prompts = await registry.list_prompts(client.id)
    return JSONResponse(
        content=prompts_json(client, prompts, now),
        headers=_attachment(export_filename(client, "prompts", "json", now)),
    )


@router.get("/report")
async def export_report(
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    now = utcnow()
    view = await registry.current_view(client.id)
    return PlainTextResponse(
        content=full_report(client, view.results, now),
        headers=_attachment(export_filename(client, "report", "txt", now)),
    )
