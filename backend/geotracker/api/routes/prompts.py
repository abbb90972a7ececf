"""
Prompt Management Routes
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status

from geotracker.api.deps import get_prompt_registry, require_client
from geotracker.schemas import (
    Client,
    CurrentView,
    Prompt,
    PromptBulkCreate,
    PromptCreate,
    PromptImport,
)
from geotracker.services import PromptRegistry

router = APIRouter()


@router.get("", response_model=List[Prompt])
async def list_prompts(
    include_inactive: bool = Query(True),
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    return await registry.list_prompts(client.id, include_inactive=include_inactive)


@router.post("", response_model=Prompt, status_code=status.HTTP_201_CREATED)
async def add_prompt(
    data: PromptCreate,
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    """Add one prompt; niche level and default category are detected from the text"""
    return await registry.add_prompt(client.id, data.prompt_text, data.category)


@router.post("/bulk", response_model=List[Prompt], status_code=status.HTTP_201_CREATED)
async def add_prompts(
    data: PromptBulkCreate,
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    return await registry.add_many(client.id, data.prompts, data.category)


@router.post("/import", response_model=List[Prompt], status_code=status.HTTP_201_CREATED)
async def import_prompts(
    data: PromptImport,
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    """Import from a JSON document or newline-separated text"""
    return await registry.import_prompts(client.id, data.data)


@router.post("/generate", response_model=List[Prompt], status_code=status.HTTP_201_CREATED)
async def generate_prompts(
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    """Add the industry preset prompts for the client's region"""
    return await registry.generate_niche_prompts(client)


@router.post("/{prompt_id}/deactivate", response_model=CurrentView)
async def deactivate_prompt(
    prompt_id: str,
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    return await registry.deactivate(client.id, prompt_id)


@router.post("/{prompt_id}/reactivate", response_model=CurrentView)
async def reactivate_prompt(
    prompt_id: str,
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    return await registry.reactivate(client.id, prompt_id)


@router.delete("", response_model=CurrentView)
async def clear_prompts(
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    """Remove every prompt of the client; stored results are kept"""
    return await registry.clear_all(client.id)


@router.delete("/results", response_model=CurrentView)
async def purge_results(
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
):
    return await registry.purge_results(client.id)
