"""
Audit Execution Routes
Runs are queued on the worker; the response only carries the task id.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from geotracker.api.deps import TaskDispatcher, get_dispatcher, get_prompt_registry, require_client
from geotracker.schemas import AuditRunRequest, CampaignCreate, Client, TaskQueued
from geotracker.services import PromptRegistry

router = APIRouter()


@router.post("/full", response_model=TaskQueued, status_code=status.HTTP_202_ACCEPTED)
async def queue_full_audit(
    data: Optional[AuditRunRequest] = None,
    client: Client = Depends(require_client),
    dispatcher: TaskDispatcher = Depends(get_dispatcher),
):
    """Audit every active prompt that has no result yet"""
    models = data.models if data else None
    return TaskQueued(task_id=dispatcher.run_full(client.id, models))


@router.post("/prompts/{prompt_id}", response_model=TaskQueued, status_code=status.HTTP_202_ACCEPTED)
async def queue_single_audit(
    prompt_id: str,
    data: Optional[AuditRunRequest] = None,
    client: Client = Depends(require_client),
    registry: PromptRegistry = Depends(get_prompt_registry),
    dispatcher: TaskDispatcher = Depends(get_dispatcher),
):
    """Run or re-run one prompt, replacing its current result"""
    await registry.get_prompt(client.id, prompt_id)
    data = data or AuditRunRequest()
    return TaskQueued(
        task_id=dispatcher.run_single(client.id, prompt_id, data.models, data.include_enrichment)
    )


@router.post("/campaigns", response_model=TaskQueued, status_code=status.HTTP_202_ACCEPTED)
async def queue_campaign(
    data: CampaignCreate,
    client: Client = Depends(require_client),
    dispatcher: TaskDispatcher = Depends(get_dispatcher),
):
    """Audit a named batch of prompts; results are appended under the campaign"""
    return TaskQueued(task_id=dispatcher.run_campaign(client.id, data.name, data.prompt_ids, data.models))
