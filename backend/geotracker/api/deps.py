"""
FastAPI dependencies
Service construction and Celery dispatch, overridable in tests.
"""

from typing import List, Optional

from fastapi import Depends

from geotracker.schemas import Client
from geotracker.services import (
    CampaignService,
    ClientRegistry,
    PromptRegistry,
    ResultStore,
    ScheduleService,
    build_campaign_service,
    build_result_store,
    build_schedule_service,
)


def get_result_store() -> ResultStore:
    return build_result_store()


def get_client_registry(store: ResultStore = Depends(get_result_store)) -> ClientRegistry:
    return ClientRegistry(store)


def get_prompt_registry(store: ResultStore = Depends(get_result_store)) -> PromptRegistry:
    return PromptRegistry(store)


def get_campaign_service() -> CampaignService:
    return build_campaign_service()


def get_schedule_service() -> ScheduleService:
    return build_schedule_service()


async def require_client(
    client_id: str,
    registry: ClientRegistry = Depends(get_client_registry),
) -> Client:
    """Resolve the client path parameter; unknown ids become a 404"""
    return await registry.get_client(client_id)


class TaskDispatcher:
    """Queues audit work on the Celery worker and returns the task id"""

    def run_full(self, client_id: str, models: Optional[List[str]] = None) -> str:
        from geotracker.workers.tasks.audit_tasks import run_full_audit
        return run_full_audit.delay(client_id, models).id

    def run_single(
        self,
        client_id: str,
        prompt_id: str,
        models: Optional[List[str]] = None,
        include_enrichment: Optional[bool] = None,
    ) -> str:
        from geotracker.workers.tasks.audit_tasks import run_single_audit
        return run_single_audit.delay(client_id, prompt_id, models, include_enrichment).id

    def run_campaign(
        self,
        client_id: str,
        name: str,
        prompt_ids: List[str],
        models: Optional[List[str]] = None,
    ) -> str:
        from geotracker.workers.tasks.audit_tasks import run_campaign_audit
        return run_campaign_audit.delay(client_id, name, prompt_ids, models).id

    def trigger_schedule(self, schedule_id: str) -> str:
        from geotracker.workers.tasks.scheduled_tasks import process_due_schedules
        return process_due_schedules.delay(schedule_id=schedule_id, force=True).id


def get_dispatcher() -> TaskDispatcher:
    return TaskDispatcher()
