"""
Audit Tasks
Full, single-prompt and campaign audits run on the worker
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from celery.contrib.abortable import AbortableTask
from celery.utils.log import get_task_logger

from geotracker.exceptions import CampaignCreationError, ValidationError
from geotracker.services import CancellationToken, build_orchestrator
from geotracker.utils import close_db, close_redis
from geotracker.workers.celery_app import celery_app

logger = get_task_logger(__name__)

# A full batch paces every prompt and waits up to the scoring timeout for each
BATCH_TIME_LIMIT = 6 * 3600


def run_async(coro):
    """Run async function in sync context"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def release_connections():
    await close_db()
    await close_redis()


async def _run_report(start: Callable[[Any], Awaitable[Any]]) -> Dict:
    """Drive one orchestrator call and release this loop's connections afterwards"""
    try:
        report = await start(build_orchestrator())
        return report.to_dict()
    finally:
        await release_connections()


@celery_app.task(
    bind=True,
    base=AbortableTask,
    name="geotracker.workers.tasks.audit_tasks.run_full_audit",
    time_limit=BATCH_TIME_LIMIT,
    soft_time_limit=BATCH_TIME_LIMIT - 60,
)
def run_full_audit(self, client_id: str, models: Optional[List[str]] = None) -> Dict:
    """
    Audit every active prompt of a client that has no result yet.
    Aborting the task stops the batch before the next prompt.
    """
    token = CancellationToken(check=self.is_aborted)
    try:
        report = run_async(_run_report(lambda o: o.run_full(client_id, token=token, models=models)))
    except ValidationError as e:
        logger.error(f"Full audit rejected for client {client_id}: {e.message}")
        return {"success": False, "error": e.message}

    logger.info(
        f"Full audit for client {client_id} {report['status']}: "
        f"{report['succeeded']}/{report['attempted']} succeeded"
    )
    return {"success": True, **report}


@celery_app.task(
    bind=True,
    name="geotracker.workers.tasks.audit_tasks.run_single_audit",
)
def run_single_audit(
    self,
    client_id: str,
    prompt_id: str,
    models: Optional[List[str]] = None,
    include_enrichment: Optional[bool] = None,
) -> Dict:
    """Run or re-run one prompt, replacing its current result"""
    try:
        report = run_async(
            _run_report(
                lambda o: o.run_single(
                    client_id, prompt_id, models=models, include_enrichment=include_enrichment
                )
            )
        )
    except ValidationError as e:
        logger.error(f"Single audit rejected for prompt {prompt_id}: {e.message}")
        return {"success": False, "error": e.message}

    return {"success": True, **report}


@celery_app.task(
    bind=True,
    base=AbortableTask,
    name="geotracker.workers.tasks.audit_tasks.run_campaign_audit",
    time_limit=BATCH_TIME_LIMIT,
    soft_time_limit=BATCH_TIME_LIMIT - 60,
)
def run_campaign_audit(
    self,
    client_id: str,
    name: str,
    prompt_ids: List[str],
    models: Optional[List[str]] = None,
) -> Dict:
    """Audit a named batch of prompts under a new campaign"""
    token = CancellationToken(check=self.is_aborted)
    try:
        report = run_async(
            _run_report(lambda o: o.run_campaign(client_id, name, prompt_ids, token=token, models=models))
        )
    except (ValidationError, CampaignCreationError) as e:
        logger.error(f"Campaign {name} for client {client_id} not run: {e.message}")
        return {"success": False, "error": e.message}

    logger.info(f"Campaign {report['campaign_id']} {report['status']}")
    return {"success": True, **report}
