"""
Scheduled Tasks
Periodic sweep that runs due prompt schedules
"""

from typing import Dict, Optional

from celery.utils.log import get_task_logger

from geotracker.clock import utcnow
from geotracker.exceptions import NotFoundError
from geotracker.services import build_orchestrator, build_schedule_service
from geotracker.workers.celery_app import celery_app
from geotracker.workers.tasks.audit_tasks import BATCH_TIME_LIMIT, release_connections, run_async

logger = get_task_logger(__name__)


async def _process_due(schedule_id: Optional[str], force: bool) -> Dict:
    now = utcnow()
    try:
        outcomes = await build_schedule_service().process_due(
            build_orchestrator(),
            now=now,
            force=force,
            schedule_id=schedule_id,
        )
    finally:
        await release_connections()
    return {"processed": len(outcomes), "runs": outcomes, "timestamp": now.isoformat()}


@celery_app.task(
    name="geotracker.workers.tasks.scheduled_tasks.process_due_schedules",
    time_limit=BATCH_TIME_LIMIT,
)
def process_due_schedules(schedule_id: Optional[str] = None, force: bool = False) -> Dict:
    """
    Run every active schedule whose next run is due.
    Runs on the beat interval; `schedule_id` with `force` runs one schedule now.
    """
    try:
        result = run_async(_process_due(schedule_id, force))
    except NotFoundError as e:
        logger.error(f"Schedule trigger failed: {e.message}")
        return {"success": False, "error": e.message}

    if result["processed"]:
        logger.info(f"Processed {result['processed']} due schedule(s)")
    return {"success": True, **result}
