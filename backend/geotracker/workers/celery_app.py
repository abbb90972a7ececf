"""
Celery app for queued audits and the schedule sweep
"""

from celery import Celery
from kombu import Exchange, Queue

from geotracker.config import get_settings

settings = get_settings()

AUDIT_TASKS = "geotracker.workers.tasks.audit_tasks"
SCHEDULE_TASKS = "geotracker.workers.tasks.scheduled_tasks"

celery_app = Celery(
    "geotracker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[AUDIT_TASKS, SCHEDULE_TASKS],
)


def _queue(name: str, routing_key: str) -> Queue:
    return Queue(name, Exchange(name), routing_key=routing_key)


celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    result_expires=24 * 3600,
    # An interrupted batch is redelivered; prompts already stored are skipped on the rerun
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Per-prompt scoring calls are bounded separately; batch tasks raise these limits
    task_time_limit=2 * settings.SCORING_REQUEST_TIMEOUT + 60,
    task_soft_time_limit=2 * settings.SCORING_REQUEST_TIMEOUT,
    worker_prefetch_multiplier=1,
    worker_concurrency=2,
    task_queues=(
        _queue("default", "default"),
        _queue("audits", "audit"),
        _queue("scheduler", "schedule"),
    ),
    task_default_queue="default",
    task_default_exchange="default",
    task_default_routing_key="default",
    task_routes={
        f"{AUDIT_TASKS}.*": {"queue": "audits"},
        f"{SCHEDULE_TASKS}.*": {"queue": "scheduler"},
    },
    beat_schedule={
        "process-due-schedules": {
            "task": f"{SCHEDULE_TASKS}.process_due_schedules",
            "schedule": settings.SCHEDULER_INTERVAL_SECONDS,
        },
    },
)
