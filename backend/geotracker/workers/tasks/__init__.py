"""
Celery Tasks
"""

from .audit_tasks import run_full_audit, run_single_audit, run_campaign_audit
from .scheduled_tasks import process_due_schedules

__all__ = [
    "run_full_audit",
    "run_single_audit",
    "run_campaign_audit",
    "process_due_schedules",
]
