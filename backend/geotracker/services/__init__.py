"""
Business logic services
"""

from .store import ResultStore, AuthoritativeTier, CacheTier
from .sql_tier import SqlAuthoritativeTier
from .client_registry import ClientRegistry
from .prompt_registry import PromptRegistry, detect_niche_level
from .orchestrator import AuditOrchestrator, AuditQueue, BatchReport, CancellationToken
from .campaign_service import CampaignService
from .schedules import ScheduleService
from .factory import (
    build_result_store,
    build_orchestrator,
    build_campaign_service,
    build_schedule_service,
)

__all__ = [
    "ResultStore",
    "AuthoritativeTier",
    "CacheTier",
    "SqlAuthoritativeTier",
    "ClientRegistry",
    "PromptRegistry",
    "detect_niche_level",
    "AuditOrchestrator",
    "AuditQueue",
    "BatchReport",
    "CancellationToken",
    "CampaignService",
    "ScheduleService",
    "build_result_store",
    "build_orchestrator",
    "build_campaign_service",
    "build_schedule_service",
]
