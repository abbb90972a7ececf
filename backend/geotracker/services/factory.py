"""
Service wiring
Builds the store, orchestrator and campaign/schedule services on top of
the shared database session factory and Redis cache.
"""

from typing import Optional

from geotracker.adapters import ScoringServiceClient, SourceAnalysisClient
from geotracker.services.campaign_service import CampaignService
from geotracker.services.orchestrator import AuditOrchestrator
from geotracker.services.schedules import ScheduleService
from geotracker.services.sql_tier import SessionFactory, SqlAuthoritativeTier
from geotracker.services.store import CacheTier, ResultStore
from geotracker.utils import get_db_context, result_cache


def build_result_store(
    session_factory: Optional[SessionFactory] = None,
    cache: Optional[CacheTier] = None,
) -> ResultStore:
    return ResultStore(
        SqlAuthoritativeTier(session_factory or get_db_context),
        cache if cache is not None else result_cache,
    )


def build_orchestrator(
    store: Optional[ResultStore] = None,
    session_factory: Optional[SessionFactory] = None,
    **kwargs,
) -> AuditOrchestrator:
    session_factory = session_factory or get_db_context
    return AuditOrchestrator(
        store or build_result_store(session_factory),
        ScoringServiceClient(),
        campaigns=CampaignService(session_factory),
        enrichment=SourceAnalysisClient(),
        **kwargs,
    )


def build_campaign_service(session_factory: Optional[SessionFactory] = None) -> CampaignService:
    return CampaignService(session_factory or get_db_context)


def build_schedule_service(session_factory: Optional[SessionFactory] = None) -> ScheduleService:
    return ScheduleService(session_factory or get_db_context)
