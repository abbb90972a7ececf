"""
Pydantic Schemas for the domain records and API request/response validation
"""

from .audit import (
    Citation,
    ModelResult,
    Summary,
    AuditResult,
    ScoringPayload,
    EnrichmentResult,
    AuditRunRequest,
    TaskQueued,
)
from .client import (
    Client,
    ClientCreate,
    ClientUpdate,
    Prompt,
    PromptCreate,
    PromptBulkCreate,
    PromptImport,
)
from .analytics import (
    DashboardSummary,
    ModelStats,
    CompetitorGapItem,
    SourceItem,
    CitationItem,
    Insights,
    CostBreakdown,
    CurrentView,
    AnalyticsBundle,
)
from .campaign import (
    Campaign,
    CampaignCreate,
    CampaignProgress,
    Schedule,
    ScheduleCreate,
)

__all__ = [
    # Audit
    "Citation",
    "ModelResult",
    "Summary",
    "AuditResult",
    "ScoringPayload",
    "EnrichmentResult",
    "AuditRunRequest",
    "TaskQueued",
    # Clients & prompts
    "Client",
    "ClientCreate",
    "ClientUpdate",
    "Prompt",
    "PromptCreate",
    "PromptBulkCreate",
    "PromptImport",
    # Analytics
    "DashboardSummary",
    "ModelStats",
    "CompetitorGapItem",
    "SourceItem",
    "CitationItem",
    "Insights",
    "CostBreakdown",
    "CurrentView",
    "AnalyticsBundle",
    # Campaigns & schedules
    "Campaign",
    "CampaignCreate",
    "CampaignProgress",
    "Schedule",
    "ScheduleCreate",
]
