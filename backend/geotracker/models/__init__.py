"""
Database Models
"""

from .database import (
    Base,
    # Enums
    NicheLevel,
    CampaignStatus,
    IntervalUnit,
    SourceType,
    # Models
    Client,
    Prompt,
    AuditResult,
    Campaign,
    PromptSchedule,
)

__all__ = [
    "Base",
    # Enums
    "NicheLevel",
    "CampaignStatus",
    "IntervalUnit",
    "SourceType",
    # Models
    "Client",
    "Prompt",
    "AuditResult",
    "Campaign",
    "PromptSchedule",
]
