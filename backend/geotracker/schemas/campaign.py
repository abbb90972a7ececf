"""
Campaign & Schedule Schemas
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from geotracker.models.database import CampaignStatus, IntervalUnit
from geotracker.schemas.analytics import DashboardSummary
from geotracker.schemas.common import UTCDateTime
from geotracker.clock import utcnow


class Campaign(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    name: str
    status: CampaignStatus = CampaignStatus.RUNNING
    total_prompts: int = 0
    created_at: UTCDateTime = Field(default_factory=utcnow)
    completed_at: Optional[UTCDateTime] = None


class CampaignCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    prompt_ids: List[str] = Field(..., min_length=1)
    models: Optional[List[str]] = None


class CampaignProgress(BaseModel):
    """Campaign counters derived from the results tagged with its id"""
    campaign: Campaign
    completed_prompts: int
    percent_complete: int
    summary: Optional[DashboardSummary] = None


class Schedule(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    prompt_id: Optional[str] = None
    name: str
    interval_value: int
    interval_unit: IntervalUnit = IntervalUnit.MINUTES
    is_active: bool = True
    include_enrichment: bool = False
    models: List[str] = Field(default_factory=list)
    last_run_at: Optional[UTCDateTime] = None
    next_run_at: Optional[UTCDateTime] = None
    total_runs: int = 0
    created_at: UTCDateTime = Field(default_factory=utcnow)


class ScheduleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    interval_value: int = Field(..., ge=1)
    interval_unit: IntervalUnit = IntervalUnit.MINUTES
    prompt_id: Optional[str] = None
    include_enrichment: bool = False
    models: Optional[List[str]] = None
