"""
Dashboard & Analytics Schemas
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from geotracker.models.database import SourceType
from geotracker.schemas.audit import AuditResult


class DashboardSummary(BaseModel):
    """Brand-level rollup over the in-scope audit results"""
    total_prompts: int
    overall_sov: int
    average_rank: Optional[float] = None
    total_citations: int
    total_cost: float


class ModelStats(BaseModel):
    """Visibility tally for one provider"""
    visible: int = 0
    total: int = 0
    cost: float = 0.0

    @property
    def visibility(self) -> int:
        if self.total == 0:
            return 0
        return int(self.visible / self.total * 100 + 0.5)


class CompetitorGapItem(BaseModel):
    name: str
    mentions: int
    percentage: int


class SourceItem(BaseModel):
    """A cited domain with its coverage across prompts"""
    domain: str
    count: int
    prompts: List[str] = Field(default_factory=list)
    type: SourceType
    prompt_count: int
    avg: float


class CitationItem(BaseModel):
    url: str
    title: str = ""
    domain: str = ""
    count: int
    prompts: List[str] = Field(default_factory=list)


class Insights(BaseModel):
    status: str  # "high", "medium", "low"
    status_text: str
    recommendations: List[str]


class CostBreakdown(BaseModel):
    total: float = 0.0
    by_model: Dict[str, float] = Field(default_factory=dict)
    by_prompt: Dict[str, float] = Field(default_factory=dict)


class CurrentView(BaseModel):
    """The in-scope result set and its summary, recomputed on every change"""
    results: List[AuditResult] = Field(default_factory=list)
    summary: Optional[DashboardSummary] = None


class AnalyticsBundle(BaseModel):
    """Everything the dashboard reads for one client"""
    model_config = ConfigDict(protected_namespaces=())

    summary: Optional[DashboardSummary]
    model_stats: Dict[str, ModelStats]
    competitor_gap: List[CompetitorGapItem]
    top_sources: List[SourceItem]
    insights: Insights
    cost: CostBreakdown
