"""
Audit Result Schemas
Per-model results as returned by the scoring service and the stored audit record
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from geotracker.schemas.common import UTCDateTime
from geotracker.clock import utcnow


class Citation(BaseModel):
    """A source referenced by a provider response"""
    url: str = ""
    title: str = ""
    domain: str = ""


class ModelResult(BaseModel):
    """One provider's answer for one prompt. Immutable once written."""
    model_config = ConfigDict(frozen=True, extra="ignore", protected_namespaces=())

    model: str
    model_name: Optional[str] = None
    provider: Optional[str] = None
    success: bool = True
    error: Optional[str] = None
    brand_mentioned: bool = False
    brand_mention_count: int = 0
    brand_rank: Optional[int] = None  # None: no ordered list mentioned the brand
    citations: List[Citation] = Field(default_factory=list)
    api_cost: float = 0.0
    raw_response: str = ""

    @property
    def citation_count(self) -> int:
        return len(self.citations)


class Summary(BaseModel):
    """Per-prompt rollup computed by the scoring service"""
    share_of_voice: float = 0
    average_rank: Optional[float] = None
    total_citations: int = 0
    total_cost: float = 0.0


_SUMMARY_COLUMNS = ("share_of_voice", "average_rank", "total_citations", "total_cost")


class AuditResult(BaseModel):
    """
    One audit of one prompt.

    Records coming from the database carry the summary as flat columns,
    while cached and service payloads nest it; both shapes normalize to
    the nested `summary`.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    client_id: Optional[str] = None
    prompt_id: str
    prompt_text: str
    model_results: List[ModelResult] = Field(default_factory=list)
    summary: Summary = Field(default_factory=Summary)
    campaign_id: Optional[str] = None
    created_at: UTCDateTime = Field(default_factory=utcnow)

    @model_validator(mode="before")
    @classmethod
    def normalize_summary(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("summary"):
            return data
        data = dict(data)
        data["summary"] = {
            "share_of_voice": data.pop("share_of_voice", None) or 0,
            "average_rank": data.pop("average_rank", None),
            "total_citations": data.pop("total_citations", None) or 0,
            "total_cost": data.pop("total_cost", None) or 0,
        }
        if data.get("model_results") is None:
            data["model_results"] = []
        return data

    @property
    def is_live(self) -> bool:
        """Live results occupy the single current slot of their prompt"""
        return self.campaign_id is None

    def to_record(self) -> dict:
        """Flattened shape used by the database tier"""
        record = self.model_dump(mode="json", exclude={"summary"})
        record.update(self.summary.model_dump(mode="json"))
        return record


class ScoringPayload(BaseModel):
    """`data` block of a successful scoring-service response"""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    model_results: List[ModelResult] = Field(default_factory=list)
    summary: Summary = Field(default_factory=Summary)
    timestamp: Optional[UTCDateTime] = None


class EnrichmentResult(BaseModel):
    """Source-analysis response for one prompt"""
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    sources: List[dict] = Field(default_factory=list)
    answer: Optional[str] = None


class AuditRunRequest(BaseModel):
    """Options for a queued audit run"""
    models: Optional[List[str]] = None
    include_enrichment: Optional[bool] = None


class TaskQueued(BaseModel):
    task_id: str
    status: str = "queued"


__all__ = [
    "Citation",
    "ModelResult",
    "Summary",
    "AuditResult",
    "ScoringPayload",
    "EnrichmentResult",
    "AuditRunRequest",
    "TaskQueued",
]
