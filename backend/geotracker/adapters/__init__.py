"""
Adapters for the external scoring and source-analysis services
"""

from .scoring import (
    AuditRequest,
    EnrichmentRequest,
    ScoringServiceClient,
    SourceAnalysisClient,
)

__all__ = [
    "AuditRequest",
    "EnrichmentRequest",
    "ScoringServiceClient",
    "SourceAnalysisClient",
]
