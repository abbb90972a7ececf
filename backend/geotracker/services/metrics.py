"""
Visibility Metrics Aggregator
Pure functions over audit results: scoping, summary, competitor gap,
sources, per-model stats, insights and cost.

Nothing here touches storage; every view is recomputed in full from the
result list it is handed.
"""

import math
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence

from geotracker.config import AI_MODELS, SOV_THRESHOLDS
from geotracker.models.database import SourceType
from geotracker.schemas import (
    AuditResult,
    CitationItem,
    Client,
    CompetitorGapItem,
    CostBreakdown,
    CurrentView,
    DashboardSummary,
    Insights,
    ModelStats,
    Prompt,
    SourceItem,
)


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for positive values (2.5 -> 3, not 2)"""
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


# ============================================================================
# SCOPING
# ============================================================================

def latest_live_by_prompt(results: Iterable[AuditResult]) -> Dict[str, AuditResult]:
    """Most recent live result per prompt id; later entries win ties"""
    latest: Dict[str, AuditResult] = {}
    for result in results:
        if not result.is_live:
            continue
        current = latest.get(result.prompt_id)
        if current is None or result.created_at >= current.created_at:
            latest[result.prompt_id] = result
    return latest


def current_results(prompts: Sequence[Prompt], results: Iterable[AuditResult]) -> List[AuditResult]:
    """
    The in-scope result set for current aggregation.

    One result per active prompt that has a live result, in registry order.
    Inactive prompts and results whose prompt no longer exists are filtered
    out here; the underlying result list is never modified.
    """
    latest = latest_live_by_prompt(results)
    return [latest[p.id] for p in prompts if p.is_active and p.id in latest]


def campaign_results(campaign_id: str, results: Iterable[AuditResult]) -> List[AuditResult]:
    return [r for r in results if r.campaign_id == campaign_id]


# ============================================================================
# SUMMARY
# ============================================================================

def compute_summary(results: Sequence[AuditResult]) -> Optional[DashboardSummary]:
    """
    Brand-level rollup. Returns None for an empty result set.

    Sums use math.fsum so the output does not depend on input order.
    """
    if not results:
        return None

    sov_values = [r.summary.share_of_voice for r in results]
    ranks = [r.summary.average_rank for r in results if r.summary.average_rank is not None]

    overall_sov = int(round_half_up(math.fsum(sov_values) / len(results)))
    average_rank = round_half_up(math.fsum(ranks) / len(ranks), 1) if ranks else None

    return DashboardSummary(
        total_prompts=len(results),
        overall_sov=overall_sov,
        average_rank=average_rank,
        total_citations=sum(r.summary.total_citations for r in results),
        total_cost=math.fsum(r.summary.total_cost for r in results),
    )


def build_view(prompts: Sequence[Prompt], results: Iterable[AuditResult]) -> CurrentView:
    scoped = current_results(prompts, results)
    return CurrentView(results=scoped, summary=compute_summary(scoped))


# ============================================================================
# COMPETITOR GAP
# ============================================================================

def competitor_gap(client: Client, results: Sequence[AuditResult]) -> List[CompetitorGapItem]:
    """
    Mention share of the brand against each configured competitor.

    The brand count is the scoring service's own mention count; competitors
    are counted as case-insensitive substring occurrences in the raw answer
    text. Every entity is listed, including those with zero mentions.
    """
    mentions: Dict[str, int] = {client.brand_name: 0}
    for competitor in client.competitors:
        mentions.setdefault(competitor, 0)

    for result in results:
        for mr in result.model_results:
            response = (mr.raw_response or "").lower()
            if mr.brand_mentioned:
                mentions[client.brand_name] += mr.brand_mention_count
            for competitor in client.competitors:
                needle = competitor.lower()
                if needle:
                    mentions[competitor] += response.count(needle)

    total = sum(mentions.values()) or 1
    items = [
        CompetitorGapItem(
            name=name,
            mentions=count,
            percentage=int(round_half_up(count / total * 100)),
        )
        for name, count in mentions.items()
    ]
    return sorted(items, key=lambda item: item.mentions, reverse=True)


# ============================================================================
# SOURCES & CITATIONS
# ============================================================================

_DOMAIN_RULES = (
    (("reddit", "quora", "youtube"), SourceType.UGC),
    (("forbes", "techcrunch", "wired"), SourceType.EDITORIAL),
    (("wikipedia",), SourceType.REFERENCE),
    ((".gov", ".edu"), SourceType.INSTITUTIONAL),
    (("apple", "google", "microsoft"), SourceType.CORPORATE),
)


def classify_domain(domain: str) -> SourceType:
    d = domain.lower()
    for needles, source_type in _DOMAIN_RULES:
        if any(needle in d for needle in needles):
            return source_type
    return SourceType.OTHER


def top_sources(results: Sequence[AuditResult]) -> List[SourceItem]:
    """Cited domains grouped and classified, most cited first"""
    counts: Dict[str, int] = defaultdict(int)
    prompts: Dict[str, List[str]] = defaultdict(list)

    for result in results:
        for mr in result.model_results:
            for citation in mr.citations:
                counts[citation.domain] += 1
                if result.prompt_text not in prompts[citation.domain]:
                    prompts[citation.domain].append(result.prompt_text)

    total = len(results) or 1
    items = [
        SourceItem(
            domain=domain,
            count=count,
            prompts=prompts[domain],
            type=classify_domain(domain),
            prompt_count=len(prompts[domain]),
            avg=round_half_up(count / total, 1),
        )
        for domain, count in counts.items()
    ]
    return sorted(items, key=lambda item: item.count, reverse=True)


def all_citations(results: Sequence[AuditResult]) -> List[CitationItem]:
    """Every cited URL once, with how often and for which prompts"""
    by_url: Dict[str, dict] = {}
    for result in results:
        for mr in result.model_results:
            for citation in mr.citations:
                entry = by_url.get(citation.url)
                if entry is None:
                    by_url[citation.url] = {
                        **citation.model_dump(),
                        "count": 1,
                        "prompts": [result.prompt_text],
                    }
                    continue
                entry["count"] += 1
                if result.prompt_text not in entry["prompts"]:
                    entry["prompts"].append(result.prompt_text)

    items = [CitationItem(**entry) for entry in by_url.values()]
    return sorted(items, key=lambda item: item.count, reverse=True)


# ============================================================================
# MODEL STATS, INSIGHTS, COST
# ============================================================================

def model_stats(results: Sequence[AuditResult]) -> Dict[str, ModelStats]:
    """Visible/total/cost per provider; every known provider is present"""
    stats: Dict[str, ModelStats] = {m["id"]: ModelStats() for m in AI_MODELS}
    for result in results:
        for mr in result.model_results:
            entry = stats.setdefault(mr.model, ModelStats())
            entry.total += 1
            if mr.brand_mentioned:
                entry.visible += 1
            entry.cost += mr.api_cost
    return stats


def insights(summary: Optional[DashboardSummary], client: Optional[Client] = None) -> Insights:
    sov = summary.overall_sov if summary else 0

    if sov >= SOV_THRESHOLDS["high"]:
        return Insights(
            status="high",
            status_text=f"High visibility at {sov}%",
            recommendations=[
                "Maintain current content strategy",
                "Monitor competitor movements",
                "Expand to new keywords",
            ],
        )
    if sov >= SOV_THRESHOLDS["medium"]:
        return Insights(
            status="medium",
            status_text=f"Medium visibility at {sov}%",
            recommendations=[
                "Increase brand mentions in authoritative sources",
                "Improve ranking in AI-generated lists",
                "Create more targeted content",
            ],
        )

    rival = client.competitors[0] if client and client.competitors else "competitor"
    return Insights(
        status="low",
        status_text=f"Low visibility at {sov}%",
        recommendations=[
            "Increase brand mentions in authoritative sources",
            "Improve ranking in AI-generated lists",
            f"Monitor {rival}'s presence",
            "Focus on niche and super-niche keywords",
        ],
    )


def cost_breakdown(results: Sequence[AuditResult]) -> CostBreakdown:
    by_model: Dict[str, float] = defaultdict(float)
    by_prompt: Dict[str, float] = {}
    for result in results:
        for mr in result.model_results:
            by_model[mr.model] += mr.api_cost
        by_prompt[result.prompt_id] = result.summary.total_cost

    return CostBreakdown(
        total=math.fsum(mr.api_cost for r in results for mr in r.model_results),
        by_model=dict(by_model),
        by_prompt=by_prompt,
    )
