"""
Export Service
CSV results, JSON prompt list and the plain-text visibility report.
"""

import csv
import io
from datetime import datetime
from typing import Any, Dict, List, Sequence

from geotracker.config import AI_MODELS
from geotracker.schemas import AuditResult, Client, Prompt
from geotracker.services.metrics import (
    competitor_gap,
    compute_summary,
    insights,
    model_stats,
    top_sources,
)

CSV_HEADER = ["Prompt", "Category", "Niche Level", "SOV", "Rank", "Citations", "Cost"]
REPORT_SOURCE_LIMIT = 10


def _number(value: float) -> str:
    return f"{value:g}"


def export_filename(client: Client, kind: str, extension: str, now: datetime) -> str:
    return f"{client.slug}-{kind}-{now:%Y-%m-%d}.{extension}"


def results_csv(results: Sequence[AuditResult], prompts: Sequence[Prompt]) -> str:
    """One quoted row per result, joined to its prompt's category and niche level"""
    by_id = {p.id: p for p in prompts}
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for result in results:
        prompt = by_id.get(result.prompt_id)
        rank = result.summary.average_rank
        writer.writerow([
            result.prompt_text,
            prompt.category if prompt else "custom",
            prompt.niche_level.value if prompt else "broad",
            f"{_number(result.summary.share_of_voice)}%",
            _number(rank) if rank else "-",
            str(result.summary.total_citations),
            f"${result.summary.total_cost:.4f}",
        ])
    return buffer.getvalue().rstrip("\n")


def prompts_json(client: Client, prompts: Sequence[Prompt], now: datetime) -> Dict[str, Any]:
    return {
        "client": client.name,
        "exported_at": now.isoformat() + "Z",
        "prompts": [
            {"text": p.prompt_text, "category": p.category, "niche_level": p.niche_level.value}
            for p in prompts
        ],
    }


def full_report(client: Client, results: Sequence[AuditResult], now: datetime) -> str:
    summary = compute_summary(results)
    stats = model_stats(results)
    gap = competitor_gap(client, results)
    sources = top_sources(results)[:REPORT_SOURCE_LIMIT]
    status = insights(summary, client)

    rule = "-" * 40
    lines: List[str] = [
        "GEO VISIBILITY REPORT",
        "=" * 60,
        "",
        f"Client: {client.name}",
        f"Brand: {client.brand_name}",
        f"Industry: {client.industry}",
        f"Region: {client.target_region}",
        f"Date: {now:%B} {now.day}, {now.year}",
        "",
        "SUMMARY",
        rule,
        f"Share of Voice: {summary.overall_sov if summary else 0}%",
        f"Average Rank: {'#' + _number(summary.average_rank) if summary and summary.average_rank else 'N/A'}",
        f"Total Citations: {summary.total_citations if summary else 0}",
        f"Total Cost: ${summary.total_cost if summary else 0:.4f}",
        "",
        f"Status: {status.status_text}",
        "",
        "Recommendations:",
        *[f"  • {r}" for r in status.recommendations],
        "",
        "VISIBILITY BY MODEL",
        rule,
    ]

    for model in AI_MODELS:
        s = stats[model["id"]]
        lines.append(f"{model['name']:<20} {s.visible}/{s.total} ({s.visibility}%)  ${s.cost:.4f}")

    lines += ["", "COMPETITOR ANALYSIS", rule]
    for idx, item in enumerate(gap, start=1):
        lines.append(f"{idx}. {item.name:<25} {item.percentage}% ({item.mentions})")

    lines += ["", "TOP SOURCES", rule]
    for idx, source in enumerate(sources, start=1):
        lines.append(f"{idx}. {source.domain:<40} {source.count}")

    return "\n".join(lines) + "\n"
