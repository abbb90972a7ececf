"""
Tests for CSV, JSON and text report exports.
"""

from geotracker.models.database import NicheLevel
from geotracker.schemas import Citation, Client, ModelResult, Prompt
from geotracker.services.export_service import (
    CSV_HEADER,
    export_filename,
    full_report,
    prompts_json,
    results_csv,
)

from conftest import T0, build_result

CLIENT = Client(
    id="acme", name="Acme Inc", brand_name="Acme", slug="acme-inc",
    competitors=["X"], industry="Custom", target_region="India",
)


def test_export_filename():
    assert export_filename(CLIENT, "results", "csv", T0) == "acme-inc-results-2025-01-01.csv"


def test_results_csv_quotes_every_field():
    prompts = [Prompt(id="p1", client_id="acme", prompt_text='Best "safe" apps', category="niche",
                      niche_level=NicheLevel.NICHE)]
    results = [
        build_result("p1", sov=50, rank=2, citations=3, cost=0.02, prompt_text='Best "safe" apps'),
        build_result("gone", sov=12.5, rank=None, citations=0, cost=0),
    ]

    lines = results_csv(results, prompts).split("\n")

    assert lines[0] == ",".join(f'"{h}"' for h in CSV_HEADER)
    assert lines[1] == '"Best ""safe"" apps","niche","niche","50%","2","3","$0.0200"'
    assert lines[2] == '"prompt gone","custom","broad","12.5%","-","0","$0.0000"'


def test_results_csv_without_results_is_header_only():
    assert results_csv([], []) == ",".join(f'"{h}"' for h in CSV_HEADER)


def test_prompts_json():
    prompts = [Prompt(id="p1", client_id="acme", prompt_text="Dating apps")]

    data = prompts_json(CLIENT, prompts, T0)

    assert data == {
        "client": "Acme Inc",
        "exported_at": "2025-01-01T12:00:00Z",
        "prompts": [{"text": "Dating apps", "category": "custom", "niche_level": "broad"}],
    }


def test_full_report_sections():
    results = [
        build_result("p1", sov=60, rank=1.5, citations=2, cost=0.03, model_results=[
            ModelResult(
                model="chatgpt", brand_mentioned=True, brand_mention_count=2, raw_response="Acme beats X",
                citations=[Citation(url="https://reddit.com/r/a", domain="reddit.com")], api_cost=0.03,
            ),
        ]),
    ]

    report = full_report(CLIENT, results, T0)

    assert report.startswith("GEO VISIBILITY REPORT\n")
    assert "Client: Acme Inc" in report
    assert "Region: India" in report
    assert "Date: January 1, 2025" in report
    assert "Share of Voice: 60%" in report
    assert "Average Rank: #1.5" in report
    assert "Status: High visibility at 60%" in report
    assert "  • Maintain current content strategy" in report
    assert "ChatGPT" in report and "1/1 (100%)" in report
    assert "1. Acme" in report
    assert "1. reddit.com" in report


def test_full_report_without_results():
    report = full_report(CLIENT, [], T0)

    assert "Share of Voice: 0%" in report
    assert "Average Rank: N/A" in report
    assert "Total Cost: $0.0000" in report
