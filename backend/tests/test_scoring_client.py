"""
Tests for the scoring and source-analysis HTTP adapters.
"""

import json

import httpx
import pytest

from geotracker.adapters import AuditRequest, EnrichmentRequest, ScoringServiceClient, SourceAnalysisClient
from geotracker.exceptions import ScoringServiceError

pytestmark = pytest.mark.anyio

URL = "https://scoring.test/geo-audit"


def _request(**overrides):
    values = dict(
        client_id="acme", prompt_id="p1", prompt_text="dating apps", brand_name="Acme",
        brand_tags=["Acme"], competitors=["X"], locale="India", location_code=2356,
        models=["chatgpt", "claude"], niche_level="broad",
    )
    values.update(overrides)
    return AuditRequest(**values)


def _client(handler, api_key="secret"):
    return ScoringServiceClient(URL, api_key=api_key, timeout=5, transport=httpx.MockTransport(handler))


async def test_successful_audit():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "success": True,
            "data": {
                "id": "r1",
                "model_results": [{"model": "chatgpt", "brand_mentioned": True, "brand_mention_count": 2,
                                   "citations": [{"url": "https://reddit.com/x", "domain": "reddit.com"}]}],
                "summary": {"share_of_voice": 50, "average_rank": 2, "total_citations": 1, "total_cost": 0.02},
            },
        })

    payload = await _client(handler).audit(_request())

    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["prompt_text"] == "dating apps"
    assert seen["body"]["models"] == ["chatgpt", "claude"]
    assert seen["body"]["save_to_db"] is False
    assert "campaign_id" not in seen["body"]
    assert payload.id == "r1"
    assert payload.model_results[0].citation_count == 1
    assert payload.summary.share_of_voice == 50


async def test_campaign_id_is_sent_when_present():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "data": {}})

    await _client(handler).audit(_request(campaign_id="camp-1"))

    assert seen["body"]["campaign_id"] == "camp-1"


async def test_no_auth_header_without_key():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True, "data": {}})

    await _client(handler, api_key="").audit(_request())

    assert seen["auth"] is None


async def test_unsuccessful_body_raises():
    client = _client(lambda request: httpx.Response(200, json={"success": False, "error": "quota exhausted"}))

    with pytest.raises(ScoringServiceError, match="quota exhausted"):
        await client.audit(_request())


@pytest.mark.parametrize("status,message", [(500, "error 500"), (429, "rate limit")])
async def test_http_errors_raise(status, message):
    client = _client(lambda request: httpx.Response(status, text="boom"))

    with pytest.raises(ScoringServiceError, match=message) as exc_info:
        await client.audit(_request())

    assert exc_info.value.details["status_code"] == status


async def test_non_json_body_raises():
    client = _client(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(ScoringServiceError, match="non-JSON"):
        await client.audit(_request())


async def test_timeout_raises():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ScoringServiceError, match="timed out"):
        await _client(handler).audit(_request())


async def test_connection_error_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ScoringServiceError, match="request failed"):
        await _client(handler).audit(_request())


async def test_source_analysis():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "sources": [{"url": "https://a.com"}], "answer": "A"})

    client = SourceAnalysisClient(URL, api_key="k", transport=httpx.MockTransport(handler))
    result = await client.analyze(EnrichmentRequest(
        client_id="acme", prompt_id="p1", prompt_text="dating apps", brand_name="Acme",
    ))

    assert seen["body"]["search_depth"] == "advanced"
    assert seen["body"]["max_results"] == 20
    assert seen["body"]["include_answer"] is True
    assert result.sources == [{"url": "https://a.com"}]
    assert result.answer == "A"


async def test_source_analysis_failure():
    client = SourceAnalysisClient(
        URL, transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"success": False})),
    )

    with pytest.raises(ScoringServiceError):
        await client.analyze(EnrichmentRequest(
            client_id="acme", prompt_id="p1", prompt_text="dating apps", brand_name="Acme",
        ))


async def test_malformed_model_result_raises_scoring_error():
    body = {"success": True, "data": {"model_results": [{"brand_mentioned": True}]}}
    client = _client(lambda request: httpx.Response(200, json=body))

    with pytest.raises(ScoringServiceError, match="malformed") as exc_info:
        await client.audit(_request())

    assert exc_info.value.details["prompt_id"] == "p1"


async def test_non_object_body_raises():
    client = _client(lambda request: httpx.Response(200, json=["not", "an", "object"]))

    with pytest.raises(ScoringServiceError, match="non-object"):
        await client.audit(_request())


async def test_malformed_source_analysis_raises_scoring_error():
    client = SourceAnalysisClient(
        URL,
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"success": True, "sources": ["a.com"]})
        ),
    )

    with pytest.raises(ScoringServiceError, match="malformed"):
        await client.analyze(EnrichmentRequest(
            client_id="acme", prompt_id="p1", prompt_text="dating apps", brand_name="Acme",
        ))
