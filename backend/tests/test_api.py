"""
Tests for the HTTP API with in-memory tiers and a recording task dispatcher.
"""

from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

from geotracker.api.deps import (
    get_campaign_service,
    get_dispatcher,
    get_result_store,
    get_schedule_service,
)
from geotracker.main import create_app
from geotracker.services import CampaignService, ScheduleService

from conftest import build_result

pytestmark = pytest.mark.anyio

API = "/api/v1"


@asynccontextmanager
async def no_lifespan(app):
    yield


class RecordingDispatcher:
    def __init__(self):
        self.calls = []

    def _queue(self, *call):
        self.calls.append(call)
        return f"task-{len(self.calls)}"

    def run_full(self, client_id, models=None):
        return self._queue("full", client_id, models)

    def run_single(self, client_id, prompt_id, models=None, include_enrichment=None):
        return self._queue("single", client_id, prompt_id, models, include_enrichment)

    def run_campaign(self, client_id, name, prompt_ids, models=None):
        return self._queue("campaign", client_id, name, prompt_ids, models)

    def trigger_schedule(self, schedule_id):
        return self._queue("schedule", schedule_id)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
async def client(store, session_factory, dispatcher, anyio_backend):
    app = create_app(lifespan_handler=no_lifespan)
    app.dependency_overrides[get_result_store] = lambda: store
    app.dependency_overrides[get_campaign_service] = lambda: CampaignService(session_factory)
    app.dependency_overrides[get_schedule_service] = lambda: ScheduleService(session_factory)
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestClients:
    async def test_create_list_update_delete(self, client, acme):
        response = await client.post(f"{API}/clients", json={"name": "Juleo Club", "industry": "Dating/Matrimony"})
        assert response.status_code == 201
        juleo = response.json()
        assert juleo["slug"] == "juleo-club"
        assert juleo["brand_tags"] == ["Juleo Club"]

        response = await client.get(f"{API}/clients")
        assert [c["id"] for c in response.json()] == ["acme", juleo["id"]]

        response = await client.patch(f"{API}/clients/{juleo['id']}", json={"competitors": ["Bumble"]})
        assert response.json()["competitors"] == ["Bumble"]

        response = await client.delete(f"{API}/clients/{juleo['id']}")
        assert response.status_code == 200
        assert response.json()["selected_client"]["id"] == "acme"

    async def test_last_client_delete_is_rejected(self, client, acme):
        response = await client.delete(f"{API}/clients/acme")

        assert response.status_code == 400
        assert response.json()["type"] == "ValidationError"

    async def test_unknown_client_is_404(self, client):
        response = await client.get(f"{API}/clients/nobody")

        assert response.status_code == 404
        assert response.json()["context"] == {"client_id": "nobody"}

    async def test_invalid_body_is_422(self, client):
        response = await client.post(f"{API}/clients", json={"name": ""})

        assert response.status_code == 422


class TestPrompts:
    async def test_add_bulk_import_and_list(self, client, acme):
        prompts_url = f"{API}/clients/acme/prompts"

        response = await client.post(prompts_url, json={"prompt_text": "Best dating apps"})
        assert response.status_code == 201
        assert response.json()["niche_level"] == "niche"

        await client.post(f"{prompts_url}/bulk", json={"prompts": ["dating apps", "video dating"]})
        await client.post(f"{prompts_url}/import", json={"data": '{"prompts": ["vegan dating"]}'})

        response = await client.get(prompts_url)
        assert [p["prompt_text"] for p in response.json()] == [
            "Best dating apps", "dating apps", "video dating", "vegan dating",
        ]

    async def test_deactivate_returns_current_view(self, client, store, acme):
        prompts_url = f"{API}/clients/acme/prompts"
        first = (await client.post(prompts_url, json={"prompt_text": "dating apps"})).json()
        second = (await client.post(prompts_url, json={"prompt_text": "safe dating"})).json()
        await store.save("acme", build_result(first["id"], sov=100))
        await store.save("acme", build_result(second["id"], sov=0))

        response = await client.post(f"{prompts_url}/{first['id']}/deactivate")

        assert response.status_code == 200
        assert response.json()["summary"]["overall_sov"] == 0

        response = await client.get(prompts_url, params={"include_inactive": False})
        assert [p["id"] for p in response.json()] == [second["id"]]

        response = await client.post(f"{prompts_url}/{first['id']}/reactivate")
        assert response.json()["summary"]["overall_sov"] == 50

    async def test_clear_and_purge(self, client, store, tier, acme):
        prompts_url = f"{API}/clients/acme/prompts"
        prompt = (await client.post(prompts_url, json={"prompt_text": "dating apps"})).json()
        await store.save("acme", build_result(prompt["id"]))

        response = await client.delete(prompts_url)
        assert response.json() == {"results": [], "summary": None}
        assert len(tier.results) == 1

        await client.delete(f"{prompts_url}/results")
        assert tier.results == []


class TestAudits:
    async def test_full_audit_is_queued(self, client, dispatcher, acme):
        response = await client.post(f"{API}/clients/acme/audits/full", json={"models": ["claude"]})

        assert response.status_code == 202
        assert response.json() == {"task_id": "task-1", "status": "queued"}
        assert dispatcher.calls == [("full", "acme", ["claude"])]

    async def test_full_audit_without_body(self, client, dispatcher, acme):
        response = await client.post(f"{API}/clients/acme/audits/full")

        assert response.status_code == 202
        assert dispatcher.calls == [("full", "acme", None)]

    async def test_single_audit_checks_prompt(self, client, dispatcher, acme):
        prompt = (await client.post(f"{API}/clients/acme/prompts", json={"prompt_text": "dating apps"})).json()

        missing = await client.post(f"{API}/clients/acme/audits/prompts/nope")
        queued = await client.post(
            f"{API}/clients/acme/audits/prompts/{prompt['id']}", json={"include_enrichment": True},
        )

        assert missing.status_code == 404
        assert queued.status_code == 202
        assert dispatcher.calls == [("single", "acme", prompt["id"], None, True)]

    async def test_campaign_is_queued(self, client, dispatcher, acme):
        response = await client.post(
            f"{API}/clients/acme/audits/campaigns", json={"name": "January", "prompt_ids": ["p1", "p2"]},
        )

        assert response.status_code == 202
        assert dispatcher.calls == [("campaign", "acme", "January", ["p1", "p2"], None)]

    async def test_campaign_needs_prompts(self, client, dispatcher, acme):
        response = await client.post(
            f"{API}/clients/acme/audits/campaigns", json={"name": "January", "prompt_ids": []},
        )

        assert response.status_code == 422
        assert dispatcher.calls == []

    async def test_unknown_client_is_not_queued(self, client, dispatcher):
        response = await client.post(f"{API}/clients/nobody/audits/full")

        assert response.status_code == 404
        assert dispatcher.calls == []


class TestAnalyticsAndExport:
    async def _seed(self, client, store):
        prompt = (await client.post(f"{API}/clients/acme/prompts", json={"prompt_text": "dating apps"})).json()
        await store.save("acme", build_result(prompt["id"], sov=75, rank=1, citations=2, cost=0.04))
        return prompt

    async def test_view_and_analytics(self, client, store, acme):
        await self._seed(client, store)

        view = (await client.get(f"{API}/clients/acme/view")).json()
        analytics = (await client.get(f"{API}/clients/acme/analytics")).json()
        citations = await client.get(f"{API}/clients/acme/citations")

        assert view["summary"]["overall_sov"] == 75
        assert analytics["summary"]["total_citations"] == 2
        assert analytics["insights"]["status"] == "high"
        assert [g["name"] for g in analytics["competitor_gap"]] == ["Acme", "X", "Y"]
        assert citations.status_code == 200

    async def test_exports(self, client, store, acme):
        await self._seed(client, store)

        csv_response = await client.get(f"{API}/clients/acme/export/csv")
        json_response = await client.get(f"{API}/clients/acme/export/json")
        report_response = await client.get(f"{API}/clients/acme/export/report")

        assert csv_response.headers["content-type"].startswith("text/csv")
        assert 'filename="acme-results-' in csv_response.headers["content-disposition"]
        assert '"dating apps","custom","broad","75%","1","2","$0.0400"' in csv_response.text
        assert json_response.json()["prompts"] == [
            {"text": "dating apps", "category": "custom", "niche_level": "broad"},
        ]
        assert report_response.text.startswith("GEO VISIBILITY REPORT")


class TestCampaignsAndSchedules:
    async def test_campaign_progress(self, client, store, session_factory, acme):
        campaign = await CampaignService(session_factory).create("acme", "January", 2)
        await store.save("acme", build_result("p1", campaign_id=campaign.id))

        listed = await client.get(f"{API}/clients/acme/campaigns")
        progress = await client.get(f"{API}/campaigns/{campaign.id}")
        missing = await client.get(f"{API}/campaigns/nope")

        assert [c["id"] for c in listed.json()] == [campaign.id]
        assert progress.json()["completed_prompts"] == 1
        assert progress.json()["percent_complete"] == 50
        assert missing.status_code == 404

    async def test_schedule_lifecycle(self, client, dispatcher, acme):
        response = await client.post(
            f"{API}/clients/acme/schedules", json={"name": "dating apps", "interval_value": 2, "interval_unit": "hours"},
        )
        assert response.status_code == 201
        schedule = response.json()
        assert schedule["is_active"] is True

        listed = await client.get(f"{API}/clients/acme/schedules")
        assert [s["id"] for s in listed.json()] == [schedule["id"]]

        toggled = await client.post(f"{API}/schedules/{schedule['id']}/toggle")
        assert toggled.json()["is_active"] is False
        assert toggled.json()["next_run_at"] is None

        triggered = await client.post(f"{API}/schedules/{schedule['id']}/trigger")
        assert triggered.status_code == 202
        assert dispatcher.calls == [("schedule", schedule["id"])]

        deleted = await client.delete(f"{API}/schedules/{schedule['id']}")
        assert deleted.status_code == 204
        assert (await client.post(f"{API}/schedules/{schedule['id']}/trigger")).status_code == 404
