"""
Shared fixtures: in-memory tiers, a fake scoring service and a SQLite
session factory.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "testing")

import asyncio
import copy
import json
from datetime import datetime
from typing import Dict, List, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from geotracker.exceptions import CampaignCreationError, PersistenceError, ScoringServiceError
from geotracker.models import Base
from geotracker.schemas import (
    AuditResult,
    Campaign,
    Citation,
    Client,
    EnrichmentResult,
    ModelResult,
    ScoringPayload,
    Summary,
)
from geotracker.services import AuditOrchestrator, ResultStore

T0 = datetime(2025, 1, 1, 12, 0, 0)


@pytest.fixture
def anyio_backend():
    return "asyncio"


# ============================================================================
# STORE TIERS
# ============================================================================

def _upsert(records: List[dict], record: dict) -> List[dict]:
    record = copy.deepcopy(record)
    for i, existing in enumerate(records):
        if existing["id"] == record["id"]:
            return records[:i] + [record] + records[i + 1:]
    return records + [record]


class InMemoryTier:
    """Authoritative tier double; flip `available` to simulate an outage"""

    def __init__(self):
        self.clients: List[dict] = []
        self.prompts: List[dict] = []
        self.results: List[dict] = []
        self.available = True

    def _check(self):
        if not self.available:
            raise PersistenceError("database unreachable")

    async def load_clients(self):
        self._check()
        return copy.deepcopy(self.clients)

    async def upsert_client(self, record):
        self._check()
        self.clients = _upsert(self.clients, record)

    async def delete_client(self, client_id):
        self._check()
        self.clients = [c for c in self.clients if c["id"] != client_id]
        self.prompts = [p for p in self.prompts if p["client_id"] != client_id]
        self.results = [r for r in self.results if r["client_id"] != client_id]

    async def load_prompts(self, client_id):
        self._check()
        return copy.deepcopy([p for p in self.prompts if p["client_id"] == client_id])

    async def upsert_prompts(self, records):
        self._check()
        for record in records:
            self.prompts = _upsert(self.prompts, record)

    async def delete_prompts(self, client_id):
        self._check()
        self.prompts = [p for p in self.prompts if p["client_id"] != client_id]

    async def load_results(self, client_id):
        self._check()
        return copy.deepcopy([r for r in self.results if r["client_id"] == client_id])

    async def insert_result(self, record):
        self._check()
        record = copy.deepcopy(record)
        if record.get("campaign_id") is not None:
            self.results.append(record)
            return

        def same_slot(r):
            return (
                r["client_id"] == record["client_id"]
                and r["prompt_id"] == record["prompt_id"]
                and r.get("campaign_id") is None
            )

        slot = next((i for i, r in enumerate(self.results) if same_slot(r)), len(self.results))
        kept = [r for r in self.results if not same_slot(r)]
        kept.insert(slot, record)
        self.results = kept

    async def delete_results(self, client_id):
        self._check()
        self.results = [r for r in self.results if r["client_id"] != client_id]


class InMemoryCache:
    """Cache tier double storing JSON text, like Redis"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.available = True

    def _check(self):
        if not self.available:
            raise RedisConnectionError("cache unreachable")

    async def get(self, key):
        self._check()
        value = self.data.get(key)
        return json.loads(value) if value is not None else None

    async def set(self, key, value):
        self._check()
        self.data[key] = json.dumps(value)
        return True

    async def delete(self, key):
        self._check()
        return self.data.pop(key, None) is not None


@pytest.fixture
def tier():
    return InMemoryTier()


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def store(tier, cache):
    return ResultStore(tier, cache)


@pytest.fixture
async def acme(store, anyio_backend):
    client = Client(
        id="acme",
        name="Acme",
        brand_name="Acme",
        slug="acme",
        brand_tags=["Acme", "acme.com"],
        competitors=["X", "Y"],
        created_at=T0,
    )
    await store.save_client(client)
    return client


# ============================================================================
# RESULTS & SCORING
# ============================================================================

def build_result(
    prompt_id: str,
    sov: float = 50,
    rank: Optional[float] = 2,
    citations: int = 1,
    cost: float = 0.02,
    campaign_id: Optional[str] = None,
    created_at: datetime = T0,
    model_results: Optional[List[ModelResult]] = None,
    result_id: Optional[str] = None,
    prompt_text: Optional[str] = None,
) -> AuditResult:
    return AuditResult(
        id=result_id or f"r-{prompt_id}-{campaign_id or 'live'}-{created_at:%H%M%S%f}",
        client_id="acme",
        prompt_id=prompt_id,
        prompt_text=prompt_text or f"prompt {prompt_id}",
        model_results=model_results or [],
        summary=Summary(share_of_voice=sov, average_rank=rank, total_citations=citations, total_cost=cost),
        campaign_id=campaign_id,
        created_at=created_at,
    )


def default_payload(prompt_text: str) -> ScoringPayload:
    return ScoringPayload(
        model_results=[
            ModelResult(
                model="chatgpt",
                brand_mentioned=True,
                brand_mention_count=1,
                brand_rank=2,
                citations=[Citation(url="https://reddit.com/r/a", title="A", domain="reddit.com")],
                api_cost=0.02,
                raw_response=f"Answer to {prompt_text}",
            )
        ],
        summary=Summary(share_of_voice=100, average_rank=2, total_citations=1, total_cost=0.02),
    )


class FakeScoringClient:
    """Records every request; configured per prompt text to fail or hang"""

    def __init__(self):
        self.calls = []
        self.failures: Dict[str, Exception] = {}
        self.hanging = set()
        self.payloads: Dict[str, ScoringPayload] = {}

    async def audit(self, request):
        self.calls.append(request)
        if request.prompt_text in self.hanging:
            await asyncio.sleep(3600)
        error = self.failures.get(request.prompt_text)
        if error is not None:
            raise error
        return self.payloads.get(request.prompt_text) or default_payload(request.prompt_text)

    def fail(self, prompt_text: str, message: str = "upstream error"):
        self.failures[prompt_text] = ScoringServiceError(message)


class FakeEnrichmentClient:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    async def analyze(self, request):
        self.calls.append(request)
        if self.fail:
            raise ScoringServiceError("source analysis down")
        return EnrichmentResult(success=True, sources=[{"url": "https://example.com"}])


class FakeCampaigns:
    def __init__(self):
        self.created: List[Campaign] = []
        self.finalized = {}
        self.fail = False

    async def create(self, client_id, name, total_prompts):
        if self.fail:
            raise CampaignCreationError("campaign table unavailable")
        campaign = Campaign(
            id=f"camp-{len(self.created) + 1}",
            client_id=client_id,
            name=name,
            total_prompts=total_prompts,
        )
        self.created.append(campaign)
        return campaign

    async def finalize(self, campaign_id, status):
        self.finalized[campaign_id] = status


class Pacing:
    """Replacement for asyncio.sleep that records requested delays"""

    def __init__(self):
        self.delays: List[float] = []

    async def sleep(self, delay):
        self.delays.append(delay)


@pytest.fixture
def scoring():
    return FakeScoringClient()


@pytest.fixture
def campaigns():
    return FakeCampaigns()


@pytest.fixture
def pacing():
    return Pacing()


@pytest.fixture
def orchestrator(store, scoring, campaigns, pacing):
    return AuditOrchestrator(
        store,
        scoring,
        campaigns=campaigns,
        models=["chatgpt"],
        timeout=0.05,
        full_delay=0.3,
        campaign_delay=0.5,
        enrichment_enabled=False,
        sleep=pacing.sleep,
    )


# ============================================================================
# SQLITE
# ============================================================================

@pytest.fixture
async def session_factory(anyio_backend):
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()
