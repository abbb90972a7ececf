"""
Tests for campaign records and progress.
"""

import pytest

from geotracker.exceptions import CampaignCreationError, NotFoundError, PersistenceError
from geotracker.models.database import CampaignStatus
from geotracker.services import CampaignService

from conftest import build_result

pytestmark = pytest.mark.anyio


@pytest.fixture
def service(session_factory):
    return CampaignService(session_factory)


async def test_create_and_finalize(service):
    campaign = await service.create("acme", "January", 4)

    assert campaign.status == CampaignStatus.RUNNING
    assert campaign.total_prompts == 4

    await service.finalize(campaign.id, CampaignStatus.COMPLETED)

    stored = await service.get_campaign(campaign.id)
    assert stored.status == CampaignStatus.COMPLETED
    assert stored.completed_at is not None


async def test_finalize_missing_campaign_is_a_persistence_error(service):
    with pytest.raises(PersistenceError, match="vanished"):
        await service.finalize("missing", CampaignStatus.COMPLETED)


async def test_list_newest_first(service):
    first = await service.create("acme", "January", 1)
    second = await service.create("acme", "February", 1)
    await service.create("beta", "Other", 1)

    campaigns = await service.list_campaigns("acme")

    assert [c.id for c in campaigns] == [second.id, first.id]


async def test_unknown_campaign(service):
    with pytest.raises(NotFoundError):
        await service.get_campaign("missing")


async def test_creation_failure():
    def broken_factory():
        raise OSError("connection refused")

    with pytest.raises(CampaignCreationError):
        await CampaignService(broken_factory).create("acme", "January", 1)


async def test_progress_counts_tagged_results(service, store):
    campaign = await service.create("acme", "January", 3)
    await store.save("acme", build_result("p1", sov=40, campaign_id=campaign.id))
    await store.save("acme", build_result("p2", sov=61, campaign_id=campaign.id))
    await store.save("acme", build_result("p3", sov=100))

    progress = await service.progress(campaign.id, store)

    assert progress.completed_prompts == 2
    assert progress.percent_complete == 67
    assert progress.summary.total_prompts == 2
    assert progress.summary.overall_sov == 51  # 50.5


async def test_progress_without_results(service, store):
    campaign = await service.create("acme", "January", 2)

    progress = await service.progress(campaign.id, store)

    assert progress.completed_prompts == 0
    assert progress.percent_complete == 0
    assert progress.summary is None
