"""
Campaign Routes
"""

from typing import List

from fastapi import APIRouter, Depends

from geotracker.api.deps import get_campaign_service, get_result_store, require_client
from geotracker.schemas import Campaign, CampaignProgress, Client
from geotracker.services import CampaignService, ResultStore

router = APIRouter()


@router.get("/clients/{client_id}/campaigns", response_model=List[Campaign])
async def list_campaigns(
    client: Client = Depends(require_client),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    """Campaigns of a client, newest first"""
    return await campaigns.list_campaigns(client.id)


@router.get("/campaigns/{campaign_id}", response_model=CampaignProgress)
async def get_campaign(
    campaign_id: str,
    campaigns: CampaignService = Depends(get_campaign_service),
    store: ResultStore = Depends(get_result_store),
):
    """Campaign record with progress and summary derived from its results"""
    return await campaigns.progress(campaign_id, store)
