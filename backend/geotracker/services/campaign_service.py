"""
Campaign Service
Campaign records and the progress derived from their tagged results.
"""

import logging
from typing import List
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from geotracker.clock import utcnow
from geotracker.exceptions import CampaignCreationError, NotFoundError, PersistenceError
from geotracker.models import Campaign as CampaignRow
from geotracker.models.database import CampaignStatus
from geotracker.schemas import Campaign, CampaignProgress
from geotracker.services.metrics import campaign_results, compute_summary, round_half_up
from geotracker.services.sql_tier import SessionFactory
from geotracker.services.store import ResultStore

logger = logging.getLogger(__name__)


class CampaignService:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def create(self, client_id: str, name: str, total_prompts: int) -> Campaign:
        """Create a running campaign. Any failure raises CampaignCreationError."""
        row = CampaignRow(
            id=str(uuid4()),
            client_id=client_id,
            name=name,
            status=CampaignStatus.RUNNING.value,
            total_prompts=total_prompts,
            created_at=utcnow(),
        )
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to create campaign {name} for client {client_id}: {e}")
            raise CampaignCreationError(f"Failed to create campaign: {e}", {"client_id": client_id}) from e
        return Campaign.model_validate(row)

    async def finalize(self, campaign_id: str, status: CampaignStatus) -> None:
        try:
            async with self.session_factory() as session:
                row = await session.get(CampaignRow, campaign_id)
                if row is None:
                    raise PersistenceError(
                        f"Campaign {campaign_id} vanished before it could be finalized",
                        {"campaign_id": campaign_id},
                    )
                row.status = status.value
                row.completed_at = utcnow()
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Failed to update campaign {campaign_id}: {e}") from e

    async def list_campaigns(self, client_id: str) -> List[Campaign]:
        async with self.session_factory() as session:
            rows = await session.execute(
                select(CampaignRow)
                .where(CampaignRow.client_id == client_id)
                .order_by(CampaignRow.created_at.desc())
            )
            return [Campaign.model_validate(r) for r in rows.scalars().all()]

    async def get_campaign(self, campaign_id: str) -> Campaign:
        async with self.session_factory() as session:
            row = await session.get(CampaignRow, campaign_id)
        if row is None:
            raise NotFoundError(f"Campaign {campaign_id} not found", {"campaign_id": campaign_id})
        return Campaign.model_validate(row)

    async def progress(self, campaign_id: str, store: ResultStore) -> CampaignProgress:
        """Completed count and summary come from the results tagged with the campaign"""
        campaign = await self.get_campaign(campaign_id)
        results = campaign_results(campaign_id, await store.load(campaign.client_id))
        completed = len(results)
        return CampaignProgress(
            campaign=campaign,
            completed_prompts=completed,
            percent_complete=int(round_half_up(completed / (campaign.total_prompts or 1) * 100)),
            summary=compute_summary(results),
        )
