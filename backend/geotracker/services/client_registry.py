"""
Client Registry
Brand CRUD on top of the result store.
"""

import logging
import random
import re
from typing import List
from uuid import uuid4

from geotracker.config import INDUSTRY_PRESETS, LOCATION_CODES
from geotracker.exceptions import NotFoundError, ValidationError
from geotracker.schemas import Client, ClientCreate, ClientUpdate
from geotracker.services.store import ResultStore

logger = logging.getLogger(__name__)

BRAND_COLORS = ["#ec4899", "#f59e0b", "#06b6d4", "#8b5cf6", "#10b981", "#ef4444", "#3b82f6"]


def generate_slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class ClientRegistry:
    """Clients are listed oldest first; that order decides the next selection after a delete"""

    def __init__(self, store: ResultStore):
        self.store = store

    async def list_clients(self) -> List[Client]:
        return await self.store.load_clients()

    async def get_client(self, client_id: str) -> Client:
        for client in await self.store.load_clients():
            if client.id == client_id:
                return client
        raise NotFoundError(f"Client {client_id} not found", {"client_id": client_id})

    async def add_client(self, data: ClientCreate) -> Client:
        """
        Register a brand.

        brand_name falls back to the client name, brand_tags to
        [brand_name], and competitors to the industry preset.
        """
        industry = data.industry or "Custom"
        brand_name = data.brand_name or data.name
        target_region = data.target_region or "United States"
        preset = INDUSTRY_PRESETS.get(industry, {})

        client = Client(
            id=str(uuid4()),
            name=data.name,
            brand_name=brand_name,
            slug=generate_slug(data.name),
            brand_tags=data.brand_tags if data.brand_tags is not None else [brand_name],
            competitors=data.competitors if data.competitors is not None else list(preset.get("competitors", [])),
            target_region=target_region,
            location_code=data.location_code or LOCATION_CODES.get(target_region, 2840),
            industry=industry,
            primary_color=data.primary_color or random.choice(BRAND_COLORS),
        )
        await self.store.save_client(client)
        logger.info(f"Added client {client.name} ({client.id})")
        return client

    async def update_client(self, client_id: str, data: ClientUpdate) -> Client:
        client = await self.get_client(client_id)
        updated = client.model_copy(update=data.model_dump(exclude_unset=True, exclude_none=True))
        await self.store.save_client(updated)
        return updated

    async def update_brand_tags(self, client_id: str, brand_tags: List[str]) -> Client:
        return await self.update_client(client_id, ClientUpdate(brand_tags=brand_tags))

    async def update_competitors(self, client_id: str, competitors: List[str]) -> Client:
        return await self.update_client(client_id, ClientUpdate(competitors=competitors))

    async def delete_client(self, client_id: str) -> Client:
        """
        Delete a client and return the one to select next.

        Refused while it is the only client left; nothing changes then.
        """
        clients = await self.store.load_clients()
        if len(clients) <= 1:
            raise ValidationError("Cannot delete the last remaining client", {"client_id": client_id})

        remaining = [c for c in clients if c.id != client_id]
        if len(remaining) == len(clients):
            raise NotFoundError(f"Client {client_id} not found", {"client_id": client_id})

        await self.store.delete_client(client_id)
        logger.info(f"Deleted client {client_id}")
        return remaining[0]
