"""
Client Management Routes
"""

from typing import List

from fastapi import APIRouter, Depends, status

from geotracker.api.deps import get_client_registry
from geotracker.schemas import Client, ClientCreate, ClientUpdate
from geotracker.services import ClientRegistry

router = APIRouter()


@router.get("", response_model=List[Client])
async def list_clients(registry: ClientRegistry = Depends(get_client_registry)):
    """List clients, oldest first"""
    return await registry.list_clients()


@router.post("", response_model=Client, status_code=status.HTTP_201_CREATED)
async def add_client(
    data: ClientCreate,
    registry: ClientRegistry = Depends(get_client_registry),
):
    return await registry.add_client(data)


@router.get("/{client_id}", response_model=Client)
async def get_client(client_id: str, registry: ClientRegistry = Depends(get_client_registry)):
    return await registry.get_client(client_id)


@router.patch("/{client_id}", response_model=Client)
async def update_client(
    client_id: str,
    data: ClientUpdate,
    registry: ClientRegistry = Depends(get_client_registry),
):
    return await registry.update_client(client_id, data)


@router.delete("/{client_id}")
async def delete_client(client_id: str, registry: ClientRegistry = Depends(get_client_registry)):
    """
    Delete a client.

    Refused with 400 while it is the last one. The response carries the
    client to select next.
    """
    selected = await registry.delete_client(client_id)
    return {
        "deleted": client_id,
        "selected_client": selected.model_dump(mode="json"),
    }
