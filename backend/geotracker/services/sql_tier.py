"""
SQL authoritative tier
Async SQLAlchemy implementation of the result store's store of record.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List

from sqlalchemy import DateTime, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from geotracker.clock import utcnow
from geotracker.exceptions import PersistenceError
from geotracker.models import AuditResult, Campaign, Client, Prompt, PromptSchedule

SessionFactory = Callable[[], Any]


def row_to_dict(row) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


def _column_values(model, record: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the table's columns, parsing ISO timestamps for DateTime columns"""
    values = {}
    for column in model.__table__.columns:
        if column.name not in record:
            continue
        value = record[column.name]
        if isinstance(column.type, DateTime) and isinstance(value, str):
            value = datetime.fromisoformat(value)
        values[column.name] = value
    return values


class SqlAuthoritativeTier:
    """
    Reads and writes plain dict records through an async session factory.

    Any database or connection error surfaces as PersistenceError so the
    result store can fall back to its cache.
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as session:
                yield session
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Database {action} failed: {e}", {"action": action}) from e

    # Clients

    async def load_clients(self) -> List[Dict[str, Any]]:
        async with self._session("client read") as session:
            rows = await session.execute(select(Client).order_by(Client.created_at))
            return [row_to_dict(c) for c in rows.scalars().all()]

    async def upsert_client(self, record: Dict[str, Any]) -> None:
        async with self._session("client write") as session:
            await session.merge(Client(**_column_values(Client, record)))

    async def delete_client(self, client_id: str) -> None:
        async with self._session("client delete") as session:
            await session.execute(delete(AuditResult).where(AuditResult.client_id == client_id))
            await session.execute(delete(PromptSchedule).where(PromptSchedule.client_id == client_id))
            await session.execute(delete(Campaign).where(Campaign.client_id == client_id))
            await session.execute(delete(Prompt).where(Prompt.client_id == client_id))
            await session.execute(delete(Client).where(Client.id == client_id))

    # Prompts

    async def load_prompts(self, client_id: str) -> List[Dict[str, Any]]:
        async with self._session("prompt read") as session:
            rows = await session.execute(
                select(Prompt).where(Prompt.client_id == client_id).order_by(Prompt.created_at)
            )
            return [row_to_dict(p) for p in rows.scalars().all()]

    async def upsert_prompts(self, records: List[Dict[str, Any]]) -> None:
        async with self._session("prompt write") as session:
            for record in records:
                await session.merge(Prompt(**_column_values(Prompt, record)))

    async def delete_prompts(self, client_id: str) -> None:
        async with self._session("prompt delete") as session:
            await session.execute(delete(Prompt).where(Prompt.client_id == client_id))

    # Audit results

    async def load_results(self, client_id: str) -> List[Dict[str, Any]]:
        async with self._session("result read") as session:
            rows = await session.execute(
                select(AuditResult)
                .where(AuditResult.client_id == client_id)
                .order_by(AuditResult.slot_at, AuditResult.created_at)
            )
            return [row_to_dict(r) for r in rows.scalars().all()]

    async def insert_result(self, record: Dict[str, Any]) -> None:
        """
        Append a result. A live result evicts the prompt's previous live row
        and takes over its position in `load_results` order.
        """
        values = _column_values(AuditResult, record)
        slot = values.get("created_at") or utcnow()
        async with self._session("result write") as session:
            if values.get("campaign_id") is None:
                live_slot = (
                    AuditResult.client_id == values["client_id"],
                    AuditResult.prompt_id == values["prompt_id"],
                    AuditResult.campaign_id.is_(None),
                )
                previous = await session.scalar(select(func.min(AuditResult.slot_at)).where(*live_slot))
                slot = previous or slot
                await session.execute(delete(AuditResult).where(*live_slot, AuditResult.id != values["id"]))
            await session.merge(AuditResult(**values, slot_at=slot))

    async def delete_results(self, client_id: str) -> None:
        async with self._session("result delete") as session:
            await session.execute(delete(AuditResult).where(AuditResult.client_id == client_id))
