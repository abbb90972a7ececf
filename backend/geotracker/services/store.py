"""
Result Store
Two-tier persistence for clients, prompts and audit results.

Every read and write goes to the authoritative tier (the SQL database)
first. The cache tier (Redis) mirrors the last known state per client and
answers reads whenever the authoritative tier is unreachable.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

from redis.exceptions import RedisError

from geotracker.exceptions import PersistenceError
from geotracker.schemas import AuditResult, Client, Prompt

logger = logging.getLogger(__name__)


class AuthoritativeTier(Protocol):
    """Remote store of record. Raises PersistenceError when unreachable."""

    async def load_clients(self) -> List[Dict[str, Any]]: ...

    async def upsert_client(self, record: Dict[str, Any]) -> None: ...

    async def delete_client(self, client_id: str) -> None: ...

    async def load_prompts(self, client_id: str) -> List[Dict[str, Any]]: ...

    async def upsert_prompts(self, records: List[Dict[str, Any]]) -> None: ...

    async def delete_prompts(self, client_id: str) -> None: ...

    async def load_results(self, client_id: str) -> List[Dict[str, Any]]: ...

    async def insert_result(self, record: Dict[str, Any]) -> None: ...

    async def delete_results(self, client_id: str) -> None: ...


class CacheTier(Protocol):
    """Local JSON key/value fallback"""

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any) -> Any: ...

    async def delete(self, key: str) -> Any: ...


def _results_key(client_id: str) -> str:
    return f"results:{client_id}"


def _prompts_key(client_id: str) -> str:
    return f"prompts:{client_id}"


_CLIENTS_KEY = "clients"


def _merge_by_id(existing: List[dict], updates: List[dict]) -> List[dict]:
    """Replace records with a matching id in place, append the rest"""
    merged = list(existing)
    index = {record.get("id"): i for i, record in enumerate(merged)}
    for record in updates:
        position = index.get(record["id"])
        if position is None:
            index[record["id"]] = len(merged)
            merged.append(record)
        else:
            merged[position] = record
    return merged


def apply_result(results: List[AuditResult], result: AuditResult) -> List[AuditResult]:
    """
    Add one result to an ordered result list.

    A live result takes over its prompt's live slot in place; campaign
    results always append.
    """
    if not result.is_live:
        return [*results, result]

    updated = []
    replaced = False
    for existing in results:
        if existing.is_live and existing.prompt_id == result.prompt_id:
            if not replaced:
                updated.append(result)
                replaced = True
            continue
        updated.append(existing)
    if not replaced:
        updated.append(result)
    return updated


class ResultStore:
    """
    Client-scoped dual-tier store.

    Reads never raise on tier failure: an authoritative failure falls back
    to the cache, a cache failure yields an empty list. Writes never raise
    either; the cache is updated whatever the authoritative outcome.
    """

    def __init__(self, authoritative: AuthoritativeTier, cache: CacheTier):
        self.authoritative = authoritative
        self.cache = cache

    # ------------------------------------------------------------------
    # Audit results
    # ------------------------------------------------------------------

    async def load(self, client_id: str) -> List[AuditResult]:
        """Ordered results for a client (oldest first), live and campaign alike"""
        records = await self._read(_results_key(client_id), self.authoritative.load_results, client_id)
        return [AuditResult.model_validate(r) for r in records]

    async def save(self, client_id: str, result: AuditResult) -> None:
        record = result.to_record()
        record["client_id"] = client_id
        try:
            await self.authoritative.insert_result(record)
        except PersistenceError:
            logger.exception(f"Authoritative write of result {result.id} failed for client {client_id}")

        key = _results_key(client_id)
        cached = [AuditResult.model_validate(r) for r in await self._cache_get(key)]
        updated = apply_result(cached, result.model_copy(update={"client_id": client_id}))
        await self._cache_set(key, [r.model_dump(mode="json") for r in updated])

    async def purge_results(self, client_id: str) -> None:
        """Delete every stored result of the client from both tiers"""
        try:
            await self.authoritative.delete_results(client_id)
        except PersistenceError:
            logger.exception(f"Authoritative purge of results failed for client {client_id}")
        await self._cache_set(_results_key(client_id), [])

    async def clear_cached_results(self, client_id: str) -> None:
        await self._cache_set(_results_key(client_id), [])

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    async def load_prompts(self, client_id: str) -> List[Prompt]:
        records = await self._read(_prompts_key(client_id), self.authoritative.load_prompts, client_id)
        return [Prompt.model_validate(r) for r in records]

    async def save_prompts(self, client_id: str, prompts: List[Prompt]) -> None:
        """Insert new prompts and overwrite existing ones (matched by id)"""
        if not prompts:
            return
        records = [p.model_dump(mode="json") for p in prompts]
        try:
            await self.authoritative.upsert_prompts(records)
        except PersistenceError:
            logger.exception(f"Authoritative write of {len(records)} prompt(s) failed for client {client_id}")

        key = _prompts_key(client_id)
        await self._cache_set(key, _merge_by_id(await self._cache_get(key), records))

    async def clear_prompts(self, client_id: str) -> None:
        try:
            await self.authoritative.delete_prompts(client_id)
        except PersistenceError:
            logger.exception(f"Authoritative prompt delete failed for client {client_id}")
        await self._cache_set(_prompts_key(client_id), [])

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    async def load_clients(self) -> List[Client]:
        records = await self._read(_CLIENTS_KEY, self.authoritative.load_clients)
        return [Client.model_validate(r) for r in records]

    async def save_client(self, client: Client) -> None:
        record = client.model_dump(mode="json")
        try:
            await self.authoritative.upsert_client(record)
        except PersistenceError:
            logger.exception(f"Authoritative write of client {client.id} failed")
        await self._cache_set(_CLIENTS_KEY, _merge_by_id(await self._cache_get(_CLIENTS_KEY), [record]))

    async def delete_client(self, client_id: str) -> None:
        try:
            await self.authoritative.delete_client(client_id)
        except PersistenceError:
            logger.exception(f"Authoritative delete of client {client_id} failed")

        remaining = [c for c in await self._cache_get(_CLIENTS_KEY) if c.get("id") != client_id]
        await self._cache_set(_CLIENTS_KEY, remaining)
        await self._cache_delete(_prompts_key(client_id))
        await self._cache_delete(_results_key(client_id))

    # ------------------------------------------------------------------
    # Tier plumbing
    # ------------------------------------------------------------------

    async def _read(self, key: str, loader, *args) -> List[dict]:
        try:
            records = await loader(*args)
        except PersistenceError as e:
            logger.warning(f"Authoritative read failed for {key}, serving cached copy: {e}")
            return await self._cache_get(key)

        records = [self._jsonable(r) for r in records]
        await self._cache_set(key, records)
        return records

    @staticmethod
    def _jsonable(record: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v.isoformat() if hasattr(v, "isoformat") else v for k, v in record.items()}

    async def _cache_get(self, key: str) -> List[dict]:
        try:
            value = await self.cache.get(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return []
        return value if isinstance(value, list) else []

    async def _cache_set(self, key: str, value: List[dict]) -> None:
        try:
            await self.cache.set(key, value)
        except (RedisError, OSError) as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    async def _cache_delete(self, key: str) -> None:
        try:
            await self.cache.delete(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Cache delete failed for {key}: {e}")
