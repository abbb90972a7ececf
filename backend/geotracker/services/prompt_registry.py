"""
Prompt Registry
Prompt CRUD, niche classification, soft delete and import.
"""

import json
import logging
from datetime import timedelta
from typing import List, Optional
from uuid import uuid4

from geotracker.clock import utcnow
from geotracker.config import INDUSTRY_PRESETS
from geotracker.exceptions import NotFoundError
from geotracker.models.database import NicheLevel
from geotracker.schemas import Client, CurrentView, Prompt
from geotracker.services.metrics import build_view
from geotracker.services.store import ResultStore

logger = logging.getLogger(__name__)

SUPER_NICHE_KEYWORDS = [
    "specific", "specialized", "custom", "tailored",
    "over 40", "over 50", "vegan", "organic", "halal",
]
NICHE_KEYWORDS = ["professional", "premium", "luxury", "affordable", "best", "top", "recommended"]

MIN_IMPORT_LINE_LENGTH = 4


def detect_niche_level(prompt_text: str) -> NicheLevel:
    """
    Classify how specific a prompt is.

    Keywords are matched as substrings of the lowercased text, so "top"
    also matches "laptop".
    """
    text = prompt_text.lower()
    word_count = len(text.split())

    if any(kw in text for kw in SUPER_NICHE_KEYWORDS) or word_count > 10:
        return NicheLevel.SUPER_NICHE
    if any(kw in text for kw in NICHE_KEYWORDS) or word_count > 6:
        return NicheLevel.NICHE
    return NicheLevel.BROAD


def default_category(niche_level: NicheLevel, fallback: str) -> str:
    if niche_level in (NicheLevel.NICHE, NicheLevel.SUPER_NICHE):
        return niche_level.value
    return fallback


def parse_import(data: str) -> List[str]:
    """
    Extract prompt texts from an import payload.

    JSON objects contribute their "prompts" list (plain strings or
    {"text": ...} items); anything else is read line by line, dropping
    lines of three characters or fewer.
    """
    stripped = data.strip()
    if stripped.startswith(("{", "[")):
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            items = parsed.get("prompts") or []
            return [item if isinstance(item, str) else str(item.get("text", "")) for item in items]
        if parsed is not None:
            return []

    return [line for line in data.split("\n") if len(line.strip()) >= MIN_IMPORT_LINE_LENGTH]


class PromptRegistry:
    """Owns the prompt set of each client and the current view derived from it"""

    def __init__(self, store: ResultStore):
        self.store = store

    async def list_prompts(self, client_id: str, include_inactive: bool = True) -> List[Prompt]:
        prompts = await self.store.load_prompts(client_id)
        if include_inactive:
            return prompts
        return [p for p in prompts if p.is_active]

    async def get_prompt(self, client_id: str, prompt_id: str) -> Prompt:
        for prompt in await self.store.load_prompts(client_id):
            if prompt.id == prompt_id:
                return prompt
        raise NotFoundError(f"Prompt {prompt_id} not found", {"prompt_id": prompt_id})

    async def current_view(self, client_id: str) -> CurrentView:
        prompts = await self.store.load_prompts(client_id)
        results = await self.store.load(client_id)
        return build_view(prompts, results)

    async def add_prompt(self, client_id: str, text: str, category: Optional[str] = None) -> Prompt:
        niche_level = detect_niche_level(text)
        prompt = Prompt(
            id=str(uuid4()),
            client_id=client_id,
            prompt_text=text,
            category=category or default_category(niche_level, "custom"),
            niche_level=niche_level,
        )
        await self.store.save_prompts(client_id, [prompt])
        return prompt

    async def add_many(self, client_id: str, texts: List[str], category: Optional[str] = None) -> List[Prompt]:
        """Add prompts in the given order; blank items are skipped, duplicates are not"""
        base = utcnow()
        prompts = []
        for text in texts:
            text = text.strip()
            if not text:
                continue
            niche_level = detect_niche_level(text)
            prompts.append(Prompt(
                id=str(uuid4()),
                client_id=client_id,
                prompt_text=text,
                category=category or default_category(niche_level, "imported"),
                niche_level=niche_level,
                # Distinct timestamps keep registry order under created_at ordering
                created_at=base + timedelta(microseconds=len(prompts)),
            ))

        await self.store.save_prompts(client_id, prompts)
        logger.info(f"Added {len(prompts)} prompt(s) for client {client_id}")
        return prompts

    async def import_prompts(self, client_id: str, data: str) -> List[Prompt]:
        return await self.add_many(client_id, parse_import(data))

    async def generate_niche_prompts(self, client: Client) -> List[Prompt]:
        """Add the industry preset prompts with the client's region filled in"""
        preset = INDUSTRY_PRESETS.get(client.industry)
        if not preset:
            return []
        templates = preset["prompts"] + preset["niche_prompts"] + preset["super_niche_prompts"]
        texts = [t.replace("{region}", client.target_region) for t in templates]
        return await self.add_many(client.id, texts)

    async def deactivate(self, client_id: str, prompt_id: str) -> CurrentView:
        """Soft delete: the prompt leaves the current view, its results stay stored"""
        return await self._set_active(client_id, prompt_id, False)

    async def reactivate(self, client_id: str, prompt_id: str) -> CurrentView:
        """Bring a prompt back together with its most recent live result, without re-running it"""
        return await self._set_active(client_id, prompt_id, True)

    async def _set_active(self, client_id: str, prompt_id: str, active: bool) -> CurrentView:
        prompt = await self.get_prompt(client_id, prompt_id)
        await self.store.save_prompts(client_id, [prompt.model_copy(update={"is_active": active})])
        return await self.current_view(client_id)

    async def clear_all(self, client_id: str) -> CurrentView:
        """
        Reset the working set of a client.

        Prompts are removed from both tiers and the cached results are
        dropped. Stored results are kept in the database; without a prompt
        they never re-enter the current view. Use purge_results for a full
        delete.
        """
        await self.store.clear_prompts(client_id)
        await self.store.clear_cached_results(client_id)
        logger.info(f"Cleared prompts for client {client_id}")
        return CurrentView()

    async def purge_results(self, client_id: str) -> CurrentView:
        await self.store.purge_results(client_id)
        return await self.current_view(client_id)
