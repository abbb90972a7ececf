"""
Audit Orchestrator
Sequential per-prompt audit batches against the scoring service.

Prompts run one at a time through a single-worker queue with a fixed pause
between calls. A failing or slow prompt is recorded and skipped; it never
aborts the batch, and whatever succeeded before it stays saved.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from geotracker.adapters import AuditRequest, EnrichmentRequest
from geotracker.clock import utcnow
from geotracker.config import get_settings
from geotracker.exceptions import (
    CampaignCreationError,
    NotFoundError,
    PersistenceError,
    ScoringServiceError,
    ValidationError,
)
from geotracker.models.database import CampaignStatus
from geotracker.schemas import (
    AuditResult,
    Client,
    DashboardSummary,
    EnrichmentResult,
    Prompt,
)
from geotracker.services.metrics import (
    campaign_results,
    compute_summary,
    current_results,
    latest_live_by_prompt,
)
from geotracker.services.prompt_registry import detect_niche_level
from geotracker.services.store import ResultStore, apply_result

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Cooperative stop signal, checked between prompts.

    `check` lets an outside flag (for instance a Celery task's abort
    state) cancel the batch as well.
    """

    def __init__(self, check: Optional[Callable[[], bool]] = None):
        self._cancelled = False
        self._check = check

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        if not self._cancelled and self._check is not None and self._check():
            self._cancelled = True
        return self._cancelled


class AuditQueue:
    """Single-worker queue: one job at a time, `delay` seconds between jobs"""

    def __init__(
        self,
        delay: float,
        token: Optional[CancellationToken] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.delay = delay
        self.token = token or CancellationToken()
        self._sleep = sleep

    async def run(self, items: Sequence[Any], job: Callable[[Any], Awaitable[Any]]) -> bool:
        """Process items in order. Returns False if the token stopped the queue early."""
        for index, item in enumerate(items):
            if index and self.delay:
                await self._sleep(self.delay)
            if self.token.cancelled:
                return False
            await job(item)
        return True


@dataclass
class BatchReport:
    """Outcome of one orchestrator call"""
    attempted: int = 0
    succeeded: int = 0
    failed: Dict[str, str] = field(default_factory=dict)  # prompt id -> error
    skipped: List[str] = field(default_factory=list)
    cancelled: bool = False
    summary: Optional[DashboardSummary] = None
    campaign_id: Optional[str] = None
    results: List[AuditResult] = field(default_factory=list)
    enrichment: Optional[EnrichmentResult] = None

    @property
    def status(self) -> str:
        if self.cancelled:
            return "cancelled"
        if self.failed and self.succeeded == 0:
            return "error"
        if self.failed:
            return "partially_failed"
        return "completed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": dict(self.failed),
            "skipped": list(self.skipped),
            "cancelled": self.cancelled,
            "campaign_id": self.campaign_id,
            "summary": self.summary.model_dump(mode="json") if self.summary else None,
            "result_ids": [r.id for r in self.results],
        }


class AuditOrchestrator:
    """
    Drives audit batches for one client at a time.

    The client is always passed in explicitly; nothing here remembers a
    "current" client between calls. Batches for the same client are not
    serialized here, callers are expected to do that.
    """

    def __init__(
        self,
        store: ResultStore,
        scoring,
        campaigns=None,
        enrichment=None,
        *,
        models: Optional[List[str]] = None,
        timeout: Optional[float] = None,
        full_delay: Optional[float] = None,
        campaign_delay: Optional[float] = None,
        enrichment_enabled: Optional[bool] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        settings = get_settings()
        self.store = store
        self.scoring = scoring
        self.campaigns = campaigns
        self.enrichment = enrichment
        self.models = models or settings.default_models_list
        self.timeout = timeout if timeout is not None else settings.SCORING_REQUEST_TIMEOUT
        self.full_delay = full_delay if full_delay is not None else settings.full_audit_delay
        self.campaign_delay = campaign_delay if campaign_delay is not None else settings.campaign_audit_delay
        self.enrichment_enabled = (
            enrichment_enabled if enrichment_enabled is not None else settings.SOURCE_ANALYSIS_ENABLED
        )
        self.search_depth = settings.SOURCE_ANALYSIS_DEPTH
        self.max_sources = settings.SOURCE_ANALYSIS_MAX_RESULTS
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def run_full(
        self,
        client_id: str,
        token: Optional[CancellationToken] = None,
        models: Optional[List[str]] = None,
    ) -> BatchReport:
        """
        Audit every active prompt that has no live result yet.

        Re-invoking after a partial run only attempts what is still
        missing, so the stored result set only ever grows.
        """
        client = await self._get_client(client_id)
        prompts = await self.store.load_prompts(client_id)
        results = await self.store.load(client_id)
        live = latest_live_by_prompt(results)

        report = BatchReport()
        pending = []
        for prompt in prompts:
            if not prompt.is_active:
                continue
            if prompt.id in live:
                report.skipped.append(prompt.id)
            else:
                pending.append(prompt)

        logger.info(
            f"Full audit for client {client_id}: {len(pending)} pending, {len(report.skipped)} already audited"
        )

        async def job(prompt: Prompt) -> None:
            nonlocal results
            result = await self._audit(client, prompt, report, models=models)
            if result is not None:
                results = apply_result(results, result)
                report.summary = compute_summary(current_results(prompts, results))

        queue = AuditQueue(self.full_delay, token, self._sleep)
        report.cancelled = not await queue.run(pending, job)
        report.summary = compute_summary(current_results(prompts, results))
        return report

    async def run_single(
        self,
        client_id: str,
        prompt_id: str,
        models: Optional[List[str]] = None,
        include_enrichment: Optional[bool] = None,
    ) -> BatchReport:
        """Run or re-run one prompt; its previous live result is replaced"""
        client = await self._get_client(client_id)
        prompts = await self.store.load_prompts(client_id)
        prompt = next((p for p in prompts if p.id == prompt_id), None)
        if prompt is None:
            raise NotFoundError(f"Prompt {prompt_id} not found", {"prompt_id": prompt_id})

        report = await self._run_one(client, prompt, models, include_enrichment)
        if report.results:
            results = apply_result(await self.store.load(client_id), report.results[0])
            report.summary = compute_summary(current_results(prompts, results))
        return report

    async def run_adhoc(
        self,
        client_id: str,
        schedule_id: str,
        query: str,
        models: Optional[List[str]] = None,
        include_enrichment: bool = False,
    ) -> BatchReport:
        """
        Audit a free-text query that is not in the prompt registry.

        The result is kept under a synthetic prompt id derived from the
        schedule, so successive runs replace each other.
        """
        client = await self._get_client(client_id)
        prompt = Prompt(
            id=f"schedule-{schedule_id}",
            client_id=client_id,
            prompt_text=query,
            category="scheduled",
            niche_level=detect_niche_level(query),
            is_custom=True,
        )
        report = await self._run_one(client, prompt, models, include_enrichment)
        report.summary = compute_summary(report.results)
        return report

    async def run_campaign(
        self,
        client_id: str,
        name: str,
        prompt_ids: List[str],
        token: Optional[CancellationToken] = None,
        models: Optional[List[str]] = None,
    ) -> BatchReport:
        """
        Audit the given prompts as a named campaign.

        The campaign record is created before any scoring call; if that
        fails, CampaignCreationError is raised and nothing is audited.
        Results are tagged with the campaign id and appended, never
        replacing earlier ones. Unknown prompt ids are skipped.
        """
        if not prompt_ids:
            raise ValidationError("A campaign needs at least one prompt")
        if self.campaigns is None:
            raise CampaignCreationError("No campaign tracker is configured")

        client = await self._get_client(client_id)
        campaign = await self.campaigns.create(client_id, name, len(prompt_ids))

        by_id = {p.id: p for p in await self.store.load_prompts(client_id)}
        report = BatchReport(campaign_id=campaign.id)
        selected = []
        for prompt_id in prompt_ids:
            if prompt_id in by_id:
                selected.append(by_id[prompt_id])
            else:
                report.skipped.append(prompt_id)

        logger.info(f"Campaign {campaign.id} ({name}) started with {len(selected)} prompt(s)")

        async def job(prompt: Prompt) -> None:
            await self._audit(client, prompt, report, models=models, campaign_id=campaign.id)

        queue = AuditQueue(self.campaign_delay, token, self._sleep)
        report.cancelled = not await queue.run(selected, job)
        report.summary = compute_summary(campaign_results(campaign.id, report.results))

        all_failed = report.attempted > 0 and report.succeeded == 0
        status = CampaignStatus.ERROR if report.cancelled or all_failed else CampaignStatus.COMPLETED
        try:
            await self.campaigns.finalize(campaign.id, status)
        except PersistenceError:
            logger.exception(f"Could not mark campaign {campaign.id} as {status.value}")

        logger.info(
            f"Campaign {campaign.id} finished: {report.succeeded}/{report.attempted} succeeded, "
            f"status {status.value}"
        )
        return report

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _get_client(self, client_id: str) -> Client:
        for client in await self.store.load_clients():
            if client.id == client_id:
                return client
        raise NotFoundError(f"Client {client_id} not found", {"client_id": client_id})

    async def _run_one(
        self,
        client: Client,
        prompt: Prompt,
        models: Optional[List[str]],
        include_enrichment: Optional[bool],
    ) -> BatchReport:
        report = BatchReport()
        result = await self._audit(client, prompt, report, models=models)

        enrich = self.enrichment_enabled if include_enrichment is None else include_enrichment
        if result is not None and enrich and self.enrichment is not None:
            report.enrichment = await self._enrich(client, prompt)
        return report

    async def _audit(
        self,
        client: Client,
        prompt: Prompt,
        report: BatchReport,
        models: Optional[List[str]] = None,
        campaign_id: Optional[str] = None,
    ) -> Optional[AuditResult]:
        """One scoring call. Failures land in the report; a success is saved."""
        request = AuditRequest(
            client_id=client.id,
            prompt_id=prompt.id,
            prompt_text=prompt.prompt_text,
            brand_name=client.brand_name,
            brand_tags=list(client.brand_tags),
            competitors=list(client.competitors),
            locale=client.target_region,
            location_code=client.location_code,
            models=list(models or self.models),
            niche_level=prompt.niche_level.value,
            campaign_id=campaign_id,
        )

        report.attempted += 1
        try:
            payload = await asyncio.wait_for(self.scoring.audit(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            report.failed[prompt.id] = f"Timed out after {self.timeout}s"
            logger.error(f"Audit of prompt {prompt.id} timed out after {self.timeout}s")
            return None
        except ScoringServiceError as e:
            report.failed[prompt.id] = e.message
            logger.error(f"Audit of prompt {prompt.id} failed: {e.message}")
            return None

        result = AuditResult(
            id=payload.id or str(uuid4()),
            client_id=client.id,
            prompt_id=prompt.id,
            prompt_text=prompt.prompt_text,
            model_results=payload.model_results,
            summary=payload.summary,
            campaign_id=campaign_id,
            created_at=utcnow(),
        )
        await self.store.save(client.id, result)
        report.succeeded += 1
        report.results.append(result)
        return result

    async def _enrich(self, client: Client, prompt: Prompt) -> Optional[EnrichmentResult]:
        request = EnrichmentRequest(
            client_id=client.id,
            prompt_id=prompt.id,
            prompt_text=prompt.prompt_text,
            brand_name=client.brand_name,
            competitors=list(client.competitors),
            search_depth=self.search_depth,
            max_results=self.max_sources,
        )
        try:
            return await asyncio.wait_for(self.enrichment.analyze(request), timeout=self.timeout)
        except (ScoringServiceError, asyncio.TimeoutError) as e:
            logger.warning(f"Source analysis for prompt {prompt.id} failed: {e}")
            return None
