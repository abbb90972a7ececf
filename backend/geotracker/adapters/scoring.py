"""
Scoring Service Adapters
HTTP clients for the external audit scoring service and the optional
source-analysis (enrichment) service.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from geotracker.config import get_settings
from geotracker.exceptions import ScoringServiceError
from geotracker.schemas import EnrichmentResult, ScoringPayload

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class AuditRequest:
    """Everything the scoring service needs to audit one prompt"""
    client_id: str
    prompt_id: str
    prompt_text: str
    brand_name: str
    brand_tags: List[str]
    competitors: List[str]
    locale: str
    location_code: int
    models: List[str]
    niche_level: Optional[str] = None
    campaign_id: Optional[str] = None
    save_to_db: bool = False

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        if self.campaign_id is None:
            payload.pop("campaign_id")
        return payload


@dataclass
class EnrichmentRequest:
    client_id: str
    prompt_id: str
    prompt_text: str
    brand_name: str
    competitors: List[str] = field(default_factory=list)
    search_depth: str = "advanced"
    max_results: int = 20
    include_answer: bool = True
    save_to_db: bool = True


class _ServiceClient:
    """Shared POST/error-mapping logic for the external services"""

    service_name = "service"

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.url = url
        self.api_key = api_key if api_key is not None else settings.SCORING_SERVICE_KEY
        self.timeout = timeout or settings.SCORING_REQUEST_TIMEOUT
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload, headers=self._headers())
        except httpx.TimeoutException:
            raise ScoringServiceError(
                f"{self.service_name} timed out after {self.timeout}s",
                {"timeout": self.timeout},
            )
        except httpx.RequestError as e:
            raise ScoringServiceError(f"{self.service_name} request failed: {e}")

        if response.status_code == 429:
            raise ScoringServiceError(
                f"{self.service_name} rate limit exceeded",
                {"status_code": response.status_code},
            )
        if response.status_code >= 400:
            raise ScoringServiceError(
                f"{self.service_name} error {response.status_code}: {response.text[:200]}",
                {"status_code": response.status_code, "response": response.text},
            )

        try:
            body = response.json()
        except ValueError:
            raise ScoringServiceError(
                f"{self.service_name} returned a non-JSON body",
                {"status_code": response.status_code},
            )
        if not isinstance(body, dict):
            raise ScoringServiceError(
                f"{self.service_name} returned a non-object body",
                {"status_code": response.status_code},
            )
        return body

    def _parse(self, schema: Type[ModelT], data: Any, prompt_id: str) -> ModelT:
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            raise ScoringServiceError(
                f"{self.service_name} returned a malformed body: {e.error_count()} invalid field(s)",
                {"prompt_id": prompt_id, "errors": e.errors(include_url=False)},
            )


class ScoringServiceClient(_ServiceClient):
    """
    Client for the audit scoring service.

    Given a prompt and brand context, the service queries every requested
    answer engine and returns per-model mention/rank/citation data.
    """

    service_name = "Scoring service"

    def __init__(self, url: Optional[str] = None, **kwargs):
        super().__init__(url or get_settings().SCORING_SERVICE_URL, **kwargs)

    async def audit(self, request: AuditRequest) -> ScoringPayload:
        """
        Audit one prompt.

        Raises:
            ScoringServiceError: on transport failure, timeout, a non-2xx
                status, a `success: false` body, or data that does not fit
                the result schema
        """
        body = await self._post(request.to_payload())
        if not body.get("success"):
            raise ScoringServiceError(
                body.get("error") or "Audit failed",
                {"prompt_id": request.prompt_id},
            )
        return self._parse(ScoringPayload, body.get("data") or {}, request.prompt_id)


class SourceAnalysisClient(_ServiceClient):
    """Client for the source-analysis service used to enrich single-prompt runs"""

    service_name = "Source analysis"

    def __init__(self, url: Optional[str] = None, **kwargs):
        super().__init__(url or get_settings().SOURCE_ANALYSIS_URL, **kwargs)

    async def analyze(self, request: EnrichmentRequest) -> EnrichmentResult:
        body = await self._post(asdict(request))
        result = self._parse(EnrichmentResult, body, request.prompt_id)
        if not result.success:
            raise ScoringServiceError(
                body.get("error") or "Source analysis failed",
                {"prompt_id": request.prompt_id},
            )
        return result
