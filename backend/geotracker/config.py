"""
Configuration management for the GEO visibility tracker
Environment-based settings with secure defaults
"""

from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "geotracker"
    APP_ENV: str = "development"  # development, staging, production
    DEBUG: bool = False
    API_VERSION: str = "v1"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # Database (authoritative tier)
    DATABASE_URL: str  # Required
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Redis (fallback tier)
    REDIS_URL: str = "redis://localhost:6379/0"
    RESULT_CACHE_TTL: int = 2592000  # 30 days in seconds

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"

    # Audit scoring service
    SCORING_SERVICE_URL: str = "http://localhost:54321/functions/v1/geo-audit"
    SCORING_SERVICE_KEY: Optional[str] = None
    SCORING_REQUEST_TIMEOUT: float = 120.0  # seconds, per prompt

    # Source-analysis (enrichment) service
    SOURCE_ANALYSIS_URL: str = "http://localhost:54321/functions/v1/tavily-search"
    SOURCE_ANALYSIS_ENABLED: bool = True
    SOURCE_ANALYSIS_DEPTH: str = "advanced"
    SOURCE_ANALYSIS_MAX_RESULTS: int = 20

    # Pacing between scoring calls
    FULL_AUDIT_DELAY_MS: int = 300
    CAMPAIGN_AUDIT_DELAY_MS: int = 500

    # Providers queried when a caller does not pick any
    DEFAULT_MODELS: str = "chatgpt,google_ai_overview,google_serp"

    # Scheduler
    SCHEDULER_INTERVAL_SECONDS: float = 60.0

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    @field_validator("CORS_ORIGINS", "DEFAULT_MODELS", mode="before")
    @classmethod
    def strip_csv(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def default_models_list(self) -> List[str]:
        return [m.strip() for m in self.DEFAULT_MODELS.split(",") if m.strip()]

    @property
    def full_audit_delay(self) -> float:
        return self.FULL_AUDIT_DELAY_MS / 1000

    @property
    def campaign_audit_delay(self) -> float:
        return self.CAMPAIGN_AUDIT_DELAY_MS / 1000

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings loader"""
    return Settings()


# Answer engines the scoring service knows how to query
AI_MODELS: List[Dict] = [
    {"id": "chatgpt", "name": "ChatGPT", "provider": "OpenAI", "cost_per_query": 0.02},
    {"id": "claude", "name": "Claude", "provider": "Anthropic", "cost_per_query": 0.02},
    {"id": "gemini", "name": "Gemini", "provider": "Google", "cost_per_query": 0.02},
    {"id": "perplexity", "name": "Perplexity", "provider": "Perplexity AI", "cost_per_query": 0.02},
    {"id": "google_ai_overview", "name": "Google AI Overview", "provider": "DataForSEO", "cost_per_query": 0.003},
    {"id": "google_serp", "name": "Google SERP", "provider": "DataForSEO", "cost_per_query": 0.002},
]

# Share-of-voice tiers used for insights
SOV_THRESHOLDS = {
    "high": 50,
    "medium": 20,
}

# Industry presets: default competitors and starter prompts
INDUSTRY_PRESETS: Dict[str, Dict[str, List[str]]] = {
    "Dating/Matrimony": {
        "competitors": ["Bumble", "Hinge", "Tinder", "Shaadi", "Aisle"],
        "prompts": [
            "Best dating apps in {region} 2025",
            "Dating apps with verification",
            "Safe dating apps for women",
        ],
        "niche_prompts": [
            "Best dating apps for professionals in {region}",
            "Dating apps with video calling features",
        ],
        "super_niche_prompts": ["Best dating apps for divorced professionals over 40 in {region}"],
    },
    "Healthcare/Dental": {
        "competitors": ["Bupa Dental", "MyDentist", "Dental Care"],
        "prompts": ["Best dental clinic in {region}", "Emergency dentist near me"],
        "niche_prompts": ["Best cosmetic dentist in {region}", "Dental implants specialist {region}"],
        "super_niche_prompts": ["Best dentist for dental anxiety patients in {region}"],
    },
    "E-commerce/Fashion": {
        "competitors": ["Myntra", "Ajio", "Amazon Fashion", "Flipkart"],
        "prompts": ["Best online fashion stores {region}", "Affordable clothing websites"],
        "niche_prompts": ["Sustainable fashion brands {region}", "Plus size clothing online {region}"],
        "super_niche_prompts": ["Handloom sarees direct from weavers {region}"],
    },
    "Food/Beverage": {
        "competitors": ["Sysco", "US Foods", "Makro"],
        "prompts": ["Best food distributors in {region}", "Wholesale food suppliers"],
        "niche_prompts": ["Organic food distributors {region}", "Specialty food importers {region}"],
        "super_niche_prompts": ["Halal certified meat suppliers {region}"],
    },
    "Custom": {"competitors": [], "prompts": [], "niche_prompts": [], "super_niche_prompts": []},
}

LOCATION_CODES: Dict[str, int] = {
    "India": 2356,
    "United States": 2840,
    "United Kingdom": 2826,
    "Thailand": 2764,
    "Singapore": 2702,
    "Australia": 2036,
    "Canada": 2124,
    "Germany": 2276,
    "France": 2250,
    "UAE": 2784,
}
