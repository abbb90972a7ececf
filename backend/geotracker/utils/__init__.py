"""
Connection management for the two store tiers
"""

from .database import get_db_context, init_db, close_db
from .cache import CacheService, ResultCache, result_cache, close_redis

__all__ = [
    # SQL (authoritative tier)
    "get_db_context",
    "init_db",
    "close_db",
    # Redis (fallback tier)
    "CacheService",
    "ResultCache",
    "result_cache",
    "close_redis",
]
