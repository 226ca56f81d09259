"""Infrastructure services and cross-cutting utilities."""

from nomad.infrastructure.cache import MemoryCache, city_cache, city_cache_key, make_cache_key, place_cache
from nomad.infrastructure.kv_store import (
    KeyValueStore,
    MemoryKeyValueStore,
    RedisKeyValueStore,
    SQLiteKeyValueStore,
    build_store,
)
from nomad.infrastructure.llm_factory import get_llm, is_llm_available, reset_llm
from nomad.infrastructure.logging import StructuredLogger, get_logger

__all__ = [
    "KeyValueStore",
    "MemoryCache",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "SQLiteKeyValueStore",
    "StructuredLogger",
    "build_store",
    "city_cache",
    "city_cache_key",
    "get_llm",
    "get_logger",
    "is_llm_available",
    "make_cache_key",
    "place_cache",
    "reset_llm",
]
