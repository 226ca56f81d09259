"""Key-value persistence for conversation and draft records.

The core only needs ``get``/``put``/``delete`` by key plus expiry. Values are
JSON-compatible dicts. Three backends are available: in-memory (default),
SQLite for a single host, and Redis for multi-instance deployments.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from nomad.config.settings import StoreSettings
from nomad.shared.exceptions import ExternalServiceError

try:
    import redis
except Exception:  # pragma: no cover - optional dependency
    redis = None

_logger = logging.getLogger("nomad.store")

_DEFAULT_PREFIX = "nomad:"


def _to_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def _from_json(raw: str | None) -> Optional[dict[str, Any]]:
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


@runtime_checkable
class KeyValueStore(Protocol):
    backend: str

    def get(self, key: str) -> Optional[dict[str, Any]]: ...

    def put(self, key: str, value: dict[str, Any], ttl: Optional[float] = None) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Thread-safe in-memory store with per-entry TTL and bounded size."""

    backend = "memory"

    def __init__(
        self,
        ttl: float = 1800.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.time,
    ):
        self._store: dict[str, tuple[str, float]] = {}
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[dict[str, Any]]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            raw, expire_at = entry
            if self._clock() > expire_at:
                del self._store[key]
                return None
        value = _from_json(raw)
        if value is None:
            _logger.warning("Dropping unreadable record %s", key)
            self.delete(key)
        return value

    def put(self, key: str, value: dict[str, Any], ttl: Optional[float] = None) -> None:
        payload = _to_json(value)
        expire_at = self._clock() + (ttl if ttl is not None else self._ttl)
        with self._lock:
            if key not in self._store and len(self._store) >= self._max_entries:
                self._cleanup_expired()
            if key not in self._store and len(self._store) >= self._max_entries:
                oldest = min(self._store, key=lambda k: self._store[k][1])
                del self._store[oldest]
            self._store[key] = (payload, expire_at)

    def put_raw(self, key: str, raw: str, ttl: Optional[float] = None) -> None:
        with self._lock:
            self._store[key] = (raw, self._clock() + (ttl if ttl is not None else self._ttl))

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def _cleanup_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (_, exp) in self._store.items() if now > exp]
        for key in expired:
            del self._store[key]

    @property
    def active_count(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for _, exp in self._store.values() if now <= exp)


class SQLiteKeyValueStore:
    """Single-host store backed by one SQLite table."""

    backend = "sqlite"

    def __init__(self, db_path: str | Path, ttl: float = 1800.0, clock: Callable[[], float] = time.time):
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=5.0)
        conn.execute("PRAGMA journal_mode=WAL;")
        return conn

    def _init_schema(self) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_records (
                    key TEXT PRIMARY KEY,
                    value_json TEXT NOT NULL,
                    expire_at REAL NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[dict[str, Any]]:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                "SELECT value_json, expire_at FROM kv_records WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            raw, expire_at = row
            if self._clock() > float(expire_at):
                conn.execute("DELETE FROM kv_records WHERE key = ?", (key,))
                return None
        value = _from_json(raw)
        if value is None:
            _logger.warning("Dropping unreadable record %s", key)
            self.delete(key)
        return value

    def put(self, key: str, value: dict[str, Any], ttl: Optional[float] = None) -> None:
        expire_at = self._clock() + (ttl if ttl is not None else self._ttl)
        with self._lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_records (key, value_json, expire_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value_json = excluded.value_json, expire_at = excluded.expire_at
                """,
                (key, _to_json(value), expire_at),
            )

    def delete(self, key: str) -> None:
        with self._lock, self._connect() as conn:
            conn.execute("DELETE FROM kv_records WHERE key = ?", (key,))

    def purge_expired(self) -> int:
        with self._lock, self._connect() as conn:
            cursor = conn.execute("DELETE FROM kv_records WHERE expire_at < ?", (self._clock(),))
            return int(cursor.rowcount or 0)


class RedisKeyValueStore:
    """Redis-backed store for multi-instance deployments."""

    backend = "redis"

    def __init__(self, redis_url: str, ttl: float = 1800.0, prefix: str = _DEFAULT_PREFIX):
        if redis is None:  # pragma: no cover
            raise ExternalServiceError("redis", "package is not installed")
        self._ttl = max(1, int(ttl))
        self._prefix = prefix
        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._client.ping()

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[dict[str, Any]]:
        raw = self._client.get(self._key(key))
        if raw is None:
            return None
        value = _from_json(raw)
        if value is None:
            self._client.delete(self._key(key))
        return value

    def put(self, key: str, value: dict[str, Any], ttl: Optional[float] = None) -> None:
        seconds = max(1, int(ttl)) if ttl is not None else self._ttl
        self._client.setex(self._key(key), seconds, _to_json(value))

    def delete(self, key: str) -> None:
        self._client.delete(self._key(key))


def build_store(settings: StoreSettings) -> KeyValueStore:
    """Create the configured backend, falling back to memory when it is unavailable."""
    if settings.backend == "redis" and settings.redis_url:
        if redis is None:
            _logger.warning("REDIS_URL is set but redis dependency is missing; fallback to memory store")
        else:
            try:
                store = RedisKeyValueStore(redis_url=settings.redis_url, ttl=settings.ttl_seconds)
                _logger.info("Key-value store initialized with Redis backend")
                return store
            except Exception as exc:
                _logger.warning("Failed to initialize Redis store, fallback to memory store: %s", exc)
    if settings.backend == "sqlite":
        return SQLiteKeyValueStore(settings.sqlite_path, ttl=settings.ttl_seconds)
    return MemoryKeyValueStore(ttl=settings.ttl_seconds, max_entries=settings.max_entries)
