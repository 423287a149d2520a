"""
Immutable result cache for the Curve Exit Badge service.

A sell is a historical fact, so entries never expire and are never
overwritten.  Two tiers:

1. **In-memory cache** — fast, single-process, used by default.
2. **SQLite persistent cache** (optional) — survives restarts, works
   across multiple Uvicorn workers.

Both are bounded by ``max_entries``.  At capacity, *new* keys are
rejected (logged, not stored) and existing entries stay untouched; the
request that produced the rejected entry still succeeds.

Keys are ``"<wallet>:<token>"`` with exact case.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Optional

from .models import CacheEntry, CacheStats

logger = logging.getLogger(__name__)


def make_key(wallet: str, token: str) -> str:
    return f"{wallet}:{token}"


class ImmutableCache:
    """Write-once cache backed by a plain ``dict``.

    Not designed for multi-process environments – suitable for a single
    FastAPI / Uvicorn worker.
    """

    def __init__(self, max_entries: int = 100_000) -> None:
        self._store: dict[str, CacheEntry] = {}
        self._max_entries = max_entries
        self._hits = 0
        self._misses = 0

    def get(self, wallet: str, token: str) -> Optional[CacheEntry]:
        """Return the cached entry or ``None``."""
        entry = self._store.get(make_key(wallet, token))
        if entry is None:
            self._misses += 1
        else:
            self._hits += 1
        return entry

    def set(self, wallet: str, token: str, entry: CacheEntry) -> bool:
        """Store *entry* unless the key exists or the cache is full.

        Returns ``True`` if the entry is (now) cached.
        """
        key = make_key(wallet, token)
        if key in self._store:
            return True
        if len(self._store) >= self._max_entries:
            logger.warning(
                "Result cache full (%d entries) – not caching %s", self._max_entries, key
            )
            return False
        self._store[key] = entry
        return True

    def exists(self, wallet: str, token: str) -> bool:
        return make_key(wallet, token) in self._store

    def stats(self) -> CacheStats:
        return CacheStats(
            key_count=len(self._store),
            hit_count=self._hits,
            miss_count=self._misses,
        )

    def clear(self) -> None:
        """Drop all entries and counters (tests / admin only)."""
        self._store.clear()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._store)


# ---------------------------------------------------------------------------
# SQLite persistent cache
# ---------------------------------------------------------------------------

class SQLiteImmutableCache:
    """Async SQLite-backed write-once cache.

    Entries are serialised as JSON.  Uses a persistent connection
    (created lazily on first access) to avoid per-operation overhead.
    Storage errors are logged and treated as a miss / skipped write: the
    cache is a memoisation layer, never a source of truth.
    """

    def __init__(self, db_path: str = "data/curve_exit.db", max_entries: int = 100_000) -> None:
        self._db_path = db_path
        self._max_entries = max_entries
        self._conn: Any = None  # aiosqlite.Connection
        self._hits = 0
        self._misses = 0

    async def _get_conn(self) -> Any:
        """Return (and lazily create) a persistent aiosqlite connection."""
        import aiosqlite

        if self._conn is not None:
            return self._conn

        os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        conn = await aiosqlite.connect(self._db_path)
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS curve_exit_cache (
                key        TEXT PRIMARY KEY,
                value      TEXT NOT NULL,
                cached_at  REAL NOT NULL
            )
            """
        )
        await conn.commit()
        self._conn = conn
        return conn

    async def get(self, wallet: str, token: str) -> Optional[CacheEntry]:
        key = make_key(wallet, token)
        try:
            db = await self._get_conn()
            cursor = await db.execute(
                "SELECT value FROM curve_exit_cache WHERE key = ?", (key,)
            )
            row = await cursor.fetchone()
        except Exception:
            logger.warning("SQLite cache get failed for %s", key, exc_info=True)
            self._misses += 1
            return None
        if row is None:
            self._misses += 1
            return None
        try:
            entry = CacheEntry.model_validate_json(row[0])
        except ValueError:
            logger.error("Corrupt cache row for %s – ignoring", key)
            self._misses += 1
            return None
        self._hits += 1
        return entry

    async def set(self, wallet: str, token: str, entry: CacheEntry) -> bool:
        key = make_key(wallet, token)
        try:
            db = await self._get_conn()
            cursor = await db.execute("SELECT COUNT(*) FROM curve_exit_cache")
            (count,) = await cursor.fetchone()
            if count >= self._max_entries and not await self.exists(wallet, token):
                logger.warning(
                    "Result cache full (%d entries) – not caching %s", self._max_entries, key
                )
                return False
            await db.execute(
                "INSERT OR IGNORE INTO curve_exit_cache (key, value, cached_at) "
                "VALUES (?, ?, ?)",
                (key, entry.model_dump_json(), entry.cached_at or time.time()),
            )
            await db.commit()
            return True
        except Exception:
            logger.warning("SQLite cache set failed for %s", key, exc_info=True)
            return False

    async def exists(self, wallet: str, token: str) -> bool:
        try:
            db = await self._get_conn()
            cursor = await db.execute(
                "SELECT 1 FROM curve_exit_cache WHERE key = ?", (make_key(wallet, token),)
            )
            return await cursor.fetchone() is not None
        except Exception:
            logger.warning("SQLite cache exists failed", exc_info=True)
            return False

    async def stats(self) -> CacheStats:
        count = 0
        try:
            db = await self._get_conn()
            cursor = await db.execute("SELECT COUNT(*) FROM curve_exit_cache")
            (count,) = await cursor.fetchone()
        except Exception:
            logger.warning("SQLite cache stats failed", exc_info=True)
        return CacheStats(key_count=count, hit_count=self._hits, miss_count=self._misses)

    async def clear(self) -> None:
        try:
            db = await self._get_conn()
            await db.execute("DELETE FROM curve_exit_cache")
            await db.commit()
        except Exception:
            logger.warning("SQLite cache clear failed", exc_info=True)
        self._hits = 0
        self._misses = 0

    async def close(self) -> None:
        """Close the persistent connection."""
        if self._conn is not None:
            try:
                await self._conn.close()
            except Exception:
                logger.debug("SQLite cache close failed", exc_info=True)
            self._conn = None
