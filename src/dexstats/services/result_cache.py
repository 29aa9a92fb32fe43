from __future__ import annotations

import asyncio
import functools
import logging
import time
from typing import Awaitable, Callable, Dict, Hashable, Optional

from cachetools import TTLCache

from dexstats.config.settings import CACHE_MAX_CHAINS, CACHE_TTL_SEC
from dexstats.core.models import CacheEntry, DexStats


logger = logging.getLogger(__name__)


class ResultCache:
    """
    Short-lived memo of aggregate stats, one entry per chain id.

    Entries are replaced whole, never edited. Concurrent misses for the same
    key share a single in-flight computation.
    """

    def __init__(
        self,
        ttl: float = CACHE_TTL_SEC,
        maxsize: int = CACHE_MAX_CHAINS,
        timer: Callable[[], float] = time.time,
    ) -> None:
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        self.ttl = float(ttl)
        self._timer = timer
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=self.ttl, timer=timer)
        self._pending: Dict[Hashable, asyncio.Task] = {}

    def entry(self, key: Hashable) -> Optional[CacheEntry]:
        e = self._entries.get(key)
        if e is None or not e.is_valid(self._timer(), self.ttl):
            return None
        return e

    def get(self, key: Hashable) -> Optional[DexStats]:
        e = self.entry(key)
        return e.stats if e is not None else None

    def put(self, key: Hashable, stats: DexStats) -> None:
        self._entries[key] = CacheEntry(stats=stats, last_update=self._timer())

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        # in-flight recomputes are detached: their waiters still get a result,
        # but it is not stored and later callers start over
        if key is None:
            self._entries.clear()
            self._pending.clear()
        else:
            self._entries.pop(key, None)
            self._pending.pop(key, None)

    async def get_or_compute(
        self,
        key: Hashable,
        compute: Callable[[], Awaitable[DexStats]],
    ) -> DexStats:
        cached = self.get(key)
        if cached is not None:
            return cached

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._compute_and_store(key, compute))
            self._pending[key] = task
            task.add_done_callback(functools.partial(self._settle, key))
        else:
            logger.debug("joining in-flight recompute for %s", key)

        # a cancelled waiter must not cancel the shared computation
        return await asyncio.shield(task)

    async def _compute_and_store(
        self,
        key: Hashable,
        compute: Callable[[], Awaitable[DexStats]],
    ) -> DexStats:
        stats = await compute()
        if self._pending.get(key) is asyncio.current_task():
            self.put(key, stats)
        return stats

    def _settle(self, key: Hashable, task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        if not task.cancelled():
            task.exception()
