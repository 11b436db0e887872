"""Attestation response cache with in-flight request de-duplication."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Awaitable, Callable

from stellar_leaderboard.models.records import AttestationCacheEntry

log = logging.getLogger(__name__)


class AttestationCache:
    """Upstream attestation responses keyed by the exact upstream URL.

    First call wins: whatever the upstream answered first (including
    error statuses) is served for every later request of the same URL.
    Retention is explicit: ``ttl_seconds`` (None = never expire) and
    ``max_entries`` (oldest stored entry evicted first).
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        max_entries: int = 4096,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, AttestationCacheEntry] = OrderedDict()
        self._inflight: dict[str, asyncio.Future] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: str) -> bool:
        return self.get(url) is not None

    def get(self, url: str) -> AttestationCacheEntry | None:
        entry = self._entries.get(url)
        if entry is None:
            return None
        if self._ttl is not None and self._clock() - entry.stored_at > self._ttl:
            log.debug("Attestation cache entry expired: %s", url)
            del self._entries[url]
            return None
        return entry

    def put(self, entry: AttestationCacheEntry) -> None:
        self._entries[entry.url] = entry
        self._entries.move_to_end(entry.url)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            log.debug("Attestation cache evicted %s", evicted)

    def now(self) -> float:
        return self._clock()

    async def get_or_fetch(
        self,
        url: str,
        fetch: Callable[[], Awaitable[AttestationCacheEntry]],
    ) -> tuple[AttestationCacheEntry, bool]:
        """Return (entry, served_from_cache).

        Concurrent callers for an uncached URL share one ``fetch()``, run as
        its own task so that cancelling one caller never cancels the others.
        A fetch that raises is not stored; every waiter sees the exception.
        """
        cached = self.get(url)
        if cached is not None:
            return cached, True

        task = self._inflight.get(url)
        shared = task is not None
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(url, fetch))
            task.add_done_callback(_retrieve_exception)
            self._inflight[url] = task
        return await asyncio.shield(task), shared

    async def _fetch_and_store(
        self,
        url: str,
        fetch: Callable[[], Awaitable[AttestationCacheEntry]],
    ) -> AttestationCacheEntry:
        try:
            entry = await fetch()
            self.put(entry)
            return entry
        finally:
            self._inflight.pop(url, None)


def _retrieve_exception(task: asyncio.Future) -> None:
    # Retrieved even when every caller was cancelled
    if not task.cancelled():
        task.exception()
