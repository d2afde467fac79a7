"""
Shared recent-blockhash slot for one batch.

Readers take `current` without locking; refresh() replaces the whole frozen
BlockhashInfo with one assignment, so a reader sees either the old or the new
value. Refreshes are serialized; a caller that passes the value it saw goes
stale gets the already-refreshed value instead of fetching again.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from multisend.engine.models import BlockhashInfo
from multisend.multisend_logging import get_logger

logger = get_logger(__name__)

BlockhashFetcher = Callable[[], Awaitable[BlockhashInfo]]


class BlockhashCache:
    def __init__(self, fetch: BlockhashFetcher, initial: BlockhashInfo | None = None) -> None:
        self._fetch = fetch
        self._current = initial
        self._lock = asyncio.Lock()
        self.fetch_count = 0

    @property
    def current(self) -> BlockhashInfo | None:
        return self._current

    async def get(self) -> BlockhashInfo:
        """Return the held value, fetching once if empty."""
        if self._current is not None:
            return self._current
        return await self.refresh()

    async def refresh(self, seen: BlockhashInfo | None = None) -> BlockhashInfo:
        """
        Fetch a fresh blockhash and replace the held value.

        If `seen` is given and the held value already differs from it, another
        run refreshed while this one waited; return that value without fetching.
        Raises UpstreamUnavailable / Unauthorized from the fetcher.
        """
        async with self._lock:
            held = self._current
            if seen is not None and held is not None and held.blockhash != seen.blockhash:
                return held
            info = await self._fetch()
            self.fetch_count += 1
            self._current = info
            logger.debug(
                "blockhash_refreshed",
                blockhash=info.blockhash,
                last_valid_block_height=info.last_valid_block_height,
                fetch_count=self.fetch_count,
            )
            return info
