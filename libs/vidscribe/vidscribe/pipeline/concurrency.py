"""Bounded access to the codec engine."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from vidscribe.config import Settings


@dataclass(frozen=True)
class ConcurrencyState:
    active: int
    waiting: int
    max: int


class TranscodeLimiter:
    """Caps simultaneous transcodes; waiting for a slot is cancellable."""

    def __init__(self, max_concurrent: int) -> None:
        self._max = max(1, int(max_concurrent))
        self._semaphore = asyncio.Semaphore(self._max)
        self._active = 0
        self._waiting = 0

    def snapshot(self) -> ConcurrencyState:
        return ConcurrencyState(active=self._active, waiting=self._waiting, max=self._max)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[ConcurrencyState]:
        self._waiting += 1
        try:
            await self._semaphore.acquire()
        finally:
            self._waiting -= 1
        self._active += 1
        try:
            yield self.snapshot()
        finally:
            self._active = max(0, self._active - 1)
            self._semaphore.release()


def create_transcode_limiter(settings: Settings) -> TranscodeLimiter:
    return TranscodeLimiter(int(settings.transcode.max_concurrency))
