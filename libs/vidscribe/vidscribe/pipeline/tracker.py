"""Job status tracker: polling plus per-submission event streams."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from vidscribe.exceptions import SubmissionNotFoundError
from vidscribe.models.submission import EventKind, Submission, SubmissionEvent
from vidscribe.services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)


class JobStatusTracker:
    """Fan-out of submission snapshots to subscribers.

    The pipeline persists a snapshot first and publishes it second, so a
    subscriber that registers and then reads the store never misses a change:
    anything older than what it read is dropped by version.
    """

    def __init__(self, store: SubmissionStore) -> None:
        self._store = store
        self._subscribers: dict[str, set[asyncio.Queue[SubmissionEvent]]] = {}

    async def poll(self, submission_id: str) -> Submission:
        snapshot = await self._store.get(submission_id)
        if snapshot is None:
            raise SubmissionNotFoundError(submission_id)
        return snapshot

    def publish(self, event: SubmissionEvent) -> None:
        for queue in list(self._subscribers.get(event.submission.id, ())):
            queue.put_nowait(event)

    def subscriber_count(self, submission_id: str) -> int:
        return len(self._subscribers.get(submission_id, ()))

    async def subscribe(self, submission_id: str) -> AsyncIterator[SubmissionEvent]:
        """Yield the current snapshot, then every newer change until a terminal stage.

        Nothing happens until the first iteration; every call is an independent stream.
        """
        queue: asyncio.Queue[SubmissionEvent] = asyncio.Queue()
        self._subscribers.setdefault(submission_id, set()).add(queue)
        try:
            current = await self.poll(submission_id)
            yield SubmissionEvent(EventKind.SNAPSHOT, current)
            if current.is_terminal:
                return

            last_version = current.version
            while True:
                event = await queue.get()
                if event.version <= last_version:
                    continue
                last_version = event.version
                yield event
                if event.submission.is_terminal:
                    return
        finally:
            subscribers = self._subscribers.get(submission_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    self._subscribers.pop(submission_id, None)
