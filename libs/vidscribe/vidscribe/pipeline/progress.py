"""Rate-limited transcode progress reporting."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from vidscribe.models.submission import Submission


class SubmissionProgressReporter:
    """Writes transcode progress onto a Submission and notifies on meaningful change.

    Progress is clamped to 0..100 and never moves backwards. An update is emitted
    when it reaches 100, advances by `min_percent_step`, or `min_interval_s` has
    elapsed since the previous one.
    """

    def __init__(
        self,
        *,
        submission: Submission,
        notify_update: Callable[[], Awaitable[None]],
        min_percent_step: int = 5,
        min_interval_s: float = 2.0,
    ) -> None:
        self._submission = submission
        self._notify_update = notify_update
        self._min_percent_step = max(1, int(min_percent_step))
        self._min_interval_s = max(0.0, float(min_interval_s))
        self._last_progress = int(submission.progress or 0)
        self._last_update_at = 0.0

    async def report(self, progress: int, message: str) -> None:
        pct = min(100, max(0, int(progress)))
        if pct < self._last_progress:
            pct = self._last_progress
        msg = str(message or "").strip() or "running"

        now = time.monotonic()
        should_emit = False
        if pct >= 100 and self._last_progress < 100:
            should_emit = True
        elif pct >= self._last_progress + self._min_percent_step:
            should_emit = True
        elif self._min_interval_s > 0 and now - self._last_update_at >= self._min_interval_s:
            should_emit = pct > self._last_progress or self._last_update_at == 0.0

        if not should_emit:
            return

        self._submission.progress = pct
        self._submission.progress_message = msg
        self._last_progress = pct
        self._last_update_at = now
        await self._notify_update()
