"""Ingest pipeline: video -> audio artifact -> stored -> transcript, one task per submission."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable
from typing import TypeVar
from uuid import uuid4

from vidscribe.config import Settings
from vidscribe.error_codes import ErrorCode
from vidscribe.exceptions import ConfigurationError, InvalidTransitionError, ProviderError
from vidscribe.models.artifact import AudioArtifact, TranscodeOptions
from vidscribe.models.submission import (
    STAGE_INDEX,
    EventKind,
    Stage,
    StageChange,
    Submission,
    SubmissionError,
    SubmissionEvent,
)
from vidscribe.pipeline.concurrency import TranscodeLimiter
from vidscribe.pipeline.progress import SubmissionProgressReporter
from vidscribe.pipeline.tracker import JobStatusTracker
from vidscribe.providers.transcoder.base import Transcoder
from vidscribe.providers.transcription.base import TranscriptionService
from vidscribe.services.submission_store import SubmissionStore
from vidscribe.storage.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Error kind used when a collaborator raises something outside the taxonomy.
_DEFAULT_ERROR_CODE: dict[Stage, ErrorCode] = {
    Stage.TRANSCODING: ErrorCode.ENCODE_FAILURE,
    Stage.TRANSCODED: ErrorCode.UNAVAILABLE,
    Stage.TRANSCRIBING: ErrorCode.REJECTED,
}


class _StepFailed(Exception):
    """Internal: a collaborator failed and the failure is already recorded."""


def _check_transition(current: Stage, target: Stage) -> None:
    if current.is_terminal:
        raise InvalidTransitionError(f"submission is terminal ({current.value})")
    if target == Stage.FAILED:
        return
    if STAGE_INDEX[target] != STAGE_INDEX[current] + 1:
        raise InvalidTransitionError(f"{current.value} -> {target.value}")


class IngestPipeline:
    """Drives each Submission through transcode, store and transcribe.

    Every submission is a single asyncio task and the only writer of its
    Submission. Each step's result is persisted and published before the next
    step starts. Collaborator errors end the submission in `failed`; they are
    never raised to callers.
    """

    def __init__(
        self,
        settings: Settings,
        store: ArtifactStore,
        *,
        transcoder: Transcoder,
        transcription: TranscriptionService,
        submission_store: SubmissionStore,
        tracker: JobStatusTracker | None = None,
        limiter: TranscodeLimiter | None = None,
        options: TranscodeOptions | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.transcoder = transcoder
        self.transcription = transcription
        self.submission_store = submission_store
        self.tracker = tracker or JobStatusTracker(submission_store)
        self.limiter = limiter or TranscodeLimiter(int(settings.transcode.max_concurrency))
        self.options = options or TranscodeOptions.from_config(settings.transcode)
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._live: dict[str, Submission] = {}

    # ------------------------------------------------------------------ public

    async def submit(self, video_bytes: bytes, prompt: str | None = None) -> str:
        """Validate, record a `received` Submission and schedule its task."""
        if not video_bytes:
            raise ConfigurationError("video bytes are empty")
        max_bytes = int(self.settings.upload_max_bytes)
        if len(video_bytes) > max_bytes:
            raise ConfigurationError(f"video is {len(video_bytes)} bytes (limit {max_bytes})")

        submission = Submission(id=uuid4().hex, prompt=str(prompt or "").strip() or None)
        await self._commit(submission, EventKind.STAGE, record=Stage.RECEIVED)

        self._live[submission.id] = submission
        task = asyncio.create_task(
            self._run(submission, video_bytes), name=f"submission-{submission.id}"
        )
        self._tasks[submission.id] = task
        task.add_done_callback(lambda _t, sid=submission.id: self._forget(sid))

        logger.info(
            "submission received (submission_id=%s, bytes=%d, has_prompt=%s)",
            submission.id,
            len(video_bytes),
            submission.prompt is not None,
        )
        return submission.id

    async def get_status(self, submission_id: str) -> Submission:
        return await self.tracker.poll(submission_id)

    def subscribe(self, submission_id: str) -> AsyncIterator[SubmissionEvent]:
        return self.tracker.subscribe(submission_id)

    async def wait(self, submission_id: str) -> Submission:
        """Wait for an in-flight submission to finish and return its final snapshot."""
        task = self._tasks.get(submission_id)
        if task is not None:
            await asyncio.wait({task})
        return await self.get_status(submission_id)

    async def cancel(self, submission_id: str) -> bool:
        """Cancel an in-flight submission; False when it is already terminal."""
        snapshot = await self.get_status(submission_id)
        if snapshot.is_terminal or submission_id not in self._tasks:
            return False
        return await self._cancel_task(submission_id)

    def in_flight(self) -> list[str]:
        return [sid for sid, task in self._tasks.items() if not task.done()]

    async def aclose(self) -> None:
        for submission_id in list(self._tasks):
            await self._cancel_task(submission_id)
        for closeable in (self.transcoder, self.store, self.transcription, self.submission_store):
            try:
                await closeable.close()
            except Exception:
                logger.exception("close failed (%s)", type(closeable).__name__)

    # --------------------------------------------------------------- internals

    def _forget(self, submission_id: str) -> None:
        self._tasks.pop(submission_id, None)
        self._live.pop(submission_id, None)

    async def _cancel_task(self, submission_id: str) -> bool:
        task = self._tasks.get(submission_id)
        submission = self._live.get(submission_id)
        if task is None or task.done():
            return False
        task.cancel()
        await asyncio.wait({task})
        # A task cancelled before its first step never ran its own handler.
        if submission is not None and not submission.is_terminal:
            await self._fail(submission, ErrorCode.CANCELLED, "cancelled before processing started")
        return True

    async def _commit(
        self,
        submission: Submission,
        kind: EventKind,
        *,
        record: Stage | None = None,
        persist_required: bool = True,
    ) -> None:
        submission.version += 1
        submission.touch()
        if record is not None:
            submission.history.append(StageChange(stage=record, at=submission.updated_at))
        snapshot = submission.snapshot()
        try:
            await self.submission_store.save(snapshot)
        except Exception:
            if persist_required:
                raise
            logger.exception(
                "terminal snapshot not persisted; store still holds the previous stage "
                "(submission_id=%s, stage=%s)",
                submission.id,
                submission.stage.value,
            )
        self.tracker.publish(SubmissionEvent(kind, snapshot))

    async def _advance(self, submission: Submission, stage: Stage) -> None:
        _check_transition(submission.stage, stage)
        submission.stage = stage
        await self._commit(submission, EventKind.STAGE, record=stage)
        logger.info("stage (submission_id=%s, stage=%s)", submission.id, stage.value)

    async def _fail(self, submission: Submission, code: ErrorCode | str, message: str) -> None:
        kind = code.value if isinstance(code, ErrorCode) else str(code)
        _check_transition(submission.stage, Stage.FAILED)
        submission.error = SubmissionError(stage=submission.stage, kind=kind, message=message)
        submission.transcript_text = None
        submission.stage = Stage.FAILED
        # Subscribers still get the terminal event when the store is down.
        await self._commit(submission, EventKind.STAGE, record=Stage.FAILED, persist_required=False)
        logger.warning(
            "submission failed (submission_id=%s, stage=%s, kind=%s): %s",
            submission.id,
            submission.error.stage.value,
            kind,
            message,
        )

    @staticmethod
    def _infer_error_code(stage: Stage, exc: BaseException) -> ErrorCode | str:
        if isinstance(exc, ProviderError) and exc.error_code is not None:
            return exc.error_code
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError)) and stage == Stage.TRANSCRIBING:
            return ErrorCode.TIMEOUT
        return _DEFAULT_ERROR_CODE.get(stage, ErrorCode.UNKNOWN)

    @staticmethod
    def _infer_error_message(exc: BaseException) -> str:
        if isinstance(exc, ProviderError):
            return str(exc.message or "")
        return str(exc) or type(exc).__name__

    async def _step(self, submission: Submission, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except Exception as exc:
            if not isinstance(exc, ProviderError):
                logger.exception(
                    "unexpected collaborator error (submission_id=%s, stage=%s)",
                    submission.id,
                    submission.stage.value,
                )
            await self._fail(
                submission,
                self._infer_error_code(submission.stage, exc),
                self._infer_error_message(exc),
            )
            raise _StepFailed from exc

    async def _transcode(self, submission: Submission, video_bytes: bytes) -> AudioArtifact:
        reporter = SubmissionProgressReporter(
            submission=submission,
            notify_update=lambda: self._commit(submission, EventKind.PROGRESS),
            min_percent_step=int(self.settings.pipeline.progress_min_step),
            min_interval_s=float(self.settings.pipeline.progress_min_interval_s),
        )
        async with self.limiter.acquire() as state:
            logger.info(
                "transcode start (submission_id=%s, active=%d, max=%d)",
                submission.id,
                state.active,
                state.max,
            )
            return await self.transcoder.transcode(
                video_bytes, self.options, progress_reporter=reporter
            )

    async def _transcribe(self, artifact_id: str, prompt: str | None) -> str:
        timeout = float(self.settings.transcription.timeout)
        return await asyncio.wait_for(
            self.transcription.transcribe(artifact_id, prompt), timeout=timeout
        )

    async def _run(self, submission: Submission, video_bytes: bytes) -> None:
        try:
            await self._advance(submission, Stage.TRANSCODING)
            try:
                artifact = await self._step(submission, self._transcode(submission, video_bytes))
            finally:
                # The source video is not needed past this point.
                video_bytes = b""
            await self._advance(submission, Stage.TRANSCODED)

            try:
                artifact_id = await self._step(
                    submission, self.store.save(submission.id, artifact)
                )
                submission.artifact_id = str(artifact_id)
                submission.artifact_media_type = artifact.mime_type
                submission.artifact_size_bytes = artifact.size_bytes
            finally:
                # Stored or discarded: either way the pipeline keeps only the id.
                artifact = None
            await self._advance(submission, Stage.STORED)

            await self._advance(submission, Stage.TRANSCRIBING)
            text = await self._step(
                submission, self._transcribe(str(submission.artifact_id), submission.prompt)
            )
            submission.transcript_text = str(text)
            await self._advance(submission, Stage.DONE)
        except _StepFailed:
            return
        except asyncio.CancelledError:
            if not submission.is_terminal:
                await self._fail(
                    submission,
                    ErrorCode.CANCELLED,
                    f"cancelled during {submission.stage.value}",
                )
            raise
        except Exception:
            logger.exception("submission task crashed (submission_id=%s)", submission.id)
            if not submission.is_terminal:
                await self._fail(submission, ErrorCode.UNKNOWN, "internal error")
