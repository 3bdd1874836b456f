from __future__ import annotations

import asyncio

import pytest

from vidscribe.exceptions import SubmissionNotFoundError
from vidscribe.models.submission import EventKind, Stage, Submission, SubmissionEvent
from vidscribe.pipeline.tracker import JobStatusTracker
from vidscribe.services.submission_store import InMemorySubmissionStore


async def _commit(store, tracker, submission: Submission, stage: Stage, kind=EventKind.STAGE) -> None:
    submission.stage = stage
    submission.version += 1
    snapshot = submission.snapshot()
    await store.save(snapshot)
    tracker.publish(SubmissionEvent(kind, snapshot))


@pytest.mark.asyncio
async def test_poll_unknown_submission_raises() -> None:
    tracker = JobStatusTracker(InMemorySubmissionStore())
    with pytest.raises(SubmissionNotFoundError):
        await tracker.poll("nope")


@pytest.mark.asyncio
async def test_late_subscriber_sees_terminal_snapshot_only() -> None:
    store = InMemorySubmissionStore()
    tracker = JobStatusTracker(store)
    sub = Submission(id="s1")
    await _commit(store, tracker, sub, Stage.DONE)

    events = [e async for e in tracker.subscribe("s1")]

    assert len(events) == 1
    assert events[0].kind == EventKind.SNAPSHOT
    assert events[0].stage == Stage.DONE
    assert tracker.subscriber_count("s1") == 0


@pytest.mark.asyncio
async def test_subscriber_receives_changes_in_order_until_terminal() -> None:
    store = InMemorySubmissionStore()
    tracker = JobStatusTracker(store)
    sub = Submission(id="s1")
    await _commit(store, tracker, sub, Stage.RECEIVED)

    stream = tracker.subscribe("s1")
    first = await stream.__anext__()
    assert first.kind == EventKind.SNAPSHOT
    assert tracker.subscriber_count("s1") == 1

    await _commit(store, tracker, sub, Stage.TRANSCODING)
    await _commit(store, tracker, sub, Stage.TRANSCODING, EventKind.PROGRESS)
    await _commit(store, tracker, sub, Stage.FAILED)

    rest = [e async for e in stream]
    assert [(e.kind, e.stage) for e in rest] == [
        (EventKind.STAGE, Stage.TRANSCODING),
        (EventKind.PROGRESS, Stage.TRANSCODING),
        (EventKind.STAGE, Stage.FAILED),
    ]
    assert [e.version for e in rest] == [2, 3, 4]
    assert tracker.subscriber_count("s1") == 0


@pytest.mark.asyncio
async def test_stale_events_are_dropped_by_version() -> None:
    store = InMemorySubmissionStore()
    tracker = JobStatusTracker(store)
    sub = Submission(id="s1")
    await _commit(store, tracker, sub, Stage.TRANSCODING)
    stale = sub.snapshot()

    stream = tracker.subscribe("s1")
    await stream.__anext__()
    tracker.publish(SubmissionEvent(EventKind.STAGE, stale))
    await _commit(store, tracker, sub, Stage.DONE)

    rest = [e async for e in stream]
    assert [e.stage for e in rest] == [Stage.DONE]


@pytest.mark.asyncio
async def test_each_subscription_is_independent_and_restartable() -> None:
    store = InMemorySubmissionStore()
    tracker = JobStatusTracker(store)
    sub = Submission(id="s1")
    await _commit(store, tracker, sub, Stage.TRANSCODING)

    async def _collect():
        return [e.stage async for e in tracker.subscribe("s1")]

    a = asyncio.create_task(_collect())
    b = asyncio.create_task(_collect())
    while tracker.subscriber_count("s1") < 2:
        await asyncio.sleep(0)
    await _commit(store, tracker, sub, Stage.TRANSCODED)
    await _commit(store, tracker, sub, Stage.FAILED)

    assert await a == [Stage.TRANSCODING, Stage.TRANSCODED, Stage.FAILED]
    assert await b == [Stage.TRANSCODING, Stage.TRANSCODED, Stage.FAILED]
    # Subscribing again after the end yields the terminal snapshot.
    assert await _collect() == [Stage.FAILED]


@pytest.mark.asyncio
async def test_closing_a_subscription_unregisters_it() -> None:
    store = InMemorySubmissionStore()
    tracker = JobStatusTracker(store)
    sub = Submission(id="s1")
    await _commit(store, tracker, sub, Stage.TRANSCODING)

    stream = tracker.subscribe("s1")
    await stream.__anext__()
    assert tracker.subscriber_count("s1") == 1
    await stream.aclose()
    assert tracker.subscriber_count("s1") == 0
