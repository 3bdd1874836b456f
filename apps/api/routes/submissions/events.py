from __future__ import annotations

from contextlib import aclosing

from fastapi import APIRouter, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from vidscribe.exceptions import SubmissionNotFoundError

from ._deps import pipeline, to_event_data

router = APIRouter()


@router.get("/{submission_id}/events")
async def submission_events(request: Request, submission_id: str) -> EventSourceResponse:
    svc = pipeline(request)
    try:
        await svc.get_status(submission_id)
    except SubmissionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="submission not found") from exc

    async def event_generator():
        async with aclosing(svc.subscribe(submission_id)) as events:
            async for event in events:
                yield {
                    "event": event.kind.value,
                    "id": str(event.version),
                    "data": to_event_data(event.submission),
                }

    return EventSourceResponse(event_generator())
