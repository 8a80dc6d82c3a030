"""Events API router for SSE."""

import json
from fastapi import APIRouter, Request
from sse_starlette.sse import EventSourceResponse

from tradepost.core.events import event_bus

router = APIRouter()


@router.get("/events")
async def event_stream(request: Request):
    """
    Server-Sent Events (SSE) stream of trade lifecycle events.

    Usage:
        const eventSource = new EventSource('/api/events');
        eventSource.addEventListener('trade_accepted', (e) => {
            console.log(JSON.parse(e.data));
        });
    """
    async def generate():
        async for event in event_bus.subscribe():
            if await request.is_disconnected():
                break

            yield {
                "event": event["type"],
                "data": json.dumps(event["data"], default=str)
            }

    return EventSourceResponse(generate())
