"""SSE stream of live vote counts (no authentication required)."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from format_poker.api.deps import get_live_broadcaster
from format_poker.core.config import get_settings
from format_poker.schemas.vote import LiveVoteEvent
from format_poker.services.broadcaster import Broadcaster

logger = logging.getLogger(__name__)
router = APIRouter()


async def _event_generator(request: Request, broadcaster: Broadcaster) -> Any:
    """Yield one SSE frame per vote event until the client disconnects.

    Keep-alive pings are sse-starlette comment frames, so they never look like
    data. The timeout on ``get`` only exists to poll for a disconnect.
    """
    check_interval = get_settings().live_disconnect_check_seconds
    subscription = broadcaster.subscribe()
    try:
        while True:
            if await request.is_disconnected():
                break
            try:
                event = await subscription.get(timeout=check_interval)
            except TimeoutError:
                continue
            if event is None:
                # Handle closed: dropped as a slow reader or server shutting down
                break
            yield {"data": LiveVoteEvent(id=event.id, votes=event.votes).model_dump_json()}
    finally:
        broadcaster.unsubscribe(subscription)


@router.get("/live")
async def live_events(
    request: Request,
    broadcaster: Broadcaster = Depends(get_live_broadcaster),
) -> EventSourceResponse:
    """Open a persistent stream of ``{"id": formatId, "votes": n}`` events.

    Nothing is replayed: clients should re-fetch the catalog after (re)connecting.
    """
    return EventSourceResponse(
        _event_generator(request, broadcaster),
        ping=get_settings().live_ping_seconds,
        media_type="text/event-stream",
        headers={"X-Accel-Buffering": "no"},
    )
