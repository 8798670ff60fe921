"""Change stream endpoint (Server-Sent Events)."""

import asyncio
import json
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from transported.core.events import TABLES, ChangeBroker, Subscription, get_change_broker
from transported.web.deps import CurrentUser, require_admin

router = APIRouter(prefix="/api/events", tags=["events"])

KEEPALIVE_SECONDS = 30.0


async def event_generator(
    broker: ChangeBroker,
    subscription: Subscription,
    keepalive: float = KEEPALIVE_SECONDS,
) -> AsyncGenerator[str, None]:
    """Format a subscription's events as SSE until it is closed."""
    try:
        while True:
            try:
                event = await asyncio.wait_for(subscription.queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield "event: keepalive\ndata: ping\n\n"
                continue

            if event is None:
                yield "event: close\ndata: Subscription closed\n\n"
                return

            yield f"event: change\ndata: {json.dumps(event.to_dict())}\n\n"
    finally:
        await broker.unsubscribe(subscription.subscription_id)


@router.get("")
async def stream_events(
    tables: list[str] | None = Query(default=None),
    current: CurrentUser = Depends(require_admin),
) -> StreamingResponse:
    """Stream row changes to admins.

    Events:
    - change: JSON with table, action, record_id, user_id
    - keepalive: Sent every 30s to keep connection alive
    - close: The subscription was closed
    """
    broker = get_change_broker()
    try:
        subscription = await broker.subscribe(tables or TABLES)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return StreamingResponse(
        event_generator(broker, subscription),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
