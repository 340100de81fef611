"""Server-sent event stream endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from huddle.api.deps import get_bus, get_run_registry
from huddle.db.session import get_session_factory
from huddle.services import BroadcastBus, RunRegistry, StreamService

router = APIRouter(tags=["stream"])


@router.get("/stream")
async def stream(
    request: Request,
    bus: BroadcastBus = Depends(get_bus),
    registry: RunRegistry = Depends(get_run_registry),
    session_factory=Depends(get_session_factory),
) -> StreamingResponse:
    service = StreamService(bus, registry, session_factory)
    sink = service.open_sink()
    return StreamingResponse(
        service.events(sink, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
