"""Server-sent event stream for connected clients.

Classes:
    StreamService: Opens sinks, replays the snapshot to a new client and drives the
        per-connection SSE generator.

Snapshot order on connect: submission count, participant count and graph to every
subscriber; then the saved summary and pairing when present; then the recent lines to
the new client only. The new sink is subscribed in the same synchronous step that
publishes the snapshot, so it cannot see a live event before its snapshot. If anything
was broadcast while the snapshot was loading, it is loaded again so that older state is
never rebroadcast over newer state.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Optional

from sqlalchemy import select

from huddle.core.config import get_settings
from huddle.models import Run, Submission
from huddle.schemas import LineEvent, SimilarityGraph
from huddle.services.broadcast import BroadcastBus, QueueSink
from huddle.services.graph import GraphService
from huddle.services.run_registry import RunRegistry
from huddle.services.submissions import CountService
from huddle.utils.text import extract_text

_LOGGER = logging.getLogger(__name__)

SNAPSHOT_ATTEMPTS = 5


def _load_saved(raw: Optional[str], kind: str, run_id: int) -> Optional[Any]:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        _LOGGER.warning("Skipping unreadable saved %s for run %s", kind, run_id)
        return None


class StreamService:
    def __init__(
        self,
        bus: BroadcastBus,
        registry: RunRegistry,
        session_factory,
        graph: Optional[GraphService] = None,
        *,
        recent_limit: Optional[int] = None,
        heartbeat_seconds: Optional[float] = None,
        retry_ms: Optional[int] = None,
        queue_size: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._bus = bus
        self._registry = registry
        self._session_factory = session_factory
        self._graph = graph or GraphService(bus)
        self._counts = CountService(bus)
        self._recent_limit = recent_limit or settings.recent_lines_limit
        self._heartbeat_seconds = heartbeat_seconds or settings.stream_heartbeat_seconds
        self._retry_ms = retry_ms or settings.stream_retry_ms
        self._queue_size = queue_size or settings.stream_queue_size

    def open_sink(self) -> QueueSink:
        return QueueSink(maxsize=self._queue_size)

    async def recent_lines(self, session, run_id: int) -> list[dict[str, Any]]:
        result = await session.exec(
            select(Submission)
            .where(Submission.run_id == run_id)
            .order_by(Submission.id.desc())
            .limit(self._recent_limit)
        )
        rows = list(result.scalars().all())
        rows.reverse()
        return [
            LineEvent(
                submission_id=row.id,
                participant_id=row.participant_id,
                text=extract_text(row.payload_json),
            ).model_dump()
            for row in rows
        ]

    async def _load_snapshot(self) -> tuple[int, int, int, SimilarityGraph, Optional[Run], list[dict[str, Any]]]:
        async with self._session_factory() as session:
            run_id = await self._registry.current_run_id(session)
            submission_count = await self._counts.submission_count(session, run_id)
            participant_count = await self._counts.participant_count(session)
            graph = await self._graph.build(session, run_id)
            run = await session.get(Run, run_id)
            recent = await self.recent_lines(session, run_id)
        return run_id, submission_count, participant_count, graph, run, recent

    async def deliver_snapshot(self, sink: QueueSink) -> None:
        try:
            for attempt in range(SNAPSHOT_ATTEMPTS):
                version = self._bus.version
                run_id, submission_count, participant_count, graph, run, recent = await self._load_snapshot()
                if self._bus.version == version:
                    break
                _LOGGER.debug("State changed while loading snapshot (attempt %d), reloading", attempt + 1)
        except Exception:
            _LOGGER.warning("Snapshot failed; joining live stream without it", exc_info=True)
            self._bus.subscribe(sink)
            return

        # No awaits from here on.
        self._bus.subscribe(sink)
        self._bus.publish("submission_count", {"count": submission_count})
        self._bus.publish("participant_count", {"count": participant_count})
        self._bus.publish("graph", graph.model_dump())
        if run is not None:
            summary = _load_saved(run.summary_json, "summary", run_id)
            if summary is not None:
                self._bus.publish("summary", summary)
            pairing = _load_saved(run.pairing_json, "pairing", run_id)
            if pairing is not None:
                self._bus.publish("matches", pairing)
        self._bus.send(sink, "recent_lines", recent)

    async def events(self, sink: QueueSink, request=None) -> AsyncIterator[str]:
        snapshot = asyncio.create_task(self.deliver_snapshot(sink))
        try:
            yield f"retry: {self._retry_ms}\n\n"
            while True:
                if request is not None and await request.is_disconnected():
                    break
                if sink.closed and sink.empty():
                    break
                try:
                    message = await asyncio.wait_for(sink.get(), timeout=self._heartbeat_seconds)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield message
        finally:
            if not snapshot.done():
                snapshot.cancel()
            self._bus.unsubscribe(sink)
            sink.close()
