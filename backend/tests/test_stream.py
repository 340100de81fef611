import asyncio
import json

import pytest

from huddle.models import Run, Submission
from huddle.services.graph import GraphService
from huddle.services.stream import StreamService
from huddle.services.submissions import CountService

from conftest import RecordingSink, parse_sse, seed_statements


async def _drain(sink) -> list[tuple[str, object]]:
    received = []
    while not sink.empty():
        received.append(parse_sse(await sink.get()))
    return received


async def _save_snapshots(session, run_id: int, *, summary: str | None, pairing: str | None) -> None:
    run = await session.get(Run, run_id)
    run.summary_json = summary
    run.pairing_json = pairing
    session.add(run)
    await session.commit()


@pytest.mark.asyncio
async def test_snapshot_broadcasts_state_then_sends_recent_lines_privately(session, session_factory, run, bus, registry):
    await seed_statements(
        session,
        run.id,
        {"Ada": [("trucks", [1.0, 0.0])], "Ben": [("more trucks", [1.0, 0.1])]},
    )
    await _save_snapshots(
        session,
        run.id,
        summary=json.dumps({"themes": [], "source": "heuristic"}),
        pairing=json.dumps({"pairs": [{"members": [1, 2], "score": 0.99, "names": ["Ada", "Ben"]}]}),
    )
    existing = RecordingSink()
    bus.subscribe(existing)
    service = StreamService(bus, registry, session_factory)
    sink = service.open_sink()

    await service.deliver_snapshot(sink)

    assert [event for event, _ in existing.events] == [
        "submission_count",
        "participant_count",
        "graph",
        "summary",
        "matches",
    ]
    received = await _drain(sink)
    assert [event for event, _ in received] == [
        "submission_count",
        "participant_count",
        "graph",
        "summary",
        "matches",
        "recent_lines",
    ]
    assert received[0][1] == {"count": 2}
    assert received[1][1] == {"count": 2}
    assert [line["text"] for line in received[-1][1]] == ["trucks", "more trucks"]
    assert sink in bus


@pytest.mark.asyncio
async def test_snapshot_skips_corrupt_saved_json(session, session_factory, run, bus, registry):
    await seed_statements(session, run.id, {"Ada": [("trucks", [1.0, 0.0])]})
    await _save_snapshots(session, run.id, summary="{not json", pairing=json.dumps({"pairs": []}))
    service = StreamService(bus, registry, session_factory)
    sink = service.open_sink()

    await service.deliver_snapshot(sink)

    events = [event for event, _ in await _drain(sink)]
    assert "summary" not in events
    assert events[-2:] == ["matches", "recent_lines"]


@pytest.mark.asyncio
async def test_recent_lines_are_limited_and_chronological(session, session_factory, run, bus, registry):
    await seed_statements(
        session,
        run.id,
        {"Ada": [("one", [1.0]), ("two", [1.0])], "Ben": [("three", [1.0])]},
    )
    service = StreamService(bus, registry, session_factory, recent_limit=2)

    lines = await service.recent_lines(session, run.id)

    assert [line["text"] for line in lines] == ["two", "three"]


@pytest.mark.asyncio
async def test_event_stream_sends_retry_snapshot_and_heartbeat(session, session_factory, run, bus, registry):
    await seed_statements(session, run.id, {"Ada": [("trucks", [1.0, 0.0])]})
    service = StreamService(bus, registry, session_factory, heartbeat_seconds=0.05, retry_ms=1500)
    sink = service.open_sink()
    stream = service.events(sink)

    assert await stream.__anext__() == "retry: 1500\n\n"

    events: list[str] = []
    for _ in range(50):
        chunk = await stream.__anext__()
        if chunk.startswith(":"):
            continue
        event, _ = parse_sse(chunk)
        events.append(event)
        if event == "recent_lines":
            break
    assert events == ["submission_count", "participant_count", "graph", "recent_lines"]

    bus.publish("line", {"text": "live"})
    assert parse_sse(await stream.__anext__()) == ("line", {"text": "live"})
    assert await stream.__anext__() == ": keep-alive\n\n"

    await stream.aclose()
    assert sink not in bus
    assert sink.closed


@pytest.mark.asyncio
async def test_disconnect_before_snapshot_never_subscribes(session_factory, bus, registry):
    service = StreamService(bus, registry, session_factory)
    sink = service.open_sink()
    stream = service.events(sink)

    await stream.__anext__()
    await stream.aclose()
    await asyncio.sleep(0.05)

    assert len(bus) == 0
    assert sink.closed


class _IngestingGraphService(GraphService):
    """Lands one extra submission the first time the graph is built."""

    def __init__(self, bus, participant_id: int) -> None:
        super().__init__(bus)
        self._participant_id = participant_id
        self.builds = 0

    async def build(self, session, run_id: int):
        self.builds += 1
        if self.builds == 1:
            session.add(
                Submission(run_id=run_id, participant_id=self._participant_id, payload_json=json.dumps({"text": "late"}))
            )
            await session.commit()
            await CountService(self._bus).broadcast_submissions(session, run_id)
        return await super().build(session, run_id)


@pytest.mark.asyncio
async def test_snapshot_reloads_when_a_submission_lands_while_loading(session, session_factory, run, bus, registry):
    ids = await seed_statements(session, run.id, {"Ada": [("trucks", [1.0, 0.0])]})
    existing = RecordingSink()
    bus.subscribe(existing)
    graph = _IngestingGraphService(bus, ids["Ada"])
    service = StreamService(bus, registry, session_factory, graph=graph)
    sink = service.open_sink()

    await service.deliver_snapshot(sink)

    counts = [data["count"] for event, data in existing.events if event == "submission_count"]
    assert counts == [2, 2]
    assert graph.builds == 2
    received = await _drain(sink)
    assert received[0] == ("submission_count", {"count": 2})
    assert [line["text"] for line in received[-1][1]] == ["trucks", "late"]
