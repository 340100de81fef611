import threading

import pytest

from huddle.services.broadcast import BroadcastBus, QueueSink, format_sse

from conftest import BrokenSink, RecordingSink, parse_sse


def test_format_sse_names_event_and_serialises_payload():
    message = format_sse("graph", {"nodes": [], "edges": []})
    assert message == 'event: graph\ndata: {"nodes": [], "edges": []}\n\n'


def test_publish_delivers_identical_payload_to_every_sink():
    bus = BroadcastBus()
    sinks = [RecordingSink() for _ in range(3)]
    for sink in sinks:
        bus.subscribe(sink)

    delivered = bus.publish("submission_count", {"count": 4})

    assert delivered == 3
    assert sinks[0].messages == sinks[1].messages == sinks[2].messages
    assert parse_sse(sinks[0].messages[0]) == ("submission_count", {"count": 4})


def test_failing_sink_is_dropped_without_affecting_others():
    bus = BroadcastBus()
    healthy = [RecordingSink(), RecordingSink()]
    broken = BrokenSink()
    bus.subscribe(healthy[0])
    bus.subscribe(broken)
    bus.subscribe(healthy[1])

    bus.publish("line", {"text": "hello"})

    assert all(len(sink.messages) == 1 for sink in healthy)
    assert broken not in bus
    assert len(bus) == 2

    bus.publish("line", {"text": "again"})
    assert broken.attempts == 1


def test_unsubscribe_is_idempotent():
    bus = BroadcastBus()
    sink = RecordingSink()
    bus.subscribe(sink)
    bus.unsubscribe(sink)
    bus.unsubscribe(sink)
    assert len(bus) == 0
    assert bus.publish("graph", {}) == 0
    assert sink.messages == []


@pytest.mark.asyncio
async def test_full_queue_sink_is_dropped_and_closed():
    bus = BroadcastBus()
    slow = QueueSink(maxsize=1)
    fast = QueueSink(maxsize=10)
    bus.subscribe(slow)
    bus.subscribe(fast)

    bus.publish("line", {"n": 1})
    bus.publish("line", {"n": 2})

    assert slow not in bus
    assert slow.closed
    assert fast in bus
    assert parse_sse(await fast.get()) == ("line", {"n": 1})
    assert parse_sse(await fast.get()) == ("line", {"n": 2})


@pytest.mark.asyncio
async def test_send_reaches_only_the_target_sink():
    bus = BroadcastBus()
    target = QueueSink()
    bystander = RecordingSink()
    bus.subscribe(target)
    bus.subscribe(bystander)

    assert bus.send(target, "recent_lines", [{"text": "hi"}]) is True

    assert bystander.messages == []
    assert parse_sse(await target.get()) == ("recent_lines", [{"text": "hi"}])


def test_closed_queue_sink_rejects_messages():
    sink = QueueSink()
    sink.close()
    assert sink.push("event: x\ndata: 1\n\n") is False


def test_concurrent_subscribe_and_publish_keep_registry_consistent():
    bus = BroadcastBus()
    steady = RecordingSink()
    bus.subscribe(steady)
    errors: list[BaseException] = []

    def churn() -> None:
        try:
            for _ in range(200):
                sink = RecordingSink()
                bus.subscribe(sink)
                bus.unsubscribe(sink)
        except BaseException as exc:  # pragma: no cover - surfaced by assertion
            errors.append(exc)

    def publish() -> None:
        try:
            for index in range(200):
                bus.publish("tick", {"index": index})
        except BaseException as exc:  # pragma: no cover - surfaced by assertion
            errors.append(exc)

    threads = [threading.Thread(target=churn) for _ in range(4)] + [
        threading.Thread(target=publish) for _ in range(2)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(bus) == 1
    assert len(steady.messages) == 400


def test_version_counts_every_broadcast():
    bus = BroadcastBus()
    assert bus.version == 0
    bus.publish("line", {"text": "nobody listening"})
    bus.subscribe(RecordingSink())
    bus.publish("line", {"text": "one listener"})
    assert bus.version == 2
