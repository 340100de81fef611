"""Process-wide fan-out of named server-sent events.

Classes:
    Sink: Protocol for anything that can accept one pre-serialised SSE message.
    QueueSink: Bounded asyncio queue drained by one streaming response.
    BroadcastBus: Thread-safe registry of sinks with drop-on-failure delivery.

Functions:
    format_sse(event, data): Serialise one named event into SSE wire format.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from typing import Any, Protocol

_LOGGER = logging.getLogger(__name__)


def format_sse(event: str, data: Any) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


class Sink(Protocol):
    def push(self, message: str) -> bool:
        ...


class QueueSink:
    """Non-blocking sink; a full queue counts as a failed delivery."""

    def __init__(self, maxsize: int = 256) -> None:
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def empty(self) -> bool:
        return self._queue.empty()

    def push(self, message: str) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    async def get(self) -> str:
        return await self._queue.get()

    def close(self) -> None:
        self._closed = True


class BroadcastBus:
    def __init__(self) -> None:
        self._sinks: set[Sink] = set()
        self._lock = threading.RLock()
        self._version = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._sinks)

    @property
    def version(self) -> int:
        """Number of broadcasts so far; a change means shared state may have moved."""
        with self._lock:
            return self._version

    def __contains__(self, sink: object) -> bool:
        with self._lock:
            return sink in self._sinks

    def subscribe(self, sink: Sink) -> None:
        with self._lock:
            self._sinks.add(sink)

    def unsubscribe(self, sink: Sink) -> None:
        with self._lock:
            self._sinks.discard(sink)

    def publish(self, event: str, data: Any) -> int:
        """Deliver to every registered sink and return how many accepted the message."""

        message = format_sse(event, data)
        dead: list[Sink] = []
        delivered = 0
        # Pushes never block, so delivering under the lock is safe and an
        # unsubscribed sink cannot receive a late message.
        with self._lock:
            self._version += 1
            for sink in list(self._sinks):
                if self._push(sink, message):
                    delivered += 1
                else:
                    dead.append(sink)
        if dead:
            self._drop(dead)
        return delivered

    def send(self, sink: Sink, event: str, data: Any) -> bool:
        """Deliver a single-recipient event; the sink is dropped if delivery fails."""

        if self._push(sink, format_sse(event, data)):
            return True
        self._drop([sink])
        return False

    @staticmethod
    def _push(sink: Sink, message: str) -> bool:
        try:
            return sink.push(message) is not False
        except Exception as exc:
            _LOGGER.info("Dropping subscriber after failed delivery: %s", exc)
            return False

    def _drop(self, sinks: list[Sink]) -> None:
        with self._lock:
            for sink in sinks:
                self._sinks.discard(sink)
        for sink in sinks:
            close = getattr(sink, "close", None)
            if callable(close):
                close()
