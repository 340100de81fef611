"""Participant registration and statement ingestion.

Classes:
    CountService: Reads and broadcasts the participant and submission counters.
    ParticipantService: Creates participants.
    SubmissionService: Stores a statement, embeds it and pushes the refreshed graph.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from sqlalchemy import func, select

from huddle.models import EmbeddingRecord, Participant, Submission
from huddle.schemas import LineEvent
from huddle.services.broadcast import BroadcastBus
from huddle.services.embeddings import EmbeddingProvider
from huddle.services.graph import GraphService
from huddle.services.run_registry import RunRegistry
from huddle.utils.text import extract_text, normalise_line

_LOGGER = logging.getLogger(__name__)


class CountService:
    def __init__(self, bus: BroadcastBus) -> None:
        self._bus = bus

    @staticmethod
    async def submission_count(session, run_id: int) -> int:
        result = await session.exec(select(func.count()).select_from(Submission).where(Submission.run_id == run_id))
        return int(result.scalar_one())

    @staticmethod
    async def participant_count(session) -> int:
        result = await session.exec(select(func.count()).select_from(Participant))
        return int(result.scalar_one())

    async def broadcast_submissions(self, session, run_id: int) -> int:
        count = await self.submission_count(session, run_id)
        self._bus.publish("submission_count", {"count": count})
        return count

    async def broadcast_participants(self, session) -> int:
        count = await self.participant_count(session)
        self._bus.publish("participant_count", {"count": count})
        return count


class ParticipantService:
    def __init__(self, bus: BroadcastBus) -> None:
        self._counts = CountService(bus)

    async def join(self, session, name: str) -> Participant:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValueError("Name is required")
        participant = Participant(name=cleaned)
        session.add(participant)
        await session.commit()
        await session.refresh(participant)
        await self._counts.broadcast_participants(session)
        return participant


class SubmissionService:
    def __init__(
        self,
        bus: BroadcastBus,
        registry: RunRegistry,
        embeddings: Optional[EmbeddingProvider] = None,
        graph: Optional[GraphService] = None,
    ) -> None:
        self._bus = bus
        self._registry = registry
        self._embeddings = embeddings or EmbeddingProvider()
        self._graph = graph or GraphService(bus)
        self._counts = CountService(bus)

    async def submit(
        self,
        session,
        *,
        participant_id: Optional[int],
        payload: Optional[dict[str, Any]],
        kind: str = "line",
    ) -> Submission:
        if not participant_id or not payload:
            raise ValueError("participant_id and payload are required")
        text = extract_text(payload)
        if not text:
            raise ValueError("Submission text is empty")
        if await session.get(Participant, participant_id) is None:
            raise ValueError(f"Participant {participant_id} not found")

        # Captured once: a concurrent reset does not move this submission.
        run_id = await self._registry.current_run_id(session)

        submission = Submission(
            run_id=run_id,
            participant_id=participant_id,
            kind=kind or "line",
            payload_json=json.dumps(payload),
        )
        session.add(submission)
        await session.commit()
        await session.refresh(submission)

        vector = await self._embeddings.embed(text)
        session.add(EmbeddingRecord.from_vector(submission.id, vector, normalise_line(payload)))
        await session.commit()

        await self._counts.broadcast_submissions(session, run_id)
        await self._graph.build_and_broadcast(session, run_id)
        line = LineEvent(submission_id=submission.id, participant_id=participant_id, text=text)
        self._bus.publish("line", line.model_dump())
        _LOGGER.debug("Ingested submission %s for participant %s in run %s", submission.id, participant_id, run_id)
        return submission
