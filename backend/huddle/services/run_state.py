"""Per-run view of participants, statements and representative vectors.

Classes:
    RunState: Everything the graph and match engines need for one run.

Functions:
    load_run_state(session, run_id): Read participants, run submissions and embeddings.
    latest_statements(state): ``[{id, text}]`` from each participant's latest submission.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from sqlalchemy import select

from huddle.models import EmbeddingRecord, Participant, Submission
from huddle.utils.text import extract_text
from huddle.utils.vectors import mean


@dataclass(slots=True)
class RunState:
    run_id: int
    participants: list[Participant]
    submissions: list[Submission]
    latest_text: dict[int, str] = field(default_factory=dict)
    vectors: dict[int, list[float]] = field(default_factory=dict)

    @property
    def participant_ids(self) -> list[int]:
        return [participant.id for participant in self.participants]

    @property
    def names(self) -> dict[int, str]:
        return {participant.id: participant.name for participant in self.participants}


async def load_run_state(session, run_id: int) -> RunState:
    participants_result = await session.exec(select(Participant).order_by(Participant.id))
    participants = list(participants_result.scalars().all())

    submissions_result = await session.exec(
        select(Submission)
        .where(Submission.run_id == run_id)
        .order_by(Submission.created_at, Submission.id)
    )
    submissions = list(submissions_result.scalars().all())

    records: dict[int, EmbeddingRecord] = {}
    if submissions:
        embedding_result = await session.exec(
            select(EmbeddingRecord).where(
                EmbeddingRecord.submission_id.in_([submission.id for submission in submissions])
            )
        )
        records = {record.submission_id: record for record in embedding_result.scalars().all()}

    latest_text: dict[int, str] = {}
    collected: dict[int, list[list[float]]] = defaultdict(list)
    for submission in submissions:
        # Later rows overwrite earlier ones: the newest submission wins.
        latest_text[submission.participant_id] = extract_text(submission.payload_json)
        record = records.get(submission.id)
        if record is not None:
            vector = record.as_list()
            if vector:
                collected[submission.participant_id].append(vector)

    vectors = {participant_id: mean(items) for participant_id, items in collected.items()}
    return RunState(
        run_id=run_id,
        participants=participants,
        submissions=submissions,
        latest_text=latest_text,
        vectors=vectors,
    )


def latest_statements(state: RunState) -> list[dict[str, object]]:
    """One item per participant with a submission, in participant id order."""

    return [
        {"id": participant_id, "text": state.latest_text[participant_id]}
        for participant_id in sorted(state.latest_text)
    ]
