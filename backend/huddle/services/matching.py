"""Greedy disjoint pairing of participants by embedding similarity.

Functions:
    greedy_pairing(participant_ids, vectors): Pure pairing with trio and leftover handling.

Classes:
    MatchService: Computes the pairing for the current run, saves it on the run and
        broadcasts it as ``matches``.

Tie-breaking: candidate edges are ordered by score descending, then by the
``(lower id, higher id)`` pair ascending. When the leftover count is odd the
highest-id leftover joins the pair with the best average similarity to it; equal
averages keep the earliest pair.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from huddle.models import Run
from huddle.schemas import PairGroup, Pairing
from huddle.services.broadcast import BroadcastBus
from huddle.services.run_state import load_run_state
from huddle.utils.vectors import cosine

_LOGGER = logging.getLogger(__name__)


def greedy_pairing(
    participant_ids: Sequence[int],
    vectors: Mapping[int, Sequence[float]],
) -> list[PairGroup]:
    ordered = sorted(participant_ids)
    with_vector = [pid for pid in ordered if pid in vectors]

    candidates: list[tuple[float, int, int]] = []
    for index, u in enumerate(with_vector):
        for v in with_vector[index + 1 :]:
            candidates.append((round(cosine(vectors[u], vectors[v]), 4), u, v))
    candidates.sort(key=lambda item: (-item[0], item[1], item[2]))

    used: set[int] = set()
    groups: list[PairGroup] = []
    for score, u, v in candidates:
        if u in used or v in used:
            continue
        used.update((u, v))
        groups.append(PairGroup(members=[u, v], score=score))

    leftover = [pid for pid in ordered if pid not in used]

    if len(leftover) % 2 == 1 and groups:
        solo = leftover.pop()
        best_index = 0
        best_score = float("-inf")
        for index, group in enumerate(groups):
            sims = [
                cosine(vectors[member], vectors[solo]) if member in vectors and solo in vectors else 0.0
                for member in group.members
            ]
            average = sum(sims) / len(sims)
            if average > best_score:
                best_score = average
                best_index = index
        groups[best_index].members.append(solo)

    for index in range(0, len(leftover) - 1, 2):
        groups.append(PairGroup(members=[leftover[index], leftover[index + 1]], score=0.0))
    if len(leftover) % 2 == 1:
        groups.append(PairGroup(members=[leftover[-1]], score=0.0))
    return groups


class MatchService:
    def __init__(self, bus: BroadcastBus) -> None:
        self._bus = bus

    async def compute(self, session, run_id: int) -> Pairing:
        state = await load_run_state(session, run_id)
        if not state.participants:
            raise ValueError("No participants")
        if not state.submissions:
            raise ValueError("No submissions for this run")

        groups = greedy_pairing(state.participant_ids, state.vectors)
        names = state.names
        for group in groups:
            group.names = [names.get(member, f"#{member}") for member in group.members]
        pairing = Pairing(pairs=groups)

        run = await session.get(Run, run_id)
        if run is not None:
            run.pairing_json = pairing.model_dump_json()
            session.add(run)
            await session.commit()
        else:
            _LOGGER.warning("Run %s disappeared before pairing could be saved", run_id)

        _LOGGER.info("Paired %d participants into %d groups for run %s", len(state.participants), len(groups), run_id)
        self._bus.publish("matches", pairing.model_dump())
        return pairing
