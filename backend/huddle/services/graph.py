"""Similarity graph over participants for the current run.

Functions:
    build_similarity_graph(...): Pure top-K/threshold graph with a nearest-neighbour fallback.

Classes:
    GraphService: Loads the run state, builds the graph and broadcasts it as ``graph``.

Cost is O(n^2 * d) per build, which is fine for workshop-sized groups but not for
more than a few hundred participants.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from huddle.core.config import get_settings
from huddle.models import Participant
from huddle.schemas import GraphEdge, GraphNode, SimilarityGraph
from huddle.services.broadcast import BroadcastBus
from huddle.services.run_state import load_run_state
from huddle.utils.vectors import cosine

_LOGGER = logging.getLogger(__name__)


def _edge_key(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)


def build_similarity_graph(
    participants: Sequence[Participant],
    latest_text: Mapping[int, str],
    vectors: Mapping[int, Sequence[float]],
    *,
    threshold: float,
    top_k: int,
) -> SimilarityGraph:
    nodes = [
        GraphNode(id=participant.id, label=participant.name, text=latest_text.get(participant.id, ""))
        for participant in participants
    ]
    ids = [node.id for node in nodes if node.id in vectors]

    # Similarity rows sorted best-first; ties keep participant id order.
    rows: dict[int, list[tuple[int, float]]] = {}
    for source in ids:
        row = [(target, cosine(vectors[source], vectors[target])) for target in ids if target != source]
        row.sort(key=lambda item: -item[1])
        rows[source] = row

    edges: dict[tuple[int, int], float] = {}
    for source in ids:
        for target, similarity in rows[source][: max(top_k, 0)]:
            if similarity < threshold:
                continue
            edges.setdefault(_edge_key(source, target), similarity)

    if not edges and len(ids) >= 2:
        for source in ids:
            target, similarity = rows[source][0]
            edges.setdefault(_edge_key(source, target), similarity)

    return SimilarityGraph(
        nodes=nodes,
        edges=[GraphEdge(source=a, target=b, weight=weight) for (a, b), weight in edges.items()],
    )


class GraphService:
    def __init__(
        self,
        bus: BroadcastBus,
        *,
        threshold: Optional[float] = None,
        top_k: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._bus = bus
        self._threshold = settings.graph_similarity_threshold if threshold is None else threshold
        self._top_k = settings.graph_top_k if top_k is None else top_k

    async def build(self, session, run_id: int) -> SimilarityGraph:
        state = await load_run_state(session, run_id)
        graph = build_similarity_graph(
            state.participants,
            state.latest_text,
            state.vectors,
            threshold=self._threshold,
            top_k=self._top_k,
        )
        _LOGGER.debug("Built graph for run %s: %d nodes, %d edges", run_id, len(graph.nodes), len(graph.edges))
        return graph

    async def build_and_broadcast(self, session, run_id: int) -> SimilarityGraph:
        graph = await self.build(session, run_id)
        self._bus.publish("graph", graph.model_dump())
        return graph
