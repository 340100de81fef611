"""Convenience exports for API schemas.

Re-exports the pydantic models used across the backend so consumers can import from one module.
"""

from .participant import JoinRequest, JoinResponse
from .submission import LineEvent, SubmitRequest, SubmitResponse
from .run import RunCurrentResponse, RunResetResponse
from .graph import GraphEdge, GraphNode, SimilarityGraph
from .matching import MatchResponse, PairGroup, Pairing
from .summary import (
    AgendaItem,
    Contradiction,
    Outlier,
    Summary,
    SummaryResponse,
    SummaryStats,
    Theme,
)

__all__ = [
    "JoinRequest",
    "JoinResponse",
    "SubmitRequest",
    "SubmitResponse",
    "LineEvent",
    "RunCurrentResponse",
    "RunResetResponse",
    "GraphNode",
    "GraphEdge",
    "SimilarityGraph",
    "PairGroup",
    "Pairing",
    "MatchResponse",
    "Theme",
    "Contradiction",
    "Outlier",
    "AgendaItem",
    "SummaryStats",
    "Summary",
    "SummaryResponse",
]
