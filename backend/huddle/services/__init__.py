"""Service layer exports.

Expose the engine components for easy importing.
"""

from .openai_client import OpenAIService
from .embeddings import EmbeddingProvider, hash_embed
from .broadcast import BroadcastBus, QueueSink, format_sse
from .run_registry import RunRegistry
from .graph import GraphService, build_similarity_graph
from .matching import MatchService, greedy_pairing
from .summary import SummaryService, coerce_summary, heuristic_summary
from .submissions import CountService, ParticipantService, SubmissionService
from .stream import StreamService

__all__ = [
    "OpenAIService",
    "EmbeddingProvider",
    "hash_embed",
    "BroadcastBus",
    "QueueSink",
    "format_sse",
    "RunRegistry",
    "GraphService",
    "build_similarity_graph",
    "MatchService",
    "greedy_pairing",
    "SummaryService",
    "coerce_summary",
    "heuristic_summary",
    "CountService",
    "ParticipantService",
    "SubmissionService",
    "StreamService",
]
