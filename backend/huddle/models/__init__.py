"""Convenience exports for ORM models.

Surface frequently used SQLModel classes so calling code can import them from a single module.
"""

from .participant import Participant
from .run import Run
from .submission import Submission
from .embedding import EmbeddingRecord

__all__ = [
    "Participant",
    "Run",
    "Submission",
    "EmbeddingRecord",
]
