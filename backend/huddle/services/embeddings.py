"""Embedding provider with a deterministic offline fallback.

Classes:
    EmbeddingProvider: Produces a usable vector for any text, never raising.

Functions:
    hash_embed(text, dim): Reproducible character-bucket embedding, L2-normalised.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from huddle.core.config import get_settings
from huddle.services.openai_client import OpenAIService

_LOGGER = logging.getLogger(__name__)

DEFAULT_FALLBACK_DIM = 64


def hash_embed(text: str, dim: int = DEFAULT_FALLBACK_DIM) -> list[float]:
    """Bucket every code point into ``ord(ch) % dim`` with weight ``ord(ch) % 13 - 6``."""

    vector = np.zeros(dim, dtype=np.float64)
    for char in text:
        code = ord(char)
        vector[code % dim] += (code % 13) - 6
    norm = float(np.linalg.norm(vector)) or 1.0
    return (vector / norm).tolist()


class EmbeddingProvider:
    def __init__(self, openai_service: Optional[OpenAIService] = None, *, fallback_dim: Optional[int] = None) -> None:
        self._openai = openai_service or OpenAIService()
        self._fallback_dim = fallback_dim or get_settings().fallback_embedding_dim

    @property
    def fallback_dim(self) -> int:
        return self._fallback_dim

    def fallback(self, text: str) -> list[float]:
        return hash_embed(text, self._fallback_dim)

    async def embed(self, text: str) -> list[float]:
        if not self._openai.is_configured:
            return self.fallback(text)
        try:
            vector = await self._openai.embed_text(text)
        except Exception as exc:
            _LOGGER.warning("Embedding service failed, using local hash embedding: %s", exc)
            return self.fallback(text)
        if not vector:
            _LOGGER.warning("Embedding service returned an empty vector, using local hash embedding")
            return self.fallback(text)
        return vector
