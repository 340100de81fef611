"""Async OpenAI client wrapper.

Classes:
    OpenAIService: Single-text embeddings and JSON-mode statement clustering with retry semantics.

Both calls raise on failure; callers own the local fallback.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Sequence

from openai import AsyncOpenAI
from tenacity import retry, stop_after_attempt, wait_exponential

from huddle.core.config import get_settings

CLUSTER_PROMPT = (
    "You cluster short statements written by workshop participants. "
    "Return ONLY a valid JSON object, no prose, with keys: "
    "themes (3-6 items: {\"label\": str, \"why\": str, \"members\": [participant ids], \"examples\": [short verbatim quotes]}), "
    "contradictions (0-3 items: {\"a\": id, \"b\": id, \"explain\": str}), "
    "outliers (0-2 items: {\"participant_id\": id, \"explain\": str}), "
    "agenda (2-4 items: {\"title\": str, \"why\": str, \"members\": [ids]}), "
    "tone (one short descriptor), stats ({\"count\": number of statements}). "
    "Only use ids that appear in the input."
)


class OpenAIService:
    def __init__(self, client: Optional[AsyncOpenAI] = None) -> None:
        settings = get_settings()
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
        if client is not None:
            self._client = client
        elif api_key:
            self._client = AsyncOpenAI(api_key=api_key)
        else:
            self._client = None
        self._settings = settings

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def embed_text(self, text: str, *, model: Optional[str] = None) -> list[float]:
        if self._client is None:
            raise RuntimeError("OpenAI client not configured. Set OPENAI_API_KEY.")

        payload = dict(model=model or self._settings.openai_embedding_model, input=text)
        response = await _retry_embeddings(self._client, payload)
        data = getattr(response, "data", None) or []
        if not data:
            raise ValueError("Embedding response contained no data")
        vector = getattr(data[0], "embedding", None)
        if not isinstance(vector, list) or not vector:
            raise ValueError("Embedding response contained no vector")
        return [float(value) for value in vector]

    async def cluster_statements(
        self,
        items: Sequence[dict[str, Any]],
        *,
        model: Optional[str] = None,
    ) -> dict[str, Any]:
        if self._client is None:
            raise RuntimeError("OpenAI client not configured. Set OPENAI_API_KEY.")

        payload = dict(
            model=model or self._settings.openai_summary_model,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": CLUSTER_PROMPT},
                {"role": "user", "content": json.dumps(list(items))},
            ],
            temperature=self._settings.summary_temperature,
            n=1,
        )
        response = await _retry_chat(self._client, payload)
        content = getattr(response.choices[0].message, "content", "") or ""
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError("Cluster response is not a JSON object")
        return data


@retry(wait=wait_exponential(multiplier=0.5, min=0.5, max=4), stop=stop_after_attempt(3), reraise=True)
async def _retry_chat(client: AsyncOpenAI, payload: dict[str, Any]):
    return await client.chat.completions.create(**payload)


@retry(wait=wait_exponential(multiplier=0.5, min=0.5, max=4), stop=stop_after_attempt(3), reraise=True)
async def _retry_embeddings(client: AsyncOpenAI, payload: dict[str, Any]):
    return await client.embeddings.create(**payload)
