"""Statement text helpers.

Functions:
    collapse_whitespace(text): Collapse runs of whitespace into single spaces.
    extract_text(payload): Derive the display text of a submission payload.
    normalise_line(payload): Build the normalised record stored next to an embedding.
"""

from __future__ import annotations

import json
from typing import Any

_LEGACY_FIELDS = ("fact", "constraint", "hope")


def collapse_whitespace(text: str) -> str:
    if not text:
        return ""
    return " ".join(text.split())


def extract_text(payload: Any) -> str:
    """Prefer an explicit ``text`` field, else join the legacy fact/constraint/hope triad."""

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError:
            return payload.strip()
    if not isinstance(payload, dict):
        return ""
    text = payload.get("text")
    if isinstance(text, str):
        return text.strip()
    parts = [str(payload[field]) for field in _LEGACY_FIELDS if payload.get(field)]
    return " ".join(parts).strip()


def normalise_line(payload: Any) -> dict[str, Any]:
    return {
        "clean_text": collapse_whitespace(extract_text(payload)),
        "tags": [],
        "stances": {},
        "red_flags": [],
    }
