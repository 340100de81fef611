"""Pydantic schemas for statement ingestion.

Classes:
    SubmitRequest, SubmitResponse: Body and reply of the submit endpoint.
    LineEvent: Payload broadcast for each accepted statement and in recent-line snapshots.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class SubmitRequest(BaseModel):
    participant_id: Optional[int] = None
    kind: str = Field(default="line", max_length=32)
    payload: Optional[dict[str, Any]] = None


class SubmitResponse(BaseModel):
    ok: bool = True
    submission_id: int


class LineEvent(BaseModel):
    submission_id: int
    participant_id: int
    text: str
