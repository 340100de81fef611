"""Pairing payloads produced by the match engine."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PairGroup(BaseModel):
    members: list[int]
    score: float = 0.0
    names: list[str] = Field(default_factory=list)


class Pairing(BaseModel):
    pairs: list[PairGroup] = Field(default_factory=list)


class MatchResponse(Pairing):
    ok: bool = True
