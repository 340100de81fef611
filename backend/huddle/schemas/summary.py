"""Theme summary payloads.

Classes:
    Theme, Contradiction, Outlier, AgendaItem, SummaryStats: Summary building blocks.
    Summary: Strict internal result type every remote or heuristic output is coerced into.
    SummaryResponse: Reply of the summary endpoint.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class Theme(BaseModel):
    label: str
    why: Optional[str] = None
    members: list[int] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)


class Contradiction(BaseModel):
    a: int
    b: int
    explain: str = ""


class Outlier(BaseModel):
    participant_id: int
    explain: str = ""


class AgendaItem(BaseModel):
    title: str
    why: Optional[str] = None
    members: list[int] = Field(default_factory=list)


class SummaryStats(BaseModel):
    count: int = 0


class Summary(BaseModel):
    themes: list[Theme] = Field(default_factory=list)
    contradictions: list[Contradiction] = Field(default_factory=list)
    outliers: list[Outlier] = Field(default_factory=list)
    agenda: list[AgendaItem] = Field(default_factory=list)
    tone: Optional[str] = None
    stats: SummaryStats = Field(default_factory=SummaryStats)
    source: str = "heuristic"


class SummaryResponse(BaseModel):
    ok: bool = True
    summary: Summary
