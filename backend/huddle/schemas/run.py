"""Pydantic schemas for run lifecycle endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class RunCurrentResponse(BaseModel):
    run_id: int


class RunResetResponse(BaseModel):
    ok: bool = True
    run_id: int
