"""Pydantic schemas for joining the exercise."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class JoinRequest(BaseModel):
    name: str = Field(max_length=120)

    @field_validator("name")
    @classmethod
    def trim_name(cls, value: str) -> str:
        return value.strip()


class JoinResponse(BaseModel):
    participant_id: int
