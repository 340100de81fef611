"""Submission embedding persistence model.

Classes:
    EmbeddingRecord: The vector and normalised payload produced for exactly one submission.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from sqlalchemy import JSON, Column, ForeignKey, Integer, LargeBinary
from sqlmodel import Field, SQLModel


class EmbeddingRecord(SQLModel, table=True):
    __tablename__ = "normalised"

    submission_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("submissions.id", ondelete="CASCADE"),
            primary_key=True,
        )
    )
    data_json: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    dim: int
    vector: bytes = Field(sa_column=Column(LargeBinary))

    @classmethod
    def from_vector(cls, submission_id: int, vector: list[float], data: dict[str, Any]) -> "EmbeddingRecord":
        array = np.asarray(vector, dtype=np.float32)
        return cls(submission_id=submission_id, data_json=data, dim=int(array.shape[0]), vector=array.tobytes())

    def as_list(self) -> list[float]:
        if not self.vector:
            return []
        return np.frombuffer(self.vector, dtype=np.float32).astype(float).tolist()
