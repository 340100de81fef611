"""Exercise run ORM model.

Classes:
    Run: One session of the exercise plus the last saved summary and pairing snapshots.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


class Run(SQLModel, table=True):
    __tablename__ = "runs"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    # Stored as raw JSON text; readers must tolerate corrupt values.
    summary_json: Optional[str] = Field(default=None, sa_column=Column(Text))
    pairing_json: Optional[str] = Field(default=None, sa_column=Column(Text))
