"""Process-wide pointer to the active exercise run.

Classes:
    RunRegistry: Lazily resolves and caches the current run id; serialises read-or-create.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy import select

from huddle.models import Run

_LOGGER = logging.getLogger(__name__)


class RunRegistry:
    """Holds the current run id for one process.

    All access goes through :meth:`current_run_id` and :meth:`reset_run`, which share a
    single lock so that concurrent cold calls cannot each decide that no run exists.
    """

    def __init__(self) -> None:
        self._current_run_id: Optional[int] = None
        self._lock = asyncio.Lock()

    @property
    def cached_run_id(self) -> Optional[int]:
        return self._current_run_id

    async def current_run_id(self, session) -> int:
        if self._current_run_id is not None:
            return self._current_run_id
        async with self._lock:
            if self._current_run_id is not None:
                return self._current_run_id
            result = await session.exec(select(Run).order_by(Run.id.desc()).limit(1))
            latest = result.scalars().first()
            if latest is not None:
                self._current_run_id = latest.id
                return latest.id
            run = await self._insert_run(session)
            _LOGGER.info("No run found, created run %s", run.id)
            self._current_run_id = run.id
            return run.id

    async def reset_run(self, session) -> int:
        async with self._lock:
            run = await self._insert_run(session)
            _LOGGER.info("Reset active run from %s to %s", self._current_run_id, run.id)
            self._current_run_id = run.id
            return run.id

    @staticmethod
    async def _insert_run(session) -> Run:
        run = Run()
        session.add(run)
        await session.commit()
        await session.refresh(run)
        return run
