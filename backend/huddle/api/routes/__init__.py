"""Route exports for the API layer."""

from .engine import router as engine_router
from .participants import router as participants_router
from .runs import router as runs_router
from .stream import router as stream_router

__all__ = ["engine_router", "participants_router", "runs_router", "stream_router"]
