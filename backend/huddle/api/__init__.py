"""API router composition for the backend.

The module assembles individual route groups into a single `api_router` that can be mounted on the app.
"""

from fastapi import APIRouter

from huddle.api.routes import engine_router, participants_router, runs_router, stream_router

api_router = APIRouter(prefix="/api")
api_router.include_router(participants_router)
api_router.include_router(runs_router)
api_router.include_router(engine_router)
api_router.include_router(stream_router)

__all__ = ["api_router"]
