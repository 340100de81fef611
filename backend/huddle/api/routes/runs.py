"""Current-run lookup and reset endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from huddle.api.deps import get_run_registry
from huddle.db.session import get_session
from huddle.schemas import RunCurrentResponse, RunResetResponse
from huddle.services import RunRegistry

router = APIRouter(prefix="/run", tags=["runs"])


@router.get("/current", response_model=RunCurrentResponse)
async def current_run(
    session: AsyncSession = Depends(get_session),
    registry: RunRegistry = Depends(get_run_registry),
) -> RunCurrentResponse:
    return RunCurrentResponse(run_id=await registry.current_run_id(session))


@router.post("/reset", response_model=RunResetResponse)
async def reset_run(
    session: AsyncSession = Depends(get_session),
    registry: RunRegistry = Depends(get_run_registry),
) -> RunResetResponse:
    return RunResetResponse(run_id=await registry.reset_run(session))
