"""Graph, pairing and summary triggers for the current run."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from huddle.api.deps import get_bus, get_openai_service, get_run_registry, raise_for_value_error
from huddle.db.session import get_session
from huddle.schemas import MatchResponse, SimilarityGraph, SummaryResponse
from huddle.services import (
    BroadcastBus,
    GraphService,
    MatchService,
    OpenAIService,
    RunRegistry,
    SummaryService,
)

router = APIRouter(tags=["engine"])


@router.get("/graph", response_model=SimilarityGraph)
async def get_graph(
    session: AsyncSession = Depends(get_session),
    bus: BroadcastBus = Depends(get_bus),
    registry: RunRegistry = Depends(get_run_registry),
) -> SimilarityGraph:
    run_id = await registry.current_run_id(session)
    return await GraphService(bus).build_and_broadcast(session, run_id)


@router.post("/match", response_model=MatchResponse)
async def match(
    session: AsyncSession = Depends(get_session),
    bus: BroadcastBus = Depends(get_bus),
    registry: RunRegistry = Depends(get_run_registry),
) -> MatchResponse:
    run_id = await registry.current_run_id(session)
    try:
        pairing = await MatchService(bus).compute(session, run_id)
    except ValueError as exc:
        raise_for_value_error(exc)
    return MatchResponse(pairs=pairing.pairs)


@router.post("/summary", response_model=SummaryResponse)
async def summary(
    session: AsyncSession = Depends(get_session),
    bus: BroadcastBus = Depends(get_bus),
    registry: RunRegistry = Depends(get_run_registry),
    openai: OpenAIService = Depends(get_openai_service),
) -> SummaryResponse:
    run_id = await registry.current_run_id(session)
    try:
        result = await SummaryService(bus, openai).summarise(session, run_id)
    except ValueError as exc:
        raise_for_value_error(exc)
    return SummaryResponse(summary=result)
