"""Join and submit endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from huddle.api.deps import get_bus, get_openai_service, get_run_registry, raise_for_value_error
from huddle.db.session import get_session
from huddle.schemas import JoinRequest, JoinResponse, SubmitRequest, SubmitResponse
from huddle.services import (
    BroadcastBus,
    EmbeddingProvider,
    OpenAIService,
    ParticipantService,
    RunRegistry,
    SubmissionService,
)

router = APIRouter(tags=["participants"])


@router.post("/join", response_model=JoinResponse)
async def join(
    payload: JoinRequest,
    session: AsyncSession = Depends(get_session),
    bus: BroadcastBus = Depends(get_bus),
) -> JoinResponse:
    service = ParticipantService(bus)
    try:
        participant = await service.join(session, payload.name)
    except ValueError as exc:
        raise_for_value_error(exc)
    return JoinResponse(participant_id=participant.id)


@router.post("/submit", response_model=SubmitResponse)
async def submit(
    payload: SubmitRequest,
    session: AsyncSession = Depends(get_session),
    bus: BroadcastBus = Depends(get_bus),
    registry: RunRegistry = Depends(get_run_registry),
    openai: OpenAIService = Depends(get_openai_service),
) -> SubmitResponse:
    service = SubmissionService(bus, registry, embeddings=EmbeddingProvider(openai))
    try:
        submission = await service.submit(
            session,
            participant_id=payload.participant_id,
            payload=payload.payload,
            kind=payload.kind,
        )
    except ValueError as exc:
        raise_for_value_error(exc)
    return SubmitResponse(submission_id=submission.id)
