"""Dependency providers for process-wide engine state.

The bus, run registry and OpenAI service are built once in ``huddle.main`` and kept on
``app.state``; tests replace these providers through ``dependency_overrides``.
"""

from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException, Request, status

from huddle.services import BroadcastBus, OpenAIService, RunRegistry


def get_bus(request: Request) -> BroadcastBus:
    return request.app.state.bus


def get_run_registry(request: Request) -> RunRegistry:
    return request.app.state.run_registry


def get_openai_service(request: Request) -> OpenAIService:
    return request.app.state.openai


def raise_for_value_error(exc: ValueError) -> NoReturn:
    message = str(exc)
    if "not found" in message.lower():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message) from exc
