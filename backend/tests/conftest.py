import json
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from huddle.api.deps import get_bus, get_openai_service, get_run_registry
from huddle.db.session import enable_sqlite_foreign_keys, get_session, get_session_factory
from huddle.main import app
from huddle.models import EmbeddingRecord, Participant, Run, Submission
from huddle.services import BroadcastBus, RunRegistry


class FakeOpenAIService:
    def __init__(
        self,
        *,
        configured: bool = False,
        vectors: dict[str, list[float]] | None = None,
        cluster_response: Any = None,
        fail: bool = False,
    ) -> None:
        self.configured = configured
        self.vectors = vectors or {}
        self.cluster_response = cluster_response
        self.fail = fail
        self.embed_calls: list[str] = []
        self.cluster_calls: list[list[dict]] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def embed_text(self, text: str, **_: object) -> list[float]:
        self.embed_calls.append(text)
        if self.fail:
            raise RuntimeError("embedding service unavailable")
        return self.vectors.get(text, [])

    async def cluster_statements(self, items, **_: object) -> dict:
        self.cluster_calls.append(list(items))
        if self.fail:
            raise RuntimeError("summary service unavailable")
        if isinstance(self.cluster_response, Exception):
            raise self.cluster_response
        return self.cluster_response


class RecordingSink:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def push(self, message: str) -> bool:
        self.messages.append(message)
        return True

    @property
    def events(self) -> list[tuple[str, Any]]:
        return [parse_sse(message) for message in self.messages]


class BrokenSink:
    def __init__(self) -> None:
        self.attempts = 0

    def push(self, message: str) -> bool:
        self.attempts += 1
        raise BrokenPipeError("client went away")


def parse_sse(message: str) -> tuple[str, Any]:
    event = ""
    data = None
    for line in message.strip().splitlines():
        if line.startswith("event: "):
            event = line[len("event: "):]
        elif line.startswith("data: "):
            data = json.loads(line[len("data: "):])
    return event, data


async def seed_statements(
    session: AsyncSession,
    run_id: int,
    statements: dict[str, list[tuple[str, list[float]]]],
) -> dict[str, int]:
    """Create participants with submissions and stored vectors; returns name -> id."""

    ids: dict[str, int] = {}
    for name, entries in statements.items():
        participant = Participant(name=name)
        session.add(participant)
        await session.flush()
        ids[name] = participant.id
        for text, vector in entries:
            submission = Submission(
                run_id=run_id,
                participant_id=participant.id,
                payload_json=json.dumps({"text": text}),
            )
            session.add(submission)
            await session.flush()
            session.add(EmbeddingRecord.from_vector(submission.id, vector, {"clean_text": text}))
    await session.commit()
    return ids


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as async_session:
        yield async_session


@pytest_asyncio.fixture()
async def run(session: AsyncSession) -> Run:
    run = Run()
    session.add(run)
    await session.commit()
    await session.refresh(run)
    return run


@pytest.fixture()
def bus() -> BroadcastBus:
    return BroadcastBus()


@pytest.fixture()
def registry() -> RunRegistry:
    return RunRegistry()


@pytest.fixture()
def openai_stub() -> FakeOpenAIService:
    return FakeOpenAIService()


@pytest_asyncio.fixture()
async def client(session, session_factory, bus, registry, openai_stub) -> AsyncGenerator[AsyncClient, None]:
    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_bus] = lambda: bus
    app.dependency_overrides[get_run_registry] = lambda: registry
    app.dependency_overrides[get_openai_service] = lambda: openai_stub
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()
