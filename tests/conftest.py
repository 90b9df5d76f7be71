from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from classclash.core.config import GameSettings, settings
from classclash.core.db import schemas  # noqa: F401
from classclash.core.db.base import Base, get_session
from tests.helpers import FakeQuestionSource, FakeScoreStore


@pytest.fixture
def game() -> GameSettings:
    return settings.game.model_copy(
        update={
            "pin": "3630304",
            "question_count": 12,
            "time_budget_sec": 60,
            "tick_sec": 1.0,
            "splash_delay_sec": 3.0,
            "pin_error_sec": 1.0,
            "loading_delay_sec": 2.0,
        }
    )


@pytest.fixture
def fast_game(game: GameSettings) -> GameSettings:
    return game.model_copy(
        update={
            "tick_sec": 0.01,
            "splash_delay_sec": 0.0,
            "pin_error_sec": 0.05,
            "loading_delay_sec": 0.0,
        }
    )


@pytest.fixture
def question_source() -> FakeQuestionSource:
    return FakeQuestionSource()


@pytest.fixture
def score_store() -> FakeScoreStore:
    return FakeScoreStore()


@pytest.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def app(session_maker):
    from main import create_app

    application = create_app()

    async def _session_override():
        async with session_maker() as session:
            yield session
            await session.commit()

    application.dependency_overrides[get_session] = _session_override
    return application


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c


