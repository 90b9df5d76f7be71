"""Score store clients used by quiz sessions.

``HttpScoreStore`` talks to the score API over HTTP (CLI, remote front-ends);
``DatabaseScoreStore`` goes straight to the database and is used by sessions
hosted inside the API process.
"""

from __future__ import annotations

from typing import Optional, Protocol

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from classclash.core.config import settings
from classclash.core.db.schemas.scores import ScoreRecord
from classclash.core.db_services import ScoreService
from classclash.modules.quiz.models import Question, ScoreEntry, ScorePayload


class ScoreStoreError(RuntimeError):
    pass


class QuestionSource(Protocol):
    async def get_questions(self, grade: str, category: str) -> list[Question]: ...


class ScoreStore(Protocol):
    async def submit_score(self, payload: ScorePayload) -> None: ...

    async def fetch_leaderboard(self) -> list[ScoreEntry]: ...

    async def delete_score(self, score_id: int) -> None: ...


def entry_from_record(record: ScoreRecord) -> ScoreEntry:
    return ScoreEntry(
        id=record.id,
        name=record.name,
        grade=record.grade,
        category=record.category,
        score=record.score,
        total_questions=record.total_questions,
        percentage=record.percentage,
        grade_letter=record.grade_letter,
        created_at=record.created_at.isoformat() if record.created_at else None,
    )


class HttpScoreStore:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = (base_url or settings.app.api_base_url).rstrip("/")
        self._client = client
        self._timeout = timeout

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            if self._client is not None:
                resp = await self._client.request(method, path, **kwargs)
            else:
                async with httpx.AsyncClient(
                    base_url=self.base_url, timeout=self._timeout
                ) as client:
                    resp = await client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.HTTPError as e:
            raise ScoreStoreError(f"{method} {path} failed: {e}") from e

    async def submit_score(self, payload: ScorePayload) -> None:
        await self._request("POST", "/api/scores", json=payload.model_dump())

    async def fetch_leaderboard(self) -> list[ScoreEntry]:
        resp = await self._request("GET", "/api/leaderboard")
        return [ScoreEntry.model_validate(row) for row in resp.json()]

    async def delete_score(self, score_id: int) -> None:
        await self._request("DELETE", f"/api/scores/{int(score_id)}")


class DatabaseScoreStore:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def submit_score(self, payload: ScorePayload) -> None:
        try:
            async with self.session_maker() as session:
                await ScoreService(session).create_score(payload)
        except SQLAlchemyError as e:
            raise ScoreStoreError(f"Failed to save score: {e}") from e

    async def fetch_leaderboard(self) -> list[ScoreEntry]:
        try:
            async with self.session_maker() as session:
                rows = await ScoreService(session).list_leaderboard()
                return [entry_from_record(r) for r in rows]
        except SQLAlchemyError as e:
            raise ScoreStoreError(f"Failed to fetch leaderboard: {e}") from e

    async def delete_score(self, score_id: int) -> None:
        try:
            async with self.session_maker() as session:
                await ScoreService(session).delete_score(score_id)
        except SQLAlchemyError as e:
            raise ScoreStoreError(f"Failed to delete score: {e}") from e
