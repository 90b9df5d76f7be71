import pytest

from classclash.modules.quiz.models import ScorePayload
from classclash.modules.quiz.store import DatabaseScoreStore, HttpScoreStore, ScoreStoreError


def payload(name: str, score: int) -> ScorePayload:
    return ScorePayload(
        name=name,
        grade="6",
        category="Set 1",
        score=score,
        total_questions=12,
        percentage=score / 12 * 100,
        grade_letter="F",
    )


async def test_database_store_round_trip(session_maker):
    store = DatabaseScoreStore(session_maker)
    await store.submit_score(payload("a", 2))
    await store.submit_score(payload("b", 5))

    rows = await store.fetch_leaderboard()
    assert [r.name for r in rows] == ["b", "a"]

    await store.delete_score(rows[0].id)
    assert [r.name for r in await store.fetch_leaderboard()] == ["a"]


async def test_http_store_talks_to_api(client):
    store = HttpScoreStore(client=client)
    await store.submit_score(payload("c", 8))
    [row] = await store.fetch_leaderboard()
    assert row.name == "c"

    await store.delete_score(row.id)
    assert await store.fetch_leaderboard() == []


async def test_http_store_wraps_errors(app):
    from httpx import ASGITransport, AsyncClient

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as c:
        store = HttpScoreStore(client=c)
        with pytest.raises(ScoreStoreError):
            await store._request("GET", "/api/missing")
