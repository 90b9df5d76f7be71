"""Fakes and builders shared by the test modules."""

from __future__ import annotations

import asyncio
from typing import Optional

from classclash.modules.quiz.models import Question, ScoreEntry, ScorePayload
from classclash.modules.quiz.store import ScoreStoreError


def build_questions(n: int = 12) -> tuple[Question, ...]:
    return tuple(
        Question(
            text=f"Question {i + 1}",
            options=("right", "wrong 1", "wrong 2", "wrong 3"),
            correct_answer="right",
        )
        for i in range(n)
    )


class FakeQuestionSource:
    def __init__(self, n: int = 12, *, fail: bool = False) -> None:
        self.n = n
        self.fail = fail
        self.calls: list[tuple[str, str]] = []
        self.gate: Optional[asyncio.Event] = None

    async def get_questions(self, grade: str, category: str) -> list[Question]:
        self.calls.append((grade, category))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("question service unavailable")
        return list(build_questions(self.n))


class FakeScoreStore:
    def __init__(self) -> None:
        self.rows: list[ScoreEntry] = []
        self.next_id = 1
        self.fail_submit = False
        self.fail_delete = False
        self.fail_fetch = False
        self.calls: list[str] = []

    def add(self, **fields) -> ScoreEntry:
        entry = ScoreEntry(id=self.next_id, **fields)
        self.next_id += 1
        self.rows.append(entry)
        return entry

    async def submit_score(self, payload: ScorePayload) -> None:
        self.calls.append("submit")
        if self.fail_submit:
            raise ScoreStoreError("submit failed")
        self.add(**payload.model_dump())

    async def fetch_leaderboard(self) -> list[ScoreEntry]:
        self.calls.append("fetch")
        if self.fail_fetch:
            raise ScoreStoreError("fetch failed")
        return sorted(
            self.rows, key=lambda r: (r.grade, r.category, -r.score, -r.id)
        )

    async def delete_score(self, score_id: int) -> None:
        self.calls.append("delete")
        if self.fail_delete:
            raise ScoreStoreError("delete failed")
        self.rows = [r for r in self.rows if r.id != score_id]


def entry(score_id: int, grade: str = "8", score: int = 5, **fields) -> ScoreEntry:
    data = {
        "name": f"player {score_id}",
        "grade": grade,
        "category": "Set 1",
        "score": score,
        "total_questions": 12,
        "percentage": score / 12 * 100,
        "grade_letter": "F",
    }
    data.update(fields)
    return ScoreEntry(id=score_id, **data)
