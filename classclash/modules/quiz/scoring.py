"""Percentage and grade-letter computation for finished sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from classclash.modules.quiz.models import ScorePayload

if TYPE_CHECKING:
    from classclash.modules.quiz.machine import Session


FALLBACK_TOTAL_QUESTIONS = 12

GRADE_LETTERS: tuple[tuple[float, str], ...] = (
    (90, "A+"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
)


def percentage(score: int, total_questions: int) -> float:
    total = total_questions or FALLBACK_TOTAL_QUESTIONS
    return score / total * 100


def grade_letter(pct: float) -> str:
    for lower, letter in GRADE_LETTERS:
        if pct >= lower:
            return letter
    return "F"


def build_score_payload(session: "Session") -> ScorePayload:
    total = len(session.questions) or FALLBACK_TOTAL_QUESTIONS
    pct = percentage(session.score, total)
    return ScorePayload(
        name=session.player_name.strip(),
        grade=session.grade or "",
        category=session.category or "",
        score=session.score,
        total_questions=total,
        percentage=pct,
        grade_letter=grade_letter(pct),
    )
