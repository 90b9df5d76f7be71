import pytest

from classclash.modules.quiz.machine import Session
from classclash.modules.quiz.models import Step
from classclash.modules.quiz.scoring import (
    FALLBACK_TOTAL_QUESTIONS,
    build_score_payload,
    grade_letter,
    percentage,
)
from tests.helpers import build_questions


@pytest.mark.parametrize(
    "pct,letter",
    [
        (100.0, "A+"),
        (90.0, "A+"),
        (89.9, "A"),
        (80.0, "A"),
        (79.99, "B"),
        (70.0, "B"),
        (69.9, "C"),
        (60.0, "C"),
        (59.9, "D"),
        (50.0, "D"),
        (49.9, "F"),
        (0.0, "F"),
    ],
)
def test_grade_letter_boundaries_are_inclusive_lower(pct, letter):
    assert grade_letter(pct) == letter


def test_grade_letter_covers_every_whole_percentage():
    letters = [grade_letter(p) for p in range(0, 101)]
    assert set(letters) == {"A+", "A", "B", "C", "D", "F"}
    # Monotonic: a higher percentage never gets a worse letter
    order = ["F", "D", "C", "B", "A", "A+"]
    ranks = [order.index(letter) for letter in letters]
    assert ranks == sorted(ranks)


def test_nine_of_twelve_is_a_b():
    pct = percentage(9, 12)
    assert pct == 75.0
    assert grade_letter(pct) == "B"


def test_zero_total_uses_fallback_total():
    assert percentage(6, 0) == 6 / FALLBACK_TOTAL_QUESTIONS * 100


def test_build_score_payload_from_session():
    session = Session(
        step=Step.SAVE_FORM,
        player_name="  Ada  ",
        grade="8",
        category="Advanced Level",
        questions=build_questions(12),
        current_index=12,
        score=11,
    )
    payload = build_score_payload(session)
    assert payload.name == "Ada"
    assert payload.grade == "8"
    assert payload.category == "Advanced Level"
    assert payload.score == 11
    assert payload.total_questions == 12
    assert payload.percentage == pytest.approx(91.666, rel=1e-3)
    assert payload.grade_letter == "A+"


def test_build_score_payload_without_questions():
    session = Session(player_name="Bo", grade="5", category="Set 1", score=0)
    payload = build_score_payload(session)
    assert payload.total_questions == FALLBACK_TOTAL_QUESTIONS
    assert payload.percentage == 0.0
    assert payload.grade_letter == "F"
