"""Pydantic models for ClassClash gameplay and scoring.

Simple frozen schemas shared by the session state machine, the question
generator and the score API. The SQL table lives under
classclash.core.db.schemas.scores.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


GRADES: tuple[str, ...] = ("4", "5", "6", "7", "8", "9", "10")
CATEGORIES: tuple[str, ...] = ("Set 1", "Set 2", "Advanced Level")
ADVANCED_CATEGORY = "Advanced Level"
ADVANCED_ELIGIBLE_GRADES: frozenset[str] = frozenset({"8", "9", "10"})
OPTIONS_PER_QUESTION = 4


class Step(str, Enum):
    SPLASH = "splash"
    PIN = "pin"
    WELCOME = "welcome"
    NAME = "name"
    GRADE = "grade"
    CATEGORY = "category"
    RULES = "rules"
    LOADING = "loading"
    GAME = "game"
    RESULT = "result"
    SAVE_FORM = "save-form"
    DASHBOARD = "dashboard"


class Question(BaseModel):
    """A single multiple-choice question."""

    model_config = ConfigDict(frozen=True)

    text: str
    options: tuple[str, ...]
    correct_answer: str

    @model_validator(mode="after")
    def _check_options(self) -> "Question":
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValueError(f"expected {OPTIONS_PER_QUESTION} options")
        if len(set(self.options)) != len(self.options):
            raise ValueError("options must be distinct")
        if any(not o.strip() for o in self.options):
            raise ValueError("options must be non-empty")
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of the options")
        return self


class ScorePayload(BaseModel):
    """Body of a score submission."""

    name: str = Field(..., min_length=1)
    grade: str
    category: str
    score: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=0)
    percentage: float
    grade_letter: str


class ScoreEntry(BaseModel):
    """One leaderboard row as returned by the score API."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    grade: str
    category: str
    score: int
    total_questions: int
    percentage: float
    grade_letter: str
    created_at: Optional[str] = None


class CategoryOption(BaseModel):
    category: str
    enabled: bool


def is_category_eligible(grade: Optional[str], category: str) -> bool:
    if category not in CATEGORIES:
        return False
    if category == ADVANCED_CATEGORY:
        return grade in ADVANCED_ELIGIBLE_GRADES
    return True


def category_options(grade: Optional[str]) -> list[CategoryOption]:
    """Every category with whether it can be picked for ``grade``."""
    return [
        CategoryOption(category=c, enabled=is_category_eligible(grade, c))
        for c in CATEGORIES
    ]
