from __future__ import annotations

from classclash.core.config import GameSettings, settings
from classclash.core.db.base import async_session_maker
from classclash.modules.quiz.generator import GeminiQuestionSource
from classclash.modules.quiz.store import DatabaseScoreStore, QuestionSource, ScoreStore


def get_question_source() -> QuestionSource:
    return GeminiQuestionSource()


def get_score_store() -> ScoreStore:
    return DatabaseScoreStore(async_session_maker)


def get_game_settings() -> GameSettings:
    return settings.game
