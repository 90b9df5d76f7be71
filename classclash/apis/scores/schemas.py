from __future__ import annotations

from pydantic import BaseModel

from classclash.modules.quiz.models import ScoreEntry, ScorePayload


class CreateScoreRequest(ScorePayload):
    pass


class SuccessResponse(BaseModel):
    success: bool = True


class LeaderboardItem(ScoreEntry):
    pass
