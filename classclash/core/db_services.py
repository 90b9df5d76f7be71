"""Database service class for the score table."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from classclash.core.db.schemas.scores import ScoreRecord
from classclash.modules.quiz.models import ScorePayload


class ScoreService:
    """Service for inserting, listing and deleting score records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_score(self, payload: ScorePayload) -> ScoreRecord:
        """Insert one record; id and created_at are assigned by the database."""
        record = ScoreRecord(
            name=payload.name,
            grade=payload.grade,
            category=payload.category,
            score=payload.score,
            total_questions=payload.total_questions,
            percentage=payload.percentage,
            grade_letter=payload.grade_letter,
        )
        self.session.add(record)
        await self.session.commit()
        await self.session.refresh(record)
        return record

    async def list_leaderboard(self) -> Sequence[ScoreRecord]:
        """All records: grade, category ascending; best and most recent first."""
        result = await self.session.execute(
            select(ScoreRecord).order_by(
                ScoreRecord.grade.asc(),
                ScoreRecord.category.asc(),
                ScoreRecord.score.desc(),
                ScoreRecord.created_at.desc(),
                ScoreRecord.id.desc(),
            )
        )
        return result.scalars().all()

    async def delete_score(self, score_id: int) -> bool:
        """Delete by id. Returns whether a row existed."""
        result = await self.session.execute(
            delete(ScoreRecord).where(ScoreRecord.id == score_id)
        )
        await self.session.commit()
        return bool(result.rowcount)
