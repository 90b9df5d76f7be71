from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from classclash.core.db.base import get_session
from classclash.core.db_services import ScoreService
from classclash.core.logging import get_logger
from classclash.modules.quiz.store import entry_from_record
from .schemas import CreateScoreRequest, LeaderboardItem, SuccessResponse


logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/api/scores",
    response_model=SuccessResponse,
    tags=["scores"],
)
async def create_score(
    req: CreateScoreRequest,
    session: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    try:
        await ScoreService(session).create_score(req)
    except SQLAlchemyError:
        logger.exception("Error saving score")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save score",
        )
    return SuccessResponse()


@router.get(
    "/api/leaderboard",
    response_model=list[LeaderboardItem],
    tags=["scores"],
)
async def get_leaderboard(
    session: AsyncSession = Depends(get_session),
) -> list[LeaderboardItem]:
    try:
        rows = await ScoreService(session).list_leaderboard()
    except SQLAlchemyError:
        logger.exception("Error fetching leaderboard")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch leaderboard",
        )
    return [LeaderboardItem(**entry_from_record(r).model_dump()) for r in rows]


@router.delete(
    "/api/scores/{score_id:int}",
    response_model=SuccessResponse,
    tags=["scores"],
)
async def delete_score(
    score_id: int,
    session: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    try:
        await ScoreService(session).delete_score(score_id)
    except SQLAlchemyError:
        logger.exception("Error deleting score")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete score",
        )
    return SuccessResponse()
