from __future__ import annotations

import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from classclash.apis.deps import get_game_settings, get_question_source, get_score_store
from classclash.core.config import GameSettings
from classclash.core.logging import get_logger
from classclash.modules.quiz.machine import (
    AnswerSubmitted,
    BackToGrade,
    BeginBattle,
    CategorySelected,
    DeleteRequested,
    DiscardRecord,
    GoHome,
    GradeSelected,
    LeaderboardFilterChanged,
    NameEntered,
    OpenSaveForm,
    PinSubmitted,
    Restart,
    SaveFormEdited,
    SaveRequested,
    Session,
    StartClicked,
    ViewLeaderboard,
)
from classclash.modules.quiz.state import QuizSessionRunner
from classclash.modules.quiz.store import QuestionSource, ScoreStore


logger = get_logger(__name__)
router = APIRouter()


def parse_client_message(msg: Any) -> Optional[object]:
    """Map a client message ``{"type": ..., ...}`` onto a session event."""
    if not isinstance(msg, dict):
        return None
    mtype = msg.get("type")
    try:
        if mtype == "pin":
            return PinSubmitted(str(msg.get("pin", "")))
        if mtype == "start":
            return StartClicked()
        if mtype == "name":
            return NameEntered(str(msg.get("name", "")))
        if mtype == "grade":
            return GradeSelected(str(msg["grade"]))
        if mtype == "category":
            return CategorySelected(str(msg["category"]))
        if mtype == "back":
            return BackToGrade()
        if mtype == "begin":
            return BeginBattle()
        if mtype == "answer":
            index = msg.get("index")
            return AnswerSubmitted(
                str(msg["option"]), int(index) if index is not None else None
            )
        if mtype == "save":
            return OpenSaveForm()
        if mtype == "edit":
            return SaveFormEdited(
                name=msg.get("name"),
                grade=(str(msg["grade"]) if msg.get("grade") is not None else None),
                category=msg.get("category"),
            )
        if mtype == "submit":
            return SaveRequested()
        if mtype == "discard":
            return DiscardRecord()
        if mtype == "leaderboard":
            return ViewLeaderboard()
        if mtype == "filter":
            return LeaderboardFilterChanged(str(msg.get("value", "all")))
        if mtype == "delete":
            return DeleteRequested(int(msg["id"]))
        if mtype == "home":
            return GoHome()
        if mtype == "restart":
            return Restart()
    except (KeyError, TypeError, ValueError):
        return None
    return None


@router.websocket("/ws/play")
async def ws_play(
    websocket: WebSocket,
    questions: QuestionSource = Depends(get_question_source),
    store: ScoreStore = Depends(get_score_store),
    game: GameSettings = Depends(get_game_settings),
) -> None:
    await websocket.accept()

    async def send_snapshot(session: Session) -> None:
        await websocket.send_json({"type": "session", "data": session.public_view()})

    runner = QuizSessionRunner(
        questions=questions, store=store, game=game, on_change=send_snapshot
    )
    logger.info("Play session connected", extra={"session_id": runner.id})
    await runner.start()
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except ValueError:
                msg = None
            event = parse_client_message(msg)
            if event is None:
                logger.debug(f"Ignoring client message: {msg!r}")
                continue
            runner.dispatch(event)
    except WebSocketDisconnect:
        logger.info("Play session disconnected", extra={"session_id": runner.id})
    finally:
        await runner.stop()
