import pytest
from fastapi.testclient import TestClient

from classclash.apis.deps import get_game_settings, get_question_source, get_score_store
from classclash.apis.play.main import parse_client_message
from classclash.modules.quiz.machine import (
    AnswerSubmitted,
    DeleteRequested,
    LeaderboardFilterChanged,
    PinSubmitted,
    SaveFormEdited,
)
from tests.helpers import FakeQuestionSource, FakeScoreStore


@pytest.mark.parametrize(
    "msg,event",
    [
        ({"type": "pin", "pin": "3630304"}, PinSubmitted("3630304")),
        ({"type": "answer", "option": "B", "index": 3}, AnswerSubmitted("B", 3)),
        ({"type": "answer", "option": "B"}, AnswerSubmitted("B", None)),
        ({"type": "filter", "value": "8"}, LeaderboardFilterChanged("8")),
        ({"type": "delete", "id": "7"}, DeleteRequested(7)),
        ({"type": "edit", "grade": 9}, SaveFormEdited(grade="9")),
    ],
)
def test_parse_client_message(msg, event):
    assert parse_client_message(msg) == event


@pytest.mark.parametrize(
    "msg",
    [None, "pin", [], {"type": "unknown"}, {"type": "delete", "id": "x"}, {"type": "grade"}],
)
def test_parse_client_message_rejects_garbage(msg):
    assert parse_client_message(msg) is None


def receive_step(ws, step, limit=20):
    for _ in range(limit):
        msg = ws.receive_json()
        assert msg["type"] == "session"
        if msg["data"]["step"] == step:
            return msg["data"]
    raise AssertionError(f"never reached {step}")


@pytest.fixture
def play_app():
    from main import create_app

    return create_app()


def test_play_socket_walks_through_gate(play_app, fast_game):
    app = play_app
    app.dependency_overrides[get_question_source] = lambda: FakeQuestionSource()
    app.dependency_overrides[get_score_store] = lambda: FakeScoreStore()
    app.dependency_overrides[get_game_settings] = lambda: fast_game

    client = TestClient(app)
    with client.websocket_connect("/ws/play") as ws:
        receive_step(ws, "pin")
        ws.send_text("not json")
        ws.send_json({"type": "bogus"})
        ws.send_json({"type": "pin", "pin": fast_game.pin})
        data = receive_step(ws, "welcome")
        assert data["pin_error"] is False

        ws.send_json({"type": "start"})
        ws.send_json({"type": "name", "name": "Ada"})
        ws.send_json({"type": "grade", "grade": "5"})
        data = receive_step(ws, "category")
        enabled = {o["category"]: o["enabled"] for o in data["category_options"]}
        assert enabled["Advanced Level"] is False
