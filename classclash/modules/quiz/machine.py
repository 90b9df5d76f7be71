"""Screen-to-screen state machine for one ClassClash player.

``transition(session, event, game)`` is a pure reducer: it returns the next
immutable ``Session`` plus a list of effects describing asynchronous work
(timers, question fetch, score-store calls). The runner in
``classclash.modules.quiz.state`` performs the effects and feeds their
completions back in as events.

Work tied to a screen carries the ``generation`` it was issued under. Every
step change bumps the generation, so a timer tick, loading delay or question
fetch that completes after the player has moved on is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict

from classclash.core.config import GameSettings
from classclash.modules.quiz.leaderboard import ALL_GRADES, LeaderboardView
from classclash.modules.quiz.models import (
    CATEGORIES,
    GRADES,
    Question,
    ScoreEntry,
    ScorePayload,
    Step,
    category_options,
    is_category_eligible,
)
from classclash.modules.quiz.scoring import build_score_payload


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: Step = Step.SPLASH
    generation: int = 0
    pin_error: bool = False
    player_name: str = ""
    grade: Optional[str] = None
    category: Optional[str] = None
    questions: tuple[Question, ...] = ()
    current_index: int = 0
    score: int = 0
    time_remaining: int = 0
    saving: bool = False
    save_error: Optional[str] = None
    notice: Optional[str] = None
    leaderboard: LeaderboardView = LeaderboardView()

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    def public_view(self) -> dict[str, Any]:
        """Snapshot for a presentation layer; answers are only shown at `result`."""
        data = self.model_dump(mode="json", exclude={"questions", "leaderboard"})
        data["total_questions"] = len(self.questions)
        q = self.current_question if self.step == Step.GAME else None
        data["current_question"] = (
            {"text": q.text, "options": list(q.options)} if q else None
        )
        data["category_options"] = [
            o.model_dump() for o in category_options(self.grade)
        ]
        data["review"] = (
            [
                {
                    "text": q.text,
                    "options": list(q.options),
                    "correct_answer": q.correct_answer,
                }
                for q in self.questions
            ]
            if self.step == Step.RESULT
            else None
        )
        data["leaderboard"] = {
            "filter": self.leaderboard.filter,
            "loading": self.leaderboard.loading,
            "notice": self.leaderboard.notice,
            "records": [r.model_dump() for r in self.leaderboard.visible],
        }
        return data


# Events ---------------------------------------------------------------------


@dataclass(frozen=True)
class SplashElapsed:
    generation: int


@dataclass(frozen=True)
class PinSubmitted:
    pin: str


@dataclass(frozen=True)
class PinErrorCleared:
    generation: int


@dataclass(frozen=True)
class StartClicked:
    pass


@dataclass(frozen=True)
class NameEntered:
    name: str


@dataclass(frozen=True)
class GradeSelected:
    grade: str


@dataclass(frozen=True)
class CategorySelected:
    category: str


@dataclass(frozen=True)
class BackToGrade:
    pass


@dataclass(frozen=True)
class BeginBattle:
    pass


@dataclass(frozen=True)
class QuestionsLoaded:
    generation: int
    questions: tuple[Question, ...]


@dataclass(frozen=True)
class QuestionsFailed:
    generation: int
    reason: str = ""


@dataclass(frozen=True)
class LoadingElapsed:
    generation: int


@dataclass(frozen=True)
class AnswerSubmitted:
    option: str
    question_index: Optional[int] = None


@dataclass(frozen=True)
class TimerTicked:
    generation: int


@dataclass(frozen=True)
class OpenSaveForm:
    pass


@dataclass(frozen=True)
class SaveFormEdited:
    name: Optional[str] = None
    grade: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class SaveRequested:
    pass


@dataclass(frozen=True)
class ScoreSaved:
    generation: int


@dataclass(frozen=True)
class ScoreSaveFailed:
    generation: int
    reason: str = ""


@dataclass(frozen=True)
class DiscardRecord:
    pass


@dataclass(frozen=True)
class ViewLeaderboard:
    pass


@dataclass(frozen=True)
class LeaderboardFilterChanged:
    value: str


@dataclass(frozen=True)
class DeleteRequested:
    score_id: int


@dataclass(frozen=True)
class DeleteFinished:
    score_id: int
    ok: bool
    reason: str = ""


@dataclass(frozen=True)
class LeaderboardLoaded:
    revision: int
    records: tuple[ScoreEntry, ...]


@dataclass(frozen=True)
class LeaderboardFailed:
    revision: int
    reason: str = ""


@dataclass(frozen=True)
class GoHome:
    pass


@dataclass(frozen=True)
class Restart:
    pass


Event = Union[
    SplashElapsed,
    PinSubmitted,
    PinErrorCleared,
    StartClicked,
    NameEntered,
    GradeSelected,
    CategorySelected,
    BackToGrade,
    BeginBattle,
    QuestionsLoaded,
    QuestionsFailed,
    LoadingElapsed,
    AnswerSubmitted,
    TimerTicked,
    OpenSaveForm,
    SaveFormEdited,
    SaveRequested,
    ScoreSaved,
    ScoreSaveFailed,
    DiscardRecord,
    ViewLeaderboard,
    LeaderboardFilterChanged,
    DeleteRequested,
    DeleteFinished,
    LeaderboardLoaded,
    LeaderboardFailed,
    GoHome,
    Restart,
]


# Effects --------------------------------------------------------------------


@dataclass(frozen=True)
class Schedule:
    delay: float
    event: Any


@dataclass(frozen=True)
class FetchQuestions:
    generation: int
    grade: str
    category: str


@dataclass(frozen=True)
class StartCountdown:
    generation: int
    interval: float


@dataclass(frozen=True)
class StopCountdown:
    pass


@dataclass(frozen=True)
class SubmitScore:
    generation: int
    payload: ScorePayload


@dataclass(frozen=True)
class LoadLeaderboard:
    revision: int


@dataclass(frozen=True)
class DeleteScore:
    score_id: int


Effect = Union[
    Schedule,
    FetchQuestions,
    StartCountdown,
    StopCountdown,
    SubmitScore,
    LoadLeaderboard,
    DeleteScore,
]


@dataclass
class Outcome:
    session: Session
    effects: list[Effect] = field(default_factory=list)


Handler = Callable[[Session, Any, GameSettings], Outcome]
_HANDLERS: dict[type, Handler] = {}


def _on(event_type: type) -> Callable[[Handler], Handler]:
    def register(fn: Handler) -> Handler:
        _HANDLERS[event_type] = fn
        return fn

    return register


def initial_session() -> Session:
    return Session()


def transition(
    session: Session, event: Event, game: GameSettings
) -> tuple[Session, list[Effect]]:
    """Apply one event. Unknown or out-of-place events leave the session as is."""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        return session, []
    outcome = handler(session, event, game)
    return outcome.session, outcome.effects


# Helpers --------------------------------------------------------------------


def _goto(session: Session, step: Step, **updates: Any) -> Session:
    return session.model_copy(
        update={"step": step, "generation": session.generation + 1, **updates}
    )


def _new_round() -> dict[str, Any]:
    return {
        "questions": (),
        "current_index": 0,
        "score": 0,
        "time_remaining": 0,
        "saving": False,
        "save_error": None,
        "notice": None,
    }


def _finish_game(session: Session, **updates: Any) -> Outcome:
    return Outcome(_goto(session, Step.RESULT, **updates), [StopCountdown()])


def _refresh_leaderboard(
    session: Session, view: Optional[LeaderboardView] = None
) -> Outcome:
    view = (view or session.leaderboard).requesting()
    return Outcome(
        session.model_copy(update={"leaderboard": view}),
        [LoadLeaderboard(revision=view.revision)],
    )


def _unchanged(session: Session) -> Outcome:
    return Outcome(session)


# Gate and setup screens -----------------------------------------------------


@_on(SplashElapsed)
def _splash_elapsed(session: Session, event: SplashElapsed, game: GameSettings) -> Outcome:
    if session.step != Step.SPLASH or event.generation != session.generation:
        return _unchanged(session)
    return Outcome(_goto(session, Step.PIN))


@_on(PinSubmitted)
def _pin_submitted(session: Session, event: PinSubmitted, game: GameSettings) -> Outcome:
    if session.step != Step.PIN:
        return _unchanged(session)
    if event.pin == game.pin:
        return Outcome(_goto(session, Step.WELCOME, pin_error=False))
    return Outcome(
        session.model_copy(update={"pin_error": True}),
        [Schedule(game.pin_error_sec, PinErrorCleared(session.generation))],
    )


@_on(PinErrorCleared)
def _pin_error_cleared(session: Session, event: PinErrorCleared, game: GameSettings) -> Outcome:
    if event.generation != session.generation or not session.pin_error:
        return _unchanged(session)
    return Outcome(session.model_copy(update={"pin_error": False}))


@_on(StartClicked)
def _start_clicked(session: Session, event: StartClicked, game: GameSettings) -> Outcome:
    if session.step != Step.WELCOME:
        return _unchanged(session)
    return Outcome(_goto(session, Step.NAME))


@_on(NameEntered)
def _name_entered(session: Session, event: NameEntered, game: GameSettings) -> Outcome:
    name = (event.name or "").strip()
    if session.step != Step.NAME or not name:
        return _unchanged(session)
    return Outcome(_goto(session, Step.GRADE, player_name=name))


@_on(GradeSelected)
def _grade_selected(session: Session, event: GradeSelected, game: GameSettings) -> Outcome:
    if session.step != Step.GRADE or event.grade not in GRADES:
        return _unchanged(session)
    category = session.category
    if category and not is_category_eligible(event.grade, category):
        category = None
    return Outcome(_goto(session, Step.CATEGORY, grade=event.grade, category=category))


@_on(CategorySelected)
def _category_selected(session: Session, event: CategorySelected, game: GameSettings) -> Outcome:
    if session.step != Step.CATEGORY:
        return _unchanged(session)
    if not is_category_eligible(session.grade, event.category):
        return _unchanged(session)
    return Outcome(_goto(session, Step.RULES, category=event.category))


@_on(BackToGrade)
def _back_to_grade(session: Session, event: BackToGrade, game: GameSettings) -> Outcome:
    if session.step not in (Step.CATEGORY, Step.RULES):
        return _unchanged(session)
    return Outcome(_goto(session, Step.GRADE, notice=None))


# Loading and play -----------------------------------------------------------


@_on(BeginBattle)
def _begin_battle(session: Session, event: BeginBattle, game: GameSettings) -> Outcome:
    if session.step != Step.RULES:
        return _unchanged(session)
    if session.grade not in GRADES or not is_category_eligible(
        session.grade, session.category or ""
    ):
        return _unchanged(session)
    nxt = _goto(session, Step.LOADING, **_new_round())
    return Outcome(
        nxt,
        [
            FetchQuestions(
                generation=nxt.generation,
                grade=nxt.grade or "",
                category=nxt.category or "",
            )
        ],
    )


@_on(QuestionsLoaded)
def _questions_loaded(session: Session, event: QuestionsLoaded, game: GameSettings) -> Outcome:
    if (
        session.step != Step.LOADING
        or event.generation != session.generation
        or session.questions
    ):
        return _unchanged(session)
    if not event.questions:
        return _questions_failed(
            session,
            QuestionsFailed(event.generation, "No questions were returned"),
            game,
        )
    nxt = session.model_copy(
        update={
            "questions": tuple(event.questions),
            "score": 0,
            "current_index": 0,
            "time_remaining": game.time_budget_sec,
        }
    )
    return Outcome(
        nxt, [Schedule(game.loading_delay_sec, LoadingElapsed(session.generation))]
    )


@_on(QuestionsFailed)
def _questions_failed(session: Session, event: QuestionsFailed, game: GameSettings) -> Outcome:
    if session.step != Step.LOADING or event.generation != session.generation:
        return _unchanged(session)
    notice = "Could not load questions. Please try again."
    return Outcome(_goto(session, Step.RULES, **{**_new_round(), "notice": notice}))


@_on(LoadingElapsed)
def _loading_elapsed(session: Session, event: LoadingElapsed, game: GameSettings) -> Outcome:
    if (
        session.step != Step.LOADING
        or event.generation != session.generation
        or not session.questions
    ):
        return _unchanged(session)
    nxt = _goto(session, Step.GAME)
    return Outcome(nxt, [StartCountdown(generation=nxt.generation, interval=game.tick_sec)])


@_on(AnswerSubmitted)
def _answer_submitted(session: Session, event: AnswerSubmitted, game: GameSettings) -> Outcome:
    if session.step != Step.GAME:
        return _unchanged(session)
    if event.question_index is not None and event.question_index != session.current_index:
        return _unchanged(session)
    question = session.current_question
    if question is None:
        return _unchanged(session)
    score = session.score + (1 if event.option == question.correct_answer else 0)
    index = session.current_index + 1
    if index < len(session.questions):
        return Outcome(session.model_copy(update={"score": score, "current_index": index}))
    return _finish_game(session, score=score, current_index=index)


@_on(TimerTicked)
def _timer_ticked(session: Session, event: TimerTicked, game: GameSettings) -> Outcome:
    if session.step != Step.GAME or event.generation != session.generation:
        return _unchanged(session)
    remaining = session.time_remaining - 1
    if remaining <= 0:
        return _finish_game(session, time_remaining=0)
    return Outcome(session.model_copy(update={"time_remaining": remaining}))


# Saving ---------------------------------------------------------------------


@_on(OpenSaveForm)
def _open_save_form(session: Session, event: OpenSaveForm, game: GameSettings) -> Outcome:
    if session.step != Step.RESULT:
        return _unchanged(session)
    return Outcome(_goto(session, Step.SAVE_FORM, saving=False, save_error=None))


@_on(SaveFormEdited)
def _save_form_edited(session: Session, event: SaveFormEdited, game: GameSettings) -> Outcome:
    if session.step != Step.SAVE_FORM or session.saving:
        return _unchanged(session)
    updates: dict[str, Any] = {}
    if event.name is not None:
        updates["player_name"] = event.name
    if event.grade is not None and event.grade in GRADES:
        updates["grade"] = event.grade
    if event.category is not None and event.category in CATEGORIES:
        updates["category"] = event.category
    return Outcome(session.model_copy(update=updates))


@_on(SaveRequested)
def _save_requested(session: Session, event: SaveRequested, game: GameSettings) -> Outcome:
    if session.step != Step.SAVE_FORM or session.saving:
        return _unchanged(session)
    if not session.player_name.strip():
        return Outcome(session.model_copy(update={"save_error": "Name is required"}))
    if session.grade not in GRADES or session.category not in CATEGORIES:
        return Outcome(
            session.model_copy(update={"save_error": "Pick a grade and a category"})
        )
    payload = build_score_payload(session)
    return Outcome(
        session.model_copy(update={"saving": True, "save_error": None}),
        [SubmitScore(generation=session.generation, payload=payload)],
    )


@_on(ScoreSaved)
def _score_saved(session: Session, event: ScoreSaved, game: GameSettings) -> Outcome:
    if (
        session.step != Step.SAVE_FORM
        or event.generation != session.generation
        or not session.saving
    ):
        return _unchanged(session)
    nxt = _goto(session, Step.DASHBOARD, saving=False, save_error=None)
    return _refresh_leaderboard(nxt)


@_on(ScoreSaveFailed)
def _score_save_failed(session: Session, event: ScoreSaveFailed, game: GameSettings) -> Outcome:
    if session.step != Step.SAVE_FORM or event.generation != session.generation:
        return _unchanged(session)
    reason = event.reason or "Failed to save score"
    return Outcome(session.model_copy(update={"saving": False, "save_error": reason}))


@_on(DiscardRecord)
def _discard_record(session: Session, event: DiscardRecord, game: GameSettings) -> Outcome:
    if session.step != Step.SAVE_FORM or session.saving:
        return _unchanged(session)
    return Outcome(_goto(session, Step.RESULT, save_error=None))


# Leaderboard ----------------------------------------------------------------


@_on(ViewLeaderboard)
def _view_leaderboard(session: Session, event: ViewLeaderboard, game: GameSettings) -> Outcome:
    if session.step in (Step.WELCOME, Step.RESULT):
        return _refresh_leaderboard(_goto(session, Step.DASHBOARD))
    if session.step == Step.DASHBOARD:
        return _refresh_leaderboard(session)
    return _unchanged(session)


@_on(LeaderboardFilterChanged)
def _filter_changed(session: Session, event: LeaderboardFilterChanged, game: GameSettings) -> Outcome:
    value = event.value if event.value in GRADES else ALL_GRADES
    return Outcome(
        session.model_copy(update={"leaderboard": session.leaderboard.with_filter(value)})
    )


@_on(DeleteRequested)
def _delete_requested(session: Session, event: DeleteRequested, game: GameSettings) -> Outcome:
    if session.step != Step.DASHBOARD:
        return _unchanged(session)
    # Removing locally also supersedes any fetch still in flight.
    view = session.leaderboard.without(event.score_id).requesting().with_notice(None)
    return Outcome(
        session.model_copy(update={"leaderboard": view}),
        [DeleteScore(score_id=event.score_id)],
    )


@_on(DeleteFinished)
def _delete_finished(session: Session, event: DeleteFinished, game: GameSettings) -> Outcome:
    view = session.leaderboard
    if event.ok:
        view = view.forgotten(event.score_id)
    else:
        # The store still holds the row; show it again even if the re-fetch fails.
        view = view.restored(event.score_id).with_notice(
            "Failed to delete record. Please try again."
        )
    return _refresh_leaderboard(session, view)


@_on(LeaderboardLoaded)
def _leaderboard_loaded(session: Session, event: LeaderboardLoaded, game: GameSettings) -> Outcome:
    view = session.leaderboard.reconciled(event.revision, event.records)
    return Outcome(session.model_copy(update={"leaderboard": view}))


@_on(LeaderboardFailed)
def _leaderboard_failed(session: Session, event: LeaderboardFailed, game: GameSettings) -> Outcome:
    view = session.leaderboard.load_failed(
        event.revision, "Could not load the leaderboard."
    )
    return Outcome(session.model_copy(update={"leaderboard": view}))


# Navigation -----------------------------------------------------------------


@_on(GoHome)
def _go_home(session: Session, event: GoHome, game: GameSettings) -> Outcome:
    if session.step not in (Step.RESULT, Step.DASHBOARD):
        return _unchanged(session)
    return Outcome(
        _goto(
            session,
            Step.WELCOME,
            player_name="",
            grade=None,
            category=None,
            **_new_round(),
        ),
        [StopCountdown()],
    )


@_on(Restart)
def _restart(session: Session, event: Restart, game: GameSettings) -> Outcome:
    if session.step not in (Step.RESULT, Step.DASHBOARD):
        return _unchanged(session)
    return Outcome(_goto(session, Step.GRADE, **_new_round()), [StopCountdown()])
