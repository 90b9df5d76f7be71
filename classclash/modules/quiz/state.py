"""In-process quiz session runner.

One ``QuizSessionRunner`` drives one player's Session. Events are queued and
applied one at a time by a single worker task, so the session is never
mutated concurrently. Effects returned by the reducer (timers, question
fetch, score-store calls) run as background tasks whose completions are
dispatched back as events; stale completions are dropped by the reducer.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional
from uuid import uuid4

from classclash.core.config import GameSettings, settings
from classclash.core.logging import get_logger
from classclash.modules.quiz.machine import (
    DeleteFinished,
    DeleteScore,
    FetchQuestions,
    LeaderboardFailed,
    LeaderboardLoaded,
    LoadLeaderboard,
    QuestionsFailed,
    QuestionsLoaded,
    Schedule,
    ScoreSaved,
    ScoreSaveFailed,
    Session,
    SplashElapsed,
    StartCountdown,
    StopCountdown,
    SubmitScore,
    TimerTicked,
    initial_session,
    transition,
)
from classclash.modules.quiz.store import QuestionSource, ScoreStore


logger = get_logger(__name__)

Listener = Callable[[Session], Awaitable[None]]


def _short_id() -> str:
    # 6-char slice from uuid4
    return uuid4().hex[:6]


class QuizSessionRunner:
    def __init__(
        self,
        *,
        questions: QuestionSource,
        store: ScoreStore,
        game: Optional[GameSettings] = None,
        on_change: Optional[Listener] = None,
    ) -> None:
        self.id = _short_id()
        self.questions = questions
        self.store = store
        self.game = game or settings.game
        self.on_change = on_change
        self._session = initial_session()
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._countdown: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()
        self._changed = asyncio.Condition()

    @property
    def session(self) -> Session:
        return self._session

    # Lifecycle ----------------------------------------------------------
    async def start(self) -> None:
        if self._worker and not self._worker.done():
            return
        self._worker = asyncio.create_task(self._run())
        await self._notify()
        self._perform(Schedule(self.game.splash_delay_sec, SplashElapsed(self._session.generation)))

    async def stop(self) -> None:
        pending = [t for t in self._tasks if not t.done()]
        if self._worker and not self._worker.done():
            pending.append(self._worker)
        for t in pending:
            t.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        self._countdown = None
        self._worker = None

    def dispatch(self, event: Any) -> None:
        self._queue.put_nowait(event)

    async def wait_for(
        self, predicate: Callable[[Session], bool], timeout: float = 5.0
    ) -> Session:
        """Wait until the session satisfies ``predicate``."""
        async with self._changed:
            await asyncio.wait_for(
                self._changed.wait_for(lambda: predicate(self._session)), timeout
            )
            return self._session

    # Event loop ---------------------------------------------------------
    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._apply(event)
            except Exception:
                logger.exception(
                    f"Session {self.id} failed to apply {type(event).__name__}",
                    extra={"session_id": self.id},
                )
            finally:
                self._queue.task_done()

    async def _apply(self, event: Any) -> None:
        before = self._session
        after, effects = transition(before, event, self.game)
        self._session = after
        if after.step != before.step:
            logger.debug(
                f"Session {self.id}: {before.step.value} -> {after.step.value}",
                extra={"session_id": self.id, "step": after.step.value},
            )
        for effect in effects:
            self._perform(effect)
        if after is not before:
            await self._notify()

    async def _notify(self) -> None:
        async with self._changed:
            self._changed.notify_all()
        if self.on_change is not None:
            try:
                await self.on_change(self._session)
            except Exception as e:
                logger.warning(
                    f"Session {self.id} listener failed: {e}",
                    extra={"session_id": self.id},
                )

    # Effects ------------------------------------------------------------
    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _perform(self, effect: Any) -> None:
        if isinstance(effect, Schedule):
            self._spawn(self._later(effect.delay, effect.event))
        elif isinstance(effect, FetchQuestions):
            self._spawn(self._fetch_questions(effect))
        elif isinstance(effect, StartCountdown):
            self._stop_countdown()
            self._countdown = self._spawn(self._tick(effect.generation, effect.interval))
        elif isinstance(effect, StopCountdown):
            self._stop_countdown()
        elif isinstance(effect, SubmitScore):
            self._spawn(self._submit_score(effect))
        elif isinstance(effect, LoadLeaderboard):
            self._spawn(self._load_leaderboard(effect.revision))
        elif isinstance(effect, DeleteScore):
            self._spawn(self._delete_score(effect.score_id))
        else:
            logger.warning(f"Unknown effect {effect!r}")

    def _stop_countdown(self) -> None:
        if self._countdown and not self._countdown.done():
            self._countdown.cancel()
        self._countdown = None

    async def _later(self, delay: float, event: Any) -> None:
        await asyncio.sleep(max(0.0, delay))
        self.dispatch(event)

    async def _tick(self, generation: int, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.dispatch(TimerTicked(generation))

    async def _fetch_questions(self, effect: FetchQuestions) -> None:
        try:
            questions = await self.questions.get_questions(effect.grade, effect.category)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                f"Session {self.id} question fetch failed: {e}",
                extra={"session_id": self.id},
            )
            self.dispatch(QuestionsFailed(effect.generation, str(e)))
            return
        self.dispatch(QuestionsLoaded(effect.generation, tuple(questions)))

    async def _submit_score(self, effect: SubmitScore) -> None:
        try:
            await self.store.submit_score(effect.payload)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                f"Session {self.id} score submission failed: {e}",
                extra={"session_id": self.id},
            )
            self.dispatch(ScoreSaveFailed(effect.generation, "Failed to save score"))
            return
        self.dispatch(ScoreSaved(effect.generation))

    async def _load_leaderboard(self, revision: int) -> None:
        try:
            records = await self.store.fetch_leaderboard()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                f"Session {self.id} leaderboard fetch failed: {e}",
                extra={"session_id": self.id},
            )
            self.dispatch(LeaderboardFailed(revision, str(e)))
            return
        self.dispatch(LeaderboardLoaded(revision, tuple(records)))

    async def _delete_score(self, score_id: int) -> None:
        try:
            await self.store.delete_score(score_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                f"Session {self.id} delete of score {score_id} failed: {e}",
                extra={"session_id": self.id},
            )
            self.dispatch(DeleteFinished(score_id, ok=False, reason=str(e)))
            return
        self.dispatch(DeleteFinished(score_id, ok=True))
