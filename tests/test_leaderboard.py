from classclash.modules.quiz.leaderboard import ALL_GRADES, LeaderboardView, filter_records
from classclash.modules.quiz.machine import (
    DeleteFinished,
    DeleteRequested,
    DeleteScore,
    LeaderboardFailed,
    LeaderboardFilterChanged,
    LeaderboardLoaded,
    LoadLeaderboard,
    Session,
    transition,
)
from classclash.modules.quiz.models import Step
from tests.helpers import entry


RECORDS = (
    entry(1, grade="10"),
    entry(2, grade="8"),
    entry(3, grade="8"),
    entry(4, grade="9"),
)


def dashboard(records=RECORDS, revision=1) -> Session:
    return Session(
        step=Step.DASHBOARD,
        leaderboard=LeaderboardView(records=records, revision=revision),
    )


def test_filter_all_returns_everything():
    assert filter_records(RECORDS, ALL_GRADES) == list(RECORDS)


def test_filter_by_grade():
    assert [r.id for r in filter_records(RECORDS, "8")] == [2, 3]


def test_filter_is_idempotent():
    once = filter_records(RECORDS, "8")
    assert filter_records(once, "8") == once
    assert filter_records(RECORDS, "8") == once


def test_filter_with_no_matches_is_empty():
    assert filter_records(RECORDS, "4") == []


def test_filter_change_is_local(game):
    session, effects = transition(dashboard(), LeaderboardFilterChanged("9"), game)
    assert effects == []
    assert [r.id for r in session.leaderboard.visible] == [4]
    assert len(session.leaderboard.records) == 4


def test_unknown_filter_falls_back_to_all(game):
    session, _ = transition(dashboard(), LeaderboardFilterChanged("nope"), game)
    assert session.leaderboard.filter == ALL_GRADES


def test_delete_removes_row_optimistically(game):
    session, effects = transition(dashboard(), DeleteRequested(2), game)
    assert [r.id for r in session.leaderboard.records] == [1, 3, 4]
    assert effects == [DeleteScore(2)]


def test_successful_delete_reconciles_with_store(game):
    session, _ = transition(dashboard(), DeleteRequested(2), game)
    session, effects = transition(session, DeleteFinished(2, ok=True), game)
    [load] = effects
    assert isinstance(load, LoadLeaderboard)
    assert session.leaderboard.notice is None

    authoritative = (entry(1, grade="10"), entry(3, grade="8"), entry(4, grade="9"))
    session, _ = transition(session, LeaderboardLoaded(load.revision, authoritative), game)
    assert session.leaderboard.records == authoritative
    assert session.leaderboard.loading is False


def test_failed_delete_restores_store_contents(game):
    session, _ = transition(dashboard(), DeleteRequested(2), game)
    assert 2 not in [r.id for r in session.leaderboard.records]

    session, effects = transition(session, DeleteFinished(2, ok=False, reason="500"), game)
    [load] = effects
    assert session.leaderboard.notice

    # The store still holds every row; the view must show them again
    session, _ = transition(session, LeaderboardLoaded(load.revision, RECORDS), game)
    assert session.leaderboard.records == RECORDS


def test_fetch_issued_before_delete_is_discarded(game):
    session = dashboard(revision=5)
    before_delete = session.leaderboard.revision
    session, _ = transition(session, DeleteRequested(2), game)

    # The pre-delete fetch still lists record 2 and arrives late
    session, _ = transition(session, LeaderboardLoaded(before_delete, RECORDS), game)
    assert 2 not in [r.id for r in session.leaderboard.records]


def test_failed_fetch_keeps_cached_rows(game):
    session, _ = transition(dashboard(), DeleteRequested(2), game)
    session, effects = transition(session, DeleteFinished(2, ok=True), game)
    session, _ = transition(session, LeaderboardFailed(effects[0].revision, "down"), game)
    assert [r.id for r in session.leaderboard.records] == [1, 3, 4]
    assert session.leaderboard.notice
    assert session.leaderboard.loading is False


def test_delete_outside_dashboard_is_ignored(game):
    session = Session(step=Step.RESULT)
    after, effects = transition(session, DeleteRequested(1), game)
    assert after is session
    assert effects == []


def test_failed_delete_puts_row_back_even_if_refetch_fails(game):
    session = dashboard(records=RECORDS[:3])
    session, _ = transition(session, DeleteRequested(2), game)
    session, effects = transition(session, DeleteFinished(2, ok=False, reason="500"), game)
    assert [r.id for r in session.leaderboard.records] == [1, 2, 3]

    session, _ = transition(session, LeaderboardFailed(effects[0].revision, "down"), game)
    assert [r.id for r in session.leaderboard.records] == [1, 2, 3]
    assert session.leaderboard.removed == ()


def test_successful_delete_does_not_keep_the_row(game):
    session, _ = transition(dashboard(), DeleteRequested(2), game)
    session, effects = transition(session, DeleteFinished(2, ok=True), game)
    session, _ = transition(session, LeaderboardFailed(effects[0].revision, "down"), game)
    assert [r.id for r in session.leaderboard.records] == [1, 3, 4]
    assert session.leaderboard.removed == ()


def test_restore_only_returns_the_refused_row():
    view = LeaderboardView(records=RECORDS).without(1).without(4)
    view = view.restored(1)
    assert [r.id for r in view.records] == [1, 2, 3]
    assert [record.id for _, record in view.removed] == [4]
