"""Client-side leaderboard view: cached rows, grade filter, optimistic delete.

The view never talks to the network itself. It records which fetch it is
waiting for (``revision``) so that the runner can hand back results and the
view can drop any answer to a request that has since been superseded.
"""

from __future__ import annotations

from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from classclash.modules.quiz.models import ScoreEntry


ALL_GRADES = "all"


def filter_records(
    records: Iterable[ScoreEntry], grade_filter: str = ALL_GRADES
) -> list[ScoreEntry]:
    if grade_filter == ALL_GRADES:
        return list(records)
    return [r for r in records if r.grade == grade_filter]


class LeaderboardView(BaseModel):
    model_config = ConfigDict(frozen=True)

    records: tuple[ScoreEntry, ...] = ()
    filter: str = ALL_GRADES
    revision: int = 0
    loading: bool = False
    notice: Optional[str] = None
    # Rows removed locally while their delete is in flight, with their position.
    removed: tuple[tuple[int, ScoreEntry], ...] = ()

    @property
    def visible(self) -> list[ScoreEntry]:
        return filter_records(self.records, self.filter)

    def with_filter(self, grade_filter: str) -> "LeaderboardView":
        return self.model_copy(update={"filter": grade_filter or ALL_GRADES})

    def requesting(self) -> "LeaderboardView":
        """Start a new fetch; answers to older fetches become stale."""
        return self.model_copy(update={"revision": self.revision + 1, "loading": True})

    def without(self, score_id: int) -> "LeaderboardView":
        """Optimistically remove one row, remembering where it was."""
        for position, record in enumerate(self.records):
            if record.id == score_id:
                return self.model_copy(
                    update={
                        "records": self.records[:position] + self.records[position + 1 :],
                        "removed": self.removed + ((position, record),),
                    }
                )
        return self

    def restored(self, score_id: int) -> "LeaderboardView":
        """Undo an optimistic removal after the store refused the delete."""
        records = list(self.records)
        removed = []
        for position, record in self.removed:
            if record.id != score_id:
                removed.append((position, record))
            elif all(r.id != score_id for r in records):
                records.insert(min(position, len(records)), record)
        return self.model_copy(update={"records": tuple(records), "removed": tuple(removed)})

    def forgotten(self, score_id: int) -> "LeaderboardView":
        """Drop the undo entry for a delete the store accepted."""
        removed = tuple(item for item in self.removed if item[1].id != score_id)
        return self.model_copy(update={"removed": removed})

    def reconciled(
        self, revision: int, records: Iterable[ScoreEntry]
    ) -> "LeaderboardView":
        if revision != self.revision:
            return self
        return self.model_copy(update={"records": tuple(records), "loading": False})

    def load_failed(self, revision: int, notice: str) -> "LeaderboardView":
        if revision != self.revision:
            return self
        return self.model_copy(update={"loading": False, "notice": notice})

    def with_notice(self, notice: Optional[str]) -> "LeaderboardView":
        return self.model_copy(update={"notice": notice})
