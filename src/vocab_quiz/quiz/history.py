"""Quiz history records and the progress statistics derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Mapping, MutableMapping, Sequence

__all__ = [
    "SessionSummary",
    "ProgressStats",
    "progress_stats",
]

RECENT_LIMIT = 5


@dataclass(frozen=True)
class SessionSummary:
    """One completed quiz pass."""

    date: str
    mode: str
    total_words: int
    correct_answers: int
    starred_words: tuple[str, ...] = ()

    @property
    def accuracy(self) -> float:
        if self.total_words <= 0:
            return 0.0
        return round(self.correct_answers / self.total_words * 100, 1)

    @classmethod
    def create(
        cls,
        *,
        mode: str,
        total_words: int,
        correct_answers: int,
        starred_words: Sequence[str] = (),
        when: datetime | None = None,
    ) -> "SessionSummary":
        stamp = when or datetime.now(timezone.utc)
        return cls(
            date=stamp.isoformat(),
            mode=mode,
            total_words=total_words,
            correct_answers=correct_answers,
            starred_words=tuple(starred_words),
        )

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "date": self.date,
            "mode": self.mode,
            "total_words": self.total_words,
            "correct_answers": self.correct_answers,
            "starred_words": list(self.starred_words),
            "accuracy": self.accuracy,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SessionSummary":
        return cls(
            date=str(payload.get("date", "")),
            mode=str(payload.get("mode", "all")),
            total_words=int(payload.get("total_words", 0)),
            correct_answers=int(payload.get("correct_answers", 0)),
            starred_words=tuple(
                str(word) for word in payload.get("starred_words", []) or []
            ),
        )

    @property
    def day(self) -> date | None:
        try:
            return datetime.fromisoformat(self.date).date()
        except ValueError:
            return None


@dataclass(frozen=True)
class ProgressStats:
    total_quizzes: int = 0
    total_words: int = 0
    average_accuracy: float = 0.0
    best_accuracy: float = 0.0
    total_starred_words: int = 0
    day_streak: int = 0
    recent: tuple[SessionSummary, ...] = field(default_factory=tuple)


def progress_stats(
    sessions: Sequence[SessionSummary], *, today: date | None = None
) -> ProgressStats:
    """Aggregate history into dashboard numbers.

    - average accuracy is total correct over total words, not a mean of means
    - the day streak counts consecutive days with a quiz, ending today
    - ``recent`` lists the last five sessions, newest first
    """
    if not sessions:
        return ProgressStats()

    total_words = sum(item.total_words for item in sessions)
    total_correct = sum(item.correct_answers for item in sessions)
    average = (
        round(total_correct / total_words * 100, 1) if total_words else 0.0
    )
    starred: set[str] = set()
    for item in sessions:
        starred.update(item.starred_words)

    return ProgressStats(
        total_quizzes=len(sessions),
        total_words=total_words,
        average_accuracy=average,
        best_accuracy=max(item.accuracy for item in sessions),
        total_starred_words=len(starred),
        day_streak=_day_streak(sessions, today or date.today()),
        recent=tuple(reversed(sessions[-RECENT_LIMIT:])),
    )


def _day_streak(sessions: Sequence[SessionSummary], today: date) -> int:
    days = {item.day for item in sessions if item.day is not None}
    streak = 0
    cursor = today
    while cursor in days:
        streak += 1
        cursor = date.fromordinal(cursor.toordinal() - 1)
    return streak
