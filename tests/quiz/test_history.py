from __future__ import annotations

from datetime import date, datetime, timezone

from vocab_quiz.quiz.history import SessionSummary, progress_stats


def _summary(day: str, total: int, correct: int, starred=()) -> SessionSummary:
    return SessionSummary(
        date=f"{day}T10:00:00+00:00",
        mode="all",
        total_words=total,
        correct_answers=correct,
        starred_words=tuple(starred),
    )


def test_accuracy_is_rounded_percentage():
    assert _summary("2026-01-01", 3, 2).accuracy == 66.7
    assert _summary("2026-01-01", 0, 0).accuracy == 0.0


def test_summary_round_trips_through_dict():
    summary = SessionSummary.create(
        mode="starred",
        total_words=4,
        correct_answers=3,
        starred_words=["dire"],
        when=datetime(2026, 2, 3, tzinfo=timezone.utc),
    )

    payload = summary.to_dict()

    assert payload["accuracy"] == 75.0
    assert SessionSummary.from_dict(payload) == summary


def test_progress_stats_aggregates_history():
    sessions = [
        _summary("2026-01-01", 10, 5, ["abate"]),
        _summary("2026-01-04", 10, 9, ["abate", "dire"]),
        _summary("2026-01-05", 5, 5),
    ]

    stats = progress_stats(sessions, today=date(2026, 1, 5))

    assert stats.total_quizzes == 3
    assert stats.total_words == 25
    assert stats.average_accuracy == 76.0
    assert stats.best_accuracy == 100.0
    assert stats.total_starred_words == 2
    assert stats.day_streak == 2
    assert stats.recent[0] is sessions[-1]


def test_day_streak_breaks_without_a_quiz_today():
    sessions = [_summary("2026-01-04", 4, 4)]

    stats = progress_stats(sessions, today=date(2026, 1, 6))

    assert stats.day_streak == 0


def test_recent_is_limited_to_five():
    sessions = [_summary(f"2026-01-{day:02d}", 4, 2) for day in range(1, 9)]

    stats = progress_stats(sessions, today=date(2026, 1, 8))

    assert len(stats.recent) == 5
    assert stats.recent[0].date.startswith("2026-01-08")
    assert stats.day_streak == 8


def test_progress_stats_for_empty_history():
    stats = progress_stats([])

    assert stats.total_quizzes == 0
    assert stats.recent == ()
