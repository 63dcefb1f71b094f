from __future__ import annotations

from dataclasses import replace

import pytest

from vocab_quiz.quiz import machine
from vocab_quiz.quiz.errors import ConfigurationError, EmptySetError
from vocab_quiz.quiz.models import (
    Cue,
    DispositionSets,
    QuizMode,
    Screen,
    VerificationKind,
    VerificationResult,
    VocabularyItem,
)

SCENARIO = [
    VocabularyItem("abate", "to lessen"),
    VocabularyItem("brisk", "quick"),
    VocabularyItem("candid", "honest"),
    VocabularyItem("dire", "urgent"),
]

RIGHT = VerificationResult(True, "Nice.")
WRONG = VerificationResult(False, "Try again.")


@pytest.fixture
def start(choices):
    def _start(words=SCENARIO, **kwargs):
        return machine.start_session(
            QuizMode.ALL,
            words,
            kwargs.pop("dispositions", DispositionSets()),
            choices=choices,
            session_id="s1",
            **kwargs,
        )

    return _start


@pytest.fixture
def step(choices):
    def _step(session, event):
        return machine.transition(session, event, choices=choices)

    return _step


def _answer_correctly(step, session):
    result = step(session, machine.KeyPressed("1"))
    return step(result.session, machine.AdvanceTimerFired(result.session.reveal_token))


def _verdict(kind, result):
    return machine.VerificationReceived(kind, result)


def test_start_session_opens_quiz_on_first_word(start):
    session = start()

    assert session.screen is Screen.QUIZ
    assert session.word_index == 0
    assert session.current.word == "abate"
    assert session.choices == ("to lessen", "quick", "honest", "urgent")
    assert session.streak == 0


def test_start_session_rejects_empty_word_set(start):
    with pytest.raises(EmptySetError):
        start(words=[])


def test_start_session_needs_four_distinct_definitions(start):
    with pytest.raises(ConfigurationError):
        start(words=SCENARIO[:3])


def test_wrong_choice_moves_to_sentence_and_stars_word(start, step):
    session = start()

    result = step(session, machine.ChoiceSelected("quick"))

    assert result.session.screen is Screen.SENTENCE
    assert result.session.streak == 0
    assert result.session.selected_answer == "quick"
    assert "abate" in result.session.dispositions.starred
    assert result.effects == (
        machine.PlayCue(Cue.WRONG),
        machine.SetStar("abate", True),
    )


def test_miss_then_correct_sentence_advances_with_streak_unchanged(
    start, step
):
    session = step(start(), machine.ChoiceSelected("quick")).session

    submitted = step(
        session, machine.TextSubmitted("The storm began to abate.")
    )
    assert submitted.session.pending_verification is VerificationKind.SENTENCE
    assert submitted.effects == (
        machine.RequestVerification(
            kind=VerificationKind.SENTENCE,
            word="abate",
            reference="to lessen",
            text="The storm began to abate.",
        ),
    )

    done = step(
        submitted.session, _verdict(VerificationKind.SENTENCE, RIGHT)
    )

    assert done.session.screen is Screen.QUIZ
    assert done.session.word_index == 1
    assert done.session.streak == 0
    assert done.session.current.word == "brisk"
    assert machine.ShowFeedback(VerificationKind.SENTENCE, RIGHT) in done.effects


def test_dont_know_counts_as_a_miss(start, step):
    result = step(start(), machine.DontKnow())

    assert result.session.screen is Screen.SENTENCE
    assert result.session.selected_answer is None
    assert machine.SetStar("abate", True) in result.effects


def test_miss_keeps_an_already_starred_word_starred(start, step):
    flags = DispositionSets.from_lists(starred=["abate"])

    result = step(start(dispositions=flags), machine.DontKnow())

    assert "abate" in result.session.dispositions.starred
    assert machine.SetStar("abate", True) in result.effects


def test_correct_choice_reveals_and_schedules_advance(start, step):
    session = start()

    result = step(session, machine.ChoiceSelected("to lessen"))

    assert result.session.revealing
    assert result.session.streak == 1
    assert result.session.first_try_correct == 1
    assert result.effects == (
        machine.PlayCue(Cue.CORRECT, 1),
        machine.StartAdvanceTimer("s1", result.session.reveal_token),
    )


def test_choices_are_ignored_while_revealing(start, step):
    revealed = step(start(), machine.KeyPressed("1")).session

    again = step(revealed, machine.KeyPressed("2"))

    assert again.session == revealed
    assert again.effects == ()


def test_stale_timer_is_ignored(start, step):
    revealed = step(start(), machine.KeyPressed("1")).session

    stale = step(
        revealed, machine.AdvanceTimerFired(revealed.reveal_token - 1)
    )

    assert stale.session == revealed
    assert stale.session.word_index == 0


def test_timer_advances_to_next_question(start, step):
    session = _answer_correctly(step, start()).session

    assert session.screen is Screen.QUIZ
    assert session.word_index == 1
    assert not session.revealing
    assert session.selected_answer is None
    assert session.choices[0] == "quick"


def test_key_outside_choice_range_is_ignored(start, step):
    session = start()

    assert step(session, machine.KeyPressed("7")).session == session
    assert step(session, machine.KeyPressed("x")).session == session


def test_finishing_last_word_records_summary(start, step):
    session = start()
    session = step(session, machine.DontKnow()).session
    session = step(session, machine.TextSubmitted("It will abate.")).session
    session = step(
        session, _verdict(VerificationKind.SENTENCE, RIGHT)
    ).session
    for _ in range(2):
        session = _answer_correctly(step, session).session

    revealed = step(session, machine.KeyPressed("1"))
    finished = step(
        revealed.session,
        machine.AdvanceTimerFired(revealed.session.reveal_token),
    )

    assert finished.session.screen is Screen.RESULTS
    assert finished.effects == (
        machine.PlayCue(Cue.COMPLETE),
        machine.RecordSummary(
            mode=QuizMode.ALL,
            total_words=4,
            correct_answers=3,
            starred_words=("abate",),
        ),
    )


def test_milestone_cue_at_configured_streak(start, step, words):
    session = start(words=words, milestones=(2,))

    session = _answer_correctly(step, session).session
    result = step(session, machine.KeyPressed("1"))

    assert result.effects[0] == machine.PlayCue(Cue.MILESTONE, 2)


def test_already_know_removes_word_and_stays_at_index(start, step, words):
    session = start(words=words)

    result = step(session, machine.AlreadyKnow())

    assert [item.word for item in result.session.words] == [
        "brisk",
        "candid",
        "dire",
        "eloquent",
        "frugal",
    ]
    assert result.session.word_index == 0
    assert result.session.current.word == "brisk"
    assert "abate" in result.session.dispositions.known
    assert result.effects == (machine.MarkKnown("abate"),)


def test_already_know_uses_retired_words_as_distractors(start, step):
    session = start()

    result = step(session, machine.AlreadyKnow())

    assert len(result.session.words) == 3
    assert len(result.session.choices) == 4
    assert "to lessen" in result.session.choices


def test_already_know_on_last_word_finishes(start, step):
    session = start()
    for _ in range(3):
        session = _answer_correctly(step, session).session
    assert session.current.word == "dire"

    result = step(session, machine.AlreadyKnow())

    assert result.session.screen is Screen.RESULTS
    assert result.effects[0] == machine.MarkKnown("dire")
    summary = result.effects[-1]
    assert isinstance(summary, machine.RecordSummary)
    assert summary.total_words == 3
    assert summary.correct_answers == 3


def test_known_word_stays_out_after_retake(start, step, words):
    session = step(start(words=words), machine.AlreadyKnow()).session
    seen = []
    while session.screen is Screen.QUIZ:
        seen.append(session.current.word)
        session = _answer_correctly(step, session).session
    assert session.screen is Screen.RESULTS
    assert "abate" not in seen

    session = step(session, machine.Retake()).session

    assert "abate" not in [item.word for item in session.words]
    retaken = []
    while session.screen is Screen.QUIZ:
        retaken.append(session.current.word)
        session = _answer_correctly(step, session).session
    assert retaken == ["brisk", "candid", "dire", "eloquent", "frugal"]
    assert session.screen is Screen.RESULTS
    assert "abate" in session.dispositions.known


def test_blank_sentence_is_ignored(start, step):
    session = step(start(), machine.DontKnow()).session

    result = step(session, machine.TextSubmitted("   "))

    assert result.session == session
    assert result.effects == ()


def test_submission_while_pending_is_rejected(start, step):
    session = step(start(), machine.DontKnow()).session
    pending = step(session, machine.TextSubmitted("first try")).session

    result = step(pending, machine.TextSubmitted("second try"))

    assert result.session == pending
    assert result.effects == ()


def test_incorrect_sentence_stays_and_retry_clears_verdict(start, step):
    session = step(start(), machine.DontKnow()).session
    session = step(session, machine.TextSubmitted("abate abate")).session

    wrong = step(session, _verdict(VerificationKind.SENTENCE, WRONG))

    assert wrong.session.screen is Screen.SENTENCE
    assert wrong.session.sentence_verification == WRONG
    assert wrong.session.sentence_text == "abate abate"
    assert wrong.effects == (
        machine.ShowFeedback(VerificationKind.SENTENCE, WRONG),
    )

    retried = step(wrong.session, machine.Retry()).session
    assert retried.sentence_verification is None
    assert retried.sentence_text == "abate abate"


def test_mismatched_verdict_kind_is_ignored(start, step):
    session = step(start(), machine.DontKnow()).session
    session = step(session, machine.TextSubmitted("abate it")).session

    result = step(session, _verdict(VerificationKind.DEFINITION, RIGHT))

    assert result.session == session


def test_toggle_star_flips_current_word(start, step):
    session = start()

    starred = step(session, machine.ToggleStar())
    unstarred = step(starred.session, machine.ToggleStar())

    assert starred.session.is_starred
    assert starred.effects == (machine.SetStar("abate", True),)
    assert not unstarred.session.is_starred
    assert unstarred.effects == (machine.SetStar("abate", False),)


def _results_session(start, step):
    session = start()
    for _ in range(4):
        session = _answer_correctly(step, session).session
    assert session.screen is Screen.RESULTS
    return session


def test_retake_resets_progress_but_not_dispositions(start, step):
    session = _results_session(start, step)
    session = replace(
        session,
        dispositions=DispositionSets.from_lists(starred=["candid"]),
    )

    result = step(session, machine.Retake())

    assert result.session.screen is Screen.QUIZ
    assert result.session.word_index == 0
    assert result.session.streak == 0
    assert result.session.first_try_correct == 0
    assert result.session.dispositions.starred == {"candid"}
    assert result.effects == (machine.CancelAdvanceTimer("s1"),)


def test_review_requires_definition_and_sentence(start, step):
    session = step(_results_session(start, step), machine.StartReview()).session
    assert session.screen is Screen.REVIEW
    assert session.current.word == "abate"

    for _ in range(2):
        session = step(session, machine.TextSubmitted("to stop")).session
        session = step(
            session, _verdict(VerificationKind.DEFINITION, WRONG)
        ).session
        assert session.screen is Screen.REVIEW
    session = step(session, machine.TextSubmitted("to lessen")).session
    session = step(session, _verdict(VerificationKind.DEFINITION, RIGHT)).session
    assert session.screen is Screen.REVIEW_SENTENCE

    session = step(session, machine.TextSubmitted("The pain abated.")).session
    session = step(session, _verdict(VerificationKind.SENTENCE, RIGHT)).session

    assert session.learned_this_session == {"abate"}
    assert session.screen is Screen.REVIEW
    assert session.current.word == "brisk"
    assert session.definition_verification is None


def test_review_sentence_retry_keeps_word_on_screen(start, step):
    session = step(_results_session(start, step), machine.StartReview()).session
    session = step(session, machine.TextSubmitted("to lessen")).session
    session = step(session, _verdict(VerificationKind.DEFINITION, RIGHT)).session
    session = step(session, machine.TextSubmitted("abate sentence")).session

    wrong = step(session, _verdict(VerificationKind.SENTENCE, WRONG)).session

    assert wrong.screen is Screen.REVIEW_SENTENCE
    assert wrong.learned_this_session == frozenset()


def test_review_completion_persists_learned_words(start, step):
    session = step(_results_session(start, step), machine.StartReview()).session

    effects = ()
    for _ in range(4):
        session = step(session, machine.TextSubmitted("meaning")).session
        session = step(
            session, _verdict(VerificationKind.DEFINITION, RIGHT)
        ).session
        session = step(session, machine.TextSubmitted("a sentence")).session
        result = step(session, _verdict(VerificationKind.SENTENCE, RIGHT))
        session, effects = result.session, result.effects

    assert session.screen is Screen.REVIEW_RESULTS
    assert machine.PersistLearned(("abate", "brisk", "candid", "dire")) in effects
    assert machine.PlayCue(Cue.COMPLETE) in effects
    assert session.dispositions.learned == {"abate", "brisk", "candid", "dire"}

    retake = step(session, machine.Retake()).session
    assert retake.screen is Screen.QUIZ
    assert retake.learned_this_session == frozenset()


def test_review_is_only_reachable_from_results(start, step):
    session = start()

    assert step(session, machine.StartReview()).session == session


def test_exit_invalidates_pending_advance(start, step):
    revealed = step(start(), machine.KeyPressed("1")).session

    exited = step(revealed, machine.Exit())
    late = step(
        exited.session, machine.AdvanceTimerFired(revealed.reveal_token)
    )

    assert exited.effects == (machine.CancelAdvanceTimer("s1"),)
    assert late.session.word_index == 0
    assert late.effects == ()
