"""Pure state machine for a quiz session.

``transition(session, event)`` never performs I/O. It returns the next
:class:`Session` together with a tuple of effect intents (store writes,
verifier requests, timers, sound cues) that the controller executes. Events
that do not apply to the current screen return the session unchanged with no
effects, which is how disabled controls are modelled.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence, Union

from .choices import ChoiceSource
from .errors import EmptySetError
from .models import (
    Cue,
    DispositionSets,
    QuizMode,
    Screen,
    Session,
    VerificationKind,
    VerificationResult,
    VocabularyItem,
)

__all__ = [
    # events
    "ChoiceSelected",
    "KeyPressed",
    "DontKnow",
    "AlreadyKnow",
    "AdvanceTimerFired",
    "TextSubmitted",
    "VerificationReceived",
    "Retry",
    "ToggleStar",
    "Retake",
    "StartReview",
    "Exit",
    "Event",
    # effects
    "SetStar",
    "MarkKnown",
    "PersistLearned",
    "RequestVerification",
    "StartAdvanceTimer",
    "CancelAdvanceTimer",
    "PlayCue",
    "ShowFeedback",
    "RecordSummary",
    "Effect",
    # api
    "Transition",
    "start_session",
    "transition",
]


# ---- Events ----


@dataclass(frozen=True)
class ChoiceSelected:
    choice: str


@dataclass(frozen=True)
class KeyPressed:
    """Keyboard shortcut; ``"1"``..``"4"`` pick the displayed choices."""

    key: str


@dataclass(frozen=True)
class DontKnow:
    pass


@dataclass(frozen=True)
class AlreadyKnow:
    pass


@dataclass(frozen=True)
class AdvanceTimerFired:
    token: int


@dataclass(frozen=True)
class TextSubmitted:
    text: str


@dataclass(frozen=True)
class VerificationReceived:
    kind: VerificationKind
    result: VerificationResult


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class ToggleStar:
    pass


@dataclass(frozen=True)
class Retake:
    pass


@dataclass(frozen=True)
class StartReview:
    pass


@dataclass(frozen=True)
class Exit:
    pass


Event = Union[
    ChoiceSelected,
    KeyPressed,
    DontKnow,
    AlreadyKnow,
    AdvanceTimerFired,
    TextSubmitted,
    VerificationReceived,
    Retry,
    ToggleStar,
    Retake,
    StartReview,
    Exit,
]


# ---- Effects ----


@dataclass(frozen=True)
class SetStar:
    word: str
    starred: bool


@dataclass(frozen=True)
class MarkKnown:
    word: str


@dataclass(frozen=True)
class PersistLearned:
    words: tuple[str, ...]


@dataclass(frozen=True)
class RequestVerification:
    kind: VerificationKind
    word: str
    reference: str
    text: str


@dataclass(frozen=True)
class StartAdvanceTimer:
    session_id: str
    token: int


@dataclass(frozen=True)
class CancelAdvanceTimer:
    session_id: str


@dataclass(frozen=True)
class PlayCue:
    cue: Cue
    streak: int = 0


@dataclass(frozen=True)
class ShowFeedback:
    kind: VerificationKind
    result: VerificationResult


@dataclass(frozen=True)
class RecordSummary:
    mode: QuizMode
    total_words: int
    correct_answers: int
    starred_words: tuple[str, ...]


Effect = Union[
    SetStar,
    MarkKnown,
    PersistLearned,
    RequestVerification,
    StartAdvanceTimer,
    CancelAdvanceTimer,
    PlayCue,
    ShowFeedback,
    RecordSummary,
]


@dataclass(frozen=True)
class Transition:
    session: Session
    effects: tuple[Effect, ...] = ()


_TEXT_KIND = {
    Screen.SENTENCE: VerificationKind.SENTENCE,
    Screen.REVIEW: VerificationKind.DEFINITION,
    Screen.REVIEW_SENTENCE: VerificationKind.SENTENCE,
}


def start_session(
    mode: QuizMode,
    words: Sequence[VocabularyItem],
    dispositions: DispositionSets,
    *,
    choices: ChoiceSource,
    session_id: Optional[str] = None,
    milestones: Sequence[int] = (5, 10),
) -> Session:
    """Create a fresh session on the ``quiz`` screen at the first word."""

    if not words:
        raise EmptySetError("Cannot start a quiz without words.")
    word_set = tuple(words)
    return Session(
        session_id=session_id or uuid.uuid4().hex,
        mode=mode,
        words=word_set,
        dispositions=dispositions,
        choices=choices(word_set, 0, ()),
        milestones=tuple(milestones),
    )


def transition(
    session: Session, event: Event, *, choices: ChoiceSource
) -> Transition:
    """Apply ``event`` to ``session`` and return the successor state."""

    handler = _HANDLERS.get(type(event))
    if handler is None:
        return Transition(session)
    return handler(session, event, choices)


# ---- Quiz screen ----


def _on_choice(
    session: Session, event: ChoiceSelected, choices: ChoiceSource
) -> Transition:
    current = session.current
    if (
        session.screen is not Screen.QUIZ
        or session.revealing
        or current is None
        or event.choice not in session.choices
    ):
        return Transition(session)
    if event.choice != current.definition:
        return _miss(session, selected=event.choice)

    streak = session.streak + 1
    token = session.reveal_token + 1
    cue = Cue.MILESTONE if streak in session.milestones else Cue.CORRECT
    updated = replace(
        session,
        selected_answer=event.choice,
        revealing=True,
        reveal_token=token,
        streak=streak,
        first_try_correct=session.first_try_correct + 1,
    )
    return Transition(
        updated,
        (
            PlayCue(cue, streak),
            StartAdvanceTimer(session.session_id, token),
        ),
    )


def _on_key(
    session: Session, event: KeyPressed, choices: ChoiceSource
) -> Transition:
    key = event.key.strip()
    if key not in {"1", "2", "3", "4"}:
        return Transition(session)
    position = int(key) - 1
    if position >= len(session.choices):
        return Transition(session)
    return _on_choice(
        session, ChoiceSelected(session.choices[position]), choices
    )


def _on_dont_know(
    session: Session, event: DontKnow, choices: ChoiceSource
) -> Transition:
    if (
        session.screen is not Screen.QUIZ
        or session.revealing
        or session.current is None
    ):
        return Transition(session)
    return _miss(session, selected=None)


def _miss(session: Session, *, selected: Optional[str]) -> Transition:
    word = session.current.word  # type: ignore[union-attr]
    updated = replace(
        session,
        screen=Screen.SENTENCE,
        selected_answer=selected,
        streak=0,
        missed=session.missed | {word},
        dispositions=session.dispositions.with_starred(word, True),
        sentence_text="",
        sentence_verification=None,
    )
    return Transition(updated, (PlayCue(Cue.WRONG), SetStar(word, True)))


def _on_already_know(
    session: Session, event: AlreadyKnow, choices: ChoiceSource
) -> Transition:
    current = session.current
    if session.screen is not Screen.QUIZ or session.revealing or current is None:
        return Transition(session)

    remaining = tuple(
        item for item in session.words if item.word != current.word
    )
    updated = replace(
        session,
        words=remaining,
        retired=session.retired + (current,),
        dispositions=session.dispositions.with_known(current.word),
        selected_answer=None,
    )
    effects: tuple[Effect, ...] = (MarkKnown(current.word),)
    if session.word_index >= len(remaining):
        finished = _finish_quiz(updated)
        return Transition(finished.session, effects + finished.effects)
    updated = replace(
        updated,
        choices=choices(remaining, session.word_index, updated.retired),
    )
    return Transition(updated, effects)


def _on_timer(
    session: Session, event: AdvanceTimerFired, choices: ChoiceSource
) -> Transition:
    if (
        session.screen is not Screen.QUIZ
        or not session.revealing
        or event.token != session.reveal_token
    ):
        return Transition(session)
    return _advance_quiz(session, choices)


def _advance_quiz(session: Session, choices: ChoiceSource) -> Transition:
    if session.is_last_word:
        return _finish_quiz(session)
    index = session.word_index + 1
    updated = replace(
        _cleared(session),
        screen=Screen.QUIZ,
        word_index=index,
        choices=choices(session.words, index, session.retired),
    )
    return Transition(updated)


def _finish_quiz(session: Session) -> Transition:
    updated = replace(
        _cleared(session),
        screen=Screen.RESULTS,
        word_index=0,
        choices=(),
    )
    summary = RecordSummary(
        mode=session.mode,
        total_words=len(session.words),
        correct_answers=session.first_try_correct,
        starred_words=tuple(sorted(session.missed)),
    )
    return Transition(updated, (PlayCue(Cue.COMPLETE), summary))


def _on_toggle_star(
    session: Session, event: ToggleStar, choices: ChoiceSource
) -> Transition:
    current = session.current
    if session.screen.is_terminal or current is None:
        return Transition(session)
    starred = current.word not in session.dispositions.starred
    updated = replace(
        session,
        dispositions=session.dispositions.with_starred(current.word, starred),
    )
    return Transition(updated, (SetStar(current.word, starred),))


# ---- Free-text screens ----


def _on_text(
    session: Session, event: TextSubmitted, choices: ChoiceSource
) -> Transition:
    kind = _TEXT_KIND.get(session.screen)
    current = session.current
    text = event.text.strip()
    if (
        kind is None
        or current is None
        or session.pending_verification is not None
        or not text
    ):
        return Transition(session)

    if kind is VerificationKind.DEFINITION:
        updated = replace(
            session,
            definition_text=event.text,
            definition_verification=None,
            pending_verification=kind,
        )
    else:
        updated = replace(
            session,
            sentence_text=event.text,
            sentence_verification=None,
            pending_verification=kind,
        )
    request = RequestVerification(
        kind=kind,
        word=current.word,
        reference=current.definition,
        text=text,
    )
    return Transition(updated, (request,))


def _on_retry(
    session: Session, event: Retry, choices: ChoiceSource
) -> Transition:
    kind = _TEXT_KIND.get(session.screen)
    if kind is None or session.pending_verification is not None:
        return Transition(session)
    if kind is VerificationKind.DEFINITION:
        return Transition(replace(session, definition_verification=None))
    return Transition(replace(session, sentence_verification=None))


def _on_verification(
    session: Session, event: VerificationReceived, choices: ChoiceSource
) -> Transition:
    kind = _TEXT_KIND.get(session.screen)
    if kind is None or session.pending_verification is not event.kind:
        return Transition(session)
    if kind is not event.kind:
        return Transition(session)

    result = event.result
    effects: tuple[Effect, ...] = (ShowFeedback(kind, result),)
    if result.correct:
        effects += (PlayCue(Cue.CORRECT),)
    settled = replace(session, pending_verification=None)

    if session.screen is Screen.SENTENCE:
        settled = replace(settled, sentence_verification=result)
        if not result.correct:
            return Transition(settled, effects)
        advanced = _advance_quiz(settled, choices)
        return Transition(advanced.session, effects + advanced.effects)

    if session.screen is Screen.REVIEW:
        settled = replace(settled, definition_verification=result)
        if not result.correct:
            return Transition(settled, effects)
        moved = replace(
            settled,
            screen=Screen.REVIEW_SENTENCE,
            sentence_text="",
            sentence_verification=None,
        )
        return Transition(moved, effects)

    settled = replace(settled, sentence_verification=result)
    if not result.correct:
        return Transition(settled, effects)
    definition = settled.definition_verification
    if definition is not None and definition.correct:
        word = settled.current.word  # type: ignore[union-attr]
        settled = replace(
            settled,
            learned_this_session=settled.learned_this_session | {word},
        )
    advanced = _advance_review(settled)
    return Transition(advanced.session, effects + advanced.effects)


def _advance_review(session: Session) -> Transition:
    if not session.is_last_word:
        updated = replace(
            _cleared(session),
            screen=Screen.REVIEW,
            word_index=session.word_index + 1,
        )
        return Transition(updated)

    learned = tuple(sorted(session.learned_this_session))
    updated = replace(
        _cleared(session),
        screen=Screen.REVIEW_RESULTS,
        word_index=0,
        dispositions=session.dispositions.with_learned(learned),
    )
    effects: tuple[Effect, ...] = (PlayCue(Cue.COMPLETE),)
    if learned:
        effects = (PersistLearned(learned),) + effects
    return Transition(updated, effects)


# ---- Terminal screens ----


def _on_retake(
    session: Session, event: Retake, choices: ChoiceSource
) -> Transition:
    if not session.screen.is_terminal or not session.words:
        return Transition(session)
    updated = replace(
        _cleared(session),
        screen=Screen.QUIZ,
        word_index=0,
        streak=0,
        first_try_correct=0,
        missed=frozenset(),
        learned_this_session=frozenset(),
        reveal_token=session.reveal_token + 1,
        choices=choices(session.words, 0, session.retired),
    )
    return Transition(updated, (CancelAdvanceTimer(session.session_id),))


def _on_start_review(
    session: Session, event: StartReview, choices: ChoiceSource
) -> Transition:
    if session.screen is not Screen.RESULTS or not session.words:
        return Transition(session)
    updated = replace(
        _cleared(session),
        screen=Screen.REVIEW,
        word_index=0,
        choices=(),
        learned_this_session=frozenset(),
    )
    return Transition(updated)


def _on_exit(
    session: Session, event: Exit, choices: ChoiceSource
) -> Transition:
    updated = replace(
        session,
        revealing=False,
        reveal_token=session.reveal_token + 1,
        pending_verification=None,
    )
    return Transition(updated, (CancelAdvanceTimer(session.session_id),))


def _cleared(session: Session) -> Session:
    """Drop per-question transient fields."""

    return replace(
        session,
        selected_answer=None,
        revealing=False,
        sentence_text="",
        definition_text="",
        definition_verification=None,
        sentence_verification=None,
        pending_verification=None,
    )


_Handler = Callable[[Session, Event, ChoiceSource], Transition]

_HANDLERS: dict[type, _Handler] = {
    ChoiceSelected: _on_choice,
    KeyPressed: _on_key,
    DontKnow: _on_dont_know,
    AlreadyKnow: _on_already_know,
    AdvanceTimerFired: _on_timer,
    TextSubmitted: _on_text,
    VerificationReceived: _on_verification,
    Retry: _on_retry,
    ToggleStar: _on_toggle_star,
    Retake: _on_retake,
    StartReview: _on_start_review,
    Exit: _on_exit,
}
