"""Immutable value types shared by selection, the state machine and stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional

__all__ = [
    "VocabularyItem",
    "WordSet",
    "DispositionSets",
    "VerificationResult",
    "VerificationKind",
    "Screen",
    "QuizMode",
    "Cue",
    "Session",
]


@dataclass(frozen=True)
class VocabularyItem:
    """A word and its reference definition."""

    word: str
    definition: str

    def to_dict(self) -> dict[str, str]:
        return {"word": self.word, "definition": self.definition}

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "VocabularyItem":
        word = str(payload.get("word", "")).strip()
        definition = str(payload.get("definition", "")).strip()
        if not word or not definition:
            raise ValueError("vocabulary entries need a word and a definition")
        return cls(word=word, definition=definition)


WordSet = tuple[VocabularyItem, ...]


@dataclass(frozen=True)
class DispositionSets:
    """Per-user word flags. A word may carry any combination of them."""

    starred: frozenset[str] = frozenset()
    known: frozenset[str] = frozenset()
    learned: frozenset[str] = frozenset()

    @classmethod
    def from_lists(
        cls,
        *,
        starred: Iterable[str] = (),
        known: Iterable[str] = (),
        learned: Iterable[str] = (),
    ) -> "DispositionSets":
        return cls(
            starred=frozenset(starred),
            known=frozenset(known),
            learned=frozenset(learned),
        )

    @property
    def excluded(self) -> frozenset[str]:
        """Words kept out of default sessions: ``known | learned``."""

        return self.known | self.learned

    def with_starred(self, word: str, starred: bool) -> "DispositionSets":
        updated = self.starred | {word} if starred else self.starred - {word}
        return DispositionSets(updated, self.known, self.learned)

    def with_known(self, word: str) -> "DispositionSets":
        return DispositionSets(self.starred, self.known | {word}, self.learned)

    def with_learned(self, words: Iterable[str]) -> "DispositionSets":
        return DispositionSets(
            self.starred, self.known, self.learned | frozenset(words)
        )


@dataclass(frozen=True)
class VerificationResult:
    """Verdict returned by a verifier for one free-text answer."""

    correct: bool
    feedback: str


class VerificationKind(Enum):
    DEFINITION = "definition"
    SENTENCE = "sentence"


class Screen(Enum):
    """States of the quiz session machine."""

    QUIZ = "quiz"
    SENTENCE = "sentence"
    RESULTS = "results"
    REVIEW = "review"
    REVIEW_SENTENCE = "review-sentence"
    REVIEW_RESULTS = "review-results"

    @property
    def is_terminal(self) -> bool:
        return self in (Screen.RESULTS, Screen.REVIEW_RESULTS)

    @property
    def accepts_text(self) -> bool:
        return self in (
            Screen.SENTENCE,
            Screen.REVIEW,
            Screen.REVIEW_SENTENCE,
        )


class QuizMode(Enum):
    ALL = "all"
    STARRED = "starred"
    LEARNED = "learned"
    CUSTOM = "custom"


class Cue(Enum):
    """Sound cues consumed by the audio collaborator."""

    CORRECT = "correct"
    WRONG = "wrong"
    MILESTONE = "milestone"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Session:
    """Snapshot of a live quiz session.

    Every field is replaced, never mutated, by
    :func:`vocab_quiz.quiz.machine.transition`. ``word_index`` stays inside
    ``words`` for every non-terminal screen. ``retired`` holds words removed
    with "already know"; they no longer get asked but still serve as
    distractors.
    """

    session_id: str
    mode: QuizMode
    words: WordSet
    dispositions: DispositionSets
    retired: WordSet = ()
    screen: Screen = Screen.QUIZ
    word_index: int = 0
    choices: tuple[str, ...] = ()
    selected_answer: Optional[str] = None
    revealing: bool = False
    reveal_token: int = 0
    streak: int = 0
    first_try_correct: int = 0
    missed: frozenset[str] = frozenset()
    learned_this_session: frozenset[str] = frozenset()
    sentence_text: str = ""
    definition_text: str = ""
    definition_verification: Optional[VerificationResult] = None
    sentence_verification: Optional[VerificationResult] = None
    pending_verification: Optional[VerificationKind] = None
    milestones: tuple[int, ...] = field(default=(5, 10))

    @property
    def current(self) -> Optional[VocabularyItem]:
        if 0 <= self.word_index < len(self.words):
            return self.words[self.word_index]
        return None

    @property
    def total_words(self) -> int:
        return len(self.words)

    @property
    def is_last_word(self) -> bool:
        return self.word_index >= len(self.words) - 1

    @property
    def is_starred(self) -> bool:
        current = self.current
        return current is not None and current.word in self.dispositions.starred
