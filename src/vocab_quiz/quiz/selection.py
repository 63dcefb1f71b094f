"""Build the working word set for a session from a mode and the word store.

Each mode reads a source list, optionally filters it against the user's
disposition sets, and shuffles the result. Whether ``known | learned`` words
are excluded is a per-source switch in :class:`ExclusionPolicy` so callers can
tune it from configuration instead of hard-coding one behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from .choices import Shuffler, default_shuffler
from .errors import (
    EmptySetError,
    InvalidCountError,
    NoCustomWordsError,
    SelectionError,
)
from .models import DispositionSets, QuizMode, VocabularyItem, WordSet

__all__ = [
    "ExclusionPolicy",
    "SelectionOptions",
    "load_dispositions",
    "parse_mode",
    "select_word_set",
]


@dataclass(frozen=True)
class ExclusionPolicy:
    """Whether each selection source drops ``known | learned`` words."""

    all: bool = True
    starred: bool = True
    learned: bool = False
    custom_sample: bool = True
    custom_saved: bool = False

    @classmethod
    def from_mapping(cls, table: Mapping[str, object]) -> "ExclusionPolicy":
        values = {}
        for name in cls.__dataclass_fields__:
            if name in table:
                value = table[name]
                if not isinstance(value, bool):
                    raise SelectionError(
                        f"quiz.exclusions.{name} must be a boolean."
                    )
                values[name] = value
        unknown = set(table) - set(cls.__dataclass_fields__)
        if unknown:
            names = ", ".join(sorted(unknown))
            raise SelectionError(f"Unknown exclusion source(s): {names}.")
        return cls(**values)


@dataclass(frozen=True)
class SelectionOptions:
    """Mode-specific options. ``count`` only applies to ``custom``."""

    count: Optional[int] = None


def parse_mode(value: str | QuizMode | None) -> QuizMode:
    """Map user input to a :class:`QuizMode`; ``None`` means ``all``."""

    if value is None:
        return QuizMode.ALL
    if isinstance(value, QuizMode):
        return value
    normalized = value.strip().lower()
    if not normalized:
        return QuizMode.ALL
    for mode in QuizMode:
        if mode.value == normalized:
            return mode
    expected = ", ".join(mode.value for mode in QuizMode)
    raise SelectionError(f"Unknown quiz mode '{value}'. Expected: {expected}.")


def load_dispositions(store) -> DispositionSets:
    return DispositionSets.from_lists(
        starred=store.list_starred(),
        known=store.list_known(),
        learned=store.list_learned(),
    )


def select_word_set(
    mode: str | QuizMode | None,
    options: SelectionOptions | None,
    store,
    *,
    shuffle: Shuffler | None = None,
    exclusions: ExclusionPolicy | None = None,
    dispositions: DispositionSets | None = None,
) -> WordSet:
    """Return the shuffled word set for ``mode``.

    Raises :class:`EmptySetError` (or its :class:`NoCustomWordsError`
    subclass) when nothing is left after filtering, and
    :class:`InvalidCountError` before building anything when a custom sample
    size is out of range.
    """

    resolved = parse_mode(mode)
    options = options or SelectionOptions()
    policy = exclusions or ExclusionPolicy()
    shuffle = shuffle or default_shuffler()
    flags = dispositions or load_dispositions(store)

    if resolved is QuizMode.CUSTOM and options.count is None:
        pool = _dedupe(store.list_custom())
        if policy.custom_saved:
            pool = _without(pool, flags.excluded)
        if not pool:
            raise NoCustomWordsError(
                "No custom words found. Add some custom words first."
            )
        shuffle(pool)
        return tuple(pool)

    vocabulary = _dedupe(store.list_vocabulary())

    if resolved is QuizMode.STARRED:
        pool = [item for item in vocabulary if item.word in flags.starred]
        if policy.starred:
            pool = _without(pool, flags.excluded)
        empty_message = "No starred words found. Star some words first."
    elif resolved is QuizMode.LEARNED:
        pool = [item for item in vocabulary if item.word in flags.learned]
        if policy.learned:
            pool = _without(pool, flags.excluded)
        empty_message = (
            "No learned words found. Complete some review sessions first."
        )
    elif resolved is QuizMode.CUSTOM:
        pool = vocabulary
        if policy.custom_sample:
            pool = _without(pool, flags.excluded)
        count = options.count
        if count is None or not 0 < count <= len(pool):
            raise InvalidCountError(count or 0, len(pool))
        shuffle(pool)
        return tuple(pool[:count])
    else:
        pool = vocabulary
        if policy.all:
            pool = _without(pool, flags.excluded)
        empty_message = "No words left to quiz. Every word is known or learned."

    if not pool:
        raise EmptySetError(empty_message)
    shuffle(pool)
    return tuple(pool)


def _dedupe(items: Iterable[VocabularyItem]) -> list[VocabularyItem]:
    seen: set[str] = set()
    unique: list[VocabularyItem] = []
    for item in items:
        if item.word in seen:
            continue
        seen.add(item.word)
        unique.append(item)
    return unique


def _without(
    items: list[VocabularyItem], excluded: frozenset[str]
) -> list[VocabularyItem]:
    return [item for item in items if item.word not in excluded]
