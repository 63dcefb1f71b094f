"""Multiple-choice generation for the definition quiz."""

from __future__ import annotations

import random
from typing import Callable, MutableSequence, Sequence

from .errors import ConfigurationError
from .models import VocabularyItem

__all__ = [
    "CHOICE_COUNT",
    "ChoiceSource",
    "Shuffler",
    "default_shuffler",
    "generate_choices",
    "make_choice_source",
]

CHOICE_COUNT = 4

Shuffler = Callable[[MutableSequence], None]
ChoiceSource = Callable[
    [Sequence[VocabularyItem], int, Sequence[VocabularyItem]],
    tuple[str, ...],
]


def default_shuffler() -> Shuffler:
    """Return an unseeded in-place shuffle."""

    return random.Random().shuffle


def generate_choices(
    words: Sequence[VocabularyItem],
    index: int,
    *,
    shuffle: Shuffler | None = None,
    extra_distractors: Sequence[VocabularyItem] = (),
) -> tuple[str, ...]:
    """Build the four definitions shown for ``words[index]``.

    One entry is the word's own definition, the other three are distinct
    definitions drawn without replacement from the rest of the set (then from
    ``extra_distractors`` if the set has shrunk). The correct entry lands at
    whatever position the shuffle puts it.
    """

    if not 0 <= index < len(words):
        raise IndexError(f"word index {index} outside word set")
    shuffle = shuffle or default_shuffler()
    current = words[index]

    seen = {current.definition}
    primary: list[str] = []
    for position, item in enumerate(words):
        if position != index and item.definition not in seen:
            seen.add(item.definition)
            primary.append(item.definition)
    backup: list[str] = []
    for item in extra_distractors:
        if item.definition not in seen:
            seen.add(item.definition)
            backup.append(item.definition)

    needed = CHOICE_COUNT - 1
    if len(primary) + len(backup) < needed:
        raise ConfigurationError(
            f"A quiz question needs {CHOICE_COUNT} distinct definitions; "
            f"only {len(primary) + len(backup) + 1} available for "
            f"'{current.word}'."
        )

    shuffle(primary)
    picked = primary[:needed]
    if len(picked) < needed:
        shuffle(backup)
        picked.extend(backup[: needed - len(picked)])
    choices = [current.definition, *picked]
    shuffle(choices)
    return tuple(choices)


def make_choice_source(shuffle: Shuffler | None = None) -> ChoiceSource:
    """Bind ``shuffle`` into the callable the state machine expects."""

    def _source(
        words: Sequence[VocabularyItem],
        index: int,
        extra: Sequence[VocabularyItem] = (),
    ) -> tuple[str, ...]:
        return generate_choices(
            words, index, shuffle=shuffle, extra_distractors=extra
        )

    return _source
