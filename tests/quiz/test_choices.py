from __future__ import annotations

import random

import pytest

from vocab_quiz.quiz.choices import CHOICE_COUNT, generate_choices
from vocab_quiz.quiz.errors import ConfigurationError
from vocab_quiz.quiz.models import VocabularyItem


def test_generate_choices_contains_answer_and_three_distractors(words):
    rng = random.Random(7)

    choices = generate_choices(words, 2, shuffle=rng.shuffle)

    assert len(choices) == CHOICE_COUNT
    assert len(set(choices)) == CHOICE_COUNT
    assert words[2].definition in choices
    others = {item.definition for i, item in enumerate(words) if i != 2}
    assert set(choices) - {words[2].definition} <= others


def test_generate_choices_without_shuffle_keeps_answer_first(words, no_shuffle):
    choices = generate_choices(words, 0, shuffle=no_shuffle)

    assert choices == (
        words[0].definition,
        words[1].definition,
        words[2].definition,
        words[3].definition,
    )


def test_generate_choices_skips_duplicate_definitions(no_shuffle):
    items = [
        VocabularyItem("big", "large in size"),
        VocabularyItem("large", "large in size"),
        VocabularyItem("tiny", "very small"),
        VocabularyItem("swift", "moving quickly"),
        VocabularyItem("calm", "not showing nerves"),
    ]

    choices = generate_choices(items, 0, shuffle=no_shuffle)

    assert choices.count("large in size") == 1
    assert len(set(choices)) == CHOICE_COUNT


def test_generate_choices_uses_extra_distractors_when_set_is_small(
    words, no_shuffle
):
    remaining = words[:3]
    retired = words[3:]

    choices = generate_choices(
        remaining, 1, shuffle=no_shuffle, extra_distractors=retired
    )

    assert choices[0] == words[1].definition
    assert words[3].definition in choices


def test_generate_choices_rejects_too_few_definitions(words):
    with pytest.raises(ConfigurationError):
        generate_choices(words[:3], 0)


def test_generate_choices_rejects_out_of_range_index(words):
    with pytest.raises(IndexError):
        generate_choices(words, len(words))
