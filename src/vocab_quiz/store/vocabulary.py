"""Vocabulary list loading and custom word entry parsing."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Iterable, Optional

from vocab_quiz.core.logging import get_logger
from vocab_quiz.quiz.models import VocabularyItem

from .base import StoreError

__all__ = [
    "BUNDLED_VOCABULARY",
    "load_vocabulary",
    "parse_custom_entries",
]

BUNDLED_VOCABULARY = "vocab.jsonl"

logger = get_logger(__name__)


def load_vocabulary(path: Optional[Path] = None) -> list[VocabularyItem]:
    """Load vocabulary from a JSONL file, or the bundled list by default.

    Each line is ``{"word": ..., "definition": ...}``. Blank or malformed
    entries are skipped with a warning; a missing or unparsable file raises
    :class:`StoreError`.
    """

    try:
        if path is None:
            source = resources.files("vocab_quiz.data").joinpath(
                BUNDLED_VOCABULARY
            )
        else:
            source = Path(path)
        text = source.read_text(encoding="utf-8")
        records = [
            json.loads(line) for line in text.splitlines() if line.strip()
        ]
    except FileNotFoundError as exc:
        raise StoreError(f"Vocabulary file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise StoreError(f"Failed to parse vocabulary: {exc}") from exc

    items: list[VocabularyItem] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        try:
            items.append(VocabularyItem.from_dict(record))
        except ValueError:
            logger.warning(
                "Skipping vocabulary entry without word or definition",
                extra={"entry": record},
            )
    return items


def parse_custom_entries(lines: str | Iterable[str]) -> list[VocabularyItem]:
    """Parse ``word;definition`` lines, ignoring lines missing either half."""

    if isinstance(lines, str):
        lines = lines.splitlines()
    items: list[VocabularyItem] = []
    for raw in lines:
        word, sep, definition = raw.partition(";")
        if not sep:
            continue
        word = word.strip()
        definition = definition.strip()
        if word and definition:
            items.append(VocabularyItem(word=word, definition=definition))
    return items
