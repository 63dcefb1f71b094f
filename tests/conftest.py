from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from fixtures import (  # noqa: E402
    FakeChatClient,
    MemoryWordStore,
    ScriptedVerifier,
)
from vocab_quiz.core.logging import ROOT_LOGGER  # noqa: E402
from vocab_quiz.quiz.choices import make_choice_source  # noqa: E402
from vocab_quiz.quiz.models import VocabularyItem  # noqa: E402

WORDS = (
    ("abate", "to become less intense or widespread"),
    ("brisk", "active, fast, and energetic"),
    ("candid", "truthful and straightforward; frank"),
    ("dire", "extremely serious or urgent"),
    ("eloquent", "fluent or persuasive in speaking or writing"),
    ("frugal", "sparing or economical with regard to money or food"),
)


def keep_order(items) -> None:
    """Shuffler that leaves sequences untouched."""


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch) -> Iterator[None]:
    monkeypatch.setenv("VOCAB_QUIZ_DATA_HOME", str(tmp_path / "home"))
    for name in (
        "VOCAB_QUIZ_CONFIG",
        "VOCAB_QUIZ_USER",
        "VOCAB_QUIZ_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def words() -> list[VocabularyItem]:
    return [VocabularyItem(word, definition) for word, definition in WORDS]


@pytest.fixture
def store(words) -> MemoryWordStore:
    return MemoryWordStore(vocabulary=list(words))


@pytest.fixture
def verifier() -> ScriptedVerifier:
    return ScriptedVerifier()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def choices():
    """Choice source that keeps the correct definition in slot 1."""

    return make_choice_source(keep_order)


@pytest.fixture
def no_shuffle():
    return keep_order
