"""Word store capability consumed by selection and the session controller."""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from vocab_quiz.quiz.history import SessionSummary
from vocab_quiz.quiz.models import VocabularyItem

__all__ = ["StoreError", "WordStore"]


class StoreError(RuntimeError):
    """Raised when persisted word state cannot be read or written."""


class WordStore(Protocol):
    """User-scoped vocabulary and disposition storage.

    Write methods return ``False`` instead of raising when no user is
    signed in; I/O failures raise :class:`StoreError`.
    """

    def list_vocabulary(self) -> Sequence[VocabularyItem]: ...

    def list_starred(self) -> Sequence[str]: ...

    def list_known(self) -> Sequence[str]: ...

    def list_learned(self) -> Sequence[str]: ...

    def list_custom(self) -> Sequence[VocabularyItem]: ...

    def list_sessions(self) -> Sequence[SessionSummary]: ...

    def set_starred(self, word: str, starred: bool) -> bool: ...

    def toggle_starred(self, word: str) -> bool: ...

    def add_known(self, word: str) -> bool: ...

    def add_learned(self, words: Iterable[str]) -> bool: ...

    def add_custom(self, entries: Iterable[VocabularyItem]) -> bool: ...

    def record_session(self, summary: SessionSummary) -> bool: ...
