"""In-memory word store used by selection, controller and console tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from vocab_quiz.quiz.history import SessionSummary
from vocab_quiz.quiz.models import VocabularyItem
from vocab_quiz.store import StoreError


@dataclass
class MemoryWordStore:
    vocabulary: List[VocabularyItem] = field(default_factory=list)
    starred: set[str] = field(default_factory=set)
    known: set[str] = field(default_factory=set)
    learned: set[str] = field(default_factory=set)
    custom: List[VocabularyItem] = field(default_factory=list)
    sessions: List[SessionSummary] = field(default_factory=list)
    user_id: Optional[str] = "tester"
    fail_writes: bool = False
    writes: List[tuple] = field(default_factory=list)

    def list_vocabulary(self) -> Sequence[VocabularyItem]:
        return list(self.vocabulary)

    def list_starred(self) -> Sequence[str]:
        return sorted(self.starred) if self.user_id else []

    def list_known(self) -> Sequence[str]:
        return sorted(self.known) if self.user_id else []

    def list_learned(self) -> Sequence[str]:
        return sorted(self.learned) if self.user_id else []

    def list_custom(self) -> Sequence[VocabularyItem]:
        return list(self.custom) if self.user_id else []

    def list_sessions(self) -> Sequence[SessionSummary]:
        return list(self.sessions) if self.user_id else []

    def set_starred(self, word: str, starred: bool) -> bool:
        if not self._writable("set_starred", word, starred):
            return False
        if starred:
            self.starred.add(word)
        else:
            self.starred.discard(word)
        return True

    def toggle_starred(self, word: str) -> bool:
        return self.set_starred(word, word not in self.starred)

    def add_known(self, word: str) -> bool:
        if not self._writable("add_known", word):
            return False
        self.known.add(word)
        return True

    def add_learned(self, words: Iterable[str]) -> bool:
        words = list(words)
        if not self._writable("add_learned", tuple(words)):
            return False
        self.learned.update(words)
        return True

    def add_custom(self, entries: Iterable[VocabularyItem]) -> bool:
        entries = list(entries)
        if not self._writable("add_custom", tuple(entries)):
            return False
        self.custom.extend(entries)
        return True

    def record_session(self, summary: SessionSummary) -> bool:
        if not self._writable("record_session", summary):
            return False
        self.sessions.append(summary)
        return True

    def _writable(self, *call) -> bool:
        self.writes.append(call)
        if self.fail_writes:
            raise StoreError("disk full")
        return bool(self.user_id)
