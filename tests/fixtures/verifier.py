"""Scripted verifier returning queued verdicts per check kind."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from vocab_quiz.quiz.models import VerificationResult


@dataclass
class ScriptedVerifier:
    definitions: List[bool] = field(default_factory=list)
    sentences: List[bool] = field(default_factory=list)
    calls: List[Tuple[str, str, str]] = field(default_factory=list)
    raise_errors: bool = False

    def verify_definition(
        self, word: str, reference: str, text: str
    ) -> VerificationResult:
        return self._next("definition", self.definitions, word, text)

    def verify_sentence(
        self, word: str, reference: str, text: str
    ) -> VerificationResult:
        return self._next("sentence", self.sentences, word, text)

    def _next(self, kind, queue, word, text) -> VerificationResult:
        self.calls.append((kind, word, text))
        if self.raise_errors:
            raise TimeoutError("verifier timed out")
        correct = queue.pop(0) if queue else True
        feedback = "Well done." if correct else "That misses the meaning."
        return VerificationResult(correct, feedback)
