"""Natural-language verification of user definitions and example sentences.

The verifier asks a chat model whether a free-text answer is right and
turns the reply into a :class:`VerificationResult`. It never raises: any
transport, timeout or parsing problem becomes an "incorrect, try again"
verdict so the quiz session can carry on.
"""

from __future__ import annotations

import re
from typing import Any, Protocol

from vocab_quiz.core.ai import load_client
from vocab_quiz.core.logging import get_logger
from vocab_quiz.quiz.models import VerificationKind, VerificationResult

__all__ = [
    "GENERIC_RETRY_MESSAGE",
    "Verifier",
    "OpenAIVerifier",
    "parse_verdict",
    "verify",
]

GENERIC_RETRY_MESSAGE = (
    "We couldn't check your answer right now. Please try again."
)

_SYSTEM_PROMPT = (
    "You are a strict but encouraging vocabulary tutor. Judge the learner's "
    "answer and reply with CORRECT or INCORRECT on the first line, followed "
    "by one or two sentences of feedback."
)

_DEFINITION_PROMPT = (
    'Evaluate if this user\'s definition description accurately captures the '
    'meaning of the word "{word}" with the actual definition "{reference}".\n\n'
    'User\'s Definition Description: "{text}"\n\n'
    'Answer CORRECT if the description captures the meaning of the word, or '
    'INCORRECT if it is missing key elements or is inaccurate.'
)

_SENTENCE_PROMPT = (
    'Evaluate if this sentence correctly uses the word "{word}" with the '
    'definition "{reference}".\n\n'
    'Sentence: "{text}"\n\n'
    'Answer CORRECT if the word is used properly according to its '
    'definition, or INCORRECT if it is not used correctly or does not make '
    'sense.'
)

_VERDICT_PATTERN = re.compile(r"^\W*(CORRECT|INCORRECT)\b\W*", re.IGNORECASE)

logger = get_logger(__name__)


class Verifier(Protocol):
    """Judge free-text answers against a word's reference definition."""

    def verify_definition(
        self, word: str, reference: str, text: str
    ) -> VerificationResult: ...

    def verify_sentence(
        self, word: str, reference: str, text: str
    ) -> VerificationResult: ...


def verify(
    verifier: Verifier,
    kind: VerificationKind,
    word: str,
    reference: str,
    text: str,
) -> VerificationResult:
    """Dispatch on ``kind``; a raising verifier degrades to a retry verdict."""

    try:
        if kind is VerificationKind.DEFINITION:
            return verifier.verify_definition(word, reference, text)
        return verifier.verify_sentence(word, reference, text)
    except Exception:
        logger.warning(
            "Verifier raised; treating answer as incorrect",
            exc_info=True,
            extra={"word": word, "kind": kind.value},
        )
        return VerificationResult(False, GENERIC_RETRY_MESSAGE)


def parse_verdict(content: str) -> VerificationResult:
    """Read the leading CORRECT/INCORRECT token of a model reply.

    Replies without a leading verdict are treated as incorrect with the
    generic retry message.
    """

    text = (content or "").strip()
    match = _VERDICT_PATTERN.match(text)
    if not match:
        return VerificationResult(False, GENERIC_RETRY_MESSAGE)
    correct = match.group(1).upper() == "CORRECT"
    feedback = text[match.end():].strip()
    if not feedback:
        feedback = "Correct!" if correct else "Not quite. Try again."
    return VerificationResult(correct, feedback)


class OpenAIVerifier:
    """Verifier backed by OpenAI chat completions."""

    def __init__(
        self,
        *,
        model: str = "gpt-4o-mini",
        temperature: float = 0.0,
        max_tokens: int = 200,
        request_timeout: float = 30.0,
        api_base: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = request_timeout
        self._api_base = api_base
        self._client = client

    def verify_definition(
        self, word: str, reference: str, text: str
    ) -> VerificationResult:
        prompt = _DEFINITION_PROMPT.format(
            word=word, reference=reference, text=text
        )
        return self._judge(prompt, word=word, kind="definition")

    def verify_sentence(
        self, word: str, reference: str, text: str
    ) -> VerificationResult:
        prompt = _SENTENCE_PROMPT.format(
            word=word, reference=reference, text=text
        )
        return self._judge(prompt, word=word, kind="sentence")

    def _judge(self, prompt: str, *, word: str, kind: str) -> VerificationResult:
        try:
            client = self._ensure_client()
            response = client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                timeout=self._timeout,
            )
            content = response.choices[0].message.content or ""
        except Exception as exc:
            logger.warning(
                "Verification request failed",
                extra={"word": word, "kind": kind, "error": str(exc)},
            )
            return VerificationResult(False, GENERIC_RETRY_MESSAGE)

        result = parse_verdict(content)
        logger.debug(
            "Verification verdict",
            extra={"word": word, "kind": kind, "correct": result.correct},
        )
        return result

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = load_client(base_url=self._api_base)
        return self._client
