"""Definition lookup against a public dictionary API for custom word lists."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional
from urllib.parse import quote

import requests

from vocab_quiz.core.logging import get_logger
from vocab_quiz.quiz.models import VocabularyItem

__all__ = [
    "DEFAULT_DICTIONARY_URL",
    "LookupReport",
    "fetch_definitions",
    "lookup_definition",
    "split_word_list",
]

DEFAULT_DICTIONARY_URL = "https://api.dictionaryapi.dev/api/v2/entries/en/"

logger = get_logger(__name__)


@dataclass
class LookupReport:
    found: list[VocabularyItem] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


def split_word_list(raw: str) -> list[str]:
    """Split a comma separated word list, dropping blanks."""

    return [part.strip() for part in raw.split(",") if part.strip()]


def lookup_definition(
    word: str,
    *,
    base_url: str = DEFAULT_DICTIONARY_URL,
    timeout: float = 10.0,
    session: Optional[requests.Session] = None,
) -> Optional[str]:
    """Return the first definition of the first meaning, or ``None``.

    Network errors, non-200 responses and unexpected payloads all yield
    ``None``; they are logged rather than raised.
    """

    http = session or requests
    url = base_url.rstrip("/") + "/" + quote(word.strip())
    try:
        response = http.get(url, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning(
            "Dictionary lookup failed",
            extra={"word": word, "error": str(exc)},
        )
        return None
    if response.status_code != 200:
        logger.info(
            "Dictionary has no entry",
            extra={"word": word, "status": response.status_code},
        )
        return None
    try:
        payload = response.json()
    except ValueError:
        logger.warning("Dictionary returned invalid JSON", extra={"word": word})
        return None
    return _first_definition(payload)


def fetch_definitions(
    words: Iterable[str],
    *,
    lookup: Callable[[str], Optional[str]] | None = None,
    progress: Callable[[int, int, str], None] | None = None,
) -> LookupReport:
    """Look up each word in turn and split results into found/missing."""

    resolve = lookup or lookup_definition
    pending = [word.strip() for word in words if word.strip()]
    report = LookupReport()
    for position, word in enumerate(pending, start=1):
        if progress is not None:
            progress(position, len(pending), word)
        definition = resolve(word)
        if definition:
            report.found.append(
                VocabularyItem(word=word, definition=definition.strip())
            )
        else:
            report.missing.append(word)
    return report


def _first_definition(payload: Any) -> Optional[str]:
    if not isinstance(payload, list) or not payload:
        return None
    entry = payload[0]
    if not isinstance(entry, dict):
        return None
    meanings = entry.get("meanings") or []
    if not meanings or not isinstance(meanings[0], dict):
        return None
    definitions = meanings[0].get("definitions") or []
    if not definitions or not isinstance(definitions[0], dict):
        return None
    text = definitions[0].get("definition")
    return str(text).strip() if text else None
