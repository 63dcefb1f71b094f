"""JSON-file word store: one document per user under the workspace."""

from __future__ import annotations

import json
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any, Iterable, Mapping, MutableMapping, Optional, Sequence

from vocab_quiz.core.logging import get_logger
from vocab_quiz.quiz.history import SessionSummary
from vocab_quiz.quiz.models import VocabularyItem

from .base import StoreError

__all__ = ["JsonWordStore"]

_STATE_FILENAME = "state.json"
_LOCK_FILENAME = ".lock"
_LOCK_TIMEOUT_SECONDS = 5.0
_LOCK_STALE_SECONDS = 30.0
_USER_PATTERN = re.compile(r"[^A-Za-z0-9_.-]+")

logger = get_logger(__name__)


def _empty_state() -> MutableMapping[str, Any]:
    return {
        "starred": [],
        "known": [],
        "learned": [],
        "custom": [],
        "sessions": [],
    }


class JsonWordStore:
    """Persist starred/known/learned/custom words and quiz history.

    ``user_id=None`` models a signed-out user: reads come back empty and
    writes report ``False`` without touching disk.
    """

    def __init__(
        self,
        root: Path,
        *,
        user_id: Optional[str],
        vocabulary: Sequence[VocabularyItem],
    ) -> None:
        self._root = root
        self._user_id = user_id
        self._vocabulary = tuple(vocabulary)

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def path(self) -> Optional[Path]:
        if not self._user_id:
            return None
        slug = _USER_PATTERN.sub("-", self._user_id).strip("-.") or "user"
        return self._root / slug / _STATE_FILENAME

    # ---- reads ----

    def list_vocabulary(self) -> Sequence[VocabularyItem]:
        return self._vocabulary

    def list_starred(self) -> Sequence[str]:
        return list(self._read()["starred"])

    def list_known(self) -> Sequence[str]:
        return list(self._read()["known"])

    def list_learned(self) -> Sequence[str]:
        return list(self._read()["learned"])

    def list_custom(self) -> Sequence[VocabularyItem]:
        items: list[VocabularyItem] = []
        for entry in self._read()["custom"]:
            try:
                items.append(VocabularyItem.from_dict(entry))
            except (ValueError, AttributeError):
                logger.warning(
                    "Skipping malformed custom word entry",
                    extra={"entry": entry},
                )
        return items

    def list_sessions(self) -> Sequence[SessionSummary]:
        summaries: list[SessionSummary] = []
        for entry in self._read()["sessions"]:
            try:
                if not isinstance(entry, Mapping):
                    raise TypeError("session entry is not an object")
                summaries.append(SessionSummary.from_dict(entry))
            except (TypeError, ValueError):
                logger.warning(
                    "Skipping malformed session history entry",
                    extra={"entry": entry},
                )
        return summaries

    # ---- writes ----

    def set_starred(self, word: str, starred: bool) -> bool:
        def _apply(state: MutableMapping[str, Any]) -> None:
            words = set(state["starred"])
            if starred:
                words.add(word)
            else:
                words.discard(word)
            state["starred"] = sorted(words)

        return self._update(_apply)

    def toggle_starred(self, word: str) -> bool:
        def _apply(state: MutableMapping[str, Any]) -> None:
            words = set(state["starred"])
            words.symmetric_difference_update({word})
            state["starred"] = sorted(words)

        return self._update(_apply)

    def add_known(self, word: str) -> bool:
        def _apply(state: MutableMapping[str, Any]) -> None:
            state["known"] = sorted(set(state["known"]) | {word})

        return self._update(_apply)

    def add_learned(self, words: Iterable[str]) -> bool:
        additions = set(words)
        if not self._user_id:
            return False
        if not additions:
            return True

        def _apply(state: MutableMapping[str, Any]) -> None:
            state["learned"] = sorted(set(state["learned"]) | additions)

        return self._update(_apply)

    def add_custom(self, entries: Iterable[VocabularyItem]) -> bool:
        incoming = list(entries)

        def _apply(state: MutableMapping[str, Any]) -> None:
            merged = {
                str(entry.get("word")): entry
                for entry in state["custom"]
                if isinstance(entry, Mapping)
            }
            for item in incoming:
                merged[item.word] = item.to_dict()
            state["custom"] = list(merged.values())

        return self._update(_apply)

    def record_session(self, summary: SessionSummary) -> bool:
        def _apply(state: MutableMapping[str, Any]) -> None:
            state["sessions"].append(summary.to_dict())

        return self._update(_apply)

    # ---- persistence ----

    def _read(self) -> MutableMapping[str, Any]:
        path = self.path
        if path is None or not path.is_file():
            return _empty_state()
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StoreError(f"Failed to parse word store: {path}") from exc
        except OSError as exc:
            raise StoreError(f"Failed to read word store: {path}") from exc
        if not isinstance(payload, Mapping):
            raise StoreError(f"Word store must hold a JSON object: {path}")
        state = _empty_state()
        for key in state:
            value = payload.get(key, [])
            if isinstance(value, list):
                state[key] = value
        return state

    def _update(self, apply) -> bool:
        path = self.path
        if path is None:
            return False
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create store directory: {path}") from exc
        with _StoreLock(path.parent / _LOCK_FILENAME):
            state = self._read()
            apply(state)
            _atomic_write_json(path, state)
        return True


class _StoreLock:
    """Exclusive lock file guarding read-modify-write cycles.

    The holder's PID is written into the file. A lock older than
    ``_LOCK_STALE_SECONDS`` was left by a process that died mid-write and is
    broken rather than waited on.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def __enter__(self) -> "_StoreLock":
        deadline = time.time() + _LOCK_TIMEOUT_SECONDS
        while True:
            try:
                fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                if self._break_if_stale():
                    continue
                if time.time() > deadline:
                    raise StoreError(
                        f"Timed out waiting for store lock: {self._path}"
                    )
                time.sleep(0.05)
                continue
            except OSError as exc:
                raise StoreError(f"Cannot lock word store: {exc}") from exc
            try:
                os.write(fd, str(os.getpid()).encode("ascii"))
            finally:
                os.close(fd)
            return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self._path.unlink(missing_ok=True)

    def _break_if_stale(self) -> bool:
        try:
            age = time.time() - self._path.stat().st_mtime
        except FileNotFoundError:
            return True
        if age <= _LOCK_STALE_SECONDS:
            return False
        try:
            holder = self._path.read_text(
                encoding="ascii", errors="replace"
            ).strip()
        except OSError:
            holder = ""
        logger.warning(
            "Removing stale word store lock",
            extra={"lock": str(self._path), "pid": holder, "age": round(age, 1)},
        )
        self._path.unlink(missing_ok=True)
        return True


def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
    try:
        handle = tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            encoding="utf-8",
            dir=str(path.parent),
        )
        try:
            json.dump(payload, handle, indent=2, sort_keys=True)
            handle.flush()
            os.fsync(handle.fileno())
        finally:
            handle.close()
        os.replace(handle.name, path)
    except OSError as exc:
        raise StoreError(f"Failed to write word store: {path}") from exc
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
