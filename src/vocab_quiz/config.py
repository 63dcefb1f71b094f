"""Configuration loader for vocab-quiz."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from vocab_quiz.core import workspace as workspace_mod
from vocab_quiz.quiz.errors import SelectionError
from vocab_quiz.quiz.selection import ExclusionPolicy
from vocab_quiz.store.dictionary import DEFAULT_DICTIONARY_URL

CONFIG_FILENAME = "vocab_quiz.toml"
CONFIG_ENV = "VOCAB_QUIZ_CONFIG"
ENV_PREFIX = "VOCAB_QUIZ_"
TEMPLATE_RESOURCE = "template.toml"

_DEFAULT_USER = "local"
_DEFAULT_LOG_LEVEL = "INFO"
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class VocabQuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizSettings:
    advance_delay: float = 2.0
    milestones: tuple[int, ...] = (5, 10)
    sound: bool = True
    exclusions: ExclusionPolicy = field(default_factory=ExclusionPolicy)


@dataclass(frozen=True)
class VerifierSettings:
    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    max_tokens: int = 200
    request_timeout: float = 30.0
    api_base: Optional[str] = None


@dataclass(frozen=True)
class DictionarySettings:
    url: str = DEFAULT_DICTIONARY_URL
    timeout: float = 10.0


@dataclass(frozen=True)
class LoggingSettings:
    level: str = _DEFAULT_LOG_LEVEL
    verbose: bool = False


@dataclass(frozen=True)
class VocabQuizConfig:
    """Fully resolved configuration for one CLI invocation."""

    user_id: str
    vocabulary_path: Optional[Path]
    quiz: QuizSettings
    verifier: VerifierSettings
    dictionary: DictionarySettings
    logging: LoggingSettings


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    user_id: Optional[str] = None
    advance_delay: Optional[float] = None
    sound: Optional[bool] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    config: VocabQuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults.

    A missing default config file is fine; a missing file that was asked for
    explicitly (``--config`` or ``VOCAB_QUIZ_CONFIG``) is an error.
    """

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    default_path = layout.path_for("config") / CONFIG_FILENAME
    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_path,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        _overlay(table, read_toml(requested_path))
    elif config_path is not None or _has_env_config(env_map):
        raise VocabQuizConfigError(f"Config file not found: {requested_path}")

    user_id = _resolve_string(
        "user.id",
        _pick_first(
            overrides.user_id,
            _parse_env_string(env_map, "USER"),
            table["user"]["id"],
        ),
    )

    quiz_table = table["quiz"]
    advance_delay = _resolve_number(
        "quiz.advance_delay_seconds",
        _pick_first(overrides.advance_delay, quiz_table["advance_delay_seconds"]),
    )
    if advance_delay < 0:
        raise VocabQuizConfigError(
            "quiz.advance_delay_seconds must not be negative."
        )
    sound = _resolve_bool(
        "quiz.sound", _pick_first(overrides.sound, quiz_table["sound"])
    )
    try:
        exclusions = ExclusionPolicy.from_mapping(quiz_table["exclusions"])
    except SelectionError as exc:
        raise VocabQuizConfigError(str(exc)) from exc

    verifier_table = table["verifier"]
    api_base = verifier_table["api_base"]
    if api_base is not None and not isinstance(api_base, str):
        raise VocabQuizConfigError("verifier.api_base must be a string.")
    verifier = VerifierSettings(
        model=_resolve_string("verifier.model", verifier_table["model"]),
        temperature=_resolve_number(
            "verifier.temperature", verifier_table["temperature"]
        ),
        max_tokens=_resolve_positive_int(
            "verifier.max_tokens", verifier_table["max_tokens"]
        ),
        request_timeout=_resolve_number(
            "verifier.request_timeout_seconds",
            verifier_table["request_timeout_seconds"],
        ),
        api_base=api_base or None,
    )

    dictionary_table = table["dictionary"]
    dictionary = DictionarySettings(
        url=_resolve_string("dictionary.url", dictionary_table["url"]),
        timeout=_resolve_number(
            "dictionary.timeout_seconds", dictionary_table["timeout_seconds"]
        ),
    )

    logging_table = table["logging"]
    log_level = _resolve_log_level(
        _pick_first(
            overrides.log_level,
            _parse_env_string(env_map, "LOG_LEVEL"),
            logging_table["level"],
        )
    )
    verbose = _resolve_bool(
        "logging.verbose",
        _pick_first(overrides.verbose, logging_table["verbose"]),
    )

    config = VocabQuizConfig(
        user_id=user_id,
        vocabulary_path=_resolve_vocabulary_path(
            table["vocabulary"]["path"], layout
        ),
        quiz=QuizSettings(
            advance_delay=advance_delay,
            milestones=_resolve_milestones(quiz_table["milestones"]),
            sound=sound,
            exclusions=exclusions,
        ),
        verifier=verifier,
        dictionary=dictionary,
        logging=LoggingSettings(level=log_level, verbose=verbose),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def read_template() -> str:
    """Return the packaged ``vocab_quiz.toml`` template."""

    resource = resources.files("vocab_quiz").joinpath(TEMPLATE_RESOURCE)
    return resource.read_text(encoding="utf-8")


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    """Copy the packaged template to ``path`` with owner-only permissions."""

    if path.exists() and not overwrite:
        raise VocabQuizConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(read_template(), encoding="utf-8")
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def read_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise VocabQuizConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise VocabQuizConfigError(f"Failed to parse {path.name}: {exc}") from exc


def _overlay(
    table: MutableMapping[str, Any],
    loaded: Mapping[str, Any],
    prefix: str = "",
) -> None:
    # File values replace defaults key by key; a key the defaults lack is a typo.
    for key, value in loaded.items():
        name = prefix + key
        if key not in table:
            raise VocabQuizConfigError(f"Unknown configuration key '{name}'.")
        current = table[key]
        if isinstance(current, MutableMapping):
            if not isinstance(value, Mapping):
                raise VocabQuizConfigError(
                    f"'{name}' must be a table, not {type(value).__name__}."
                )
            _overlay(current, value, name + ".")
        else:
            table[key] = value


def _default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    return {
        "user": {"id": _DEFAULT_USER},
        "vocabulary": {"path": None},
        "quiz": {
            "advance_delay_seconds": 2.0,
            "milestones": [5, 10],
            "sound": True,
            "exclusions": {
                "all": True,
                "starred": True,
                "learned": False,
                "custom_sample": True,
                "custom_saved": False,
            },
        },
        "verifier": {
            "model": "gpt-4o-mini",
            "temperature": 0.0,
            "max_tokens": 200,
            "request_timeout_seconds": 30.0,
            "api_base": None,
        },
        "dictionary": {
            "url": DEFAULT_DICTIONARY_URL,
            "timeout_seconds": 10.0,
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL, "verbose": False},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = env_map.get(CONFIG_ENV)
    if env_candidate and env_candidate.strip():
        return Path(env_candidate.strip()).expanduser()
    return default_path


def _has_env_config(env_map: Mapping[str, str]) -> bool:
    env_candidate = env_map.get(CONFIG_ENV)
    return bool(env_candidate and env_candidate.strip())


def _resolve_vocabulary_path(
    value: object, layout: workspace_mod.WorkspaceLayout
) -> Optional[Path]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise VocabQuizConfigError("vocabulary.path must be a string.")
    raw = value.strip()
    if not raw:
        return None
    candidate = Path(raw).expanduser()
    if not candidate.is_absolute():
        candidate = layout.home / candidate
    return candidate.resolve()


def _resolve_milestones(value: object) -> tuple[int, ...]:
    if not isinstance(value, list):
        raise VocabQuizConfigError("quiz.milestones must be a list of integers.")
    result: list[int] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int) or item <= 0:
            raise VocabQuizConfigError(
                "quiz.milestones must contain positive integers."
            )
        if item not in result:
            result.append(item)
    return tuple(sorted(result))


def _resolve_string(name: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise VocabQuizConfigError(f"{name} must be a non-empty string.")
    return value.strip()


def _resolve_number(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise VocabQuizConfigError(f"{name} must be a number.")
    return float(value)


def _resolve_positive_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise VocabQuizConfigError(f"{name} must be a positive integer.")
    return value


def _resolve_bool(name: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise VocabQuizConfigError(f"{name} must be a boolean.")
    return value


def _resolve_log_level(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise VocabQuizConfigError("logging.level must be a non-empty string.")
    level = value.strip().upper()
    if level not in _LOG_LEVELS:
        expected = ", ".join(_LOG_LEVELS)
        raise VocabQuizConfigError(
            f"Unknown log level '{value}'. Expected one of: {expected}."
        )
    return level


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
