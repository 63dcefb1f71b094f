"""Exception hierarchy for word selection and session setup."""

from __future__ import annotations

__all__ = [
    "QuizError",
    "SelectionError",
    "EmptySetError",
    "NoCustomWordsError",
    "InvalidCountError",
    "ConfigurationError",
]


class QuizError(RuntimeError):
    """Base class for recoverable quiz failures."""


class SelectionError(QuizError):
    """Raised when a word set cannot be built from the requested options."""


class EmptySetError(SelectionError):
    """Raised when the filtered word pool has no usable words."""


class NoCustomWordsError(EmptySetError):
    """Raised when the saved custom list is empty; the user must add words."""


class InvalidCountError(SelectionError):
    """Raised when a custom sample size is outside ``1..available``."""

    def __init__(self, count: int, available: int) -> None:
        self.count = count
        self.available = available
        super().__init__(
            f"Invalid word count {count}. Only {available} words available "
            "(excluding known and learned words)."
        )


class ConfigurationError(QuizError):
    """Raised when a word set cannot support a four-choice question."""
