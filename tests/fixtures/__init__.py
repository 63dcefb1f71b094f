"""Shared testing fixtures for the vocab_quiz test suite."""

from .openai import FakeChatClient  # noqa: F401
from .store import MemoryWordStore  # noqa: F401
from .verifier import ScriptedVerifier  # noqa: F401

__all__ = [
    "FakeChatClient",
    "MemoryWordStore",
    "ScriptedVerifier",
]
