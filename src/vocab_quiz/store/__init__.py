"""Word store implementations and vocabulary sources."""

from __future__ import annotations

from .base import StoreError, WordStore
from .dictionary import fetch_definitions, lookup_definition, split_word_list
from .json_store import JsonWordStore
from .vocabulary import load_vocabulary, parse_custom_entries

__all__ = [
    "StoreError",
    "WordStore",
    "JsonWordStore",
    "fetch_definitions",
    "lookup_definition",
    "split_word_list",
    "load_vocabulary",
    "parse_custom_entries",
]
