"""Vocabulary quiz with verified sentences and definition review."""

__version__ = "0.1.0"
