"""Core shared helpers for vocab-quiz."""

from __future__ import annotations

from .ai import load_client
from .logging import JsonLogFormatter, configure_logging, get_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "load_client",
    "JsonLogFormatter",
    "configure_logging",
    "get_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
