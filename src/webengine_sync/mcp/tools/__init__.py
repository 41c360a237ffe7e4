"""MCP tool handlers for web-engine sync.

This package wraps the sync orchestrator with async handlers, a
decision/replay protocol for prompts and structured error responses.
"""

from .errors import build_error_response, translate_sync_error
from .registry import ToolContext, ToolRegistry, ToolSpec
from .sync import SYNC_SPECS

ALL_SPECS: list[ToolSpec] = list(SYNC_SPECS)

__all__ = [
    "ALL_SPECS",
    "SYNC_SPECS",
    "ToolContext",
    "ToolRegistry",
    "ToolSpec",
    "build_error_response",
    "translate_sync_error",
]
