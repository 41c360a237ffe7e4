"""Tool table for the MCP host.

- ``ToolContext`` is handed to every handler: the orchestrator bound to the
  workspace, and the decisions waiting for an answer.
- ``ToolSpec`` ties an MCP ``Tool`` to its handler and says whether the
  tool only reads.
- ``ToolRegistry`` keeps the specs exposed by this server (all of them, or
  the read-only ones under ``--read-only``) and dispatches calls, turning
  every exception into a structured error result.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

import mcp.types as types

from ...sync.decisions import PendingDecisionRegistry
from ...sync.orchestrator import SyncOrchestrator
from .errors import translate_exception

logger = logging.getLogger(__name__)

Handler = Callable[["ToolContext", dict], Awaitable[types.CallToolResult]]


@dataclass
class ToolContext:
    orchestrator: SyncOrchestrator
    decisions: PendingDecisionRegistry


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """One MCP tool.

    Attributes:
        tool: Name, description, input schema and annotations.
        read_only: The tool never touches local files, state or the remote.
        handler: ``await handler(context, args)`` runs the tool.
    """

    tool: types.Tool
    read_only: bool
    handler: Handler


class ToolRegistry:
    """The tools this server exposes, keyed by name in registration order."""

    def __init__(self, specs: Iterable[ToolSpec], read_only: bool = False):
        self.read_only = read_only
        self._by_name = {
            spec.tool.name: spec
            for spec in specs
            if spec.read_only or not read_only
        }

    def list_tools(self) -> list[types.Tool]:
        return [spec.tool for spec in self._by_name.values()]

    def tool_count(self) -> int:
        return len(self._by_name)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        context: ToolContext,
    ) -> types.CallToolResult:
        """Run tool *name* and return its result.

        Handler exceptions never escape: they come back as ``isError``
        results with a corrective action (see ``translate_exception``).

        Raises:
            ValueError: If *name* is not exposed by this registry.
        """
        spec = self._by_name.get(name)
        if spec is None:
            hint = " (read-only mode)" if self.read_only else ""
            raise ValueError(f"Unknown tool: {name}{hint}")

        logger.debug("Calling %s with %s", name, sorted(arguments or {}))
        try:
            return await spec.handler(context, dict(arguments or {}))
        except Exception as exc:
            return translate_exception(name, exc)
