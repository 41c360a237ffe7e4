"""MCP server for web-engine file sync using stdio transport.

This module implements the Model Context Protocol server that lets AI
agents push, pull and publish the views, stylesheets and scripts of a
workspace.

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..logger import setup_logging
from .lifespan import server_lifespan
from .tools import ALL_SPECS, ToolContext, ToolRegistry, build_error_response

logger = logging.getLogger(__name__)

server = Server("webengine-sync")

# Initialized in main()
_context: ToolContext | None = None
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_context() -> ToolContext:
    """Get the global ToolContext.

    Raises:
        RuntimeError: If the context is not initialized
    """
    if _context is None:
        raise RuntimeError(
            "ToolContext not initialized. Server lifespan not started."
        )
    return _context


def set_context(context: ToolContext | None) -> None:
    global _context
    _context = context


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List registered tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch."""
    context = get_context()
    try:
        return await get_registry().call_tool(name, arguments, context)
    except ValueError as e:
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Logging is set up for MCP mode (file only, never stdout) before the
    stdio transport starts.
    """
    overrides = config_overrides or {}
    setup_logging(
        mode="mcp",
        debug=bool(overrides.get("debug", False)),
        log_file=overrides.get("log_file"),
    )

    registry = ToolRegistry(
        ALL_SPECS, read_only=bool(overrides.get("read_only", False))
    )
    logger.info(
        "Registered %d tools (of %d total)",
        registry.tool_count(),
        len(ALL_SPECS),
    )
    set_registry(registry)

    # set_context() is called here rather than in the lifespan so that
    # running this file as __main__ installs the context on this module.
    async with server_lifespan(config_overrides=overrides) as ctx:
        set_context(ctx["context"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="webengine-sync",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_context(None)
            set_registry(None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webengine-sync-mcp",
        description="MCP server for syncing web-engine views, stylesheets and scripts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with settings from .env / config.yml
  webengine-sync-mcp

  # Point at a workspace and instance explicitly
  webengine-sync-mcp --workspace ~/sites/blog --instance 8-abc123-def456

  # Only expose read-only tools
  webengine-sync-mcp --read-only

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr.
        """,
    )
    parser.add_argument(
        "--token",
        help="Override access token (visible in process list; prefer WEBENGINE_TOKEN)",
    )
    parser.add_argument("--instance", help="Override instance id")
    parser.add_argument("--workspace", help="Override workspace root")
    parser.add_argument(
        "--log-file",
        help="Log file path (default: LOG_FILE or /tmp/webengine-sync-mcp.log)",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Only register tools that never modify files, state or the instance",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"webengine-sync-mcp version {__version__}",
    )
    return parser


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args()

    config_overrides = {
        key: value
        for key, value in (
            ("token", args.token),
            ("instance", args.instance),
            ("workspace", args.workspace),
            ("log_file", args.log_file),
            ("read_only", args.read_only or None),
            ("debug", args.debug or None),
        )
        if value
    }

    if config_overrides:
        override_keys = [k for k in config_overrides if k != "token"]
        if override_keys:
            print(
                f"Config overrides from CLI: {', '.join(override_keys)}",
                file=sys.stderr,
            )

    try:
        asyncio.run(main(config_overrides=config_overrides))
    except RuntimeError:
        # Already reported on stderr by the lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
