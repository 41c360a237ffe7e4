"""Startup and shutdown of the MCP host."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

from ..config import Config
from ..config_loader import discover_config_files, load_hierarchical_config
from ..config_schema import build_config, to_runtime_config
from ..core.async_utils import run_sync
from ..errors import SyncError
from ..sync.decisions import PendingDecisionRegistry
from ..sync.orchestrator import SyncOrchestrator
from ..sync.prompts import ScriptedPrompter
from ..sync.session import SyncSession
from .tools.registry import ToolContext

logger = logging.getLogger(__name__)

_CLI_KEYS = ("token", "instance", "workspace")


def _stderr_print(msg: str) -> None:
    # stdout belongs to the JSON-RPC stream
    print(msg, file=sys.stderr, flush=True)


def _load_runtime_config(overrides: dict[str, Any]) -> Config:
    """Merge .env, YAML, environment and *overrides* into a ``Config``.

    Raises:
        ValueError: If the merged values do not describe a usable workspace.
    """
    load_dotenv()

    config_files = discover_config_files()
    unified = build_config(load_hierarchical_config() if config_files else {})
    config = to_runtime_config(unified, cli_overrides=overrides)

    origin = [f"config file: {config_files[0]}"] if config_files else []
    if any(key in overrides for key in _CLI_KEYS):
        origin.append("CLI arguments")
    origin.append("environment variables")
    logger.info("Configuration loaded from: %s", ", ".join(origin))
    _stderr_print(f"  Configuration loaded from: {', '.join(origin)}")
    _stderr_print(f"  Workspace: {config.workspace_root}")
    return config


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Bring the sync session up before the first tool call.

    The configuration is resolved (CLI > env vars > .env > YAML > defaults),
    the workspace state is opened and the access token is checked against
    the remote.  Any of these failing stops the server before it accepts a
    client.  Prompts inside tools are answered by a ``ScriptedPrompter``
    fed from ``webengine_decide`` replays.

    Args:
        config_overrides: Values from the command line (token, instance,
            workspace, debug).

    Yields:
        ``{"context": ToolContext, "config": Config}``

    Raises:
        RuntimeError: On a configuration error or a rejected token.
    """
    logger.info("MCP server starting...")
    _stderr_print("webengine-sync MCP server starting...")

    try:
        config = _load_runtime_config(config_overrides or {})
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        raise RuntimeError(f"Configuration error: {e}") from e

    _stderr_print("  Validating access token...")
    try:
        session = SyncSession.open(config, ScriptedPrompter())
        await run_sync(session.ensure_credentials)
    except SyncError as e:
        logger.error("Startup validation failed: %s", e)
        _stderr_print(f"ERROR: {e}")
        _stderr_print("  Check WEBENGINE_TOKEN and WEBENGINE_INSTANCE.")
        raise RuntimeError(f"Startup validation failed: {e}") from e

    _stderr_print(f"  Instance: {session.instance_id}")
    _stderr_print("Server ready. Waiting for MCP client connection...")

    yield {
        "context": ToolContext(
            orchestrator=SyncOrchestrator(session),
            decisions=PendingDecisionRegistry(),
        ),
        "config": config,
    }

    logger.info("MCP server shutting down")
    _stderr_print("webengine-sync MCP server shutting down.")
