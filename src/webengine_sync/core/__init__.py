"""Remote transport shared between the CLI and the MCP server."""

from .async_utils import run_sync
from .client import RemoteResourceClient, WebEngineClient

__all__ = ["RemoteResourceClient", "WebEngineClient", "run_sync"]
