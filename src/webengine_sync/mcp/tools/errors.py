"""Error response builders for MCP tool handlers.

Structured error responses carry a corrective action so AI agents can
recover without human intervention.
"""

import logging

import mcp.types as types

from ...errors import SyncError

logger = logging.getLogger(__name__)


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (auth_error, not_found, remote_unavailable,
            version_unavailable, unsupported_batch, state_corrupted,
            validation_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


# error class name -> (error_type, corrective action)
_SYNC_ERRORS: dict[str, tuple[str, str]] = {
    "AuthError": (
        "auth_error",
        "Set WEBENGINE_TOKEN to a valid developer token (and WEBENGINE_INSTANCE "
        "or the instanceId of webengine.config.json), then restart the server.",
    ),
    "MappingError": (
        "not_found",
        "Use webengine_status to list tracked files, or run webengine_sync_all "
        "to track every remote resource.",
    ),
    "RemoteUnavailable": (
        "remote_unavailable",
        "Check network connectivity and the instance id, then retry.",
    ),
    "VersionUnavailable": (
        "version_unavailable",
        "Retry webengine_publish once the draft reports a version, or publish "
        "from the instance manager.",
    ),
    "UnsupportedBatch": (
        "unsupported_batch",
        "Delete files one at a time.",
    ),
    "StateCorrupted": (
        "state_corrupted",
        "Repair or remove webengine.config.json, then run webengine_sync_all.",
    ),
}


def translate_sync_error(error_type: str | None, message: str) -> types.CallToolResult:
    """Translate a failed sync operation into a structured error response.

    Args:
        error_type: Class name of the ``SyncError`` (``AuthError``...).
        message: Message of the failed operation.
    """
    category, action = _SYNC_ERRORS.get(
        error_type or "",
        ("sync_error", "Check the server log and retry."),
    )
    return build_error_response(category, message, action)


def translate_exception(tool: str, exc: Exception) -> types.CallToolResult:
    """Structured result for an exception raised by the handler of *tool*.

    ``SyncError`` keeps its category, ``ValueError`` means bad arguments,
    anything else is a server error and is logged with its traceback.
    """
    if isinstance(exc, SyncError):
        logger.warning("Sync error in %s: %s", tool, exc)
        return translate_sync_error(exc.error_type, str(exc))
    if isinstance(exc, ValueError):
        return build_error_response(
            "validation_error",
            str(exc),
            "Check the arguments against the tool's input schema and retry.",
        )
    logger.error("Unexpected error in tool %s", tool, exc_info=exc)
    return build_error_response(
        "server_error",
        str(exc) or type(exc).__name__,
        "Check the server log and retry.",
    )
