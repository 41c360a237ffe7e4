"""MCP tool handlers for web-engine file sync.

Defines these tools:

- ``webengine_sync_all`` -- bootstrap the local tree from the instance.
- ``webengine_sync_file`` -- push one file (optionally saving a buffer).
- ``webengine_pull`` / ``webengine_pull_published`` -- overwrite one file
  with the draft or live copy.
- ``webengine_publish`` -- sync then publish one file.
- ``webengine_decide`` -- answer a pending decision.
- ``webengine_status`` -- list tracked resources.

An MCP client cannot be prompted mid-call.  When an operation reaches a
choice point, the handler returns the question with a correlation token
instead; ``webengine_decide`` replays the operation with the answer.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

import mcp.types as types

from ...core.async_utils import run_sync
from ...sync.decisions import PendingDecision
from ...sync.models import OperationResult, SyncOutcome, Variant
from ...sync.orchestrator import FileRequest, SyncOrchestrator
from ...sync.prompts import DecisionRequired, ScriptedPrompter
from ...sync.reporter import (
    format_result,
    format_status,
    result_to_json,
    status_to_json,
)
from .errors import build_error_response, translate_sync_error
from .registry import ToolContext, ToolSpec

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

_PATH_PROPERTY = {
    "type": "string",
    "description": (
        "File path, absolute or relative to the workspace root "
        "(e.g. webengine/styles/site.css)"
    ),
}
_CONTENT_PROPERTY = {
    "type": "string",
    "description": "Editor buffer content. Omit to use the file on disk.",
}
_DIRTY_PROPERTY = {
    "type": "boolean",
    "default": False,
    "description": "The buffer has unsaved edits",
}


def _file_schema(*extra: tuple[str, dict]) -> dict:
    properties: dict[str, Any] = {
        "path": _PATH_PROPERTY,
        "content": _CONTENT_PROPERTY,
        "is_dirty": _DIRTY_PROPERTY,
    }
    properties.update(dict(extra))
    return {"type": "object", "properties": properties, "required": ["path"]}


# ---------------------------------------------------------------------------
# Operation runners (run in a worker thread)
# ---------------------------------------------------------------------------


def _request(args: dict) -> FileRequest:
    path = args.get("path")
    if not path or not isinstance(path, str):
        raise ValueError("path is required")
    return FileRequest(
        path=path,
        content=args.get("content"),
        is_dirty=bool(args.get("is_dirty", False)),
    )


def _run_sync_all(
    orchestrator: SyncOrchestrator, args: dict, prompter: ScriptedPrompter
) -> OperationResult:
    return orchestrator.sync_all()


def _run_sync_file(
    orchestrator: SyncOrchestrator, args: dict, prompter: ScriptedPrompter
) -> OperationResult:
    return orchestrator.sync_file(
        _request(args),
        force_save=bool(args.get("save", False)),
        prompter=prompter,
    )


def _run_pull(
    orchestrator: SyncOrchestrator, args: dict, prompter: ScriptedPrompter
) -> OperationResult:
    return orchestrator.pull(_request(args), Variant.DRAFT, prompter=prompter)


def _run_pull_published(
    orchestrator: SyncOrchestrator, args: dict, prompter: ScriptedPrompter
) -> OperationResult:
    return orchestrator.pull(_request(args), Variant.LIVE, prompter=prompter)


def _run_publish(
    orchestrator: SyncOrchestrator, args: dict, prompter: ScriptedPrompter
) -> OperationResult:
    return orchestrator.publish(_request(args), prompter=prompter)


_Runner = Callable[[SyncOrchestrator, dict, ScriptedPrompter], OperationResult]

_OPERATIONS: dict[str, _Runner] = {
    "webengine_sync_all": _run_sync_all,
    "webengine_sync_file": _run_sync_file,
    "webengine_pull": _run_pull,
    "webengine_pull_published": _run_pull_published,
    "webengine_publish": _run_publish,
}


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------


def _decision_response(pending: PendingDecision) -> types.CallToolResult:
    prompt = pending.prompt
    payload = {
        "status": "decision_required",
        "token": pending.token,
        "prompt_id": prompt.prompt_id,
        "message": prompt.message,
        "choices": list(prompt.choices),
        "modal": prompt.modal,
    }
    text = (
        f"Decision required ({prompt.prompt_id}): {prompt.message}\n"
        f"Choices: {' | '.join(prompt.choices)}\n\n"
        f"Call webengine_decide with token={pending.token} and one of the "
        "choices to continue.\n\n"
        f"{json.dumps(payload, indent=2)}"
    )
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)]
    )


def _result_response(
    result: OperationResult, prompter: ScriptedPrompter
) -> types.CallToolResult:
    if result.outcome == SyncOutcome.FAILED and result.report is None:
        return translate_sync_error(
            result.error_type,
            f"{result.message} (phase: {result.phase})",
        )

    data = result_to_json(result)
    if prompter.diffs and "diff" not in data:
        data["diff"] = prompter.diffs[-1].diff
    text = f"{format_result(result)}\n\n{json.dumps(data, indent=2)}"
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=result.outcome == SyncOutcome.FAILED,
    )


async def _run_operation(
    context: ToolContext,
    operation: str,
    args: dict,
    answers: dict[str, str],
) -> types.CallToolResult:
    """Run (or replay) an operation with the answers collected so far."""
    runner = _OPERATIONS[operation]
    prompter = ScriptedPrompter(answers)
    try:
        result = await run_sync(runner, context.orchestrator, args, prompter)
    except DecisionRequired as exc:
        pending = context.decisions.open(operation, args, answers, exc.prompt)
        return _decision_response(pending)
    return _result_response(result, prompter)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _operation_handler(operation: str):
    async def handler(
        context: ToolContext, args: dict
    ) -> types.CallToolResult:
        return await _run_operation(context, operation, args, {})

    handler.__name__ = f"_handle_{operation}"
    return handler


async def _handle_decide(
    context: ToolContext, args: dict
) -> types.CallToolResult:
    token = args.get("token")
    choice = args.get("choice")
    if not token or not choice:
        return build_error_response(
            "validation_error",
            "token and choice are required",
            "Pass the token returned by the previous tool call and one of its choices.",
        )

    pending = context.decisions.get(token)
    if pending is None:
        return build_error_response(
            "not_found",
            f"No pending decision for token '{token}'.",
            "The decision expired or was already answered. Re-run the original tool.",
        )
    if choice not in pending.prompt.choices:
        return build_error_response(
            "validation_error",
            f"'{choice}' is not a valid choice for {pending.prompt.prompt_id}.",
            f"Use one of: {', '.join(pending.prompt.choices)}.",
        )

    context.decisions.take(token)
    answers = {**pending.answers, pending.prompt.prompt_id: choice}
    logger.info(
        "Decision %s answered with %r; replaying %s",
        token,
        choice,
        pending.operation,
    )
    return await _run_operation(
        context, pending.operation, pending.arguments, answers
    )


async def _handle_status(
    context: ToolContext, args: dict
) -> types.CallToolResult:
    config = context.orchestrator.session.store.config
    text = (
        f"{format_status(config)}\n\n"
        f"{json.dumps(status_to_json(config), indent=2)}"
    )
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)]
    )


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


def _annotations(read_only: bool, destructive: bool) -> types.ToolAnnotations:
    return types.ToolAnnotations(
        readOnlyHint=read_only,
        destructiveHint=destructive,
        idempotentHint=read_only,
        openWorldHint=not read_only,
    )


SYNC_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="webengine_sync_all",
            description=(
                "Download every working copy (views, stylesheets, scripts) "
                "from the instance into the local webengine/ folder and "
                "rebuild the sync state."
            ),
            annotations=_annotations(read_only=False, destructive=True),
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        read_only=False,
        handler=_operation_handler("webengine_sync_all"),
    ),
    ToolSpec(
        tool=types.Tool(
            name="webengine_sync_file",
            description=(
                "Push one local file to its remote draft. Warns before "
                "overwriting a remote copy that changed since the last sync."
            ),
            annotations=_annotations(read_only=False, destructive=False),
            inputSchema=_file_schema(
                (
                    "save",
                    {
                        "type": "boolean",
                        "default": False,
                        "description": "Write content to disk first without asking",
                    },
                )
            ),
        ),
        read_only=False,
        handler=_operation_handler("webengine_sync_file"),
    ),
    ToolSpec(
        tool=types.Tool(
            name="webengine_pull",
            description="Overwrite one local file with its remote draft.",
            annotations=_annotations(read_only=False, destructive=True),
            inputSchema=_file_schema(),
        ),
        read_only=False,
        handler=_operation_handler("webengine_pull"),
    ),
    ToolSpec(
        tool=types.Tool(
            name="webengine_pull_published",
            description="Overwrite one local file with its published (live) version.",
            annotations=_annotations(read_only=False, destructive=True),
            inputSchema=_file_schema(),
        ),
        read_only=False,
        handler=_operation_handler("webengine_pull_published"),
    ),
    ToolSpec(
        tool=types.Tool(
            name="webengine_publish",
            description=(
                "Sync one file to its remote draft, then publish it. "
                "Always asks for confirmation."
            ),
            annotations=_annotations(read_only=False, destructive=False),
            inputSchema=_file_schema(),
        ),
        read_only=False,
        handler=_operation_handler("webengine_publish"),
    ),
    ToolSpec(
        tool=types.Tool(
            name="webengine_decide",
            description=(
                "Answer a pending decision returned by another webengine "
                "tool and continue that operation."
            ),
            annotations=_annotations(read_only=False, destructive=False),
            inputSchema={
                "type": "object",
                "properties": {
                    "token": {
                        "type": "string",
                        "description": "Token of the pending decision",
                    },
                    "choice": {
                        "type": "string",
                        "description": "One of the offered choices",
                    },
                },
                "required": ["token", "choice"],
            },
        ),
        read_only=False,
        handler=_handle_decide,
    ),
    ToolSpec(
        tool=types.Tool(
            name="webengine_status",
            description="List tracked views, stylesheets and scripts with their last sync time.",
            annotations=_annotations(read_only=True, destructive=False),
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        read_only=True,
        handler=_handle_status,
    ),
]
