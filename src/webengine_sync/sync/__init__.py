"""Sync engine for web-engine artifacts.

Modules:

- ``classifier``   -- ``ResourceClassifier``: local path to resource key.
- ``dispatch``     -- ``KindSpec`` table: per-kind remote behaviour.
- ``state``        -- ``SyncMetadataStore``: the persisted state document.
- ``conflict``     -- timestamp comparison (remote ahead or not).
- ``prompts``      -- choice points and prompters.
- ``decisions``    -- pending decisions for non-interactive hosts.
- ``session``      -- ``SyncSession``: explicit per-host context.
- ``orchestrator`` -- ``SyncOrchestrator``: the operation state machine.
- ``events``       -- editor events and ``EventRouter``.
- ``reporter``     -- human-readable and JSON result formatting.

Only the leaf modules are re-exported here; ``session``, ``orchestrator``
and ``events`` depend on the remote client and are imported directly::

    from webengine_sync.sync.orchestrator import FileRequest, SyncOrchestrator
"""

from .classifier import ResourceClassifier
from .models import (
    OperationResult,
    ResourceKind,
    ResourceRecord,
    SyncOutcome,
    Variant,
)
from .prompts import ConsolePrompter, DecisionRequired, ScriptedPrompter
from .state import InstanceConfig, SyncMetadataStore

__all__ = [
    "ConsolePrompter",
    "DecisionRequired",
    "InstanceConfig",
    "OperationResult",
    "ResourceClassifier",
    "ResourceKind",
    "ResourceRecord",
    "ScriptedPrompter",
    "SyncMetadataStore",
    "SyncOutcome",
    "Variant",
]
