"""Pydantic models for the sync engine.

Defines the data contracts shared by all sync modules:

- ``ResourceKind``: view, stylesheet or script.
- ``ResourceRecord``: what we know about one synced resource.
- ``ClassifiedPath``: result of mapping a local path to a resource key.
- ``RemoteSnapshot`` / ``CreatedResource``: normalised remote responses.
- ``ConflictStatus``, ``SyncOperation``, ``OperationState``,
  ``SyncOutcome``: enums driving the orchestrator state machine.
- ``OperationResult`` / ``SyncAllReport``: what an operation returns.

All models are frozen (immutable); records are replaced, never mutated.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ResourceKind(str, Enum):
    """Kind of remote resource backing a local file."""

    VIEW = "view"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"


class Variant(str, Enum):
    """Which copy of a resource to fetch."""

    DRAFT = "draft"
    LIVE = "live"


class ResourceRecord(BaseModel):
    """Sync metadata for a single resource key.

    Attributes:
        remote_id: Identifier assigned by the remote on create.
        subtype: Remote type string (e.g. ``text/css``, ``snippet``).
        created_at: Remote creation time as reported by the remote.
        updated_at: Last known remote modification time.
        last_synced_at: Time of the last successful push or pull.
    """

    remote_id: str = Field(alias="remoteId")
    subtype: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    last_synced_at: str | None = Field(default=None, alias="lastSyncedAt")

    model_config = {"frozen": True, "populate_by_name": True}

    def to_state(self) -> dict:
        """Serialise with the camelCase keys used in the state document."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ClassifiedPath(BaseModel):
    """A local path mapped onto the resource model.

    Attributes:
        key: Canonical resource key (``/home``, ``site.css``).
        kind: Resource kind derived from the extension.
        extension: Lower-case extension without the dot, or ``None``.
        local_path: Absolute path of the local file.
    """

    key: str
    kind: ResourceKind
    extension: str | None = None
    local_path: Path

    model_config = {"frozen": True}


class RemoteSnapshot(BaseModel):
    """Remote content fetched for the duration of one decision."""

    code: str = ""
    updated_at: str | None = None
    version: int | str | None = None

    model_config = {"frozen": True}


class CreatedResource(BaseModel):
    """Fields returned by the remote when a resource is created."""

    remote_id: str
    subtype: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    model_config = {"frozen": True}


class ConflictStatus(str, Enum):
    """Outcome of comparing remote and local timestamps."""

    UNCHANGED = "unchanged"
    REMOTE_AHEAD = "remote_ahead"
    UNKNOWN = "unknown"


class SyncOperation(str, Enum):
    """Operations the orchestrator can run."""

    PUSH = "push"
    PULL_DRAFT = "pull_draft"
    PULL_PUBLISHED = "pull_published"
    PUBLISH = "publish"
    CREATE = "create"
    DELETE = "delete"
    SYNC_ALL = "sync_all"


class OperationState(str, Enum):
    """States of the per-operation state machine."""

    IDLE = "idle"
    VALIDATING = "validating"
    FETCHING_REMOTE = "fetching_remote"
    CONFLICT_CHECK = "conflict_check"
    AWAITING_USER_DECISION = "awaiting_user_decision"
    EXECUTING = "executing"
    PERSISTING = "persisting"


class SyncOutcome(str, Enum):
    """Terminal outcome of one operation."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"
    FAILED = "failed"


class KindSyncSummary(BaseModel):
    """Per-kind counts for a sync-all run."""

    kind: ResourceKind
    written: int = 0
    ignored: int = 0
    error: str | None = None

    model_config = {"frozen": True}


class SyncAllReport(BaseModel):
    """Aggregate report for bootstrapping the local tree from the remote."""

    instance_id: str
    kinds: list[KindSyncSummary] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def total_written(self) -> int:
        return sum(k.written for k in self.kinds)

    @property
    def errors(self) -> list[KindSyncSummary]:
        return [k for k in self.kinds if k.error]


class OperationResult(BaseModel):
    """Result of one orchestrator operation.

    Attributes:
        operation: Which operation ran.
        outcome: Terminal outcome.
        message: User-facing message.
        key: Resource key, when the path was classified.
        kind: Resource kind, when the path was classified.
        phase: Phase that failed (only for ``FAILED``).
        error_type: Error class name (only for ``FAILED``).
        diff: Unified diff produced by a "show diff" decision.
        trail: States visited, in order.
        report: Per-kind summary (only for sync-all).
    """

    operation: SyncOperation
    outcome: SyncOutcome
    message: str
    key: str | None = None
    kind: ResourceKind | None = None
    phase: str | None = None
    error_type: str | None = None
    diff: str | None = None
    trail: list[OperationState] = []
    report: SyncAllReport | None = None

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        """``True`` unless the operation failed."""
        return self.outcome != SyncOutcome.FAILED
