"""Error taxonomy for sync operations.

Every error carries the *phase* of the operation it interrupted so the
message shown to the user identifies where the failure happened:

- ``validation`` -- credentials, path mapping, batch checks.
- ``fetch``      -- reading the remote snapshot.
- ``conflict``   -- deciding whether local or remote is newer.
- ``write``      -- pushing to the remote or writing the local file.
- ``publish``    -- the remote publish call and its version token.

None of these errors is fatal to the process: the orchestrator turns each
one into a ``FAILED`` operation result.
"""

from __future__ import annotations

from enum import Enum


class Phase(str, Enum):
    """Operation phase in which an error was raised."""

    VALIDATION = "validation"
    FETCH = "fetch"
    CONFLICT = "conflict"
    WRITE = "write"
    PUBLISH = "publish"


class SyncError(Exception):
    """Base class for all sync errors.

    Args:
        message: Human-readable description shown to the user.
        phase: Phase in which the error occurred.
    """

    default_phase = Phase.VALIDATION

    def __init__(self, message: str, phase: Phase | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.phase = phase or self.default_phase

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return f"[{self.phase.value}] {self.message}"


class AuthError(SyncError):
    """Missing, invalid or expired access token."""


class MappingError(SyncError):
    """Path is not a managed resource, or has no remote record."""


class RemoteUnavailable(SyncError):
    """A remote call failed (network error or error response)."""

    default_phase = Phase.FETCH

    def __init__(
        self,
        message: str,
        phase: Phase | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, phase)
        self.status_code = status_code


class VersionUnavailable(SyncError):
    """Publish attempted without a version token for a version-gated kind."""

    default_phase = Phase.PUBLISH


class UnsupportedBatch(SyncError):
    """More than one file in a single delete event."""


class StateCorrupted(SyncError):
    """The persisted state document could not be parsed."""
