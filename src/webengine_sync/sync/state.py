"""Sync metadata persistence layer.

Manages the single JSON document (``webengine.config.json`` at the
workspace root) that maps resource keys to remote identifiers and sync
timestamps::

    {
      "instanceId": "8-abc-123",
      "resources": {
        "view": {"/home": {"remoteId": "11-...", "lastSyncedAt": "..."}},
        "stylesheet": {},
        "script": {}
      }
    }

Key design choices:

* **Write-after-mutate** -- callers ``persist()`` after every change to a
  record so state survives a crash; there is no write-on-exit.
* **Atomic writes** -- ``persist()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Incomplete config is never written** -- without an instance id,
  ``persist()`` is a no-op and the last durable copy is kept.
* **Legacy layout** -- documents written by the original editor
  extension (``instance_zuid`` plus ``instance.views/styles/scripts``)
  are migrated on load.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from ..errors import StateCorrupted
from .classifier import canonical_key
from .models import ResourceKind, ResourceRecord

logger = logging.getLogger(__name__)

_LEGACY_SECTIONS = {
    "views": ResourceKind.VIEW,
    "styles": ResourceKind.STYLESHEET,
    "scripts": ResourceKind.SCRIPT,
}


def _empty_resources() -> dict[ResourceKind, dict[str, ResourceRecord]]:
    return {kind: {} for kind in ResourceKind}


@dataclass
class InstanceConfig:
    """Process-wide sync state for one remote instance.

    The access token is held in memory only and never persisted.
    """

    instance_id: str | None = None
    token: str | None = field(default=None, repr=False)
    resources: dict[ResourceKind, dict[str, ResourceRecord]] = field(
        default_factory=_empty_resources
    )

    @property
    def is_complete(self) -> bool:
        return bool(self.instance_id)

    def to_document(self) -> dict:
        return {
            "instanceId": self.instance_id,
            "resources": {
                kind.value: {
                    key: record.to_state()
                    for key, record in sorted(records.items())
                }
                for kind, records in self.resources.items()
            },
        }


class SyncMetadataStore:
    """Load, query, mutate and persist ``InstanceConfig``.

    Args:
        state_path: Path of the JSON state document.
        instance_id: Fallback instance id when the document has none
            (e.g. supplied via configuration).
        token: Access token to attach to the loaded config.
    """

    def __init__(
        self,
        state_path: Path,
        instance_id: str | None = None,
        token: str | None = None,
    ) -> None:
        self.state_path = state_path
        self._fallback_instance_id = instance_id
        self._token = token
        self.config = InstanceConfig(instance_id=instance_id, token=token)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> InstanceConfig:
        """Load state from disk, replacing the in-memory config.

        Returns:
            The loaded config.  A missing file yields an empty config
            carrying the fallback instance id.

        Raises:
            StateCorrupted: If the file exists but cannot be parsed.
        """
        if not self.state_path.exists():
            logger.debug("No state document at %s", self.state_path)
            self.config = InstanceConfig(
                instance_id=self._fallback_instance_id, token=self._token
            )
            return self.config

        try:
            with open(self.state_path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise StateCorrupted(
                f"Cannot read state document {self.state_path}: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise StateCorrupted(
                f"State document {self.state_path} is not a JSON object"
            )

        try:
            if "resources" in data or "instanceId" in data:
                config = self._from_document(data)
            else:
                config = self._from_legacy(data)
        except ValidationError as exc:
            raise StateCorrupted(
                f"Invalid record in {self.state_path}: {exc}"
            ) from exc

        if not config.instance_id:
            config.instance_id = self._fallback_instance_id
        config.token = self._token
        self.config = config
        logger.debug(
            "Loaded state for instance %s (%d records)",
            config.instance_id,
            sum(len(r) for r in config.resources.values()),
        )
        return config

    def persist(self) -> bool:
        """Write the current config to disk atomically.

        Safe to call redundantly.  Does nothing when the config has no
        instance id.

        Returns:
            ``True`` if the document was written.
        """
        if not self.config.is_complete:
            logger.debug(
                "Not persisting state: instance id missing (%s)",
                self.state_path,
            )
            return False

        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.state_path.parent), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self.config.to_document(), fh, indent=4)
                fh.write("\n")
            os.replace(tmp_path, self.state_path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return True

    # ------------------------------------------------------------------
    # Record helpers
    # ------------------------------------------------------------------

    def get(self, kind: ResourceKind, key: str) -> ResourceRecord | None:
        """Return the record for *key*, or ``None`` if untracked."""
        return self.config.resources[kind].get(key)

    def put(
        self, kind: ResourceKind, key: str, record: ResourceRecord
    ) -> None:
        """Insert or replace the record for *key* (in memory only)."""
        self.config.resources[kind][key] = record

    def remove(self, kind: ResourceKind, key: str) -> None:
        """Drop the record for *key*.  No-op if absent."""
        self.config.resources[kind].pop(key, None)

    def replace_all(
        self, kind: ResourceKind, records: dict[str, ResourceRecord]
    ) -> None:
        """Replace every record of *kind* (used when bootstrapping)."""
        self.config.resources[kind] = dict(records)

    def records(self, kind: ResourceKind) -> dict[str, ResourceRecord]:
        """Copy of the records of *kind*."""
        return dict(self.config.resources[kind])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _from_document(data: dict) -> InstanceConfig:
        config = InstanceConfig(instance_id=data.get("instanceId") or None)
        resources = data.get("resources") or {}
        for kind in ResourceKind:
            for key, raw in (resources.get(kind.value) or {}).items():
                config.resources[kind][key] = ResourceRecord.model_validate(
                    raw
                )
        return config

    @staticmethod
    def _from_legacy(data: dict) -> InstanceConfig:
        config = InstanceConfig(
            instance_id=data.get("instance_zuid") or None
        )
        sections = data.get("instance") or {}
        for section, kind in _LEGACY_SECTIONS.items():
            for key, raw in (sections.get(section) or {}).items():
                if not isinstance(raw, dict) or not raw.get("zuid"):
                    continue
                config.resources[kind][
                    canonical_key(kind, key)
                ] = ResourceRecord(
                    remote_id=raw["zuid"],
                    subtype=raw.get("type"),
                    created_at=raw.get("createdAt"),
                    updated_at=raw.get("updatedAt"),
                    last_synced_at=raw.get("lastSyncedAt"),
                )
        if any(config.resources.values()):
            logger.info("Migrated legacy state document layout")
        return config
