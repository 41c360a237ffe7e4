"""Editor events and their routing to orchestrator operations.

Hosts translate whatever their editor or file watcher emits into one of
``FileSaved``, ``FileCreated`` or ``FileDeleted`` and hand it to an
``EventRouter``.  The router honours the ``sync_on_save`` and
``sync_on_delete`` settings; creation is always synced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .models import OperationResult
from .orchestrator import FileRequest, SyncOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileSaved:
    path: str | Path
    content: str | None = None
    is_dirty: bool = False


@dataclass(frozen=True)
class FileCreated:
    path: str | Path
    is_directory: bool = False
    content: str | None = None


@dataclass(frozen=True)
class FileDeleted:
    paths: tuple[str | Path, ...] = field(default_factory=tuple)


Event = FileSaved | FileCreated | FileDeleted


class EventRouter:
    """Dispatch editor events to the orchestrator.

    Args:
        orchestrator: Target orchestrator.
        sync_on_save: Push files when they are saved.
        sync_on_delete: Delete remote resources for deleted files.
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        sync_on_save: bool = True,
        sync_on_delete: bool = True,
    ) -> None:
        self.orchestrator = orchestrator
        self.sync_on_save = sync_on_save
        self.sync_on_delete = sync_on_delete

    def handle(self, event: Event) -> OperationResult | None:
        """Route *event*.

        Returns:
            The operation result, or ``None`` when the event is disabled
            by configuration.
        """
        match event:
            case FileSaved():
                if not self.sync_on_save:
                    logger.debug("Sync on save disabled; ignoring %s", event.path)
                    return None
                return self.orchestrator.push(
                    FileRequest(
                        path=event.path,
                        content=event.content,
                        is_dirty=event.is_dirty,
                    )
                )
            case FileCreated():
                return self.orchestrator.create(
                    event.path,
                    is_directory=event.is_directory,
                    content=event.content,
                )
            case FileDeleted():
                if not self.sync_on_delete:
                    logger.debug(
                        "Sync on delete disabled; ignoring %d path(s)",
                        len(event.paths),
                    )
                    return None
                return self.orchestrator.delete(list(event.paths))
            case _:
                raise TypeError(f"Unsupported event: {event!r}")
