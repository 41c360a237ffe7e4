"""Sync orchestrator: the per-operation state machine.

Every public operation walks a subset of::

    IDLE -> VALIDATING -> FETCHING_REMOTE -> CONFLICT_CHECK
         -> AWAITING_USER_DECISION -> EXECUTING -> PERSISTING -> IDLE

and ends with one of ``SUCCEEDED``, ``SKIPPED``, ``CANCELLED`` or
``FAILED``.  The states visited are returned on the ``OperationResult``.

Rules shared by all operations:

* Paths outside the artifact root are skipped silently.
* Every ``SyncError`` becomes a ``FAILED`` result naming its phase; no
  sync error escapes to the host.
* ``DecisionRequired`` (raised by a non-interactive prompter) does
  escape: the host parks the operation and replays it once answered.
  Every prompt is asked before the remote writes of the step it guards,
  so a replay never repeats a remote write.
* The fetch -> decide -> execute -> persist sequence for one resource
  key runs under a per-key lock.
* State is persisted after every mutation of a record.
"""

from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from ..errors import (
    MappingError,
    Phase,
    RemoteUnavailable,
    SyncError,
    UnsupportedBatch,
    VersionUnavailable,
)
from ..file_handler import read_artifact_text, write_artifact
from .classifier import canonical_key
from .conflict import classify, is_remote_ahead, utc_now_iso
from .diff import build_diff_view
from .dispatch import (
    PLACEHOLDER_CODE,
    build_update_payload,
    first_field,
    spec_for,
    subtype_for_extension,
)
from .models import (
    ClassifiedPath,
    KindSyncSummary,
    OperationResult,
    OperationState,
    RemoteSnapshot,
    ResourceKind,
    ResourceRecord,
    SyncAllReport,
    SyncOperation,
    SyncOutcome,
    Variant,
)
from .prompts import (
    CONTINUE,
    OVERWRITE_REMOTE,
    PUBLISH,
    PUBLISH_ANYWAY,
    PUBLISH_CONFIRM,
    PUBLISH_LIVE_DIFF,
    PUBLISH_LIVE_UNAVAILABLE,
    PUBLISH_UNSAVED,
    PUBLISH_WITHOUT_SAVING,
    PUSH_CONFLICT,
    SAVE_AND_PUBLISH,
    SAVE_AND_SYNC,
    SHOW_DIFF,
    SYNC_UNSAVED,
    SYNC_WITHOUT_SAVING,
    Prompter,
    pull_confirm,
    pull_published_confirm,
)
from .session import SyncSession

logger = logging.getLogger(__name__)

# Only working copies are bootstrapped; published rows duplicate them.
_SYNC_ALL_STATUS = "dev"


@dataclass(frozen=True)
class FileRequest:
    """A file targeted by a command or editor event.

    Attributes:
        path: Absolute or workspace-relative path.
        content: Editor buffer text; ``None`` means read the file on disk.
        is_dirty: The buffer has unsaved edits.
    """

    path: str | Path
    content: str | None = None
    is_dirty: bool = False


class _Run:
    """Bookkeeping for one operation: trail, target and result."""

    def __init__(self, operation: SyncOperation) -> None:
        self.operation = operation
        self.trail: list[OperationState] = [OperationState.IDLE]
        self.key: str | None = None
        self.kind: ResourceKind | None = None
        self.diff: str | None = None

    def enter(self, state: OperationState) -> None:
        self.trail.append(state)

    def bind(self, classified: ClassifiedPath) -> None:
        self.key = classified.key
        self.kind = classified.kind

    def finish(
        self,
        outcome: SyncOutcome,
        message: str,
        phase: str | None = None,
        error_type: str | None = None,
        report: SyncAllReport | None = None,
    ) -> OperationResult:
        result = OperationResult(
            operation=self.operation,
            outcome=outcome,
            message=message,
            key=self.key,
            kind=self.kind,
            phase=phase,
            error_type=error_type,
            diff=self.diff,
            trail=self.trail + [OperationState.IDLE],
            report=report,
        )
        extra = {
            "operation": self.operation.value,
            "kind": self.kind.value if self.kind else None,
            "key": self.key,
        }
        if outcome == SyncOutcome.FAILED:
            logger.warning(
                "%s %s failed [%s]: %s",
                self.operation.value,
                self.key or "",
                phase,
                message,
                extra=extra,
            )
        else:
            logger.info(
                "%s %s %s: %s",
                self.operation.value,
                self.key or "",
                outcome.value,
                message,
                extra=extra,
            )
        return result

    def fail(self, error: SyncError) -> OperationResult:
        return self.finish(
            SyncOutcome.FAILED,
            error.message,
            phase=error.phase.value,
            error_type=error.error_type,
        )


class _KeyLocks:
    """One re-entrant lock per ``(kind, key)``.

    Entries live only while some caller holds the lock object, so the map
    does not grow with every key a long-running host has touched.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[
            tuple[ResourceKind, str], threading.RLock
        ] = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def __call__(self, kind: ResourceKind, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get((kind, key))
            if lock is None:
                lock = self._locks[(kind, key)] = threading.RLock()
            return lock


class SyncOrchestrator:
    """Run sync operations against one session.

    Args:
        session: Loaded session (config, store, client, classifier and
            the default prompter).
    """

    def __init__(self, session: SyncSession) -> None:
        self.session = session
        self._locks = _KeyLocks()

    # ------------------------------------------------------------------
    # Push / sync-file
    # ------------------------------------------------------------------

    def push(
        self, request: FileRequest, prompter: Prompter | None = None
    ) -> OperationResult:
        """Push the local content of one file to its remote draft."""
        run = _Run(SyncOperation.PUSH)
        prompter = prompter or self.session.prompter
        try:
            run.enter(OperationState.VALIDATING)
            classified = self._classify(request.path)
            if classified is None:
                return self._unmanaged(run, request.path)
            run.bind(classified)
            return self._push(run, classified, request, prompter)
        except SyncError as exc:
            return run.fail(exc)

    def sync_file(
        self,
        request: FileRequest,
        force_save: bool = False,
        prompter: Prompter | None = None,
    ) -> OperationResult:
        """Command form of push that deals with unsaved buffers first.

        Args:
            request: Target file and editor buffer.
            force_save: Write the buffer to disk without asking
                (save-and-sync).
            prompter: Overrides the session prompter.
        """
        run = _Run(SyncOperation.PUSH)
        prompter = prompter or self.session.prompter
        try:
            run.enter(OperationState.VALIDATING)
            classified = self._classify(request.path)
            if classified is None:
                return self._unmanaged(run, request.path)
            run.bind(classified)

            if force_save:
                self._save_buffer(classified, request)
            elif request.is_dirty:
                run.enter(OperationState.AWAITING_USER_DECISION)
                choice = prompter.choose(SYNC_UNSAVED)
                if choice not in (SAVE_AND_SYNC, SYNC_WITHOUT_SAVING):
                    return run.finish(SyncOutcome.CANCELLED, "Sync cancelled.")
                if choice == SAVE_AND_SYNC:
                    self._save_buffer(classified, request)
                run.enter(OperationState.VALIDATING)

            return self._push(run, classified, request, prompter)
        except SyncError as exc:
            return run.fail(exc)

    def _push(
        self,
        run: _Run,
        classified: ClassifiedPath,
        request: FileRequest,
        prompter: Prompter,
    ) -> OperationResult:
        with self._locks(classified.kind, classified.key):
            record = self._require_record(
                classified, "Cannot sync to the instance"
            )
            self.session.ensure_credentials()
            code = self._content_of(classified, request)
            return self._push_locked(run, classified, record, code, prompter)

    def _push_locked(
        self,
        run: _Run,
        classified: ClassifiedPath,
        record: ResourceRecord,
        code: str,
        prompter: Prompter,
    ) -> OperationResult:
        spec = spec_for(classified.kind)

        run.enter(OperationState.FETCHING_REMOTE)
        remote = self._fetch(
            classified,
            record,
            Variant.DRAFT,
            "Unable to check remote file for changes",
        )
        if remote.code == code:
            return run.finish(SyncOutcome.SKIPPED, "No changes to sync.")

        run.enter(OperationState.CONFLICT_CHECK)
        status = classify(remote.updated_at, record)
        logger.debug(
            "Conflict check for %s: remote=%s record=%s -> %s",
            classified.key,
            remote.updated_at,
            record.last_synced_at or record.updated_at,
            status.value,
        )
        if is_remote_ahead(status):
            run.enter(OperationState.AWAITING_USER_DECISION)
            choice = prompter.choose(PUSH_CONFLICT)
            if choice == SHOW_DIFF:
                view = build_diff_view(classified.key, remote.code, code)
                prompter.show_diff(view)
                run.diff = view.diff
                return run.finish(
                    SyncOutcome.CANCELLED,
                    "Push aborted. Review the remote and local differences.",
                )
            if choice != OVERWRITE_REMOTE:
                return run.finish(SyncOutcome.CANCELLED, "Sync cancelled.")

        run.enter(OperationState.EXECUTING)
        payload = build_update_payload(
            classified.kind, classified.key, code, record.subtype
        )
        updated_at = self._remote_write(
            lambda: self.session.client.update(
                classified.kind, record.remote_id, payload
            ),
            f"Unable to save {spec.label} {classified.key}",
        )

        run.enter(OperationState.PERSISTING)
        self._mark_synced(classified, record, updated_at)
        return run.finish(
            SyncOutcome.SUCCEEDED,
            f"Saving {spec.label} to {record.remote_id}.",
        )

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def pull(
        self,
        request: FileRequest,
        variant: Variant = Variant.DRAFT,
        prompter: Prompter | None = None,
    ) -> OperationResult:
        """Overwrite the local file with the remote draft or live copy.

        No conflict check is made: the user confirms the overwrite.
        """
        published = variant == Variant.LIVE
        run = _Run(
            SyncOperation.PULL_PUBLISHED if published else SyncOperation.PULL_DRAFT
        )
        prompter = prompter or self.session.prompter
        try:
            run.enter(OperationState.VALIDATING)
            classified = self._classify(request.path)
            if classified is None:
                return self._unmanaged(run, request.path)
            run.bind(classified)

            with self._locks(classified.kind, classified.key):
                record = self._require_record(
                    classified, "Cannot pull from the instance"
                )
                self.session.ensure_credentials()

                run.enter(OperationState.AWAITING_USER_DECISION)
                prompt = (
                    pull_published_confirm(request.is_dirty)
                    if published
                    else pull_confirm(request.is_dirty)
                )
                if prompter.choose(prompt) != prompt.choices[0]:
                    return run.finish(SyncOutcome.CANCELLED, "Pull cancelled.")

                run.enter(OperationState.FETCHING_REMOTE)
                remote = self._fetch(
                    classified,
                    record,
                    variant,
                    "Unable to fetch published file"
                    if published
                    else "Unable to fetch remote file",
                )

                run.enter(OperationState.EXECUTING)
                self._write_local(classified, remote.code)

                run.enter(OperationState.PERSISTING)
                self._mark_synced(classified, record, remote.updated_at)
        except SyncError as exc:
            return run.fail(exc)

        return run.finish(
            SyncOutcome.SUCCEEDED,
            "Pulled published (live) file from instance."
            if published
            else "Pulled latest file from instance.",
        )

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    def publish(
        self, request: FileRequest, prompter: Prompter | None = None
    ) -> OperationResult:
        """Sync the local content, then publish the resulting version.

        The remote publish call is only made after the content sync
        succeeded or found nothing to sync.
        """
        run = _Run(SyncOperation.PUBLISH)
        prompter = prompter or self.session.prompter
        try:
            run.enter(OperationState.VALIDATING)
            classified = self._classify(request.path)
            if classified is None:
                return self._unmanaged(run, request.path)
            run.bind(classified)

            with self._locks(classified.kind, classified.key):
                return self._publish_locked(run, classified, request, prompter)
        except SyncError as exc:
            return run.fail(exc)

    def _publish_locked(
        self,
        run: _Run,
        classified: ClassifiedPath,
        request: FileRequest,
        prompter: Prompter,
    ) -> OperationResult:
        spec = spec_for(classified.kind)
        record = self._require_record(classified, "Cannot publish to the instance")

        if request.is_dirty:
            run.enter(OperationState.AWAITING_USER_DECISION)
            choice = prompter.choose(PUBLISH_UNSAVED)
            if choice not in (SAVE_AND_PUBLISH, PUBLISH_WITHOUT_SAVING):
                return run.finish(SyncOutcome.CANCELLED, "Publish cancelled.")
            if choice == SAVE_AND_PUBLISH:
                self._save_buffer(classified, request)
            run.enter(OperationState.VALIDATING)

        self.session.ensure_credentials()
        code = self._content_of(classified, request)

        run.enter(OperationState.FETCHING_REMOTE)
        try:
            live = self.session.client.get(
                classified.kind, record.remote_id, Variant.LIVE
            )
        except RemoteUnavailable as exc:
            logger.warning(
                "Live copy of %s unavailable: %s", classified.key, exc.message
            )
            live = None

        run.enter(OperationState.AWAITING_USER_DECISION)
        if live is None:
            if prompter.choose(PUBLISH_LIVE_UNAVAILABLE) != PUBLISH_ANYWAY:
                return run.finish(SyncOutcome.CANCELLED, "Publish cancelled.")
        elif live.code != code:
            choice = prompter.choose(PUBLISH_LIVE_DIFF)
            if choice == SHOW_DIFF:
                view = build_diff_view(classified.key, live.code, code, "Live")
                prompter.show_diff(view)
                run.diff = view.diff
            elif choice != CONTINUE:
                return run.finish(SyncOutcome.CANCELLED, "Publish cancelled.")

        if prompter.choose(PUBLISH_CONFIRM) != PUBLISH:
            return run.finish(SyncOutcome.CANCELLED, "Publish cancelled.")

        sync_run = _Run(SyncOperation.PUSH)
        synced = self._push_locked(sync_run, classified, record, code, prompter)
        run.trail.extend(sync_run.trail[1:])
        if sync_run.diff is not None:
            run.diff = sync_run.diff
        if synced.outcome in (SyncOutcome.FAILED, SyncOutcome.CANCELLED):
            return run.finish(
                synced.outcome,
                f"Publish aborted: {synced.message}",
                phase=synced.phase,
                error_type=synced.error_type,
            )

        run.enter(OperationState.FETCHING_REMOTE)
        current = self.session.store.get(classified.kind, classified.key) or record
        remote = self._fetch(
            classified,
            current,
            Variant.DRAFT,
            "Unable to fetch instance file for publish",
            phase=Phase.PUBLISH,
        )
        if spec.requires_version and remote.version in (None, ""):
            raise VersionUnavailable(
                f"Unable to determine {spec.label} version to publish."
            )

        run.enter(OperationState.EXECUTING)
        self._remote_write(
            lambda: self.session.client.publish(
                classified.kind, current.remote_id, remote.version
            ),
            f"Unable to publish {spec.label} {classified.key}",
            phase=Phase.PUBLISH,
        )
        return run.finish(
            SyncOutcome.SUCCEEDED,
            f"Published {spec.label} {classified.key}.",
        )

    # ------------------------------------------------------------------
    # Create / delete
    # ------------------------------------------------------------------

    def create(
        self,
        path: str | Path,
        is_directory: bool = False,
        content: str | None = None,
    ) -> OperationResult:
        """Create the remote resource for a new local file.

        Args:
            path: Path of the new file.
            is_directory: The event is for a directory (skipped).
            content: Initial text; ``None`` reads the file if it exists.
        """
        run = _Run(SyncOperation.CREATE)
        try:
            run.enter(OperationState.VALIDATING)
            if is_directory:
                return run.finish(
                    SyncOutcome.SKIPPED, f"{path} is a directory; nothing to create."
                )
            classified = self._classify(path)
            if classified is None:
                return self._unmanaged(run, path)
            run.bind(classified)
            spec = spec_for(classified.kind)

            with self._locks(classified.kind, classified.key):
                if self.session.store.get(classified.kind, classified.key):
                    return run.finish(
                        SyncOutcome.SKIPPED,
                        f"{classified.key} is already tracked.",
                    )
                self.session.ensure_credentials()

                if content is None:
                    content = (
                        self._read_local(classified)
                        if classified.local_path.is_file()
                        else ""
                    )
                subtype = subtype_for_extension(classified.extension)
                payload = {
                    "filename": classified.key,
                    "type": subtype,
                    "code": content or PLACEHOLDER_CODE,
                }

                run.enter(OperationState.EXECUTING)
                created = self._remote_write(
                    lambda: self.session.client.create(classified.kind, payload),
                    f"Unable to create {spec.label} {classified.key}",
                )

                run.enter(OperationState.PERSISTING)
                self.session.store.put(
                    classified.kind,
                    classified.key,
                    ResourceRecord(
                        remote_id=created.remote_id,
                        subtype=created.subtype or subtype,
                        created_at=created.created_at,
                        updated_at=created.updated_at,
                    ),
                )
                self.session.store.persist()
        except SyncError as exc:
            return run.fail(exc)

        return run.finish(
            SyncOutcome.SUCCEEDED,
            f"Creating {spec.label} to {created.remote_id}.",
        )

    def delete(self, paths: Sequence[str | Path]) -> OperationResult:
        """Delete the remote resource backing exactly one deleted file."""
        run = _Run(SyncOperation.DELETE)
        try:
            run.enter(OperationState.VALIDATING)
            managed = [c for c in map(self._classify, paths) if c is not None]
            if not managed:
                return run.finish(
                    SyncOutcome.SKIPPED, "No managed resource to delete."
                )
            if len(paths) > 1:
                raise UnsupportedBatch(
                    "Multiple file deletion is not yet supported."
                )
            classified = managed[0]
            run.bind(classified)
            spec = spec_for(classified.kind)

            with self._locks(classified.kind, classified.key):
                record = self._require_record(
                    classified, "Cannot sync to the instance"
                )
                self.session.ensure_credentials()

                run.enter(OperationState.EXECUTING)
                self._remote_write(
                    lambda: self.session.client.delete(
                        classified.kind, record.remote_id
                    ),
                    f"Unable to delete {spec.label} {classified.key}",
                )

                run.enter(OperationState.PERSISTING)
                self.session.store.remove(classified.kind, classified.key)
                self.session.store.persist()
        except SyncError as exc:
            return run.fail(exc)

        return run.finish(
            SyncOutcome.SUCCEEDED,
            f"Deleting {spec.label} from {record.remote_id}.",
        )

    # ------------------------------------------------------------------
    # Sync all
    # ------------------------------------------------------------------

    def sync_all(self) -> OperationResult:
        """Bootstrap the local tree from every working copy on the remote.

        A kind whose listing fails keeps its previous records and is
        reported in the per-kind summary.
        """
        run = _Run(SyncOperation.SYNC_ALL)
        started_at = utc_now_iso()
        try:
            run.enter(OperationState.VALIDATING)
            self.session.ensure_credentials()

            run.enter(OperationState.EXECUTING)
            for folder in self.session.classifier.kind_folders():
                try:
                    folder.mkdir(parents=True, exist_ok=True)
                except OSError as exc:
                    raise SyncError(
                        f"Cannot create folder {folder}: {exc}", Phase.WRITE
                    ) from exc

            summaries = [self._sync_kind(run, kind) for kind in ResourceKind]
        except SyncError as exc:
            return run.fail(exc)

        report = SyncAllReport(
            instance_id=self.session.instance_id or "",
            kinds=summaries,
            started_at=started_at,
            completed_at=utc_now_iso(),
        )
        failed = report.errors
        if failed:
            return run.finish(
                SyncOutcome.FAILED,
                "File sync completed with errors: "
                + "; ".join(f"{s.kind.value}: {s.error}" for s in failed),
                phase=Phase.FETCH.value,
                error_type=RemoteUnavailable.__name__,
                report=report,
            )
        return run.finish(
            SyncOutcome.SUCCEEDED, "File sync is completed.", report=report
        )

    def _sync_kind(self, run: _Run, kind: ResourceKind) -> KindSyncSummary:
        spec = spec_for(kind)
        run.enter(OperationState.FETCHING_REMOTE)
        try:
            items = self.session.client.list(kind)
        except RemoteUnavailable as exc:
            logger.error("Failed to list %ss: %s", spec.label, exc.message)
            return KindSyncSummary(kind=kind, error=exc.message)

        run.enter(OperationState.EXECUTING)
        records: dict[str, ResourceRecord] = {}
        ignored = 0
        for item in items:
            name = item.get("fileName")
            remote_id = item.get("ZUID")
            if item.get("status") != _SYNC_ALL_STATUS or not name or not remote_id:
                ignored += 1
                continue
            key = canonical_key(kind, name)
            try:
                target = self.session.classifier.local_path(kind, key)
            except ValueError:
                logger.warning(
                    "Ignoring %s %r: outside the workspace", spec.label, name
                )
                ignored += 1
                continue
            try:
                write_artifact(target, item.get("code") or "")
            except OSError as exc:
                logger.warning("Cannot write %s %s: %s", spec.label, key, exc)
                ignored += 1
                continue
            updated_at = first_field(item, spec.timestamp_fields)
            created_at = first_field(item, ("createdAt", "created_at"))
            records[key] = ResourceRecord(
                remote_id=remote_id,
                subtype=item.get("type"),
                created_at=_text(created_at),
                updated_at=_text(updated_at),
                last_synced_at=_text(updated_at or created_at),
            )

        run.enter(OperationState.PERSISTING)
        self.session.store.replace_all(kind, records)
        self.session.store.persist()
        logger.info(
            "Synced %d %s(s), ignored %d", len(records), spec.label, ignored
        )
        return KindSyncSummary(kind=kind, written=len(records), ignored=ignored)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _classify(self, path: str | Path) -> ClassifiedPath | None:
        if self.session.classifier.is_state_file(path):
            return None
        return self.session.classifier.classify(path)

    @staticmethod
    def _unmanaged(run: _Run, path: str | Path) -> OperationResult:
        logger.debug("Ignoring unmanaged path %s", path)
        return run.finish(
            SyncOutcome.SKIPPED, f"{path} is not a managed resource."
        )

    def _require_record(
        self, classified: ClassifiedPath, message: str
    ) -> ResourceRecord:
        record = self.session.store.get(classified.kind, classified.key)
        if record is None:
            raise MappingError(
                f"{message}: {classified.key} has no remote record."
            )
        return record

    def _content_of(
        self, classified: ClassifiedPath, request: FileRequest
    ) -> str:
        if request.content is not None:
            return request.content
        return self._read_local(classified)

    @staticmethod
    def _read_local(classified: ClassifiedPath) -> str:
        try:
            return read_artifact_text(classified.local_path)
        except OSError as exc:
            raise MappingError(
                f"Cannot read {classified.local_path}: {exc}"
            ) from exc

    @staticmethod
    def _write_local(classified: ClassifiedPath, code: str) -> None:
        try:
            write_artifact(classified.local_path, code)
        except OSError as exc:
            raise SyncError(
                f"Cannot write {classified.local_path}: {exc}", Phase.WRITE
            ) from exc

    def _save_buffer(
        self, classified: ClassifiedPath, request: FileRequest
    ) -> None:
        if request.content is None:
            return
        try:
            write_artifact(classified.local_path, request.content)
        except OSError as exc:
            raise SyncError(
                f"Save failed: {exc}", Phase.WRITE
            ) from exc

    def _fetch(
        self,
        classified: ClassifiedPath,
        record: ResourceRecord,
        variant: Variant,
        message: str,
        phase: Phase = Phase.FETCH,
    ) -> RemoteSnapshot:
        try:
            return self.session.client.get(
                classified.kind, record.remote_id, variant
            )
        except RemoteUnavailable as exc:
            raise RemoteUnavailable(
                f"{message}: {exc.message}", phase, exc.status_code
            ) from exc

    @staticmethod
    def _remote_write(call, message: str, phase: Phase = Phase.WRITE):
        try:
            return call()
        except RemoteUnavailable as exc:
            raise RemoteUnavailable(
                f"{message}: {exc.message}", phase, exc.status_code
            ) from exc

    def _mark_synced(
        self,
        classified: ClassifiedPath,
        record: ResourceRecord,
        updated_at: str | None,
    ) -> None:
        """Record a successful exchange; falls back to now without a remote time."""
        self.session.store.put(
            classified.kind,
            classified.key,
            record.model_copy(
                update={
                    "last_synced_at": updated_at or utc_now_iso(),
                    "updated_at": updated_at or record.updated_at,
                }
            ),
        )
        self.session.store.persist()


def _text(value: object) -> str | None:
    return None if value is None else str(value)
