"""Map local file paths onto resource keys and back.

Resolution for a path:

1. **Canonicalise** -- backslashes become forward slashes, ``.`` and
   ``..`` segments are collapsed.
2. **Workspace** -- absolute paths must lie under the workspace root;
   relative paths are taken relative to it.
3. **Artifact root** -- the first segment must be the artifact root
   (``webengine``); the state file itself is never managed.
4. **Kind folder** -- a leading ``views/``, ``styles/`` or ``scripts/``
   segment is stripped.
5. **Kind** -- derived from the extension only.
6. **Key** -- view keys get a leading ``/``; other kinds do not.

Classification is pure: no file-system access.
"""

from __future__ import annotations

import posixpath
from pathlib import Path, PurePosixPath

from .dispatch import KIND_SPECS, kind_for_extension, spec_for
from .models import ClassifiedPath, ResourceKind

_KIND_FOLDERS = frozenset(s.folder for s in KIND_SPECS.values())


def extension_of(name: str) -> str | None:
    """Lower-case extension of the last path segment, without the dot."""
    suffix = PurePosixPath(name).suffix
    return suffix[1:].lower() if suffix else None


def kind_for_key(key: str) -> ResourceKind:
    """Kind of an already-canonical resource key."""
    return kind_for_extension(extension_of(key))


def canonical_key(kind: ResourceKind, name: str) -> str:
    """Normalise a file name (local or remote) into a resource key."""
    cleaned = name.replace("\\", "/").strip("/")
    if kind == ResourceKind.VIEW:
        return f"/{cleaned}"
    return cleaned


def _normalise(path: str) -> str:
    text = path.replace("\\", "/")
    # Windows drive letters survive as "C:/..."; only the separators matter.
    normalised = posixpath.normpath(text) if text else text
    return "" if normalised == "." else normalised


class ResourceClassifier:
    """Classify paths under a workspace's artifact root.

    Args:
        workspace_root: Absolute path of the workspace.
        artifact_root: Name of the managed sub-folder (``webengine``).
        state_file: File name of the persisted state document, which is
            never treated as a resource.
    """

    def __init__(
        self,
        workspace_root: Path,
        artifact_root: str = "webengine",
        state_file: str = "webengine.config.json",
    ) -> None:
        self.workspace_root = workspace_root
        self.artifact_root = artifact_root.strip("/\\")
        self.state_file = state_file
        self._root_text = _normalise(str(workspace_root)).rstrip("/")

    # ------------------------------------------------------------------
    # Local -> key
    # ------------------------------------------------------------------

    def classify(self, path: str | Path) -> ClassifiedPath | None:
        """Classify *path*.

        Args:
            path: Absolute or workspace-relative path, either separator.

        Returns:
            The classification, or ``None`` if the path is not a managed
            resource.
        """
        relative = self._relative_to_workspace(str(path))
        if relative is None:
            return None

        parts = [p for p in relative.split("/") if p]
        if not parts or parts[0] == "..":
            return None
        if parts == [self.state_file] or parts[-1] == self.state_file:
            return None
        if parts[0] != self.artifact_root:
            return None

        rest = parts[1:]
        if rest and rest[0] in _KIND_FOLDERS:
            rest = rest[1:]
        if not rest:
            return None

        name = "/".join(rest)
        extension = extension_of(name)
        kind = kind_for_extension(extension)
        return ClassifiedPath(
            key=canonical_key(kind, name),
            kind=kind,
            extension=extension,
            local_path=self.workspace_root.joinpath(*parts),
        )

    def is_state_file(self, path: str | Path) -> bool:
        """``True`` if *path* is the persisted state document."""
        relative = self._relative_to_workspace(str(path))
        return relative == self.state_file

    # ------------------------------------------------------------------
    # Key -> local
    # ------------------------------------------------------------------

    def local_path(self, kind: ResourceKind, key: str) -> Path:
        """Absolute local path of the file backing *key*.

        Raises:
            ValueError: If *key* has a ``.`` or ``..`` segment or a drive
                prefix, i.e. would not map inside the kind folder.
        """
        segments = [s for s in key.replace("\\", "/").split("/") if s]
        escapes = not segments or any(s in (".", "..") for s in segments)
        if escapes or (len(segments[0]) == 2 and segments[0][1] == ":"):
            raise ValueError(f"Key {key!r} does not map inside the workspace")
        return self.workspace_root.joinpath(
            self.artifact_root, spec_for(kind).folder, *segments
        )

    def kind_folders(self) -> list[Path]:
        """Artifact root plus one folder per kind, for scaffolding."""
        base = self.workspace_root / self.artifact_root
        return [base] + [
            base / spec.folder for spec in KIND_SPECS.values()
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _relative_to_workspace(self, raw: str) -> str | None:
        text = _normalise(raw)
        is_absolute = text.startswith("/") or (
            len(text) > 1 and text[1] == ":"
        )
        if not is_absolute:
            return text
        root = self._root_text
        if text == root:
            return ""
        if not text.startswith(root + "/"):
            return None
        return text[len(root) + 1 :]
