"""Kind dispatch table.

One ``KindSpec`` per ``ResourceKind`` describes everything that differs
between views, stylesheets and scripts: where the resource lives on the
remote, which fields an update sends, how the create subtype is chosen,
which response fields carry the modification time and version, and
whether publishing needs a version token.

The table is checked for exhaustiveness at import time.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import ResourceKind

STYLESHEET_EXTENSIONS = frozenset({"css", "less", "scss", "sass"})
SCRIPT_EXTENSIONS = frozenset({"js"})

SNIPPET_SUBTYPE = "snippet"
DEFAULT_VIEW_SUBTYPE = "ajax-json"
SCRIPT_SUBTYPE = "text/javascript"

# Remote systems in this domain reject fully empty bodies.
PLACEHOLDER_CODE = " "


@dataclass(frozen=True, slots=True)
class KindSpec:
    """Remote behaviour of one resource kind.

    Attributes:
        kind: The resource kind.
        label: Singular noun used in user-facing messages.
        endpoint: Collection path segment on the remote API.
        folder: Sub-folder of the artifact root holding this kind.
        update_fields: Payload fields sent on update.
        requires_version: Publishing needs a version token.
        timestamp_fields: Response fields tried, in order, for ``updatedAt``.
        version_fields: Response fields tried, in order, for the version.
    """

    kind: ResourceKind
    label: str
    endpoint: str
    folder: str
    update_fields: tuple[str, ...]
    requires_version: bool
    timestamp_fields: tuple[str, ...] = ("updatedAt", "updated_at")
    version_fields: tuple[str, ...] = (
        "version",
        "version_num",
        "versionNumber",
    )


KIND_SPECS: dict[ResourceKind, KindSpec] = {
    ResourceKind.VIEW: KindSpec(
        kind=ResourceKind.VIEW,
        label="view",
        endpoint="views",
        folder="views",
        update_fields=("code",),
        requires_version=True,
    ),
    ResourceKind.STYLESHEET: KindSpec(
        kind=ResourceKind.STYLESHEET,
        label="stylesheet",
        endpoint="stylesheets",
        folder="styles",
        update_fields=("filename", "code", "type"),
        requires_version=True,
    ),
    ResourceKind.SCRIPT: KindSpec(
        kind=ResourceKind.SCRIPT,
        label="script",
        endpoint="scripts",
        folder="scripts",
        update_fields=("filename", "code", "type"),
        requires_version=False,
        # The raw scripts endpoint reports snake_case timestamps first.
        timestamp_fields=("updated_at", "updatedAt"),
    ),
}

_missing = set(ResourceKind) - set(KIND_SPECS)
if _missing:  # pragma: no cover
    raise RuntimeError(f"KIND_SPECS missing kinds: {sorted(_missing)}")


def spec_for(kind: ResourceKind) -> KindSpec:
    """Return the dispatch entry for *kind*."""
    return KIND_SPECS[kind]


def kind_for_extension(extension: str | None) -> ResourceKind:
    """Map a file extension (without dot, any case) to a resource kind."""
    ext = (extension or "").lower()
    if ext in STYLESHEET_EXTENSIONS:
        return ResourceKind.STYLESHEET
    if ext in SCRIPT_EXTENSIONS:
        return ResourceKind.SCRIPT
    return ResourceKind.VIEW


def subtype_for_extension(extension: str | None) -> str:
    """Remote subtype used when creating a resource for *extension*."""
    if not extension:
        return SNIPPET_SUBTYPE
    ext = extension.lower()
    if ext in STYLESHEET_EXTENSIONS:
        return f"text/{ext}"
    if ext in SCRIPT_EXTENSIONS:
        return SCRIPT_SUBTYPE
    return DEFAULT_VIEW_SUBTYPE


def build_update_payload(
    kind: ResourceKind, key: str, code: str, subtype: str | None
) -> dict:
    """Build the kind-specific update payload."""
    values = {
        "filename": key,
        "code": code or PLACEHOLDER_CODE,
        "type": subtype,
    }
    return {f: values[f] for f in spec_for(kind).update_fields}


def first_field(data: dict, fields: tuple[str, ...]):
    """Return the first truthy value of *fields* in *data*, else ``None``."""
    for name in fields:
        value = data.get(name)
        if value:
            return value
    return None
