"""Unified diff for the "show diff" decision branch."""

from __future__ import annotations

import difflib

from pydantic import BaseModel


class DiffView(BaseModel):
    """A comparison shown to the user.

    Attributes:
        title: Heading such as ``site.css (Remote ↔ Local)``.
        left_label: Label of the remote side.
        right_label: Label of the local side.
        diff: Unified diff text; empty when both sides are identical.
    """

    title: str
    left_label: str
    right_label: str
    diff: str

    model_config = {"frozen": True}


def generate_diff(
    old_content: str,
    new_content: str,
    label_old: str = "old",
    label_new: str = "new",
) -> str:
    """Generate a unified diff between two strings.

    Returns:
        A unified diff string.  Empty string if the contents are identical.
    """
    diff_lines = difflib.unified_diff(
        old_content.splitlines(True),
        new_content.splitlines(True),
        fromfile=label_old,
        tofile=label_new,
    )
    return "".join(diff_lines)


def build_diff_view(
    key: str, remote_code: str, local_code: str, remote_label: str = "Remote"
) -> DiffView:
    """Compare the remote copy (left) against the local copy (right)."""
    left = f"{remote_label}: {key}"
    right = f"Local: {key}"
    return DiffView(
        title=f"{key} ({remote_label} ↔ Local)",
        left_label=left,
        right_label=right,
        diff=generate_diff(remote_code, local_code, left, right),
    )
