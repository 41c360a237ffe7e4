"""Encoding-aware reads and writes of local artifact files.

Editors save views, stylesheets and scripts in whatever encoding the user
picked.  Reads detect it with charset-normalizer so pushes send the right
text; writes that overwrite an existing artifact (pull, sync all, save)
keep that encoding when the new text fits in it.
"""

import logging
from pathlib import Path
from typing import NamedTuple

from charset_normalizer import from_bytes

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "utf-8"


class LocalArtifact(NamedTuple):
    text: str
    encoding: str


def _normalise(encoding: str) -> str:
    # ascii is a strict subset of utf-8
    return DEFAULT_ENCODING if encoding == "ascii" else encoding


def read_artifact(path: Path) -> LocalArtifact:
    """Read *path*, detecting its encoding.

    Empty files and undetectable content are treated as UTF-8; the
    latter is decoded with replacement characters rather than failing.

    Raises:
        OSError: If the file cannot be read.
    """
    raw = path.read_bytes()
    if not raw:
        return LocalArtifact("", DEFAULT_ENCODING)

    match = from_bytes(raw).best()
    if match is None:
        logger.debug("No encoding detected for %s, assuming utf-8", path)
        return LocalArtifact(
            raw.decode(DEFAULT_ENCODING, errors="replace"), DEFAULT_ENCODING
        )
    return LocalArtifact(str(match), _normalise(match.encoding))


def read_artifact_text(path: Path) -> str:
    return read_artifact(path).text


def _existing_encoding(path: Path) -> str:
    try:
        return read_artifact(path).encoding
    except FileNotFoundError:
        return DEFAULT_ENCODING


def write_artifact(
    path: Path, text: str, encoding: str | None = None
) -> int:
    """Write *text* to *path*, creating missing folders.

    Args:
        path: Artifact file to (over)write.
        text: New content.
        encoding: Explicit encoding.  When omitted, an existing file keeps
            its detected encoding, falling back to UTF-8 if *text* has
            characters that encoding cannot represent.

    Returns:
        Number of bytes written.

    Raises:
        OSError: If the file or its folders cannot be written.
    """
    if encoding is None:
        encoding = _existing_encoding(path)
        try:
            data = text.encode(encoding)
        except (UnicodeEncodeError, LookupError):
            logger.info(
                "%s no longer fits %s, writing utf-8", path, encoding
            )
            data = text.encode(DEFAULT_ENCODING)
    else:
        data = text.encode(encoding)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return len(data)
