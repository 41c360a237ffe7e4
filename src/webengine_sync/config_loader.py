"""
YAML config discovery and merging for webengine-sync.

Config files are looked up by convention (explicit path, project folder,
user config folder), merged so that the most specific file wins per
top-level section, and then have ``${VAR}`` references expanded from the
environment.

Usage:
    from webengine_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config(workspace_root)
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "WEBENGINE_SYNC_CONFIG"
PROJECT_DIR = ".webengine_sync"
CONFIG_NAMES = ("config.yml", "config.yaml")

# ${VAR} or ${VAR:-fallback}
_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")


# ---------------------------------------------------------------------------
# Environment references
# ---------------------------------------------------------------------------


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-fallback}`` in *value*.

    An unset or empty variable expands to its fallback, or to ``""`` when
    there is none.  An unterminated ``${`` is kept as written.
    """
    return _REFERENCE.sub(
        lambda m: os.environ.get(m["name"]) or m["fallback"] or "", value
    )


def _interpolate_recursive(node: Any) -> Any:
    if isinstance(node, dict):
        return {key: _interpolate_recursive(item) for key, item in node.items()}
    if isinstance(node, list):
        return [_interpolate_recursive(item) for item in node]
    if isinstance(node, str):
        return interpolate_env_vars(node)
    return node


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def _user_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "webengine_sync"


def _candidate_paths(cwd: Path | None) -> list[Path]:
    explicit = os.environ.get(CONFIG_ENV_VAR)
    project = (cwd or Path.cwd()) / PROJECT_DIR
    paths = [Path(explicit).expanduser().resolve()] if explicit else []
    paths.extend(project / name for name in CONFIG_NAMES)
    paths.append(_user_config_dir() / CONFIG_NAMES[0])
    return paths


def discover_config_files(cwd: Path | None = None) -> list[Path]:
    """Existing config files, most specific first.

    Lookup order:
        1. the file named by ``WEBENGINE_SYNC_CONFIG``
        2. ``<cwd>/.webengine_sync/config.yml``
        3. ``<cwd>/.webengine_sync/config.yaml``
        4. ``$XDG_CONFIG_HOME/webengine_sync/config.yml``
           (``~/.config`` when XDG_CONFIG_HOME is unset)
    """
    return [path for path in _candidate_paths(cwd) if path.is_file()]


def resolve_config_path(cwd: Path | None = None) -> Path:
    """The config file in effect, or where ``init`` would create one.

    Nothing is written; see ``ensure_config()``.
    """
    found = discover_config_files(cwd)
    return found[0] if found else (cwd or Path.cwd()) / PROJECT_DIR / CONFIG_NAMES[0]


# ---------------------------------------------------------------------------
# Starter file
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# webengine-sync configuration
#
# Environment variables take precedence over this file:
#   WEBENGINE_TOKEN, WEBENGINE_INSTANCE, WEBENGINE_WORKSPACE,
#   WEBENGINE_SYNC_ON_SAVE, WEBENGINE_SYNC_ON_DELETE, WEBENGINE_TIMEOUT
#
# instance:
#   instance_id: 8-abc123-def456
#   token: ${WEBENGINE_TOKEN}
#   timeout: 30
#
# editor:
#   artifact_root: webengine
#   sync_on_save: true
#   sync_on_delete: true
#
# logging:
#   level: INFO
#   file: null
"""


def ensure_config(target: Path | None = None, cwd: Path | None = None) -> Path:
    """Return the config file in effect, writing a commented starter file
    (at *target*, or the project location) when there is none.
    """
    found = discover_config_files(cwd)
    if found:
        logger.debug("Using existing config %s", found[0])
        return found[0]

    path = target or resolve_config_path(cwd)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Wrote starter config %s", path)
    return path


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError:
            logger.error("Invalid YAML in %s", path)
            raise
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring %s: top level is a %s, not a mapping",
            path,
            type(data).__name__,
        )
        return {}
    return data


def load_hierarchical_config(cwd: Path | None = None) -> dict[str, Any]:
    """Merge every discovered config file into one dict.

    Files are applied from least to most specific; a top-level section
    in a more specific file replaces the whole section from the files
    before it.  ``${VAR}`` references are expanded after the merge.

    Returns ``{}`` when there is no config file.

    Raises:
        yaml.YAMLError: If a config file is not valid YAML.
    """
    paths = discover_config_files(cwd)
    if not paths:
        logger.debug("No config files found")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Reading config %s", path)
        merged.update(_read_yaml(path))
    return _interpolate_recursive(merged)
