"""Unified configuration schema for webengine_sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for the remote instance, editor behaviour and logging, plus an
adapter that turns the validated file into the runtime ``Config``.

Usage:
    from webengine_sync.config_schema import build_config, to_runtime_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = to_runtime_config(unified, cli_overrides={"token": "..."})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class InstanceSettings(BaseModel):
    """Remote instance connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    instance_id: str | None = Field(
        default=None, description="Remote instance identifier"
    )
    token: str | None = Field(
        default=None, description="Developer access token"
    )
    api_url: str | None = Field(
        default=None,
        description="Instance API base URL template containing {instance}",
    )
    accounts_url: str | None = Field(
        default=None, description="Accounts API base URL"
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="HTTP timeout in seconds",
    )

    model_config = {"frozen": True}


class EditorSettings(BaseModel):
    """Workspace layout and automatic-sync switches."""

    workspace: str | None = Field(
        default=None, description="Workspace root (default: CWD)"
    )
    artifact_root: str = Field(
        default="webengine", description="Managed sub-folder"
    )
    state_file: str = Field(
        default="webengine.config.json",
        description="State document file name at the workspace root",
    )
    sync_on_save: bool = Field(
        default=True, description="Push files when they are saved"
    )
    sync_on_delete: bool = Field(
        default=True,
        description="Delete remote resources when local files are deleted",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    instance: InstanceSettings = Field(default_factory=InstanceSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    def fallbacks(self) -> dict:
        """Flatten the instance and editor sections for ``load_config()``."""
        flat = self.editor.model_dump()
        flat.update(self.instance.model_dump())
        return {k: v for k, v in flat.items() if v is not None}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> runtime Config dataclass
# ---------------------------------------------------------------------------


def to_runtime_config(
    unified: UnifiedConfig,
    cli_overrides: dict | None = None,
) -> Config:
    """Convert a ``UnifiedConfig`` into the runtime ``Config``, applying
    CLI overrides and environment variables on top.

    CLI overrides dict keys: token, instance, workspace, debug.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    # Import here to avoid circular imports
    from .config import load_config

    overrides = cli_overrides or {}

    return load_config(
        token=overrides.get("token"),
        instance=overrides.get("instance"),
        workspace=overrides.get("workspace"),
        debug=bool(overrides.get("debug", False)),
        yaml_fallbacks=unified.fallbacks(),
    )
