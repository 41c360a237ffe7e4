"""Runtime configuration for webengine-sync.

Reads connection and editor settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    WEBENGINE_TOKEN: Developer access token (required for remote operations)
    WEBENGINE_INSTANCE: Remote instance identifier (optional when the state
        document already names one)
    WEBENGINE_WORKSPACE: Workspace root (optional, default: CWD)
    WEBENGINE_SYNC_ON_SAVE: Push files when saved (optional, default: true)
    WEBENGINE_SYNC_ON_DELETE: Delete remote resources when local files are
        deleted (optional, default: true)
    WEBENGINE_TIMEOUT: HTTP timeout in seconds (optional, default: 30)
    WEBENGINE_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_API_URL_TEMPLATE = "https://{instance}.api.zesty.io/v1"
DEFAULT_ACCOUNTS_URL = "https://accounts.api.zesty.io/v1"
DEFAULT_ARTIFACT_ROOT = "webengine"
DEFAULT_STATE_FILE = "webengine.config.json"


@dataclass
class Config:
    token: str | None = field(default=None, repr=False)
    instance_id: str | None = None
    workspace_root: Path = field(default_factory=Path.cwd)
    artifact_root: str = DEFAULT_ARTIFACT_ROOT
    state_file: str = DEFAULT_STATE_FILE
    api_url_template: str = DEFAULT_API_URL_TEMPLATE
    accounts_url: str = DEFAULT_ACCOUNTS_URL
    sync_on_save: bool = True
    sync_on_delete: bool = True
    timeout: float = 30.0
    debug: bool = False

    @property
    def state_path(self) -> Path:
        return self.workspace_root / self.state_file


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the workspace is missing, a URL is malformed or the
            timeout is not positive.
    """
    config.workspace_root = Path(config.workspace_root).expanduser().resolve()
    if not config.workspace_root.is_dir():
        raise ValueError(
            f"Workspace '{config.workspace_root}' is not a directory. "
            "Set WEBENGINE_WORKSPACE or pass --workspace."
        )

    if "{instance}" not in config.api_url_template:
        raise ValueError(
            f"Invalid API URL template '{config.api_url_template}': "
            "must contain '{instance}'"
        )

    for url in (config.api_url_template, config.accounts_url):
        probe = url.replace("{instance}", "instance")
        if not probe.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid URL '{url}': must start with http:// or https://"
            )
        if not urlparse(probe).hostname:
            raise ValueError(f"Invalid URL '{url}': URL must include a hostname")

    config.artifact_root = config.artifact_root.strip().strip("/\\")
    if not config.artifact_root:
        raise ValueError("Artifact root cannot be empty.")

    if config.timeout <= 0:
        raise ValueError(
            f"Invalid timeout '{config.timeout}': must be a positive number"
        )

    if config.instance_id is not None:
        config.instance_id = config.instance_id.strip() or None
    if config.token is not None:
        config.token = config.token.strip() or None
    if not config.token:
        logger.debug("No access token configured; remote operations will fail")


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _resolve_bool(key: str, fallback: object, default: bool) -> bool:
    env_val = _get_bool_env(key)
    if env_val is not None:
        return env_val
    if fallback is None:
        return default
    return bool(fallback)


def load_config(
    token: str | None = None,
    instance: str | None = None,
    workspace: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        token: Override access token.
        instance: Override instance identifier.
        workspace: Override workspace root.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flattened values from the YAML ``instance`` and
            ``editor`` sections. Used as fallback when CLI arg and env var
            are both unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a value is malformed after checking all sources.
    """
    fb = yaml_fallbacks or {}

    final_token = token or os.getenv("WEBENGINE_TOKEN") or fb.get("token")
    final_instance = (
        instance or os.getenv("WEBENGINE_INSTANCE") or fb.get("instance_id")
    )
    final_workspace = (
        workspace
        or os.getenv("WEBENGINE_WORKSPACE")
        or fb.get("workspace")
        or os.getcwd()
    )

    timeout_raw = os.getenv("WEBENGINE_TIMEOUT")
    if timeout_raw is not None:
        try:
            final_timeout = float(timeout_raw)
        except ValueError:
            raise ValueError(
                f"Invalid WEBENGINE_TIMEOUT '{timeout_raw}': must be a number of seconds"
            ) from None
    elif fb.get("timeout") is not None:
        final_timeout = float(fb["timeout"])
    else:
        final_timeout = 30.0

    final_debug = debug or _resolve_bool(
        "WEBENGINE_DEBUG", fb.get("debug"), False
    )

    config = Config(
        token=final_token,
        instance_id=final_instance,
        workspace_root=Path(final_workspace),
        artifact_root=fb.get("artifact_root") or DEFAULT_ARTIFACT_ROOT,
        state_file=fb.get("state_file") or DEFAULT_STATE_FILE,
        api_url_template=fb.get("api_url") or DEFAULT_API_URL_TEMPLATE,
        accounts_url=fb.get("accounts_url") or DEFAULT_ACCOUNTS_URL,
        sync_on_save=_resolve_bool(
            "WEBENGINE_SYNC_ON_SAVE", fb.get("sync_on_save"), True
        ),
        sync_on_delete=_resolve_bool(
            "WEBENGINE_SYNC_ON_DELETE", fb.get("sync_on_delete"), True
        ),
        timeout=final_timeout,
        debug=final_debug,
    )

    validate_config(config)

    return config
