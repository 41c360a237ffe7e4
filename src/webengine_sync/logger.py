import json
import logging
import os
import sys

_DATEFMT = "%Y-%m-%d %H:%M:%S"
_TEXT_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
_NAMED_TEXT_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"

DEFAULT_MCP_LOG_FILE = "/tmp/webengine-sync-mcp.log"

# Extra record attributes copied into JSON output when a caller sets them,
# e.g. logger.info("...", extra={"operation": "push", "key": "/home"})
_SYNC_FIELDS = ("operation", "kind", "key")

_NOISY_LOGGERS = ("urllib3", "requests", "httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, msg.

    Sync context passed through ``extra`` (operation, kind, key) and
    exception text (as "exc") are added when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for name in _SYNC_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _formatter(debug_format: str, named: bool) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATEFMT)
    return logging.Formatter(
        _NAMED_TEXT_FORMAT if named else _TEXT_FORMAT, datefmt=_DATEFMT
    )


def _resolve_level(mode: str, debug: bool, level: str | None) -> int:
    if debug:
        return logging.DEBUG
    fallback = level or ("WARNING" if mode == "mcp" else "INFO")
    name = os.getenv("LOG_LEVEL", fallback).upper()
    return getattr(logging, name, logging.INFO)


def _build_handlers(
    mode: str, log_file: str | None, debug_format: str
) -> list[logging.Handler]:
    if mode == "mcp":
        # stdout carries JSON-RPC; the MCP host only ever logs to a file
        path = log_file or os.getenv("LOG_FILE", DEFAULT_MCP_LOG_FILE)
        handler = logging.FileHandler(path, mode="a")
        handler.setFormatter(_formatter(debug_format, named=False))
        return [handler]

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_formatter(debug_format, named=False))
    handlers: list[logging.Handler] = [stderr_handler]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(_formatter(debug_format, named=True))
        handlers.append(file_handler)
    return handlers


def setup_logging(
    mode: str = "cli",
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure root logging for the CLI or the MCP host.

    Args:
        mode: "mcp" logs to a file only, "cli" logs to stderr (plus
            *log_file* when given).
        debug: Force DEBUG, ignoring every other level source.
        log_file: Log file path (for MCP mode, overrides LOG_FILE).
        debug_format: "text" (default) or "json".
        level: Level from the YAML ``logging`` section, used when
            LOG_LEVEL is unset.

    Environment variables:
        LOG_LEVEL: DEBUG, INFO, WARNING or ERROR.
                   Default: WARNING for MCP mode, INFO for CLI mode.
        LOG_FILE: MCP log file. Default: /tmp/webengine-sync-mcp.log
    """
    log_level = _resolve_level(mode, debug, level)
    logging.basicConfig(
        level=log_level,
        handlers=_build_handlers(mode, log_file, debug_format),
        force=True,
    )

    # HTTP client chatter only shows up in DEBUG
    if log_level != logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
