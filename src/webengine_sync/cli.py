"""Command-line host for web-engine file sync.

Every command maps onto one orchestrator operation and prompts on the
terminal through ``ConsolePrompter``.  The editor hooks (``file-saved``,
``create-file``, ``delete-file``) go through ``EventRouter`` so the
``sync_on_save`` and ``sync_on_delete`` settings apply.

Results go to stdout (as text or, with ``--json``, as JSON); failures are
reported on stderr and exit with status 1.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import Config
from .config_loader import ensure_config, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config, to_runtime_config
from .errors import StateCorrupted
from .logger import setup_logging
from .sync.events import EventRouter, FileCreated, FileDeleted, FileSaved
from .sync.models import OperationResult, SyncOutcome, Variant
from .sync.orchestrator import FileRequest, SyncOrchestrator
from .sync.prompts import ConsolePrompter
from .sync.reporter import (
    format_result,
    format_status,
    result_to_json,
    status_to_json,
)
from .sync.session import SyncSession
from .sync.state import SyncMetadataStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _read_buffer(source: str | None) -> str | None:
    """Buffer text from a file, or stdin when *source* is ``-``."""
    if source is None:
        return None
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _file_request(args: argparse.Namespace) -> FileRequest:
    content = _read_buffer(args.buffer)
    return FileRequest(
        path=args.path,
        content=content,
        is_dirty=content is not None,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_sync_all(orchestrator, args):
    return orchestrator.sync_all()


def _cmd_sync_file(orchestrator, args):
    return orchestrator.sync_file(_file_request(args))


def _cmd_save_and_sync_file(orchestrator, args):
    return orchestrator.sync_file(_file_request(args), force_save=True)


def _cmd_pull_draft_file(orchestrator, args):
    return orchestrator.pull(_file_request(args), Variant.DRAFT)


def _cmd_pull_published_file(orchestrator, args):
    return orchestrator.pull(_file_request(args), Variant.LIVE)


def _cmd_publish_file(orchestrator, args):
    return orchestrator.publish(_file_request(args))


_OPERATIONS = {
    "sync-all": _cmd_sync_all,
    "sync-file": _cmd_sync_file,
    "save-and-sync-file": _cmd_save_and_sync_file,
    "pull-draft-file": _cmd_pull_draft_file,
    "pull-published-file": _cmd_pull_published_file,
    "publish-file": _cmd_publish_file,
}

# Editor hooks go through EventRouter, which applies the sync_on_save and
# sync_on_delete settings.


def _event_file_saved(args):
    return FileSaved(args.path, content=_read_buffer(args.buffer))


def _event_file_created(args):
    return FileCreated(args.path, content=_read_buffer(args.buffer))


def _event_file_deleted(args):
    return FileDeleted(tuple(args.paths))


_EVENTS = {
    "file-saved": _event_file_saved,
    "create-file": _event_file_created,
    "delete-file": _event_file_deleted,
}


def _cmd_init(config: Config, args: argparse.Namespace) -> int:
    """Write the state document for an instance and a starter config."""
    if not config.instance_id:
        print(
            "ERROR: init needs an instance id (--instance or WEBENGINE_INSTANCE).",
            file=sys.stderr,
        )
        return EXIT_CONFIG

    store = SyncMetadataStore(config.state_path, instance_id=config.instance_id)
    try:
        store.load()
    except StateCorrupted as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return EXIT_FAILED
    store.config.instance_id = config.instance_id
    store.persist()

    config_path = ensure_config(cwd=config.workspace_root)
    if args.json:
        print(
            json.dumps(
                {
                    "instance_id": config.instance_id,
                    "state_file": str(config.state_path),
                    "config_file": str(config_path),
                },
                indent=2,
            )
        )
    else:
        print(f"Initialised {config.state_path} for instance {config.instance_id}")
        print(f"Config: {config_path}")
    return EXIT_OK


def _cmd_status(session: SyncSession, args: argparse.Namespace) -> int:
    if args.json:
        print(json.dumps(status_to_json(session.store.config), indent=2))
    else:
        print(format_status(session.store.config))
    return EXIT_OK


def _report(result: OperationResult, as_json: bool) -> int:
    if as_json:
        print(json.dumps(result_to_json(result), indent=2))
    elif result.outcome == SyncOutcome.FAILED:
        print(format_result(result), file=sys.stderr)
    else:
        print(format_result(result))
    return EXIT_FAILED if result.outcome == SyncOutcome.FAILED else EXIT_OK


def _report_disabled(command: str, as_json: bool) -> int:
    """Report an editor hook switched off by sync_on_save / sync_on_delete."""
    message = f"{command}: syncing is disabled by configuration; nothing sent."
    if as_json:
        print(
            json.dumps(
                {"command": command, "outcome": "disabled", "message": message}
            )
        )
    else:
        print(message)
    return EXIT_OK


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_file_command(subparsers, name: str, help_text: str, buffer: bool = True):
    sub = subparsers.add_parser(name, help=help_text)
    sub.add_argument("path", help="File path (absolute or workspace-relative)")
    if buffer:
        sub.add_argument(
            "--buffer",
            metavar="FILE",
            help="Unsaved editor buffer to use instead of the file on disk "
            "('-' reads stdin)",
        )
    return sub


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webengine-sync",
        description="Sync local views, stylesheets and scripts with a web-engine instance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Track an instance in the current workspace
  webengine-sync init --instance 8-abc123-def456

  # Download every working copy
  webengine-sync sync-all

  # Push one file, then publish it
  webengine-sync sync-file webengine/styles/site.css
  webengine-sync publish-file webengine/views/home
        """,
    )
    parser.add_argument(
        "--token",
        help="Override access token (visible in process list; prefer WEBENGINE_TOKEN)",
    )
    parser.add_argument("--instance", help="Override instance id")
    parser.add_argument("--workspace", help="Override workspace root")
    parser.add_argument(
        "--json", action="store_true", help="Print results as JSON"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"webengine-sync version {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "init", help="Write the state document and a starter config"
    )
    subparsers.add_parser(
        "sync-all", help="Download every working copy from the instance"
    )
    _add_file_command(subparsers, "sync-file", "Push one file to its remote draft")
    _add_file_command(
        subparsers,
        "save-and-sync-file",
        "Save the buffer to disk, then push it",
    )
    _add_file_command(
        subparsers, "pull-draft-file", "Overwrite one file with its remote draft"
    )
    _add_file_command(
        subparsers,
        "pull-published-file",
        "Overwrite one file with its published version",
    )
    _add_file_command(subparsers, "publish-file", "Sync one file, then publish it")
    _add_file_command(
        subparsers,
        "file-saved",
        "Editor save hook: push the file unless sync_on_save is off",
    )
    _add_file_command(
        subparsers,
        "create-file",
        "Editor create hook: create the remote resource for a new file",
    )
    delete = subparsers.add_parser(
        "delete-file",
        help="Editor delete hook: delete the remote resource unless "
        "sync_on_delete is off",
    )
    delete.add_argument("paths", nargs="+", help="Deleted file path(s)")
    subparsers.add_parser("status", help="List tracked resources")
    return parser


def _load_settings(
    args: argparse.Namespace,
) -> tuple[UnifiedConfig, Config]:
    load_dotenv()
    overrides = {
        key: value
        for key, value in (
            ("token", args.token),
            ("instance", args.instance),
            ("workspace", args.workspace),
            ("debug", args.debug or None),
        )
        if value
    }
    cwd = Path(args.workspace).expanduser() if args.workspace else None
    unified = build_config(load_hierarchical_config(cwd))
    return unified, to_runtime_config(unified, cli_overrides=overrides)


def main(argv: list[str] | None = None) -> int:
    """Run one command and return the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        unified, config = _load_settings(args)
    except (ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    setup_logging(
        mode="cli",
        debug=config.debug,
        log_file=unified.logging.file,
        level=unified.logging.level,
    )
    logger.debug("Running %s in %s", args.command, config.workspace_root)

    if args.command == "init":
        return _cmd_init(config, args)

    try:
        session = SyncSession.open(config, ConsolePrompter())
    except StateCorrupted as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return EXIT_FAILED

    if args.command == "status":
        return _cmd_status(session, args)

    orchestrator = SyncOrchestrator(session)
    router = EventRouter(
        orchestrator,
        sync_on_save=config.sync_on_save,
        sync_on_delete=config.sync_on_delete,
    )
    try:
        if args.command in _EVENTS:
            result = router.handle(_EVENTS[args.command](args))
        else:
            result = _OPERATIONS[args.command](orchestrator, args)
    except OSError as e:
        print(f"ERROR: Cannot read buffer: {e}", file=sys.stderr)
        return EXIT_FAILED
    if result is None:
        return _report_disabled(args.command, args.json)
    return _report(result, args.json)


def run() -> None:
    """Console entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
