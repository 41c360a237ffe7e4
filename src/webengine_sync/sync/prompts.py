"""User decisions at the orchestrator's choice points.

The orchestrator never talks to a terminal or an editor directly; it asks
a ``Prompter``.  Two implementations ship:

- ``ConsolePrompter`` asks on a rich console (the CLI host).
- ``ScriptedPrompter`` answers from a dict of pre-collected choices and
  raises ``DecisionRequired`` for any prompt it has no answer for (the MCP
  host, and tests).

Returning ``None`` from ``choose()`` means the prompt was dismissed and is
handled like "Cancel".
"""

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt as ChoicePrompt
from rich.syntax import Syntax

from .diff import DiffView

logger = logging.getLogger(__name__)

# Choice labels shown to the user
OVERWRITE_REMOTE = "Overwrite Remote"
SHOW_DIFF = "Show Diff"
CANCEL = "Cancel"
PULL_AND_OVERWRITE = "Pull and Overwrite"
PULL_PUBLISHED = "Pull Published Version"
SAVE_AND_SYNC = "Save & Sync"
SYNC_WITHOUT_SAVING = "Sync Without Saving"
SAVE_AND_PUBLISH = "Save & Publish"
PUBLISH_WITHOUT_SAVING = "Publish Without Saving"
PUBLISH_ANYWAY = "Publish Anyway"
CONTINUE = "Continue"
PUBLISH = "Publish"


class Prompt(BaseModel):
    """A question with a closed set of answers.

    Attributes:
        prompt_id: Stable identifier of the choice point (``push.conflict``).
        message: Text shown to the user.
        choices: Allowed answers, in display order.
        modal: Whether the host should block other interaction.
    """

    prompt_id: str
    message: str
    choices: tuple[str, ...]
    modal: bool = False

    model_config = {"frozen": True}


PUSH_CONFLICT = Prompt(
    prompt_id="push.conflict",
    message="Remote file has newer changes. Overwrite with local version?",
    choices=(OVERWRITE_REMOTE, SHOW_DIFF, CANCEL),
)

SYNC_UNSAVED = Prompt(
    prompt_id="sync.unsaved",
    message="File has unsaved changes. Save before syncing?",
    choices=(SAVE_AND_SYNC, SYNC_WITHOUT_SAVING, CANCEL),
)

PUBLISH_UNSAVED = Prompt(
    prompt_id="publish.unsaved",
    message="File has unsaved changes. Save before publishing?",
    choices=(SAVE_AND_PUBLISH, PUBLISH_WITHOUT_SAVING, CANCEL),
)

PUBLISH_LIVE_UNAVAILABLE = Prompt(
    prompt_id="publish.live_unavailable",
    message="Unable to fetch published version for diff. Publish anyway?",
    choices=(PUBLISH_ANYWAY, CANCEL),
)

PUBLISH_LIVE_DIFF = Prompt(
    prompt_id="publish.live_diff",
    message=(
        "Published (live) version differs from local. "
        "Review diff before publishing?"
    ),
    choices=(SHOW_DIFF, CONTINUE, CANCEL),
)

PUBLISH_CONFIRM = Prompt(
    prompt_id="publish.confirm",
    message="This will publish the file. Are you sure?",
    choices=(PUBLISH, CANCEL),
    modal=True,
)


def pull_confirm(is_dirty: bool) -> Prompt:
    """Destructive-overwrite confirmation for a draft pull."""
    message = (
        "This will overwrite local changes (unsaved edits will be lost). Continue?"
        if is_dirty
        else "This will overwrite the local file with the instance version. Continue?"
    )
    return Prompt(
        prompt_id="pull.confirm",
        message=message,
        choices=(PULL_AND_OVERWRITE, CANCEL),
        modal=True,
    )


def pull_published_confirm(is_dirty: bool) -> Prompt:
    """Destructive-overwrite confirmation for a published pull."""
    message = (
        "This will overwrite local changes with the published (live) version. "
        "Unsaved edits will be lost."
        if is_dirty
        else "This will overwrite the local file with the published (live) version."
    )
    return Prompt(
        prompt_id="pull_published.confirm",
        message=message,
        choices=(PULL_PUBLISHED, CANCEL),
        modal=True,
    )


class DecisionRequired(Exception):
    """Raised by a non-interactive prompter that has no answer yet.

    The operation is abandoned before any write; the host is expected to
    collect an answer for ``prompt`` and replay the operation.
    """

    def __init__(self, prompt: Prompt) -> None:
        super().__init__(prompt.message)
        self.prompt = prompt


class Prompter(Protocol):
    """Interface the orchestrator uses to ask the user."""

    def choose(self, prompt: Prompt) -> str | None: ...  # pragma: no cover

    def show_diff(self, view: DiffView) -> None: ...  # pragma: no cover


class ConsolePrompter:
    """Ask on a terminal through a rich console.

    Choices are offered as numbered keys; an empty answer picks "Cancel"
    when the prompt has one, end of input dismisses the prompt.

    Args:
        console: Console to ask on (default: one writing to stderr, so
            stdout stays machine-readable with ``--json``).
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    def choose(self, prompt: Prompt) -> str | None:
        keys = [str(index) for index in range(1, len(prompt.choices) + 1)]
        by_key = dict(zip(keys, prompt.choices))

        self._console.print()
        self._console.print(f"[bold yellow]{escape(prompt.message)}[/bold yellow]")
        for key, choice in by_key.items():
            self._console.print(f"  [cyan]{key}[/cyan] - {escape(choice)}")

        options = {}
        if CANCEL in prompt.choices:
            options["default"] = keys[prompt.choices.index(CANCEL)]
        try:
            key = ChoicePrompt.ask(
                "Your choice", console=self._console, choices=keys, **options
            )
        except EOFError:
            return None
        return by_key[key]

    def show_diff(self, view: DiffView) -> None:
        if not view.diff:
            self._console.print(f"[green]No differences:[/green] {escape(view.title)}")
            return
        self._console.print(
            Panel(
                Syntax(view.diff.rstrip("\n"), "diff", theme="monokai"),
                title=escape(view.title),
                border_style="yellow",
            )
        )


class ScriptedPrompter:
    """Answer prompts from a dict keyed by ``prompt_id``.

    Unknown answers (not one of the prompt's choices) are treated as a
    dismissed prompt.  Diffs are collected in ``diffs``.
    """

    def __init__(self, answers: dict[str, str] | None = None) -> None:
        self.answers = dict(answers or {})
        self.asked: list[Prompt] = []
        self.diffs: list[DiffView] = []

    def choose(self, prompt: Prompt) -> str | None:
        self.asked.append(prompt)
        if prompt.prompt_id not in self.answers:
            raise DecisionRequired(prompt)
        answer = self.answers[prompt.prompt_id]
        if answer not in prompt.choices:
            logger.debug(
                "Answer %r is not a choice of %s; treating as cancel",
                answer,
                prompt.prompt_id,
            )
            return None
        return answer

    def show_diff(self, view: DiffView) -> None:
        self.diffs.append(view)
