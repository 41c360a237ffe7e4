"""Tests for sync/prompts.py -- prompt definitions and prompters."""

import io
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from webengine_sync.sync.diff import build_diff_view
from webengine_sync.sync.prompts import (
    CANCEL,
    OVERWRITE_REMOTE,
    PUBLISH_CONFIRM,
    PUSH_CONFLICT,
    SHOW_DIFF,
    ConsolePrompter,
    DecisionRequired,
    Prompt,
    ScriptedPrompter,
    pull_confirm,
    pull_published_confirm,
)


class TestPromptDefinitions:
    def test_prompt_ids_are_unique(self):
        ids = {
            PUSH_CONFLICT.prompt_id,
            PUBLISH_CONFIRM.prompt_id,
            pull_confirm(False).prompt_id,
            pull_published_confirm(False).prompt_id,
        }
        assert len(ids) == 4

    def test_pull_message_depends_on_dirty_buffer(self):
        assert pull_confirm(True).message != pull_confirm(False).message
        assert pull_confirm(True).prompt_id == pull_confirm(False).prompt_id

    def test_destructive_prompts_are_modal(self):
        assert PUBLISH_CONFIRM.modal
        assert pull_published_confirm(False).modal
        assert not PUSH_CONFLICT.modal


class TestConsolePrompter:
    """Tests for the terminal prompter on a rich console."""

    def _prompter(self, *answers):
        out = io.StringIO()
        console = Console(file=out, width=100, color_system=None)
        console.input = MagicMock(side_effect=list(answers))
        return ConsolePrompter(console=console), console, out

    def test_number_selects_choice(self):
        prompter, _, out = self._prompter("1")
        assert prompter.choose(PUSH_CONFLICT) == OVERWRITE_REMOTE
        assert "1 - Overwrite Remote" in out.getvalue()
        assert PUSH_CONFLICT.message in out.getvalue()

    def test_choices_offered_as_keys(self):
        prompter, console, _ = self._prompter("2")
        assert prompter.choose(PUSH_CONFLICT) == SHOW_DIFF
        asked = console.input.call_args[0][0]
        assert "Your choice" in str(asked)
        assert "[1/2/3]" in str(asked)

    def test_invalid_answer_asks_again(self):
        prompter, console, out = self._prompter("9", "maybe", "3")
        assert prompter.choose(PUSH_CONFLICT) == CANCEL
        assert console.input.call_count == 3
        assert "Please select one of the available options" in out.getvalue()

    def test_empty_answer_cancels(self):
        prompter, _, _ = self._prompter("")
        assert prompter.choose(PUBLISH_CONFIRM) == CANCEL

    def test_empty_answer_without_cancel_asks_again(self):
        no_cancel = Prompt(prompt_id="x", message="Pick", choices=("A", "B"))
        prompter, console, _ = self._prompter("", "2")
        assert prompter.choose(no_cancel) == "B"
        assert console.input.call_count == 2

    def test_eof_dismisses(self):
        prompter, _, _ = self._prompter(EOFError())
        assert prompter.choose(PUSH_CONFLICT) is None

    def test_markup_in_message_is_literal(self):
        prompt = Prompt(prompt_id="x", message="Keep [bold]?", choices=(CANCEL,))
        prompter, _, out = self._prompter("1")
        prompter.choose(prompt)
        assert "Keep [bold]?" in out.getvalue()

    def test_show_diff_renders_title_and_diff(self):
        prompter, _, out = self._prompter()
        prompter.show_diff(build_diff_view("site.css", "a\n", "b\n"))
        text = out.getvalue()
        assert "site.css (Remote ↔ Local)" in text
        assert "-a" in text and "+b" in text

    def test_show_diff_without_differences(self):
        prompter, _, out = self._prompter()
        prompter.show_diff(build_diff_view("site.css", "a\n", "a\n"))
        assert "No differences: site.css" in out.getvalue()


class TestScriptedPrompter:
    """Tests for the pre-answered prompter."""

    def test_answer_returned(self):
        prompter = ScriptedPrompter({"push.conflict": OVERWRITE_REMOTE})
        assert prompter.choose(PUSH_CONFLICT) == OVERWRITE_REMOTE
        assert prompter.asked == [PUSH_CONFLICT]

    def test_missing_answer_raises_decision_required(self):
        prompter = ScriptedPrompter()
        with pytest.raises(DecisionRequired) as exc_info:
            prompter.choose(PUBLISH_CONFIRM)
        assert exc_info.value.prompt is PUBLISH_CONFIRM

    def test_answer_not_in_choices_dismisses(self):
        prompter = ScriptedPrompter({"push.conflict": "Publish"})
        assert prompter.choose(PUSH_CONFLICT) is None

    def test_diffs_collected(self):
        prompter = ScriptedPrompter()
        view = build_diff_view("/home", "a", "b")
        prompter.show_diff(view)
        assert prompter.diffs == [view]
