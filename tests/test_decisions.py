"""Tests for sync/decisions.py -- pending decision registry."""

from unittest.mock import patch

from webengine_sync.sync.decisions import PendingDecisionRegistry
from webengine_sync.sync.prompts import PUSH_CONFLICT


class TestPendingDecisionRegistry:
    def test_open_returns_unique_tokens(self):
        registry = PendingDecisionRegistry()
        a = registry.open("webengine_sync_file", {"path": "x"}, {}, PUSH_CONFLICT)
        b = registry.open("webengine_sync_file", {"path": "x"}, {}, PUSH_CONFLICT)
        assert a.token != b.token
        assert len(registry) == 2

    def test_take_removes(self):
        registry = PendingDecisionRegistry()
        pending = registry.open("op", {}, {"a": "b"}, PUSH_CONFLICT)
        assert registry.get(pending.token) is pending
        assert registry.take(pending.token) is pending
        assert registry.take(pending.token) is None
        assert len(registry) == 0

    def test_arguments_and_answers_are_copied(self):
        registry = PendingDecisionRegistry()
        args = {"path": "x"}
        answers = {"pull.confirm": "Cancel"}
        pending = registry.open("op", args, answers, PUSH_CONFLICT)
        args["path"] = "y"
        answers.clear()
        assert pending.arguments == {"path": "x"}
        assert pending.answers == {"pull.confirm": "Cancel"}

    def test_expired_decisions_are_dropped(self):
        registry = PendingDecisionRegistry(ttl=10)
        with patch("webengine_sync.sync.decisions.time.monotonic", return_value=100.0):
            pending = registry.open("op", {}, {}, PUSH_CONFLICT)
        with patch("webengine_sync.sync.decisions.time.monotonic", return_value=200.0):
            assert registry.take(pending.token) is None

    def test_unknown_token(self):
        assert PendingDecisionRegistry().get("nope") is None
