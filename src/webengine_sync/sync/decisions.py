"""Pending user decisions for hosts that cannot block on a prompt.

When a ``ScriptedPrompter`` raises ``DecisionRequired`` the host parks the
operation here under a fresh correlation token, together with the tool
arguments and the answers collected so far.  Answering the token pops the
entry so the host can replay the operation with one more answer.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any

from .prompts import Prompt

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600.0


@dataclass
class PendingDecision:
    token: str
    operation: str
    arguments: dict[str, Any]
    answers: dict[str, str]
    prompt: Prompt
    created: float = 0.0


class PendingDecisionRegistry:
    """Thread-safe token -> ``PendingDecision`` map with expiry."""

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS) -> None:
        self.ttl = ttl
        self._pending: dict[str, PendingDecision] = {}
        self._lock = threading.Lock()

    def open(
        self,
        operation: str,
        arguments: dict[str, Any],
        answers: dict[str, str],
        prompt: Prompt,
    ) -> PendingDecision:
        """Park an operation and return its pending decision."""
        pending = PendingDecision(
            token=uuid.uuid4().hex,
            operation=operation,
            arguments=dict(arguments),
            answers=dict(answers),
            prompt=prompt,
            created=time.monotonic(),
        )
        with self._lock:
            self._expire()
            self._pending[pending.token] = pending
        logger.debug(
            "Awaiting decision %s for %s (%s)",
            pending.token,
            operation,
            prompt.prompt_id,
        )
        return pending

    def get(self, token: str) -> PendingDecision | None:
        """Return the decision for *token* without removing it."""
        with self._lock:
            self._expire()
            return self._pending.get(token)

    def take(self, token: str) -> PendingDecision | None:
        """Remove and return the decision for *token*, if still pending."""
        with self._lock:
            self._expire()
            return self._pending.pop(token, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def _expire(self) -> None:
        cutoff = time.monotonic() - self.ttl
        stale = [t for t, p in self._pending.items() if p.created < cutoff]
        for token in stale:
            logger.info("Discarding expired decision %s", token)
            del self._pending[token]
