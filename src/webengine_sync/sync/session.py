"""Explicit session context shared by every operation of one host.

A ``SyncSession`` bundles the configuration, the loaded state store, the
remote client, the path classifier and the default prompter.  Hosts build
one with ``SyncSession.open()`` at start-up and hand it to the
orchestrator; nothing is kept in module globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import Config
from ..core.client import RemoteResourceClient, WebEngineClient
from ..errors import AuthError, Phase
from .classifier import ResourceClassifier
from .prompts import Prompter
from .state import SyncMetadataStore

logger = logging.getLogger(__name__)


@dataclass
class SyncSession:
    config: Config
    store: SyncMetadataStore
    client: RemoteResourceClient
    classifier: ResourceClassifier
    prompter: Prompter
    credentials_validated: bool = field(default=False)

    @classmethod
    def open(
        cls,
        config: Config,
        prompter: Prompter,
        client: RemoteResourceClient | None = None,
    ) -> "SyncSession":
        """Load state for *config* and build the default collaborators.

        Raises:
            StateCorrupted: If the state document exists but is unreadable.
        """
        store = SyncMetadataStore(
            config.state_path,
            instance_id=config.instance_id,
            token=config.token,
        )
        store.load()
        classifier = ResourceClassifier(
            config.workspace_root,
            artifact_root=config.artifact_root,
            state_file=config.state_file,
        )
        if client is None:
            client = WebEngineClient(config, store.config.instance_id or "")
        logger.debug(
            "Session opened for workspace %s (instance %s)",
            config.workspace_root,
            store.config.instance_id,
        )
        return cls(
            config=config,
            store=store,
            client=client,
            classifier=classifier,
            prompter=prompter,
        )

    @property
    def instance_id(self) -> str | None:
        return self.store.config.instance_id

    def ensure_credentials(self) -> None:
        """Validate token and instance id once per session.

        Raises:
            AuthError: If the token or instance id is missing, or the token
                is rejected by the remote.
        """
        if not self.config.token:
            raise AuthError("Access token not found.", Phase.VALIDATION)
        if not self.instance_id:
            raise AuthError(
                "Missing instance id in the state document.",
                Phase.VALIDATION,
            )
        if self.credentials_validated:
            return
        self.client.validate_token()
        self.credentials_validated = True
        logger.info("Access token validated for instance %s", self.instance_id)
