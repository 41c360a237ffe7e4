"""Shared pytest fixtures for webengine-sync tests."""

from pathlib import Path

import pytest

from webengine_sync.config import Config
from webengine_sync.errors import RemoteUnavailable
from webengine_sync.sync.models import (
    CreatedResource,
    RemoteSnapshot,
    ResourceKind,
    ResourceRecord,
    Variant,
)
from webengine_sync.sync.prompts import ScriptedPrompter
from webengine_sync.sync.session import SyncSession

OLD = "2024-01-01T00:00:00Z"
NEW = "2024-02-01T00:00:00Z"
NOW = "2024-03-01T00:00:00Z"

_ENV_VARS = (
    "WEBENGINE_TOKEN",
    "WEBENGINE_INSTANCE",
    "WEBENGINE_WORKSPACE",
    "WEBENGINE_TIMEOUT",
    "WEBENGINE_DEBUG",
    "WEBENGINE_SYNC_ON_SAVE",
    "WEBENGINE_SYNC_ON_DELETE",
    "WEBENGINE_SYNC_CONFIG",
    "XDG_CONFIG_HOME",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    """Keep the developer's environment and global config out of tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


class FakeRemoteClient:
    """In-memory remote instance.

    Drafts and live copies are kept per ``(kind, remote_id)``.  Every call
    is recorded in ``calls``; ``failures`` maps a method name (``get_live``
    for the live variant) to an exception to raise.  With
    ``update_returns_time`` off, ``update()`` reports no modification time.
    """

    def __init__(self) -> None:
        self.drafts: dict[tuple[ResourceKind, str], dict] = {}
        self.live: dict[tuple[ResourceKind, str], dict] = {}
        self.listings: dict[ResourceKind, list[dict]] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple] = []
        self.now = NOW
        self.update_returns_time = True
        self._next_id = 1

    def add(
        self,
        kind: ResourceKind,
        remote_id: str,
        code: str = "",
        updated_at: str | None = OLD,
        version: int | None = 1,
        live_code: str | None = None,
    ) -> None:
        self.drafts[(kind, remote_id)] = {
            "code": code,
            "updatedAt": updated_at,
            "version": version,
        }
        if live_code is not None:
            self.live[(kind, remote_id)] = {
                "code": live_code,
                "updatedAt": updated_at,
                "version": version,
            }

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _check(self, method: str) -> None:
        error = self.failures.get(method)
        if error is not None:
            raise error

    def validate_token(self) -> bool:
        self.calls.append(("validate_token",))
        self._check("validate_token")
        return True

    def list(self, kind: ResourceKind) -> list[dict]:
        self.calls.append(("list", kind))
        self._check(f"list_{kind.value}")
        return list(self.listings.get(kind, []))

    def get(
        self,
        kind: ResourceKind,
        remote_id: str,
        variant: Variant = Variant.DRAFT,
    ) -> RemoteSnapshot:
        self.calls.append(("get", kind, remote_id, variant))
        self._check("get_live" if variant == Variant.LIVE else "get")
        store = self.live if variant == Variant.LIVE else self.drafts
        data = store.get((kind, remote_id))
        if data is None:
            raise RemoteUnavailable(f"No {variant.value} content for {remote_id}")
        return RemoteSnapshot(
            code=data["code"],
            updated_at=data["updatedAt"],
            version=data["version"],
        )

    def create(self, kind: ResourceKind, payload: dict) -> CreatedResource:
        self.calls.append(("create", kind, payload))
        self._check("create")
        remote_id = f"new-{self._next_id}"
        self._next_id += 1
        self.add(kind, remote_id, payload["code"], updated_at=self.now)
        return CreatedResource(
            remote_id=remote_id,
            subtype=payload.get("type"),
            created_at=self.now,
            updated_at=self.now,
        )

    def update(
        self, kind: ResourceKind, remote_id: str, payload: dict
    ) -> str | None:
        self.calls.append(("update", kind, remote_id, payload))
        self._check("update")
        draft = self.drafts[(kind, remote_id)]
        draft["code"] = payload["code"]
        draft["updatedAt"] = self.now
        draft["version"] = (draft["version"] or 0) + 1
        return self.now if self.update_returns_time else None

    def delete(self, kind: ResourceKind, remote_id: str) -> bool:
        self.calls.append(("delete", kind, remote_id))
        self._check("delete")
        self.drafts.pop((kind, remote_id), None)
        return True

    def publish(self, kind: ResourceKind, remote_id: str, version=None) -> bool:
        self.calls.append(("publish", kind, remote_id, version))
        self._check("publish")
        self.live[(kind, remote_id)] = dict(self.drafts[(kind, remote_id)])
        return True


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Workspace with the artifact root scaffolded."""
    root = tmp_path / "site"
    for folder in ("views", "styles", "scripts"):
        (root / "webengine" / folder).mkdir(parents=True)
    return root


@pytest.fixture
def config(workspace: Path) -> Config:
    return Config(token="tok-123", instance_id="8-test", workspace_root=workspace)


@pytest.fixture
def fake_client() -> FakeRemoteClient:
    return FakeRemoteClient()


@pytest.fixture
def session(config: Config, fake_client: FakeRemoteClient) -> SyncSession:
    return SyncSession.open(config, ScriptedPrompter(), client=fake_client)


def _track(
    session: SyncSession,
    kind: ResourceKind,
    key: str,
    remote_id: str,
    last_synced_at: str | None = OLD,
    updated_at: str | None = OLD,
    subtype: str | None = None,
) -> ResourceRecord:
    """Insert a record into the session store and persist it."""
    record = ResourceRecord(
        remote_id=remote_id,
        subtype=subtype,
        created_at=OLD,
        updated_at=updated_at,
        last_synced_at=last_synced_at,
    )
    session.store.put(kind, key, record)
    session.store.persist()
    return record


@pytest.fixture
def track():
    """Factory fixture: ``track(session, kind, key, remote_id, ...)``."""
    return _track
