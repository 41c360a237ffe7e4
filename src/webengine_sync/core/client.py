import logging
import threading
from typing import Any, Protocol

import requests

from ..config import Config
from ..errors import AuthError, Phase, RemoteUnavailable, VersionUnavailable
from ..sync.dispatch import first_field, spec_for
from ..sync.models import (
    CreatedResource,
    RemoteSnapshot,
    ResourceKind,
    Variant,
)

logger = logging.getLogger(__name__)


def _text(value: Any) -> str | None:
    """Timestamps arrive as ISO strings or epoch numbers; keep them as text."""
    return None if value is None else str(value)


class RemoteResourceClient(Protocol):
    """Kind-polymorphic CRUD and publish operations on the remote instance."""

    def validate_token(self) -> bool: ...  # pragma: no cover

    def list(self, kind: ResourceKind) -> list[dict[str, Any]]: ...  # pragma: no cover

    def get(
        self,
        kind: ResourceKind,
        remote_id: str,
        variant: Variant = Variant.DRAFT,
    ) -> RemoteSnapshot: ...  # pragma: no cover

    def create(
        self, kind: ResourceKind, payload: dict[str, Any]
    ) -> CreatedResource: ...  # pragma: no cover

    def update(
        self, kind: ResourceKind, remote_id: str, payload: dict[str, Any]
    ) -> str | None: ...  # pragma: no cover

    def delete(self, kind: ResourceKind, remote_id: str) -> bool: ...  # pragma: no cover

    def publish(
        self,
        kind: ResourceKind,
        remote_id: str,
        version: int | str | None = None,
    ) -> bool: ...  # pragma: no cover


class WebEngineClient:
    """REST client for the web-engine API of one instance.

    Args:
        config: Runtime configuration (token, URLs, timeout).
        instance_id: Identifier of the remote instance.
    """

    def __init__(self, config: Config, instance_id: str):
        self.config = config
        self.instance_id = instance_id
        self._thread_local = threading.local()
        self.base_url = self._get_base_url()

    @property
    def session(self) -> requests.Session:
        """Session for the current thread."""
        return self._get_session()

    def _get_base_url(self) -> str:
        return self.config.api_url_template.format(
            instance=self.instance_id
        ).rstrip("/")

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.token}",
                "Content-Type": "application/json",
            }
        )
        return session

    def _request(
        self,
        method: str,
        url: str,
        phase: Phase,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        """
        Send a request and return the ``data`` member of the JSON body.
        """
        logger.debug("%s %s params=%s", method, url, params)
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=payload if method != "GET" else None,
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            raise RemoteUnavailable(
                f"{method} {url} failed: {exc}", phase
            ) from exc

        if response.status_code in (401, 403):
            raise AuthError(
                "Invalid or expired developer token provided.",
                Phase.VALIDATION,
            )
        if response.status_code >= 400:
            raise RemoteUnavailable(
                f"{method} {url} returned HTTP {response.status_code}",
                phase,
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteUnavailable(
                f"{method} {url} returned invalid JSON", phase
            ) from exc

        if isinstance(body, dict):
            if body.get("error"):
                raise RemoteUnavailable(
                    f"{method} {url} returned error: {body['error']}",
                    phase,
                )
            return body.get("data", body)
        return body

    def _resource_url(
        self, kind: ResourceKind, remote_id: str | None = None
    ) -> str:
        url = f"{self.base_url}/web/{spec_for(kind).endpoint}"
        if remote_id:
            url += f"/{remote_id}"
        return url

    def validate_token(self) -> bool:
        """
        Check the token against the accounts API for this instance.

        Raises:
            AuthError: If the token is missing or rejected.
        """
        if not self.config.token:
            raise AuthError("Access token not found.", Phase.VALIDATION)
        url = f"{self.config.accounts_url.rstrip('/')}/instances/{self.instance_id}"
        try:
            self._request("GET", url, Phase.VALIDATION)
        except RemoteUnavailable as exc:
            raise AuthError(
                f"Unable to validate access token: {exc.message}",
                Phase.VALIDATION,
            ) from exc
        return True

    def list(self, kind: ResourceKind) -> list[dict[str, Any]]:
        """
        List every resource of a kind (all statuses).
        """
        data = self._request("GET", self._resource_url(kind), Phase.FETCH)
        if not isinstance(data, list):
            raise RemoteUnavailable(
                f"Unexpected {spec_for(kind).label} listing format",
                Phase.FETCH,
            )
        return data

    def get(
        self,
        kind: ResourceKind,
        remote_id: str,
        variant: Variant = Variant.DRAFT,
    ) -> RemoteSnapshot:
        """
        Fetch the draft (default) or live copy of a resource.

        Raises:
            RemoteUnavailable: On transport failure or empty response.
        """
        params = {"status": "live"} if variant == Variant.LIVE else None
        data = self._request(
            "GET", self._resource_url(kind, remote_id), Phase.FETCH, params
        )
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict):
            raise RemoteUnavailable(
                f"No {variant.value} content returned for {remote_id}",
                Phase.FETCH,
            )
        spec = spec_for(kind)
        return RemoteSnapshot(
            code=data.get("code") or "",
            updated_at=_text(first_field(data, spec.timestamp_fields)),
            version=first_field(data, spec.version_fields),
        )

    def create(
        self, kind: ResourceKind, payload: dict[str, Any]
    ) -> CreatedResource:
        """
        Create a resource.

        Args:
            kind: Resource kind.
            payload: Dict with keys filename, type, code.

        Returns:
            The identifier and timestamps assigned by the remote.
        """
        data = self._request(
            "POST", self._resource_url(kind), Phase.WRITE, payload=payload
        )
        if not isinstance(data, dict) or not data.get("ZUID"):
            raise RemoteUnavailable(
                f"Create {spec_for(kind).label} returned no identifier",
                Phase.WRITE,
            )
        spec = spec_for(kind)
        return CreatedResource(
            remote_id=data["ZUID"],
            subtype=data.get("type") or payload.get("type"),
            created_at=_text(first_field(data, ("createdAt", "created_at"))),
            updated_at=_text(first_field(data, spec.timestamp_fields)),
        )

    def update(
        self, kind: ResourceKind, remote_id: str, payload: dict[str, Any]
    ) -> str | None:
        """
        Update a resource's code.

        Returns:
            The new modification time if the remote reports one.
        """
        data = self._request(
            "PUT",
            self._resource_url(kind, remote_id),
            Phase.WRITE,
            payload=payload,
        )
        if isinstance(data, dict):
            return _text(first_field(data, spec_for(kind).timestamp_fields))
        return None

    def delete(self, kind: ResourceKind, remote_id: str) -> bool:
        """
        Delete a resource.
        """
        self._request(
            "DELETE", self._resource_url(kind, remote_id), Phase.WRITE
        )
        return True

    def publish(
        self,
        kind: ResourceKind,
        remote_id: str,
        version: int | str | None = None,
    ) -> bool:
        """
        Publish a resource.

        Scripts publish by identifier; other kinds publish a specific
        version.

        Raises:
            VersionUnavailable: If the kind needs a version and none is given.
        """
        spec = spec_for(kind)
        if not spec.requires_version:
            self._request(
                "PUT",
                self._resource_url(kind, remote_id),
                Phase.PUBLISH,
                params={"action": "publish"},
                payload={},
            )
            return True

        if version is None or version == "":
            raise VersionUnavailable(
                f"Unable to determine {spec.label} version to publish."
            )
        self._request(
            "POST",
            f"{self._resource_url(kind, remote_id)}/versions/{version}",
            Phase.PUBLISH,
            payload={},
        )
        return True
