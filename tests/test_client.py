"""Tests for core/client.py -- the web-engine REST client.

Strategy: replace the thread-local requests.Session with a Mock so the
tests check URLs, params and payloads without network access.
"""

from unittest.mock import Mock

import pytest
import requests

from webengine_sync.config import Config
from webengine_sync.core.client import WebEngineClient
from webengine_sync.errors import AuthError, Phase, RemoteUnavailable, VersionUnavailable
from webengine_sync.sync.models import ResourceKind, Variant

BASE = "https://8-abc.api.zesty.io/v1"


def _response(status_code=200, body=None, content=None):
    response = Mock()
    response.status_code = status_code
    if body is not None:
        response.json.return_value = body
        response.content = b"{...}"
    else:
        response.content = content or b""
        response.json.side_effect = ValueError("no json")
    return response


@pytest.fixture
def client(tmp_path):
    config = Config(token="tok", instance_id="8-abc", workspace_root=tmp_path)
    client = WebEngineClient(config, "8-abc")
    client._thread_local.session = Mock()
    return client


def _call(client):
    return client.session.request.call_args


class TestSession:
    def test_session_headers(self, tmp_path):
        config = Config(token="tok", instance_id="8-abc", workspace_root=tmp_path)
        session = WebEngineClient(config, "8-abc").session
        assert session.headers["Authorization"] == "Bearer tok"
        assert session.headers["Content-Type"] == "application/json"

    def test_base_url_from_template(self, client):
        assert client.base_url == BASE


class TestRequestErrors:
    """Tests for WebEngineClient._request() error translation."""

    def test_transport_error(self, client):
        client.session.request.side_effect = requests.ConnectionError("down")
        with pytest.raises(RemoteUnavailable) as exc_info:
            client.list(ResourceKind.VIEW)
        assert exc_info.value.phase == Phase.FETCH

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_status(self, client, status):
        client.session.request.return_value = _response(status, {"error": "x"})
        with pytest.raises(AuthError, match="Invalid or expired developer token"):
            client.list(ResourceKind.VIEW)

    def test_server_error_keeps_status(self, client):
        client.session.request.return_value = _response(500, {})
        with pytest.raises(RemoteUnavailable) as exc_info:
            client.get(ResourceKind.VIEW, "v1")
        assert exc_info.value.status_code == 500

    def test_invalid_json(self, client):
        client.session.request.return_value = _response(200, content=b"<html>")
        with pytest.raises(RemoteUnavailable, match="invalid JSON"):
            client.list(ResourceKind.SCRIPT)

    def test_error_member(self, client):
        client.session.request.return_value = _response(200, {"error": "nope"})
        with pytest.raises(RemoteUnavailable, match="nope"):
            client.list(ResourceKind.SCRIPT)


class TestValidateToken:
    def test_calls_accounts_api(self, client):
        client.session.request.return_value = _response(200, {"data": {}})
        assert client.validate_token() is True
        args, kwargs = _call(client)
        assert args == ("GET", "https://accounts.api.zesty.io/v1/instances/8-abc")

    def test_missing_token(self, client):
        client.config.token = None
        with pytest.raises(AuthError, match="Access token not found."):
            client.validate_token()
        client.session.request.assert_not_called()

    def test_unreachable_accounts_api_is_auth_error(self, client):
        client.session.request.return_value = _response(404, {})
        with pytest.raises(AuthError):
            client.validate_token()


class TestGet:
    def test_draft(self, client):
        client.session.request.return_value = _response(
            200,
            {"data": {"code": "a{}", "updatedAt": "2024-01-01", "version": 3}},
        )
        snapshot = client.get(ResourceKind.STYLESHEET, "s1")

        args, kwargs = _call(client)
        assert args == ("GET", f"{BASE}/web/stylesheets/s1")
        assert kwargs["params"] is None
        assert snapshot.code == "a{}"
        assert snapshot.updated_at == "2024-01-01"
        assert snapshot.version == 3

    def test_live_uses_status_param_and_first_item(self, client):
        client.session.request.return_value = _response(
            200, {"data": [{"code": "live", "version": 2}, {"code": "older"}]}
        )
        snapshot = client.get(ResourceKind.VIEW, "v1", Variant.LIVE)

        assert _call(client).kwargs["params"] == {"status": "live"}
        assert snapshot.code == "live"

    def test_empty_live_listing(self, client):
        client.session.request.return_value = _response(200, {"data": []})
        with pytest.raises(RemoteUnavailable):
            client.get(ResourceKind.VIEW, "v1", Variant.LIVE)

    def test_numeric_timestamp_kept_as_text(self, client):
        client.session.request.return_value = _response(
            200, {"data": {"code": "", "updated_at": 1706781600}}
        )
        snapshot = client.get(ResourceKind.SCRIPT, "j1")
        assert snapshot.updated_at == "1706781600"


class TestWrites:
    def test_create(self, client):
        client.session.request.return_value = _response(
            201,
            {"data": {"ZUID": "s9", "createdAt": "c", "updatedAt": "u"}},
        )
        payload = {"filename": "site.css", "type": "text/css", "code": " "}
        created = client.create(ResourceKind.STYLESHEET, payload)

        args, kwargs = _call(client)
        assert args == ("POST", f"{BASE}/web/stylesheets")
        assert kwargs["json"] == payload
        assert created.remote_id == "s9"
        assert created.subtype == "text/css"

    def test_create_without_id(self, client):
        client.session.request.return_value = _response(201, {"data": {}})
        with pytest.raises(RemoteUnavailable):
            client.create(ResourceKind.VIEW, {"filename": "/x", "type": "snippet", "code": " "})

    def test_update_returns_timestamp(self, client):
        client.session.request.return_value = _response(
            200, {"data": {"updatedAt": "2024-02-01"}}
        )
        assert client.update(ResourceKind.VIEW, "v1", {"code": "x"}) == "2024-02-01"
        args, kwargs = _call(client)
        assert args == ("PUT", f"{BASE}/web/views/v1")
        assert kwargs["json"] == {"code": "x"}

    def test_delete(self, client):
        client.session.request.return_value = _response(200, {"data": {}})
        assert client.delete(ResourceKind.SCRIPT, "j1") is True
        assert _call(client).args == ("DELETE", f"{BASE}/web/scripts/j1")


class TestPublish:
    def test_script_publishes_by_id(self, client):
        client.session.request.return_value = _response(200, {"data": {}})
        client.publish(ResourceKind.SCRIPT, "j1")
        args, kwargs = _call(client)
        assert args == ("PUT", f"{BASE}/web/scripts/j1")
        assert kwargs["params"] == {"action": "publish"}

    def test_view_publishes_version(self, client):
        client.session.request.return_value = _response(200, {"data": {}})
        client.publish(ResourceKind.VIEW, "v1", 4)
        assert _call(client).args == ("POST", f"{BASE}/web/views/v1/versions/4")

    def test_missing_version(self, client):
        with pytest.raises(VersionUnavailable):
            client.publish(ResourceKind.STYLESHEET, "s1", None)
        client.session.request.assert_not_called()
