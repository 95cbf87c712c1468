"""Tests for the Dropbox HTTP transport."""

import json

import httpx
import pytest

from src.folder_watcher.config import DropboxConfig
from src.folder_watcher.dropbox_client import DropboxClient
from src.folder_watcher.exceptions import (
    ConfigError,
    CursorResetError,
    DropboxAPIError,
    TransportError,
)
from src.folder_watcher.models import EntryTag


LISTING = {
    "entries": [
        {
            ".tag": "folder",
            "name": "Photos",
            "id": "id:folder1",
            "path_lower": "/photos",
            "path_display": "/Photos",
        },
        {
            ".tag": "file",
            "name": "Cat.JPG",
            "id": "id:file1",
            "path_lower": "/photos/cat.jpg",
            "path_display": "/Photos/Cat.JPG",
            "rev": "015a1b2c3d4e5f600000001",
            "size": 2048,
            "client_modified": "2024-03-01T10:00:00Z",
            "server_modified": "2024-03-01T10:00:05Z",
        },
        {
            ".tag": "deleted",
            "name": "old.txt",
            "path_lower": "/photos/old.txt",
            "path_display": "/Photos/old.txt",
        },
    ],
    "cursor": "AAE-cursor",
    "has_more": True,
}


def make_client(handler, **config_kwargs):
    requests = []

    def record(request):
        requests.append(request)
        return handler(request)

    http = httpx.Client(transport=httpx.MockTransport(record))
    config = DropboxConfig(access_token="secret-token", **config_kwargs)
    return DropboxClient(config, http_client=http), requests


class TestDropboxClientSetup:
    """Tests for client construction."""

    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("DROPBOX_ACCESS_TOKEN", raising=False)
        with pytest.raises(ConfigError, match="DROPBOX_ACCESS_TOKEN"):
            DropboxClient(DropboxConfig())

    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("DROPBOX_ACCESS_TOKEN", "env-token")
        http = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        client = DropboxClient(DropboxConfig(), http_client=http)
        assert client._access_token == "env-token"

    def test_close_leaves_external_client_open(self):
        client, _ = make_client(lambda r: httpx.Response(200, json={}))
        client.close()
        assert client._http.is_closed is False


class TestDropboxClientListing:
    """Tests for listing requests."""

    def test_initial_listing(self):
        client, requests = make_client(lambda r: httpx.Response(200, json=LISTING))

        result = client.send_initial_listing("/Photos", True)

        request = requests[0]
        assert str(request.url) == "https://api.dropboxapi.com/2/files/list_folder"
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert request.headers["Content-Type"] == "application/json"
        body = json.loads(request.content)
        assert body["path"] == "/Photos"
        assert body["recursive"] is True
        assert body["include_media_info"] is False

        assert result.cursor == "AAE-cursor"
        assert result.has_more is True
        assert [e.tag for e in result.entries] == [EntryTag.FOLDER, EntryTag.FILE, EntryTag.DELETED]
        assert result.entries[1].size == 2048
        assert result.entries[2].id is None

    def test_incremental_listing(self):
        page = {"entries": [], "cursor": "next", "has_more": False}
        client, requests = make_client(lambda r: httpx.Response(200, json=page))

        result = client.send_incremental_listing("AAE-cursor")

        assert str(requests[0].url).endswith("files/list_folder/continue")
        assert json.loads(requests[0].content) == {"cursor": "AAE-cursor"}
        assert result.entries == []
        assert result.cursor == "next"

    def test_malformed_listing(self):
        client, _ = make_client(lambda r: httpx.Response(200, json={"entries": []}))
        with pytest.raises(TransportError, match="malformed listing"):
            client.send_incremental_listing("c")

    def test_non_json_body(self):
        client, _ = make_client(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(TransportError, match="malformed response"):
            client.send_incremental_listing("c")


class TestDropboxClientLongPoll:
    """Tests for long-poll requests."""

    def test_long_poll_is_unauthenticated(self):
        client, requests = make_client(
            lambda r: httpx.Response(200, json={"changes": False, "backoff": 60})
        )

        result = client.send_long_poll("AAE-cursor", 30)

        request = requests[0]
        assert str(request.url) == "https://notify.dropboxapi.com/2/files/list_folder/longpoll"
        assert "Authorization" not in request.headers
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"cursor": "AAE-cursor", "timeout": 30}
        assert result.changes is False
        assert result.backoff == 60

    def test_long_poll_without_backoff(self):
        client, _ = make_client(lambda r: httpx.Response(200, json={"changes": True}))

        result = client.send_long_poll("c", 30)

        assert result.changes is True
        assert result.backoff == 0


class TestDropboxClientErrors:
    """Tests for error mapping."""

    def test_http_error_status(self):
        client, _ = make_client(lambda r: httpx.Response(401, text="invalid_access_token"))

        with pytest.raises(DropboxAPIError) as exc_info:
            client.send_initial_listing("", False)

        assert exc_info.value.status_code == 401
        assert "invalid_access_token" in str(exc_info.value)

    def test_not_found_omits_body(self):
        client, _ = make_client(lambda r: httpx.Response(404, text="nothing here"))

        with pytest.raises(DropboxAPIError) as exc_info:
            client.send_initial_listing("/missing", False)

        assert exc_info.value.status_code == 404
        assert "nothing here" not in str(exc_info.value)

    def test_cursor_reset(self):
        body = {"error_summary": "reset/..", "error": {".tag": "reset"}}
        client, _ = make_client(lambda r: httpx.Response(409, json=body))

        with pytest.raises(CursorResetError) as exc_info:
            client.send_incremental_listing("stale")

        assert exc_info.value.error_tag == "reset"
        assert isinstance(exc_info.value, TransportError)

    def test_other_conflict(self):
        body = {"error_summary": "path/not_found/..", "error": {".tag": "path"}}
        client, _ = make_client(lambda r: httpx.Response(409, json=body))

        with pytest.raises(DropboxAPIError) as exc_info:
            client.send_initial_listing("/nope", False)

        assert not isinstance(exc_info.value, CursorResetError)
        assert exc_info.value.error_tag == "path"

    def test_network_error(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = make_client(fail)

        with pytest.raises(TransportError, match="connection refused"):
            client.send_long_poll("c", 30)


class TestDropboxClientDownload:
    """Tests for file download."""

    def test_download(self):
        client, requests = make_client(lambda r: httpx.Response(200, content=b"file bytes"))

        data = client.download("id:file1")

        request = requests[0]
        assert str(request.url) == "https://content.dropboxapi.com/2/files/download"
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert json.loads(request.headers["Dropbox-API-Arg"]) == {"path": "id:file1"}
        assert data == b"file bytes"

    def test_download_error(self):
        client, _ = make_client(lambda r: httpx.Response(409, json={"error": {".tag": "path"}}))

        with pytest.raises(DropboxAPIError):
            client.download("/missing.txt")
