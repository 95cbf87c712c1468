"""
Dropbox HTTP transport.
"""

import json
import logging
from typing import Any, Optional

import httpx

from .config import DropboxConfig
from .exceptions import (
    ConfigError,
    CursorResetError,
    DropboxAPIError,
    TransportError,
)
from .models import ListFolderResult, LongPollResult
from .transport import BaseTransport

logger = logging.getLogger(__name__)


class DropboxClient(BaseTransport):
    """
    Dropbox API v2 client for folder listing and long-polling.

    Environment variables:
    - DROPBOX_ACCESS_TOKEN: access token (required if not passed)
    """

    def __init__(
        self,
        config: Optional[DropboxConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration
            http_client: Client to send requests with; when given, the
                caller keeps ownership and close() leaves it open
        """
        self.config = config or DropboxConfig()

        self._access_token = self.config.get_access_token()
        logger.debug(f"DropboxClient init: access_token={'[SET]' if self._access_token else '[NOT SET]'}")
        if not self._access_token:
            raise ConfigError(
                f"Dropbox access token not provided. Set {self.config.access_token_env} environment variable."
            )

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client(timeout=self.config.timeout_seconds)

    def _auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self._access_token}"}

    def _check_response(self, response: httpx.Response) -> None:
        """Raise DropboxAPIError for non-2xx responses."""
        if 200 <= response.status_code <= 299:
            return

        url = str(response.request.url) if response.request is not None else "?"
        message = f"{url}: {response.status_code} {response.reason_phrase}"
        error_tag = None

        if response.status_code != 404:
            body = response.text
            if body and len(body) < 200:
                message = f"{url}: {body}"
            try:
                error = response.json().get("error")
            except (ValueError, AttributeError):
                error = None
            if isinstance(error, dict):
                error_tag = error.get(".tag")

        if response.status_code == 409 and error_tag == "reset":
            raise CursorResetError(message, url=url, status_code=409, error_tag=error_tag)
        raise DropboxAPIError(
            message,
            url=url,
            status_code=response.status_code,
            error_tag=error_tag,
        )

    def rpc(
        self,
        url: str,
        payload: dict,
        authenticated: bool = True,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        POST a JSON request and decode the JSON answer.

        Args:
            url: Endpoint URL
            payload: Request body
            authenticated: Whether to send the bearer token
            timeout: Request timeout override in seconds

        Returns:
            Decoded response body

        Raises:
            TransportError: On network failure or a malformed response
            DropboxAPIError: On an error status from the API
        """
        headers = self._auth_headers() if authenticated else {}

        try:
            response = self._http.post(
                url,
                json=payload,
                headers=headers,
                timeout=timeout if timeout is not None else self.config.timeout_seconds,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{url}: {e}") from e

        self._check_response(response)
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{url}: malformed response: {e}") from e

    def _listing(self, endpoint: str, payload: dict) -> ListFolderResult:
        url = self.config.api_url + endpoint
        data = self.rpc(url, payload)
        try:
            return ListFolderResult.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"{url}: malformed listing: {e}") from e

    def send_initial_listing(self, path: str, recursive: bool) -> ListFolderResult:
        """List a folder (the root is "")."""
        return self._listing("files/list_folder", {
            "path": path,
            "recursive": recursive,
            "include_media_info": self.config.include_media_info,
            "include_deleted": self.config.include_deleted,
            "include_has_explicit_shared_members": False,
        })

    def send_incremental_listing(self, cursor: str) -> ListFolderResult:
        """Fetch changes since a cursor."""
        return self._listing("files/list_folder/continue", {"cursor": cursor})

    def send_long_poll(self, cursor: str, timeout: int) -> LongPollResult:
        """
        Wait for changes past a cursor.

        The server holds the request for up to timeout seconds plus jitter,
        so the read timeout is extended by longpoll_grace_seconds.
        """
        url = self.config.notify_url + "files/list_folder/longpoll"
        data = self.rpc(
            url,
            {"cursor": cursor, "timeout": timeout},
            authenticated=False,
            timeout=timeout + self.config.longpoll_grace_seconds,
        )
        try:
            return LongPollResult.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"{url}: malformed long-poll answer: {e}") from e

    def download(self, identity: str) -> bytes:
        """
        Download a file's content.

        Args:
            identity: "id:..." file id, "rev:..." revision, or "/..." path

        Returns:
            The file content
        """
        url = self.config.content_url + "files/download"
        headers = self._auth_headers()
        headers["Dropbox-API-Arg"] = json.dumps({"path": identity})

        try:
            response = self._http.post(url, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"{url}: {e}") from e

        self._check_response(response)
        return response.content

    def close(self) -> None:
        """Close the underlying HTTP client if this client created it."""
        if self._owns_http_client:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
