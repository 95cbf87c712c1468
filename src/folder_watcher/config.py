"""Configuration for the folder watcher package."""

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .exceptions import ConfigError


def default_image_extensions() -> Mapping[str, str]:
    """Build the read-only extension -> image type table."""
    return MappingProxyType({
        ".jpg": "jpg",
        ".jpeg": "jpg",
        ".png": "png",
        ".gif": "gif",
    })


@dataclass
class WatcherConfig:
    """
    Configuration options for the folder watcher.

    Attributes:
        longpoll_timeout_s: Wait hint sent with each long-poll request
        image_extensions: Read-only map of file extension to image type
    """
    longpoll_timeout_s: int = 30
    image_extensions: Mapping[str, str] = field(default_factory=default_image_extensions)

    def validate(self) -> None:
        """
        Check option ranges.

        Raises:
            ConfigError: If an option is out of range
        """
        # Dropbox accepts 30..480 seconds
        if not 30 <= self.longpoll_timeout_s <= 480:
            raise ConfigError(
                f"longpoll_timeout_s must be between 30 and 480: {self.longpoll_timeout_s}"
            )


@dataclass
class DropboxConfig:
    """
    Configuration for the Dropbox HTTP client.

    Attributes:
        access_token: OAuth bearer token (falls back to the env var below)
        access_token_env: Environment variable holding the token
        api_url: RPC endpoint prefix
        notify_url: Long-poll endpoint prefix (unauthenticated)
        content_url: Content download endpoint prefix
        timeout_seconds: Timeout for ordinary requests
        longpoll_grace_seconds: Extra read time allowed on top of the long-poll wait
        include_media_info: Request photo/video metadata in listings
        include_deleted: Request tombstones in the initial listing
    """
    access_token: Optional[str] = None
    access_token_env: str = "DROPBOX_ACCESS_TOKEN"
    api_url: str = "https://api.dropboxapi.com/2/"
    notify_url: str = "https://notify.dropboxapi.com/2/"
    content_url: str = "https://content.dropboxapi.com/2/"
    timeout_seconds: float = 60.0
    # The server adds up to 90s of jitter to each long-poll
    longpoll_grace_seconds: float = 120.0
    # Media info can't be used with long-polling cursors
    include_media_info: bool = False
    include_deleted: bool = False

    def get_access_token(self) -> Optional[str]:
        """Get access token from config or environment."""
        return self.access_token or os.environ.get(self.access_token_env)
