"""Tests for config module."""

import pytest

from src.folder_watcher.config import DropboxConfig, WatcherConfig
from src.folder_watcher.exceptions import ConfigError


class TestWatcherConfig:
    """Tests for WatcherConfig class."""

    def test_default_values(self):
        config = WatcherConfig()
        assert config.longpoll_timeout_s == 30
        assert config.image_extensions[".jpg"] == "jpg"
        assert config.image_extensions[".jpeg"] == "jpg"
        assert config.image_extensions[".gif"] == "gif"

    def test_image_extensions_read_only(self):
        config = WatcherConfig()
        with pytest.raises(TypeError):
            config.image_extensions[".bmp"] = "bmp"

    def test_validate_accepts_range(self):
        WatcherConfig(longpoll_timeout_s=30).validate()
        WatcherConfig(longpoll_timeout_s=480).validate()

    def test_validate_rejects_out_of_range(self):
        with pytest.raises(ConfigError):
            WatcherConfig(longpoll_timeout_s=29).validate()
        with pytest.raises(ConfigError):
            WatcherConfig(longpoll_timeout_s=481).validate()


class TestDropboxConfig:
    """Tests for DropboxConfig class."""

    def test_default_urls(self):
        config = DropboxConfig()
        assert config.api_url == "https://api.dropboxapi.com/2/"
        assert config.notify_url == "https://notify.dropboxapi.com/2/"
        assert config.content_url == "https://content.dropboxapi.com/2/"
        assert config.include_media_info is False

    def test_explicit_token_wins(self, monkeypatch):
        monkeypatch.setenv("DROPBOX_ACCESS_TOKEN", "from-env")
        assert DropboxConfig(access_token="explicit").get_access_token() == "explicit"

    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("DROPBOX_ACCESS_TOKEN", "from-env")
        assert DropboxConfig().get_access_token() == "from-env"

    def test_custom_env_name(self, monkeypatch):
        monkeypatch.setenv("MY_TOKEN", "custom")
        monkeypatch.delenv("DROPBOX_ACCESS_TOKEN", raising=False)
        assert DropboxConfig(access_token_env="MY_TOKEN").get_access_token() == "custom"

    def test_no_token(self, monkeypatch):
        monkeypatch.delenv("DROPBOX_ACCESS_TOKEN", raising=False)
        assert DropboxConfig().get_access_token() is None
