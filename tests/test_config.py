"""Tests for configuration loading and device-token lookup."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from avncloud.config import (
    KEY_NAME,
    SERVICE_NAME,
    ClientConfig,
    clear_device_token,
    get_device_token,
    load_client_config,
    lookup_device_token,
    store_device_token,
)
from avncloud.constants import DEFAULT_HOST_ID, PRODUCTION_URL
from avncloud.models import Environment


class TestLoadClientConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_client_config(tmp_path / "absent.json")

        assert config.environment == Environment.PRODUCTION
        assert config.production_url == PRODUCTION_URL
        assert config.host_id == DEFAULT_HOST_ID
        assert config.timeout_seconds == 30
        assert config.device_properties_path is None

    def test_file_values_override_defaults(self, tmp_path):
        path = tmp_path / "avncloud.json"
        path.write_text(
            json.dumps(
                {
                    "environment": "Alpha",
                    "alpha_url": "https://alpha.test",
                    "host_id": "bench-app",
                    "timeout_seconds": 5,
                    "device_properties_path": "/etc/avn/device.json",
                    "unknown_key": "ignored",
                }
            )
        )

        config = load_client_config(path)

        assert config.environment == Environment.ALPHA
        assert config.alpha_url == "https://alpha.test"
        assert config.host_id == "bench-app"
        assert config.timeout_seconds == 5
        assert config.device_properties_path == Path("/etc/avn/device.json")

    def test_unknown_environment_rejected(self, tmp_path):
        path = tmp_path / "avncloud.json"
        path.write_text(json.dumps({"environment": "staging"}))

        with pytest.raises(ValueError, match="staging"):
            load_client_config(path)

    def test_endpoints_map(self):
        config = ClientConfig(alpha_url="https://alpha.test")
        assert config.endpoints == {
            Environment.PRODUCTION: PRODUCTION_URL,
            Environment.ALPHA: "https://alpha.test",
        }


class TestGetDeviceToken:
    """Keyring first, then the environment variable."""

    def test_keyring_wins(self, monkeypatch):
        monkeypatch.setenv("AVNCLOUD_DEVICE_JWT", "from-env")
        with patch("avncloud.config.keyring.get_password", return_value="from-keyring") as get:
            assert get_device_token() == "from-keyring"
        get.assert_called_once_with(SERVICE_NAME, KEY_NAME)

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("AVNCLOUD_DEVICE_JWT", "from-env")
        with patch("avncloud.config.keyring.get_password", return_value=None):
            assert get_device_token() == "from-env"

    def test_none_when_unset(self, monkeypatch):
        monkeypatch.delenv("AVNCLOUD_DEVICE_JWT", raising=False)
        with patch("avncloud.config.keyring.get_password", return_value=None):
            assert get_device_token() is None

    def test_lookup_reports_source(self, monkeypatch):
        monkeypatch.setenv("AVNCLOUD_DEVICE_JWT", "from-env")
        with patch("avncloud.config.keyring.get_password", return_value="from-keyring"):
            assert lookup_device_token() == ("from-keyring", "keyring")
        with patch("avncloud.config.keyring.get_password", return_value=None):
            assert lookup_device_token() == ("from-env", "environment")

        monkeypatch.delenv("AVNCLOUD_DEVICE_JWT")
        with patch("avncloud.config.keyring.get_password", return_value=None):
            assert lookup_device_token() == (None, None)


class TestStoredDeviceToken:
    """Writes and deletes only ever touch the keyring."""

    def test_store_strips_whitespace(self):
        with patch("avncloud.config.keyring.set_password") as set_password:
            store_device_token("  jwt-value\n")
        set_password.assert_called_once_with(SERVICE_NAME, KEY_NAME, "jwt-value")

    def test_store_rejects_blank(self):
        with patch("avncloud.config.keyring.set_password") as set_password:
            with pytest.raises(ValueError, match="empty"):
                store_device_token("   ")
        set_password.assert_not_called()

    def test_clear_deletes_stored_token(self):
        with (
            patch("avncloud.config.keyring.get_password", return_value="stored"),
            patch("avncloud.config.keyring.delete_password") as delete_password,
        ):
            assert clear_device_token() is True
        delete_password.assert_called_once_with(SERVICE_NAME, KEY_NAME)

    def test_clear_without_stored_token(self, monkeypatch):
        monkeypatch.setenv("AVNCLOUD_DEVICE_JWT", "from-env")
        with (
            patch("avncloud.config.keyring.get_password", return_value=None),
            patch("avncloud.config.keyring.delete_password") as delete_password,
        ):
            assert clear_device_token() is False
        delete_password.assert_not_called()
