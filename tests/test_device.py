"""Tests for device identity providers."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

import pytest

from avncloud.constants import UNENROLLED_ORGANIZATION_ID
from avncloud.device import (
    DeviceInfoProvider,
    DevicePropertiesFile,
    StaticDeviceInfo,
    authorization_for,
    parse_device_properties,
)
from avncloud.exceptions import ValidationError
from avncloud.models import ClientChannel

PROPERTIES = {
    "Id": "dev-123",
    "DisplayName": "Bench Scope",
    "DeviceSecret": "s3cret",
    "DeviceJWT": "jwt-abc",
    "Channel": "beta",
    "TiltToSpin": False,
    "LastModified": "2024-05-01T12:00:00+00:00",
    "OrganizationInfo": {"Id": 314, "LastModified": "2024-04-01T00:00:00+00:00"},
}


@pytest.fixture
def properties_file(tmp_path: Path) -> Path:
    path = tmp_path / "device.json"
    path.write_text(json.dumps(PROPERTIES))
    return path


class TestParseDeviceProperties:
    def test_all_fields(self):
        info = parse_device_properties(PROPERTIES)

        assert info.device_id == "dev-123"
        assert info.display_name == "Bench Scope"
        assert info.device_token == "jwt-abc"
        assert info.channel == ClientChannel.BETA
        assert info.tilt_to_spin is False
        assert info.last_modified == datetime.fromisoformat("2024-05-01T12:00:00+00:00")
        assert info.organization.id == 314

    def test_missing_organization_is_unenrolled(self, caplog):
        info = parse_device_properties({"Id": "dev-1"})
        assert info.organization.id == UNENROLLED_ORGANIZATION_ID
        assert "unenrolled" in caplog.text

    def test_unknown_channel_falls_back_to_unset(self):
        info = parse_device_properties({"Channel": "nightly"})
        assert info.channel == ClientChannel.UNSET

    def test_bad_timestamp_ignored(self):
        info = parse_device_properties({"LastModified": "yesterday"})
        assert info.last_modified is None

    def test_defaults(self):
        info = parse_device_properties({})
        assert info.device_token is None
        assert info.tilt_to_spin is True
        assert info.channel == ClientChannel.UNSET


class TestDevicePropertiesFile:
    def test_reads_file(self, properties_file):
        device = DevicePropertiesFile(properties_file)

        assert isinstance(device, DeviceInfoProvider)
        assert device.organization_id() == 314
        assert device.device_token() == "jwt-abc"
        assert device.last_modified() is not None

    def test_refresh_picks_up_changes(self, properties_file):
        device = DevicePropertiesFile(properties_file)
        properties_file.write_text(json.dumps({**PROPERTIES, "DeviceJWT": "jwt-new"}))

        assert device.device_token() == "jwt-abc"
        device.refresh()
        assert device.device_token() == "jwt-new"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DevicePropertiesFile(tmp_path / "nope.json")

    def test_non_object_raises(self, tmp_path):
        path = tmp_path / "device.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError):
            DevicePropertiesFile(path)

    def test_token_never_logged(self, properties_file, caplog):
        with caplog.at_level(logging.DEBUG, logger="avncloud"):
            DevicePropertiesFile(properties_file)
        assert "jwt-abc" not in caplog.text


class TestAuthorization:
    def test_static_device_defaults_to_unenrolled(self):
        device = StaticDeviceInfo(device_token="t")
        assert device.organization_id() == UNENROLLED_ORGANIZATION_ID
        assert isinstance(device, DeviceInfoProvider)

    def test_authorization_built_from_token(self):
        auth = authorization_for(StaticDeviceInfo(device_token="jwt-xyz"))
        assert auth.device_jwt == "jwt-xyz"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token_raises(self, token):
        with pytest.raises(ValidationError):
            authorization_for(StaticDeviceInfo(device_token=token))
