"""Device identity used to authorize uploads and analytics.

The pipelines depend only on the :class:`DeviceInfoProvider` capability.
:class:`StaticDeviceInfo` serves tests and explicit CLI flags;
:class:`DevicePropertiesFile` reads the JSON document the device client
writes with its identity, enrollment and release channel.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from avncloud.constants import UNENROLLED_ORGANIZATION_ID
from avncloud.exceptions import ValidationError
from avncloud.models import ClientChannel, ConnectInfo, DeviceInfo
from avncloud.rpc.messages import Authorization

logger = logging.getLogger(__name__)


@runtime_checkable
class DeviceInfoProvider(Protocol):
    """What the upload and analytics pipelines need to know about the device."""

    def organization_id(self) -> int: ...

    def device_token(self) -> str | None: ...

    def last_modified(self) -> datetime | None: ...


class StaticDeviceInfo:
    """Fixed device identity.

    Args:
        organization_id: Organization the device is enrolled in.
        device_token: Device-issued JWT.
        last_modified: When the device properties last changed.
    """

    def __init__(
        self,
        organization_id: int = UNENROLLED_ORGANIZATION_ID,
        device_token: str | None = None,
        last_modified: datetime | None = None,
    ) -> None:
        self._organization_id = organization_id
        self._device_token = device_token
        self._last_modified = last_modified

    def organization_id(self) -> int:
        return self._organization_id

    def device_token(self) -> str | None:
        return self._device_token

    def last_modified(self) -> datetime | None:
        return self._last_modified


def _parse_datetime(value: Any, field_name: str) -> datetime | None:
    """Lenient ISO-8601 parse; an unparseable value becomes ``None``."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        logger.warning("Ignoring unparseable %s %r", field_name, value)
        return None


def parse_device_properties(data: dict[str, Any]) -> DeviceInfo:
    """Build :class:`DeviceInfo` from the serialized device properties.

    Keys follow the device client's JSON: ``Id``, ``DisplayName``,
    ``DeviceSecret``, ``DeviceJWT``, ``Channel``, ``TiltToSpin``,
    ``LastModified`` and ``OrganizationInfo`` (``Id``, ``LastModified``).
    A missing ``OrganizationInfo`` means the device is unenrolled.
    """
    channel = ClientChannel.UNSET
    channel_name = data.get("Channel")
    if channel_name:
        try:
            channel = ClientChannel(str(channel_name).capitalize())
        except ValueError:
            logger.warning("Unknown client channel %r, treating as Unset", channel_name)

    org_data = data.get("OrganizationInfo")
    if isinstance(org_data, dict) and org_data.get("Id") is not None:
        organization = ConnectInfo(
            id=int(org_data["Id"]),
            last_modified=_parse_datetime(org_data.get("LastModified"), "organization LastModified"),
        )
    else:
        logger.warning(
            "No organization info in device properties. Defaulting to unenrolled (%d)",
            UNENROLLED_ORGANIZATION_ID,
        )
        organization = ConnectInfo(id=UNENROLLED_ORGANIZATION_ID)

    return DeviceInfo(
        device_id=data.get("Id") or None,
        display_name=data.get("DisplayName") or None,
        device_secret=data.get("DeviceSecret") or None,
        device_token=data.get("DeviceJWT") or None,
        channel=channel,
        tilt_to_spin=bool(data.get("TiltToSpin", True)),
        last_modified=_parse_datetime(data.get("LastModified"), "LastModified"),
        organization=organization,
    )


class DevicePropertiesFile:
    """Device identity read from a JSON properties file.

    The file is read once on construction; call :meth:`refresh` to re-read
    it. The pipelines never refresh on their own.

    Args:
        path: Location of the properties JSON.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.info = DeviceInfo()
        self.refresh()

    def refresh(self) -> DeviceInfo:
        """Re-read the properties file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is not a JSON object.
        """
        logger.info("Refreshing device properties from %s", self.path)
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Device properties in {self.path} must be a JSON object")

        self.info = parse_device_properties(data)
        if self.info.device_id:
            logger.debug("Found device id '%s'", self.info.device_id)
        if self.info.device_token:
            logger.debug("Found device token")
        return self.info

    def organization_id(self) -> int:
        if self.info.organization is None:
            return UNENROLLED_ORGANIZATION_ID
        return self.info.organization.id

    def device_token(self) -> str | None:
        return self.info.device_token

    def last_modified(self) -> datetime | None:
        return self.info.last_modified


def authorization_for(device: DeviceInfoProvider) -> Authorization:
    """Build a fresh :class:`Authorization` from the device token.

    Raises:
        ValidationError: If the device has no token.
    """
    token = device.device_token()
    if not token:
        raise ValidationError("Couldn't retrieve device token for authorization")
    return Authorization(device_jwt=token)
