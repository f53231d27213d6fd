"""Data models and enums for the AVN Cloud client.

Plain dataclasses for values that stay inside the process. The JSON wire
messages live in :mod:`avncloud.rpc.messages` (pydantic).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum


class Environment(str, Enum):
    """Backend the client talks to."""

    PRODUCTION = "production"
    ALPHA = "alpha"

    @classmethod
    def parse(cls, value: str | Environment) -> Environment:
        """Accept an enum member or its name/value in any case."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown environment {value!r}. "
                f"Choose from: {', '.join(e.value for e in cls)}"
            ) from None


class ClientChannel(str, Enum):
    """Release channel the device's client software is subscribed to."""

    UNSET = "Unset"
    ALPHA = "Alpha"
    BETA = "Beta"
    RELEASE = "Release"


class UploadStage(str, Enum):
    """Furthest point an upload reached. Mirrors the pipeline state machine."""

    START = "start"
    HASHED = "hashed"
    DEDUP_CHECKED = "dedup_checked"
    MANIFEST_OBTAINED = "manifest_obtained"
    TRANSFERRED = "transferred"
    BOUND = "bound"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ConnectInfo:
    """Organization a device is enrolled in."""

    id: int
    last_modified: datetime | None = None


@dataclass
class DeviceInfo:
    """Snapshot of the device identity properties."""

    device_id: str | None = None
    display_name: str | None = None
    device_secret: str | None = None
    device_token: str | None = None
    channel: ClientChannel = ClientChannel.UNSET
    tilt_to_spin: bool = True
    last_modified: datetime | None = None
    organization: ConnectInfo | None = None


@dataclass
class UploadResult:
    """Outcome of one :meth:`UploadPipeline.upload` call.

    ``download_url`` is only set on full success; a failed upload never
    exposes a partial URL even when the bytes reached the store.
    ``stage`` is the final lifecycle state; on failure ``failed_after``
    names the last stage that completed.
    """

    filename: str
    success: bool = False
    download_url: str | None = None
    entity_id: int | None = None
    content_hash: str | None = None
    deduplicated: bool = False
    stage: UploadStage = UploadStage.START
    failed_after: UploadStage | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary with enum values as strings."""
        d = asdict(self)
        d["stage"] = self.stage.value
        d["failed_after"] = self.failed_after.value if self.failed_after else None
        return d
