"""Pydantic v2 models for the AVN Cloud RPC wire contracts.

Field names are snake_case in Python and lowerCamelCase on the wire
(proto3 JSON mapping). Unset optional fields are omitted when encoding.
Separate from :mod:`avncloud.models` (dataclasses).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for every request/response message."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Encode as the JSON object sent on the wire."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class Authorization(WireModel):
    """Device-issued proof of identity, built fresh for every call."""

    device_jwt: str

    def __repr__(self) -> str:
        # Keep the token out of logs and tracebacks
        return "Authorization(device_jwt='***')"


class ClientCredentials(WireModel):
    """Opaque credential identifying the calling application."""

    client_id: str
    client_secret: str | None = None


# ---------------------------------------------------------------------------
# ClientService
# ---------------------------------------------------------------------------


class CreateClientCredentialsRequest(WireModel):
    """No input: the server issues a fresh credential."""


class CreateClientCredentialsResponse(WireModel):
    client_credentials: ClientCredentials


class RecordActionRequest(WireModel):
    client: ClientCredentials
    action_id: str
    source_id: str
    host_id: str
    auth: Authorization
    data: dict[str, Any] | None = None


class RecordActionResponse(WireModel):
    """Empty: success is the absence of an error."""


# ---------------------------------------------------------------------------
# AvnfsService
# ---------------------------------------------------------------------------


class GetFileUrlRequest(WireModel):
    """Dedup signature of a file."""

    hash: str
    size_bytes: int
    media_type: str
    file_name: str


class GetFileUrlResponse(WireModel):
    url: str | None = None

    @property
    def has_url(self) -> bool:
        return bool(self.url)


class GetManifestRequest(WireModel):
    auth: Authorization
    file_name: str
    hash: str
    media_type: str
    size_bytes: int


class HeaderField(WireModel):
    """One header the transfer must carry, in manifest order."""

    name: str
    value: str


class UploadManifest(WireModel):
    """Backend-issued instructions for a single-shot upload."""

    upload_url: str = ""
    download_url: str = ""
    header_fields: list[HeaderField] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# CloudService
# ---------------------------------------------------------------------------


class AddCloudFilesRequest(WireModel):
    auth: Authorization
    organization_id: int
    file_urls: list[str]


class AddCloudFilesResponse(WireModel):
    entity_ids: list[int] = Field(default_factory=list)
