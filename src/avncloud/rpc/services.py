"""Typed stubs for the three AVN Cloud services.

Stubs are cheap: each wraps a :class:`~avncloud.rpc.channel.Channel` and
can be built per call. The channel is the expensive, cached part.
"""

from __future__ import annotations

from avncloud.rpc.channel import Channel
from avncloud.rpc.messages import (
    AddCloudFilesRequest,
    AddCloudFilesResponse,
    CreateClientCredentialsRequest,
    CreateClientCredentialsResponse,
    GetFileUrlRequest,
    GetFileUrlResponse,
    GetManifestRequest,
    RecordActionRequest,
    RecordActionResponse,
    UploadManifest,
)


class ClientService:
    """Application credentials and analytics."""

    name = "ClientService"

    def __init__(self, channel: Channel) -> None:
        self._channel = channel

    async def create_client_credentials(
        self, request: CreateClientCredentialsRequest | None = None
    ) -> CreateClientCredentialsResponse:
        return await self._channel.unary(
            self.name,
            "CreateClientCredentials",
            request or CreateClientCredentialsRequest(),
            CreateClientCredentialsResponse,
        )

    async def record_action(self, request: RecordActionRequest) -> RecordActionResponse:
        return await self._channel.unary(
            self.name, "RecordAction", request, RecordActionResponse
        )


class AvnfsService:
    """Content-addressed file store."""

    name = "AvnfsService"

    def __init__(self, channel: Channel) -> None:
        self._channel = channel

    async def get_file_url(self, request: GetFileUrlRequest) -> GetFileUrlResponse:
        return await self._channel.unary(
            self.name, "GetFileUrl", request, GetFileUrlResponse
        )

    async def get_post_manifest(self, request: GetManifestRequest) -> UploadManifest:
        return await self._channel.unary(
            self.name, "GetPostManifest", request, UploadManifest
        )


class CloudService:
    """Organization shared-cloud registration."""

    name = "CloudService"

    def __init__(self, channel: Channel) -> None:
        self._channel = channel

    async def add_cloud_files(self, request: AddCloudFilesRequest) -> AddCloudFilesResponse:
        return await self._channel.unary(
            self.name, "AddCloudFiles", request, AddCloudFilesResponse
        )
