"""Shared pytest fixtures for the AVN Cloud client tests.

Provides an in-process fake of the three backend services plus the upload
target, served through ``httpx.MockTransport`` so no test touches the
network.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from avncloud.device import StaticDeviceInfo
from avncloud.rpc.channel import ChannelProvider

UPLOAD_HOST = "upload.example"
UPLOAD_URL = f"https://{UPLOAD_HOST}/bucket/abc"
DOWNLOAD_URL = "https://cdn.example/abc"
DEVICE_TOKEN = "header.payload.signature"
ORGANIZATION_ID = 7


class FakeCloud:
    """Scriptable stand-in for the AVN Cloud backends.

    Every RPC is recorded in ``calls`` as ``(method, body)``; every upload
    request in ``uploads``. Set ``errors[method]`` to a response to make
    that RPC fail, or ``delays[method]`` to hold it open.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.hosts: list[str] = []
        self.uploads: list[httpx.Request] = []
        self.existing_url: str | None = None
        self.manifest: dict = {
            "uploadUrl": UPLOAD_URL,
            "downloadUrl": DOWNLOAD_URL,
            "headerFields": [
                {"name": "Cache-Control", "value": "no-cache"},
                {"name": "Content-Type", "value": "application/pdf"},
            ],
        }
        self.entity_ids: list[int] = [42]
        self.upload_status = 200
        self.upload_exception: Exception | None = None
        self.errors: dict[str, httpx.Response] = {}
        self.delays: dict[str, float] = {}
        self.credential_count = 0

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]

    def body(self, method: str) -> dict:
        return next(body for m, body in self.calls if m == method)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == UPLOAD_HOST:
            self.uploads.append(request)
            if self.upload_exception is not None:
                raise self.upload_exception
            return httpx.Response(self.upload_status, text="denied" if self.upload_status >= 300 else "")

        method = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content) if request.content else {}
        self.calls.append((method, body))
        self.hosts.append(request.url.host)

        if method in self.delays:
            await asyncio.sleep(self.delays[method])
        if method in self.errors:
            return self.errors[method]

        if method == "CreateClientCredentials":
            self.credential_count += 1
            return httpx.Response(
                200,
                json={"clientCredentials": {"clientId": f"app-{self.credential_count}"}},
            )
        if method == "RecordAction":
            return httpx.Response(200, json={})
        if method == "GetFileUrl":
            return httpx.Response(200, json={"url": self.existing_url} if self.existing_url else {})
        if method == "GetPostManifest":
            return httpx.Response(200, json=self.manifest)
        if method == "AddCloudFiles":
            return httpx.Response(200, json={"entityIds": self.entity_ids})
        return httpx.Response(404, json={"code": "unimplemented", "message": method})


def connect_error(code: str = "internal", message: str = "boom", status: int = 500) -> httpx.Response:
    """A Connect-protocol error response."""
    return httpx.Response(status, json={"code": code, "message": message})


@pytest.fixture
def fake_cloud() -> FakeCloud:
    return FakeCloud()


@pytest.fixture
def transport(fake_cloud: FakeCloud) -> httpx.MockTransport:
    return httpx.MockTransport(fake_cloud.handler)


@pytest.fixture
async def channels(transport: httpx.MockTransport):
    """A ChannelProvider whose channels all talk to the fake backend."""
    provider = ChannelProvider(transport=transport)
    yield provider
    await provider.aclose()


@pytest.fixture
async def http_client(transport: httpx.MockTransport):
    """HTTP client for raw transfers, routed to the fake upload target."""
    async with httpx.AsyncClient(transport=transport) as client:
        yield client


@pytest.fixture
def device() -> StaticDeviceInfo:
    """An enrolled device with a token."""
    return StaticDeviceInfo(organization_id=ORGANIZATION_ID, device_token=DEVICE_TOKEN)


@pytest.fixture
def tokenless_device() -> StaticDeviceInfo:
    return StaticDeviceInfo(organization_id=ORGANIZATION_ID, device_token=None)
