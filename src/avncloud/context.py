"""Process-wide wiring of the shared channel and credential caches.

:class:`CloudContext` owns everything that must be shared across uploads
and analytics events: one :class:`ChannelProvider`, one
:class:`CredentialCache`, and the HTTP client used for raw transfers.
"""

from __future__ import annotations

import logging

import httpx

from avncloud.analytics.credentials import CredentialCache
from avncloud.analytics.reporter import AnalyticsReporter
from avncloud.config import ClientConfig, get_device_token
from avncloud.device import DeviceInfoProvider, DevicePropertiesFile, StaticDeviceInfo
from avncloud.rpc.channel import ChannelProvider
from avncloud.upload.pipeline import UploadPipeline

logger = logging.getLogger(__name__)


def device_from_config(config: ClientConfig) -> DeviceInfoProvider:
    """Device identity from the configured properties file, or the stored token."""
    if config.device_properties_path is not None:
        return DevicePropertiesFile(config.device_properties_path)
    return StaticDeviceInfo(device_token=get_device_token())


class CloudContext:
    """Async context manager holding the shared client state.

    Usage::

        async with CloudContext(config) as cloud:
            result = await cloud.uploads.upload("a.txt", "text/plain", b"hi")
            await cloud.analytics.send_event("cli", "upload")

    Args:
        config: Client settings; defaults to :class:`ClientConfig` defaults.
        device: Device identity; built from *config* when omitted.
        transport: Optional httpx transport for both RPC and transfer
            traffic (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        device: DeviceInfoProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.device = device if device is not None else device_from_config(self.config)
        self.channels = ChannelProvider(
            endpoints=self.config.endpoints,
            timeout=self.config.timeout_seconds,
            transport=transport,
        )
        self.credentials = CredentialCache(self.channels)
        self.http_client = httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            transport=transport,
        )
        self.uploads = UploadPipeline(self.channels, self.http_client, self.device)
        self.analytics = AnalyticsReporter(
            self.channels,
            self.credentials,
            self.device,
            host_id=self.config.host_id,
        )

    async def __aenter__(self) -> CloudContext:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transfer client and every RPC channel."""
        await self.http_client.aclose()
        await self.channels.aclose()
        logger.debug("Cloud context closed")
