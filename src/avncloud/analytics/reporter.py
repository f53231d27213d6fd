"""Analytics event reporting.

Records one action per call with ``ClientService.RecordAction``. Callers may
fire and forget (``asyncio.create_task(reporter.send_event(...))``); the
call itself always completes with ``True`` (sent) or ``False`` (failed and
logged). It never raises for backend or validation failures.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from avncloud.analytics.credentials import CredentialCache
from avncloud.constants import DEFAULT_HOST_ID, MAX_EVENT_DATA_BYTES
from avncloud.device import DeviceInfoProvider, authorization_for
from avncloud.exceptions import AvnCloudError, ValidationError
from avncloud.models import Environment
from avncloud.rpc.channel import ChannelProvider
from avncloud.rpc.messages import RecordActionRequest
from avncloud.rpc.services import ClientService

logger = logging.getLogger(__name__)


def to_struct(data: Mapping[str, Any]) -> dict[str, str]:
    """Convert a flat mapping into a structured value of string fields."""
    return {str(key): str(value) for key, value in data.items()}


def serialized_size(data: Mapping[str, Any]) -> int:
    """Size in bytes of *data* in its compact wire encoding.

    Raises:
        ValidationError: If *data* is not JSON-serializable.
    """
    try:
        encoded = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Event data is not serializable: {exc}") from exc
    return len(encoded.encode("utf-8"))


class AnalyticsReporter:
    """Sends analytics events using the shared channel and credential caches.

    Usage::

        reporter = AnalyticsReporter(channels, credentials, device)
        await reporter.send_event("file_browser", "open_file", {"type": "pdf"})

    Args:
        channels: Shared channel provider.
        credentials: Shared client-credential cache.
        device: Device identity used to authorize each event.
        host_id: Identifier of the application sending events.
    """

    def __init__(
        self,
        channels: ChannelProvider,
        credentials: CredentialCache,
        device: DeviceInfoProvider,
        host_id: str = DEFAULT_HOST_ID,
    ) -> None:
        self._channels = channels
        self._credentials = credentials
        self._device = device
        self.host_id = host_id

    async def send_event(
        self,
        source_id: str,
        action_id: str,
        data: Mapping[str, Any] | None = None,
        environment: Environment = Environment.PRODUCTION,
    ) -> bool:
        """Send one analytics event.

        Args:
            source_id: Name of the source of the action, in snake_case.
            action_id: Name of the action taken, in snake_case.
            data: Optional structured data. Its serialized form must not
                exceed 2048 bytes; larger data is rejected with no RPC.
            environment: Backend to report to.

        Returns:
            ``True`` if the backend accepted the event, ``False`` otherwise.
        """
        try:
            await self._record(source_id, action_id, data, environment)
        except ValidationError as exc:
            logger.error(
                "Analytics event send failed for action '%s' and source '%s': %s",
                action_id,
                source_id,
                exc,
            )
            return False
        except AvnCloudError as exc:
            logger.error("Analytics event send failed. %s", exc)
            return False

        logger.info("Event '%s' - '%s' sent", source_id, action_id)
        return True

    async def send_string_event(
        self,
        source_id: str,
        action_id: str,
        data: Mapping[str, str] | None = None,
        environment: Environment = Environment.PRODUCTION,
    ) -> bool:
        """Convenience form of :meth:`send_event` for flat string mappings."""
        struct = to_struct(data) if data is not None else None
        return await self.send_event(source_id, action_id, struct, environment)

    async def _record(
        self,
        source_id: str,
        action_id: str,
        data: Mapping[str, Any] | None,
        environment: Environment,
    ) -> None:
        # Local checks come first so a rejected event costs no RPC at all
        try:
            environment = Environment.parse(environment)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        auth = authorization_for(self._device)
        if data is not None:
            size = serialized_size(data)
            if size > MAX_EVENT_DATA_BYTES:
                raise ValidationError(
                    f"Event data is {size} bytes, limit is {MAX_EVENT_DATA_BYTES}"
                )

        channel = self._channels.channel_for(environment)
        client = await self._credentials.credential(environment)

        request = RecordActionRequest(
            client=client,
            action_id=action_id,
            source_id=source_id,
            host_id=self.host_id,
            auth=auth,
            data=dict(data) if data is not None else None,
        )
        await ClientService(channel).record_action(request)
