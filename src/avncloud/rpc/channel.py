"""RPC channels to the AVN Cloud backends.

A :class:`Channel` wraps one ``httpx.AsyncClient`` bound to a backend and
performs Connect-protocol unary calls (JSON over HTTPS POST to
``/{package}.{Service}/{Method}``). Channels are expensive to create, so
:class:`ChannelProvider` builds at most one per environment and reuses it
for the lifetime of the provider.
"""

from __future__ import annotations

import logging
from typing import TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

from avncloud.constants import ALPHA_URL, DEFAULT_TIMEOUT_SECONDS, PRODUCTION_URL, RPC_PACKAGE
from avncloud.exceptions import TransportError
from avncloud.models import Environment
from avncloud.rpc.messages import WireModel

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=WireModel)

CONNECT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "Connect-Protocol-Version": "1",
}


class Channel:
    """Handle to one backend endpoint.

    Args:
        environment: Which backend this channel talks to.
        client: The HTTP client carrying the calls. Its ``base_url`` is the
            endpoint address.
    """

    def __init__(self, environment: Environment, client: httpx.AsyncClient) -> None:
        self.environment = environment
        self._client = client

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def unary(
        self,
        service: str,
        method: str,
        request: WireModel,
        response_type: type[ResponseT],
    ) -> ResponseT:
        """Send one unary RPC and decode the response.

        Args:
            service: Service name without package, e.g. ``AvnfsService``.
            method: RPC method name, e.g. ``GetFileUrl``.
            request: Request message.
            response_type: Model the response body is decoded into.

        Returns:
            The decoded response message.

        Raises:
            TransportError: On connection faults, timeouts, any non-200
                status, or a response body that does not match
                *response_type*.
        """
        path = f"/{RPC_PACKAGE}.{service}/{method}"
        logger.debug("RPC %s -> %s", path, self.environment.value)

        try:
            response = await self._client.post(
                path, json=request.to_wire(), headers=CONNECT_HEADERS
            )
        except httpx.TimeoutException as exc:
            raise TransportError("deadline_exceeded", str(exc)) from exc
        except httpx.HTTPError as exc:
            raise TransportError("unavailable", str(exc)) from exc

        if response.status_code != 200:
            raise _error_from_response(response)

        try:
            body = response.json() if response.content else {}
            return response_type.model_validate(body)
        except (ValueError, PydanticValidationError) as exc:
            raise TransportError(
                "internal", f"Malformed {method} response: {exc}"
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_from_response(response: httpx.Response) -> TransportError:
    """Build a TransportError from a Connect error body or bare HTTP status."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and "code" in body:
        return TransportError(str(body["code"]), str(body.get("message", "")))
    return TransportError(str(response.status_code), response.text[:200])


class ChannelProvider:
    """Lazily creates and caches one :class:`Channel` per environment.

    Usage::

        provider = ChannelProvider()
        channel = provider.channel_for(Environment.PRODUCTION)
        ...
        await provider.aclose()

    Args:
        endpoints: Optional override of the base URL per environment.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport shared by every channel
            (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        endpoints: dict[Environment, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoints = {
            Environment.PRODUCTION: PRODUCTION_URL,
            Environment.ALPHA: ALPHA_URL,
        }
        if endpoints:
            self._endpoints.update(endpoints)
        self._timeout = timeout
        self._transport = transport
        self._channels: dict[Environment, Channel] = {}

    def channel_for(self, environment: Environment = Environment.PRODUCTION) -> Channel:
        """Return the cached channel for *environment*, creating it on first use.

        No ``await`` happens between the cache check and the insert, so
        concurrent tasks can never build two channels for one environment.

        Raises:
            TransportError: If the HTTP client cannot be constructed.
        """
        environment = Environment.parse(environment)
        channel = self._channels.get(environment)
        if channel is None:
            base_url = self._endpoints[environment]
            try:
                client = httpx.AsyncClient(
                    base_url=base_url,
                    timeout=self._timeout,
                    transport=self._transport,
                )
            except (httpx.InvalidURL, ValueError, TypeError) as exc:
                raise TransportError(
                    "unavailable", f"Cannot open channel to {base_url!r}: {exc}"
                ) from exc
            channel = Channel(environment, client)
            self._channels[environment] = channel
            logger.info("Opened %s channel to %s", environment.value, base_url)
        return channel

    async def aclose(self) -> None:
        """Close every channel opened so far."""
        channels = list(self._channels.values())
        self._channels.clear()
        for channel in channels:
            await channel.aclose()
