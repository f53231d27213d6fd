"""Process-lifetime cache of the application's client credentials.

The first caller for an environment issues ``CreateClientCredentials``;
every later caller reuses the cached value with no network call.
Concurrent first callers share a single in-flight fetch. If that fetch
fails the error reaches every waiter and the cache stays empty, so the
next call fetches again.
"""

from __future__ import annotations

import asyncio
import logging

from avncloud.models import Environment
from avncloud.rpc.channel import ChannelProvider
from avncloud.rpc.messages import ClientCredentials
from avncloud.rpc.services import ClientService

logger = logging.getLogger(__name__)


class CredentialCache:
    """Single-flight, fetch-once credential cache keyed by environment.

    Usage::

        cache = CredentialCache(channels)
        creds = await cache.credential(Environment.PRODUCTION)

    Args:
        channels: Provider of the RPC channel used for the fetch.
    """

    def __init__(self, channels: ChannelProvider) -> None:
        self._channels = channels
        self._credentials: dict[Environment, ClientCredentials] = {}
        self._inflight: dict[Environment, asyncio.Task[ClientCredentials]] = {}

    def cached(self, environment: Environment = Environment.PRODUCTION) -> ClientCredentials | None:
        """Return the cached credential without fetching."""
        return self._credentials.get(Environment.parse(environment))

    async def credential(
        self, environment: Environment = Environment.PRODUCTION
    ) -> ClientCredentials:
        """Return the credential for *environment*, fetching it on first use.

        Raises:
            TransportError: If the fetch fails. Nothing is cached.
        """
        environment = Environment.parse(environment)
        cached = self._credentials.get(environment)
        if cached is not None:
            return cached

        task = self._inflight.get(environment)
        if task is None:
            task = asyncio.ensure_future(self._fetch(environment))
            # Every waiter may be cancelled before a failure lands
            task.add_done_callback(lambda t: t.cancelled() or t.exception())
            self._inflight[environment] = task

        # Shielded so one waiter being cancelled does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _fetch(self, environment: Environment) -> ClientCredentials:
        try:
            logger.debug("Requesting client credentials from %s", environment.value)
            service = ClientService(self._channels.channel_for(environment))
            response = await service.create_client_credentials()
            self._credentials[environment] = response.client_credentials
            logger.info("Cached client credentials for %s", environment.value)
            return response.client_credentials
        finally:
            self._inflight.pop(environment, None)
