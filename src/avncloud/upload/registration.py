"""Registration of uploaded files with an organization's shared cloud."""

from __future__ import annotations

import logging

from avncloud.exceptions import LogicalFailure
from avncloud.rpc.channel import Channel
from avncloud.rpc.messages import AddCloudFilesRequest, Authorization
from avncloud.rpc.services import CloudService

logger = logging.getLogger(__name__)


class RegistrationBinder:
    """Binds a download URL to an organization via ``AddCloudFiles``.

    Repeating a bind with the same URL is expected to be idempotent on the
    server; nothing is deduplicated locally.
    """

    def __init__(self, channel: Channel) -> None:
        self._cloud = CloudService(channel)

    async def bind(self, download_url: str, organization_id: int, auth: Authorization) -> int:
        """Register *download_url* with *organization_id*.

        Returns:
            The first entity id the backend created.

        Raises:
            TransportError: If the RPC fails.
            LogicalFailure: If the backend returned no entity ids.
        """
        logger.info(
            "Assigning '%s' to shared cloud of organization %d",
            download_url,
            organization_id,
        )
        response = await self._cloud.add_cloud_files(
            AddCloudFilesRequest(
                auth=auth,
                organization_id=organization_id,
                file_urls=[download_url],
            )
        )
        if not response.entity_ids:
            raise LogicalFailure(
                f"Failed to assign '{download_url}' to shared cloud of "
                f"organization {organization_id}: no entity ids returned"
            )

        logger.info(
            "'%s' added to shared cloud of organization %d (entity %d)",
            download_url,
            organization_id,
            response.entity_ids[0],
        )
        return response.entity_ids[0]
