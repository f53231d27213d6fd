"""Dedup check and upload-manifest negotiation with the file store.

Both calls go to ``AvnfsService``. Neither retries; failures surface as
:class:`~avncloud.exceptions.TransportError` (or
:class:`~avncloud.exceptions.LogicalFailure` for an unusable manifest).
"""

from __future__ import annotations

import logging

from avncloud.exceptions import LogicalFailure
from avncloud.rpc.channel import Channel
from avncloud.rpc.messages import (
    Authorization,
    GetFileUrlRequest,
    GetManifestRequest,
    UploadManifest,
)
from avncloud.rpc.services import AvnfsService

logger = logging.getLogger(__name__)


class UploadNegotiator:
    """Asks the store whether content exists and how to upload it if not.

    Args:
        channel: Channel to the backend holding the file store.
    """

    def __init__(self, channel: Channel) -> None:
        self._avnfs = AvnfsService(channel)

    async def check_existing(
        self,
        filename: str,
        media_type: str,
        content_hash: str,
        size: int,
    ) -> str | None:
        """Return the URL of already-stored identical content, or ``None``.

        Raises:
            TransportError: If the RPC fails.
        """
        response = await self._avnfs.get_file_url(
            GetFileUrlRequest(
                hash=content_hash,
                size_bytes=size,
                media_type=media_type,
                file_name=filename,
            )
        )
        if response.has_url:
            logger.info("'%s' has already been uploaded at %s", filename, response.url)
            return response.url
        return None

    async def negotiate_manifest(
        self,
        filename: str,
        media_type: str,
        content_hash: str,
        size: int,
        auth: Authorization,
    ) -> UploadManifest:
        """Request transfer instructions for new content.

        Returns:
            The manifest. Its header fields must be sent exactly, in order.

        Raises:
            TransportError: If the RPC fails.
            LogicalFailure: If the manifest lacks an upload or download URL.
        """
        manifest = await self._avnfs.get_post_manifest(
            GetManifestRequest(
                auth=auth,
                file_name=filename,
                hash=content_hash,
                media_type=media_type,
                size_bytes=size,
            )
        )
        if not manifest.upload_url:
            raise LogicalFailure(f"Upload manifest for '{filename}' has no upload URL")
        if not manifest.download_url:
            raise LogicalFailure(f"Upload manifest for '{filename}' has no download URL")

        logger.debug(
            "Manifest for '%s': target %s, %d header field(s)",
            filename,
            manifest.upload_url,
            len(manifest.header_fields),
        )
        return manifest
