"""Raw HTTP transfer of file bytes to the manifest's upload target.

The manifest lists header fields the upload must carry. Fields whose name
starts with ``cache`` (any case) are request headers; every other field
describes the payload and is applied as an entity header. Both sets go
out in manifest order with repeated names kept, and they take precedence
over the defaults httpx derives from the body. Strict HTTP stacks reject
entity headers placed on the request, so the split matters even though
both sets end up on the same wire message.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx

from avncloud.constants import REQUEST_HEADER_PREFIX
from avncloud.exceptions import TransferError
from avncloud.rpc.messages import HeaderField, UploadManifest

logger = logging.getLogger(__name__)

HeaderList = list[tuple[str, str]]


def is_request_header(name: str) -> bool:
    """True if the manifest field *name* belongs on the request."""
    return name.lower().startswith(REQUEST_HEADER_PREFIX)


def partition_header_fields(fields: Iterable[HeaderField]) -> tuple[HeaderList, HeaderList]:
    """Split manifest header fields into ``(request_headers, content_headers)``.

    Order within each list follows the manifest.
    """
    request_headers: HeaderList = []
    content_headers: HeaderList = []
    for field in fields:
        target = request_headers if is_request_header(field.name) else content_headers
        target.append((field.name, field.value))
    return request_headers, content_headers


class TransferExecutor:
    """Performs the single-shot upload described by a manifest.

    Args:
        client: HTTP client used for uploads. Not an RPC channel: the
            target is an arbitrary storage URL.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    def build_request(self, manifest: UploadManifest, data: bytes) -> httpx.Request:
        """Build the POST for *manifest* with *data* as the whole body.

        Raises:
            TransferError: If the upload URL or a header value cannot be
                put on the wire.
        """
        request_headers, content_headers = partition_header_fields(manifest.header_fields)
        try:
            return self._client.build_request(
                "POST",
                manifest.upload_url,
                headers=request_headers + content_headers,
                content=data,
            )
        except (httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise TransferError(None, f"malformed upload target: {exc}") from exc

    async def transfer(self, manifest: UploadManifest, data: bytes) -> int:
        """Upload *data* to ``manifest.upload_url`` in one request.

        Returns:
            The 2xx HTTP status code.

        Raises:
            TransferError: If the request cannot be built, fails, or
                returns a non-2xx status.
        """
        logger.debug("POST %d bytes to %s", len(data), manifest.upload_url)

        try:
            request = self.build_request(manifest, data)
            response = await self._client.send(request)
        except httpx.HTTPError as exc:
            raise TransferError(None, str(exc)) from exc

        if not response.is_success:
            raise TransferError(response.status_code, response.text[:500].strip())
        return response.status_code
