"""Upload orchestrator for the organization shared cloud.

Runs one upload strictly in order::

    hash -> dedup check -> manifest -> HTTP transfer -> bind -> done
                     \\-- dedup hit -----------------/

A dedup hit skips the manifest and the transfer but still binds the
existing URL to the organization. The first failing stage ends the run:
no later stage executes and no download URL is returned. Every network
call is an ``await``; the pipeline holds no locks, so independent uploads
interleave freely.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from avncloud.constants import MAX_SINGLE_PART_UPLOAD_BYTES
from avncloud.device import DeviceInfoProvider, authorization_for
from avncloud.exceptions import AvnCloudError, ValidationError
from avncloud.models import Environment, UploadResult, UploadStage
from avncloud.rpc.channel import ChannelProvider
from avncloud.upload.fsm import UploadLifecycleSM, create_fsm
from avncloud.upload.hashing import content_hash
from avncloud.upload.negotiator import UploadNegotiator
from avncloud.upload.registration import RegistrationBinder
from avncloud.upload.transfer import TransferExecutor

logger = logging.getLogger(__name__)


class UploadPipeline:
    """Uploads bytes to the file store and registers them with the device's organization.

    Usage::

        pipeline = UploadPipeline(channels, http_client, device)
        result = await pipeline.upload("report.pdf", "application/pdf", data)
        if result.success:
            print(result.download_url)

    Args:
        channels: Shared RPC channel provider.
        http_client: Client for the raw HTTP transfer.
        device: Device identity: organization id and token.
    """

    def __init__(
        self,
        channels: ChannelProvider,
        http_client: httpx.AsyncClient,
        device: DeviceInfoProvider,
    ) -> None:
        self._channels = channels
        self._transfer = TransferExecutor(http_client)
        self._device = device

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def upload(
        self,
        filename: str,
        media_type: str,
        data: bytes,
        environment: Environment = Environment.PRODUCTION,
    ) -> UploadResult:
        """Upload *data* and bind it to the device's organization.

        Never raises for pipeline failures: the returned result carries
        ``success=False``, the last stage completed and the error text.
        ``asyncio.CancelledError`` is the exception: it is logged, the
        lifecycle moves to ``failed``, and the cancellation propagates.

        Args:
            filename: Name and extension of the file.
            media_type: MIME type of the file.
            data: Full file contents.
            environment: Backend to upload to.

        Returns:
            The :class:`UploadResult`.
        """
        result = UploadResult(filename=filename)
        fsm = create_fsm()

        try:
            await self._run(fsm, result, filename, media_type, data, environment)
        except AvnCloudError as exc:
            self._fail(fsm, result, str(exc))
            logger.error(
                "Upload of '%s' failed after stage %s: %s",
                filename,
                result.failed_after.value if result.failed_after else "start",
                exc,
            )
        except asyncio.CancelledError:
            self._fail(fsm, result, "cancelled")
            logger.warning("Upload of '%s' cancelled", filename)
            raise
        finally:
            result.stage = UploadStage(fsm.current_state.value)

        return result

    async def upload_text(
        self,
        filename: str,
        media_type: str,
        text: str,
        environment: Environment = Environment.PRODUCTION,
    ) -> UploadResult:
        """Upload *text* encoded as UTF-8."""
        return await self.upload(filename, media_type, text.encode("utf-8"), environment)

    async def upload_to_shared_cloud(
        self,
        filename: str,
        media_type: str,
        data: bytes,
        environment: Environment = Environment.PRODUCTION,
    ) -> str | None:
        """Upload *data* and return its download URL, or ``None`` on failure."""
        result = await self.upload(filename, media_type, data, environment)
        return result.download_url

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _run(
        self,
        fsm: UploadLifecycleSM,
        result: UploadResult,
        filename: str,
        media_type: str,
        data: bytes,
        environment: Environment,
    ) -> None:
        # Preconditions: nothing goes over the network if these fail
        try:
            environment = Environment.parse(environment)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if not data:
            raise ValidationError(f"Cannot upload '{filename}': no content")
        if len(data) > MAX_SINGLE_PART_UPLOAD_BYTES:
            raise ValidationError(
                f"Cannot upload '{filename}': {len(data)} bytes exceeds the "
                f"single-part limit of {MAX_SINGLE_PART_UPLOAD_BYTES} bytes"
            )
        auth = authorization_for(self._device)
        organization_id = self._device.organization_id()

        logger.info("Uploading '%s' (%d bytes)", filename, len(data))
        digest = content_hash(data)
        result.content_hash = digest
        fsm.compute_hash()

        channel = self._channels.channel_for(environment)
        negotiator = UploadNegotiator(channel)

        download_url = await negotiator.check_existing(filename, media_type, digest, len(data))
        fsm.check_dedup()

        if download_url:
            result.deduplicated = True
        else:
            manifest = await negotiator.negotiate_manifest(
                filename, media_type, digest, len(data), auth
            )
            fsm.obtain_manifest()

            await self._transfer.transfer(manifest, data)
            fsm.complete_transfer()
            logger.info("'%s' transferred to file store", filename)
            download_url = manifest.download_url

        entity_id = await RegistrationBinder(channel).bind(download_url, organization_id, auth)
        fsm.bind_organization()

        result.entity_id = entity_id
        result.download_url = download_url
        result.success = True
        fsm.finish()

    @staticmethod
    def _fail(fsm: UploadLifecycleSM, result: UploadResult, error: str) -> None:
        """Record the failure and move the lifecycle to ``failed``."""
        state = fsm.current_state.value
        result.failed_after = UploadStage(state)
        result.error = error
        result.success = False
        result.download_url = None
        result.entity_id = None
        if state not in ("done", "failed"):
            fsm.fail()
