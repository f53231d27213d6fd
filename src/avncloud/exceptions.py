"""Error taxonomy for the upload and analytics pipelines.

Components raise these; :class:`~avncloud.upload.pipeline.UploadPipeline`
and :class:`~avncloud.analytics.reporter.AnalyticsReporter` are the boundary
that turns them into failure returns plus a logged diagnostic.
"""

from __future__ import annotations


class AvnCloudError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(AvnCloudError):
    """A precondition failed locally; nothing was sent over the network."""


class TransportError(AvnCloudError):
    """An RPC failed: connection fault, timeout or non-OK status.

    Attributes:
        code: Connect error code (``unavailable``, ``not_found``...) or the
            HTTP status as a string when the server sent no Connect error.
        detail: Server-provided message, if any.
    """

    def __init__(self, code: str, detail: str = "") -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"RPC failed with status {code}: {detail}" if detail else f"RPC failed with status {code}")


class TransferError(AvnCloudError):
    """The raw HTTP upload did not return a 2xx status.

    ``status_code`` is ``None`` when the request never produced a response
    (connection refused, timeout).
    """

    def __init__(self, status_code: int | None, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        if status_code is None:
            message = f"Upload request failed: {detail}"
        else:
            message = f"Upload returned HTTP {status_code}"
            if detail:
                message += f": {detail}"
        super().__init__(message)


class LogicalFailure(AvnCloudError):
    """A call succeeded at the transport level but its result is unusable.

    Examples: an empty entity-id list from registration, or a manifest with
    no download URL.
    """
