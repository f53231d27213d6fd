"""AVN Cloud client: shared-cloud uploads and analytics events."""

__version__ = "0.1.0"

from avncloud.config import ClientConfig, load_client_config
from avncloud.context import CloudContext
from avncloud.exceptions import (
    AvnCloudError,
    LogicalFailure,
    TransferError,
    TransportError,
    ValidationError,
)
from avncloud.models import Environment, UploadResult, UploadStage

__all__ = [
    "AvnCloudError",
    "ClientConfig",
    "CloudContext",
    "Environment",
    "LogicalFailure",
    "TransferError",
    "TransportError",
    "UploadResult",
    "UploadStage",
    "ValidationError",
    "__version__",
    "load_client_config",
]
