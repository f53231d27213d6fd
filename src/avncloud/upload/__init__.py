"""Content-addressed upload pipeline for the organization shared cloud.

Public API
----------
.. autoclass:: UploadPipeline
.. autoclass:: UploadNegotiator
.. autoclass:: TransferExecutor
.. autoclass:: RegistrationBinder
.. autoclass:: UploadLifecycleSM
"""

from avncloud.upload.fsm import UploadLifecycleSM, create_fsm
from avncloud.upload.hashing import content_hash, to_base64url
from avncloud.upload.negotiator import UploadNegotiator
from avncloud.upload.pipeline import UploadPipeline
from avncloud.upload.registration import RegistrationBinder
from avncloud.upload.transfer import TransferExecutor, partition_header_fields

__all__ = [
    "RegistrationBinder",
    "TransferExecutor",
    "UploadLifecycleSM",
    "UploadNegotiator",
    "UploadPipeline",
    "content_hash",
    "create_fsm",
    "partition_header_fields",
    "to_base64url",
]
