"""Connect-protocol RPC layer for the AVN Cloud backends.

Public API
----------
.. autoclass:: Channel
.. autoclass:: ChannelProvider
.. autoclass:: ClientService
.. autoclass:: AvnfsService
.. autoclass:: CloudService
"""

from avncloud.rpc.channel import Channel, ChannelProvider
from avncloud.rpc.messages import (
    Authorization,
    ClientCredentials,
    HeaderField,
    UploadManifest,
)
from avncloud.rpc.services import AvnfsService, ClientService, CloudService

__all__ = [
    "Authorization",
    "AvnfsService",
    "Channel",
    "ChannelProvider",
    "ClientCredentials",
    "ClientService",
    "CloudService",
    "HeaderField",
    "UploadManifest",
]
