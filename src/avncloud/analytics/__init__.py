"""Analytics event reporting.

Public API
----------
.. autoclass:: AnalyticsReporter
.. autoclass:: CredentialCache
"""

from avncloud.analytics.credentials import CredentialCache
from avncloud.analytics.reporter import AnalyticsReporter, serialized_size, to_struct

__all__ = [
    "AnalyticsReporter",
    "CredentialCache",
    "serialized_size",
    "to_struct",
]
