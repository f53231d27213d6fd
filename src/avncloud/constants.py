"""Project-wide named constants.

Endpoint addresses, wire limits and well-known identifiers used across the
upload and analytics pipelines.
"""

# Connect-protocol service package shared by every RPC the client calls.
RPC_PACKAGE: str = "avn.connect.v1"

PRODUCTION_URL: str = "https://gweb.avncloud.com:443"
ALPHA_URL: str = "https://gweb-alpha.avncloud.com:443"

DEFAULT_TIMEOUT_SECONDS: float = 30.0
DEFAULT_HOST_ID: str = "avncloud-python"

# Serialized analytics data above this size is rejected before any RPC.
# Inclusive: exactly 2048 bytes is accepted.
MAX_EVENT_DATA_BYTES: int = 2048

# Largest object the file store accepts in a single-part upload (5 GiB).
MAX_SINGLE_PART_UPLOAD_BYTES: int = 5_368_709_120

# Organization that devices belong to until they are enrolled.
UNENROLLED_ORGANIZATION_ID: int = 18579

# Manifest header fields whose name starts with this prefix (case-insensitive)
# go on the request; all others describe the payload.
REQUEST_HEADER_PREFIX: str = "cache"
