"""Content addressing for deduplication.

The dedup key is the SHA-256 digest of the file bytes encoded as unpadded
base64url (RFC 4648 section 5). It identifies content, it does not
authenticate it.
"""

from __future__ import annotations

import base64
import hashlib


def to_base64url(raw: bytes) -> str:
    """Encode *raw* as base64url without ``=`` padding."""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def content_hash(data: bytes) -> str:
    """Return the dedup key for *data*.

    Deterministic across calls and processes: identical bytes always give
    the identical 43-character string.
    """
    return to_base64url(hashlib.sha256(data).digest())
