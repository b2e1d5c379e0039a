"""
StateProof Hashing

All hashes are SHA-256 rendered as 64 lowercase hexadecimal characters,
with no algorithm prefix. Structured values are always hashed through their
canonical JSON form.
"""

import hashlib
import re
from typing import Any, Union

from .canonicalization import canonicalize

SHA256_HEX_PATTERN = re.compile(r'^[0-9a-f]{64}$')


def sha256_hex(data: Union[bytes, str]) -> str:
    """
    Compute SHA-256 and return lowercase hex.

    Strings are hashed as their UTF-8 bytes.
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).hexdigest()


def canonical_hash(value: Any) -> str:
    """
    Content address of a JSON-like value.

    canonical_hash = SHA-256(JCS(value))
    """
    return sha256_hex(canonicalize(value))


def hash_pair(left: str, right: str) -> str:
    """
    Hash two hex digests into a parent digest.

    The input is the concatenation of the two hex strings, not of the raw
    digest bytes.
    """
    return sha256_hex(left + right)


def is_sha256_hex(value: Any) -> bool:
    """Check that a value is a 64-character lowercase hex digest."""
    return isinstance(value, str) and SHA256_HEX_PATTERN.match(value) is not None
