"""
Base64 helpers for Web Push wire values.

Push services and browsers exchange keys and salts as URL-safe base64
with the '=' padding removed. Incoming values may arrive with or without
padding.
"""

import base64
from typing import Union


def trim_encode64(data: bytes) -> str:
    """URL-safe base64 encode `data` and drop every '=' pad character."""
    return base64.urlsafe_b64encode(data).decode("ascii").replace("=", "")


def decode_key(value: Union[str, bytes]) -> bytes:
    """
    Normalise key material to raw bytes.

    Strings are read as URL-safe base64 with or without '=' padding, the
    format browsers use in PushSubscription.toJSON(). Bytes pass through.
    """
    if isinstance(value, bytes):
        return value
    value = value.strip()
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
