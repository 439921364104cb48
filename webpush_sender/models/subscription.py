"""
Subscription Models — Pydantic schemas for a browser push subscription.

Accepts the JSON a browser produces with PushSubscription.toJSON():

    {"endpoint": "https://...", "expirationTime": null,
     "keys": {"p256dh": "<base64url>", "auth": "<base64url>"}}

Key material may also be passed as raw bytes. Unknown fields such as
expirationTime are ignored.
"""

from typing import Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubscriptionKeys(BaseModel):
    """Receiver key material used for payload encryption."""

    model_config = ConfigDict(frozen=True)

    p256dh: Union[str, bytes] = Field(
        ...,
        description="Receiver's P-256 ECDH public key (base64url or raw bytes).",
    )
    auth: Union[str, bytes] = Field(
        ...,
        description="Receiver's 16-byte authentication secret (base64url or raw bytes).",
    )


class Subscription(BaseModel):
    """Where (endpoint) and how (keys) to deliver a message to one client."""

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(..., min_length=1)
    keys: Optional[SubscriptionKeys] = None

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Strip whitespace and require an absolute URL with a host."""
        v = v.strip()
        parts = urlsplit(v)
        if not parts.scheme or not parts.hostname:
            raise ValueError("Subscription endpoint must be an absolute URL.")
        return v
