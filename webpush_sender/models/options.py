"""
Option Models — Pydantic schemas for per-call push configuration.

VapidOptions carries the VAPID identity (subject, token lifetime and key
material). DeliveryOptions carries everything else that shapes the HTTP
request: TTL, urgency, the legacy Google API key and transport timeouts.

Defaults are applied when the model is constructed, so the request
pipeline never has to look a field up "with a fallback" later on.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_SUBJECT = "sender@example.com"
DEFAULT_EXPIRATION = 24 * 60 * 60  # 24 hours
DEFAULT_TTL = 60 * 60 * 24 * 7 * 4  # 4 weeks
DEFAULT_URGENCY = "normal"

# Google FCM answers 400 with this reason phrase for rejected credentials
DEFAULT_UNAUTHORIZED_REASONS = frozenset({"UnauthorizedRegistration"})

Urgency = Literal["very-low", "low", "normal", "high"]


class VapidOptions(BaseModel):
    """
    VAPID identity used to sign the Authorization header.

    Either `pem` or the (`public_key`, `private_key`) pair must be set for
    VAPID to be used. With none of the three the request falls back to
    API-key authentication or goes out unauthenticated.
    """

    model_config = ConfigDict(frozen=True)

    subject: str = Field(
        default=DEFAULT_SUBJECT,
        description="JWT 'sub' claim, usually a mailto: or https: contact URL.",
    )
    expiration: int = Field(
        default=DEFAULT_EXPIRATION,
        gt=0,
        description="Seconds from signing until the JWT 'exp' claim.",
    )
    public_key: Optional[str] = Field(
        default=None,
        description="Base64url uncompressed P-256 public key.",
    )
    private_key: Optional[str] = Field(
        default=None,
        description="Base64url raw P-256 private scalar.",
    )
    pem: Optional[str] = Field(
        default=None,
        description="PEM-encoded EC private key (takes precedence over the raw pair).",
    )

    @field_validator("public_key", "private_key", "pem")
    @classmethod
    def blank_as_missing(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings like an absent key."""
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_key_source(self) -> "VapidOptions":
        """A raw key pair is only usable when both halves are present."""
        if self.pem is None and (self.public_key is None) != (self.private_key is None):
            raise ValueError(
                "VAPID needs both public_key and private_key (or a pem)."
            )
        return self

    @property
    def enabled(self) -> bool:
        """True when key material is present and VAPID signing applies."""
        return any(v is not None for v in (self.pem, self.public_key, self.private_key))


class DeliveryOptions(BaseModel):
    """Delivery hints, legacy authentication and transport timeouts for one push."""

    model_config = ConfigDict(frozen=True)

    ttl: int = Field(
        default=DEFAULT_TTL,
        ge=0,
        description="Seconds the push service should retain an undelivered message.",
    )
    urgency: Urgency = Field(
        default=DEFAULT_URGENCY,
        description="Delivery priority hint: very-low, low, normal or high.",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Legacy GCM/FCM server key, used only for Google endpoints.",
    )
    open_timeout: Optional[float] = Field(default=None, gt=0)
    ssl_timeout: Optional[float] = Field(default=None, gt=0)
    read_timeout: Optional[float] = Field(default=None, gt=0)
    unauthorized_reasons: frozenset[str] = Field(
        default=DEFAULT_UNAUTHORIZED_REASONS,
        description="HTTP 400 reason phrases that mean rejected credentials.",
    )
