"""
Header Composer — builds the HTTP header set for one push request.

Always present:
- Content-Type: application/octet-stream
- Ttl: seconds the push service should keep the message
- Urgency: very-low | low | normal | high

Encrypted payloads add Content-Encoding, Encryption (salt) and
Crypto-Key (dh). Authentication adds Authorization, using the legacy
Google API key for Google endpoints when one is configured, otherwise a
VAPID token whose p256ecdsa key is merged into Crypto-Key.
"""

import logging
import re
from typing import Optional

from webpush_sender.core.encoding import trim_encode64
from webpush_sender.models.options import DeliveryOptions, VapidOptions
from webpush_sender.services.encryption import CONTENT_ENCODING, EncryptedEnvelope
from webpush_sender.services.vapid import build_vapid_headers

logger = logging.getLogger(__name__)

# Google push services that still honour "Authorization: key=<api key>"
GOOGLE_PUSH_ENDPOINT = re.compile(r"\Ahttps://(android|gcm-http|fcm)\.googleapis\.com")


def is_google_push_endpoint(endpoint: str) -> bool:
    """
    Check whether an endpoint belongs to a Google push service.

    Matches https://android.googleapis.com, https://gcm-http.googleapis.com
    and https://fcm.googleapis.com. Only these hosts accept the legacy
    API-key Authorization header.
    """
    return GOOGLE_PUSH_ENDPOINT.match(endpoint) is not None


def uses_api_key(endpoint: str, delivery_options: DeliveryOptions) -> bool:
    """API-key auth applies when a key is set and the endpoint is Google's."""
    return bool(delivery_options.api_key) and is_google_push_endpoint(endpoint)


def join_crypto_key(*parts: Optional[str]) -> str:
    """Join Crypto-Key parameters with ';', skipping absent ones."""
    return ";".join(part for part in parts if part)


def compose_headers(
    envelope: Optional[EncryptedEnvelope],
    endpoint: str,
    vapid_options: VapidOptions,
    delivery_options: DeliveryOptions,
    now: Optional[float] = None,
) -> dict[str, str]:
    """
    Build the ordered header mapping for a push request.

    Args:
        envelope: Encrypted payload, or None for an empty-body push.
        endpoint: Subscription endpoint URL.
        vapid_options: VAPID identity (disabled when it carries no keys).
        delivery_options: TTL, urgency and the optional API key.
        now: Signing time for the VAPID token (defaults to the clock).

    Returns:
        dict of header name to value, in wire order.

    Raises:
        VapidKeyError: If VAPID applies and its key material is unusable.
    """
    headers: dict[str, str] = {}
    headers["Content-Type"] = "application/octet-stream"
    headers["Ttl"] = str(delivery_options.ttl)
    headers["Urgency"] = delivery_options.urgency

    if envelope is not None:
        headers["Content-Encoding"] = CONTENT_ENCODING
        headers["Encryption"] = f"salt={trim_encode64(envelope.salt)}"
        headers["Crypto-Key"] = f"dh={trim_encode64(envelope.server_public_key)}"

    if uses_api_key(endpoint, delivery_options):
        headers["Authorization"] = f"key={delivery_options.api_key}"
        logger.debug("Using API-key authentication for Google endpoint")
    elif vapid_options.enabled:
        vapid_headers = build_vapid_headers(vapid_options, endpoint, now=now)
        headers["Authorization"] = vapid_headers["Authorization"]
        headers["Crypto-Key"] = join_crypto_key(
            headers.get("Crypto-Key"), vapid_headers["Crypto-Key"]
        )
    else:
        logger.debug("No VAPID keys or eligible API key; sending unauthenticated")

    return headers
