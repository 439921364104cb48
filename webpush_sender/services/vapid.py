"""
VAPID Service — Voluntary Application Server Identification for Web Push.

Identifies the sender to the push service with a short-lived JWT signed
by the application server's P-256 key. The push service checks the
signature against the public key the browser was subscribed with
(the `applicationServerKey`), so the same key pair must be used here.

VAPID requires:
1. A P-256 private key (PEM, or the raw base64url scalar + public point)
2. A contact subject (mailto: or https: URL)
3. The push service origin as the token audience

Headers produced:
- Authorization: WebPush <jwt>
- Crypto-Key: p256ecdsa=<base64url public key>
"""

import logging
import time
from typing import Optional, Union
from urllib.parse import urlsplit

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from webpush_sender.core.encoding import decode_key, trim_encode64
from webpush_sender.core.exceptions import VapidKeyError
from webpush_sender.models.options import VapidOptions

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "ES256"
JWT_HEADER_FIELDS = {"typ": "JWT"}


# ===================================================================
# Key Handling
# ===================================================================

class VapidKey:
    """
    A P-256 key pair used to sign VAPID tokens.

    Build one with VapidKey.from_pem(), VapidKey.from_keys() or
    VapidKey.generate().
    """

    def __init__(self, private_key: ec.EllipticCurvePrivateKey) -> None:
        if not isinstance(private_key.curve, ec.SECP256R1):
            raise VapidKeyError(
                f"VAPID keys must use the P-256 curve, got {private_key.curve.name}"
            )
        self._private_key = private_key

    @classmethod
    def generate(cls) -> "VapidKey":
        """Create a brand new random key pair."""
        return cls(ec.generate_private_key(ec.SECP256R1()))

    @classmethod
    def from_pem(cls, pem: Union[str, bytes]) -> "VapidKey":
        """
        Load a key pair from a PEM-encoded EC private key.

        Both SEC1 ("EC PRIVATE KEY") and PKCS#8 ("PRIVATE KEY") are accepted.

        Raises:
            VapidKeyError: If the PEM cannot be parsed or is not an EC key.
        """
        if isinstance(pem, str):
            pem = pem.encode("utf-8")
        try:
            private_key = serialization.load_pem_private_key(pem, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise VapidKeyError(f"Invalid VAPID PEM key: {exc}") from exc

        if not isinstance(private_key, ec.EllipticCurvePrivateKey):
            raise VapidKeyError("VAPID PEM must contain an elliptic curve private key")
        return cls(private_key)

    @classmethod
    def from_keys(
        cls,
        public_key: Union[str, bytes],
        private_key: Union[str, bytes],
    ) -> "VapidKey":
        """
        Build a key pair from raw key material.

        Args:
            public_key: Uncompressed P-256 point (65 bytes), base64url or raw.
            private_key: Private scalar (32 bytes), base64url or raw.

        Raises:
            VapidKeyError: If either key is malformed or they do not
                belong together.
        """
        try:
            private_bytes = decode_key(private_key)
            public_bytes = decode_key(public_key)
            derived = ec.derive_private_key(
                int.from_bytes(private_bytes, "big"), ec.SECP256R1()
            )
            given_public = ec.EllipticCurvePublicKey.from_encoded_point(
                ec.SECP256R1(), public_bytes
            )
        except (ValueError, TypeError) as exc:
            raise VapidKeyError(f"Invalid VAPID key material: {exc}") from exc

        if derived.public_key().public_numbers() != given_public.public_numbers():
            raise VapidKeyError("VAPID public_key does not match private_key")
        return cls(derived)

    @property
    def curve(self) -> ec.EllipticCurvePrivateKey:
        """Signing key handle passed to the JWT encoder."""
        return self._private_key

    @property
    def public_key(self) -> str:
        """Uncompressed public point, base64url without padding."""
        return self.public_key_for_push_header()

    @property
    def private_key(self) -> str:
        """Private scalar (32 bytes big-endian), base64url without padding."""
        value = self._private_key.private_numbers().private_value
        return trim_encode64(value.to_bytes(32, "big"))

    def public_key_for_push_header(self) -> str:
        """
        Public key in the form push services expect in Crypto-Key.

        This is also the `applicationServerKey` a browser subscribes with.
        """
        raw = self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.UncompressedPoint,
        )
        return trim_encode64(raw)

    def to_pem(self) -> str:
        """Private key as an unencrypted SEC1 PEM string."""
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")

    def __repr__(self) -> str:
        return f"VapidKey(public_key={self.public_key!r})"


def generate_key() -> VapidKey:
    """Generate a new VAPID key pair."""
    return VapidKey.generate()


def resolve_vapid_key(vapid_options: VapidOptions) -> VapidKey:
    """Pick the key source from the options: `pem` first, then the raw pair."""
    if vapid_options.pem:
        return VapidKey.from_pem(vapid_options.pem)
    if vapid_options.public_key and vapid_options.private_key:
        return VapidKey.from_keys(vapid_options.public_key, vapid_options.private_key)
    raise VapidKeyError("VAPID options carry neither a pem nor a public/private key pair")


# ===================================================================
# JWT Signing
# ===================================================================

def audience_for(endpoint: str) -> str:
    """Return `scheme://host` of a push endpoint, the JWT 'aud' claim."""
    parts = urlsplit(endpoint)
    return f"{parts.scheme}://{parts.hostname}"


def build_vapid_headers(
    vapid_options: VapidOptions,
    endpoint: str,
    now: Optional[float] = None,
) -> dict[str, str]:
    """
    Sign a VAPID JWT for `endpoint` and return the headers that carry it.

    Claims:
    - aud: scheme://host of the endpoint
    - exp: now + vapid_options.expiration
    - sub: vapid_options.subject

    Args:
        vapid_options: Subject, token lifetime and key material.
        endpoint: The subscription endpoint the token is for.
        now: Signing time as a Unix timestamp (defaults to time.time()).

    Returns:
        dict with 'Authorization' ("WebPush <jwt>") and
        'Crypto-Key' ("p256ecdsa=<public key>").

    Raises:
        VapidKeyError: If the key material cannot be resolved.
    """
    vapid_key = resolve_vapid_key(vapid_options)

    issued_at = int(time.time() if now is None else now)
    claims = {
        "aud": audience_for(endpoint),
        "exp": issued_at + vapid_options.expiration,
        "sub": vapid_options.subject,
    }

    token = jwt.encode(
        claims,
        vapid_key.curve,
        algorithm=JWT_ALGORITHM,
        headers=JWT_HEADER_FIELDS,
    )

    logger.debug(
        "Signed VAPID JWT (aud=%s, exp=%s)", claims["aud"], claims["exp"]
    )
    return {
        "Authorization": f"WebPush {token}",
        "Crypto-Key": f"p256ecdsa={vapid_key.public_key_for_push_header()}",
    }
