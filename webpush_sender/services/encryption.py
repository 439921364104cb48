"""
Payload Encryption — builds the encrypted envelope for a push message.

Web Push payloads are encrypted for the receiving browser with the
"aesgcm" content encoding: an ephemeral P-256 server key is combined with
the subscription's p256dh key and auth secret, and the message is sealed
with a random 16-byte salt. The key agreement and AES-GCM sealing are
done by http_ece; this module only prepares inputs and packages the
result.

An empty or missing message produces no envelope at all, which the
header composer reads as an empty-body "wake-up" push.
"""

import logging
import os
from typing import Optional, Protocol, Union

import http_ece
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from pydantic import BaseModel, ConfigDict

from webpush_sender.core.encoding import decode_key
from webpush_sender.core.exceptions import ConfigurationError
from webpush_sender.models.subscription import SubscriptionKeys

logger = logging.getLogger(__name__)

CONTENT_ENCODING = "aesgcm"
SALT_LENGTH = 16


class EncryptedEnvelope(BaseModel):
    """Ciphertext plus the parameters the receiver needs to decrypt it."""

    model_config = ConfigDict(frozen=True)

    ciphertext: bytes
    salt: bytes
    server_public_key: bytes


class Encryptor(Protocol):
    """Encryption contract consumed by the payload builder."""

    def encrypt(
        self,
        message: Union[str, bytes],
        p256dh: Union[str, bytes],
        auth: Union[str, bytes],
    ) -> EncryptedEnvelope:
        """Encrypt a message for one subscription."""


# ===================================================================
# Default Encryptor (http_ece, aesgcm)
# ===================================================================

class AesGcmEncryptor:
    """Encrypts payloads with the "aesgcm" content encoding via http_ece."""

    def encrypt(
        self,
        message: Union[str, bytes],
        p256dh: Union[str, bytes],
        auth: Union[str, bytes],
    ) -> EncryptedEnvelope:
        """
        Encrypt `message` for the receiver identified by `p256dh`/`auth`.

        A fresh server key pair and salt are generated for every call, so
        two encryptions of the same message never share ciphertext.

        Args:
            message: Plaintext; str is encoded as UTF-8.
            p256dh: Receiver's public key (base64url or raw bytes).
            auth: Receiver's auth secret (base64url or raw bytes).

        Returns:
            EncryptedEnvelope with ciphertext, salt and the uncompressed
            server public key.

        Raises:
            ConfigurationError: If the message or either key is empty.
        """
        if not message:
            raise ConfigurationError("Cannot encrypt an empty message.")
        if not p256dh or not auth:
            raise ConfigurationError("Subscription keys p256dh and auth are required.")

        if isinstance(message, str):
            message = message.encode("utf-8")

        receiver_key = decode_key(p256dh)
        auth_secret = decode_key(auth)

        server_key = ec.generate_private_key(ec.SECP256R1())
        server_public_key = server_key.public_key().public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.UncompressedPoint,
        )
        salt = os.urandom(SALT_LENGTH)

        ciphertext = http_ece.encrypt(
            message,
            salt=salt,
            private_key=server_key,
            dh=receiver_key,
            auth_secret=auth_secret,
            version=CONTENT_ENCODING,
        )

        logger.debug(
            "Encrypted push payload: plaintext=%d bytes, ciphertext=%d bytes",
            len(message),
            len(ciphertext),
        )
        return EncryptedEnvelope(
            ciphertext=ciphertext,
            salt=salt,
            server_public_key=server_public_key,
        )


# ===================================================================
# Payload Builder
# ===================================================================

def build_payload(
    message: Union[str, bytes, None],
    keys: Optional[SubscriptionKeys],
    encryptor: Optional[Encryptor] = None,
) -> Optional[EncryptedEnvelope]:
    """
    Encrypt a message for a subscription, or skip encryption entirely.

    Errors raised by the encryptor propagate unchanged.

    Args:
        message: Plaintext to deliver. None or empty means no payload.
        keys: The subscription's key material.
        encryptor: Encryption collaborator (AesGcmEncryptor by default).

    Returns:
        The encrypted envelope, or None for an empty-body push.

    Raises:
        ConfigurationError: If a message is given but the subscription
            carries no keys.
    """
    if not message:
        return None

    if keys is None:
        raise ConfigurationError(
            "Subscription keys are required to send a message payload."
        )

    encryptor = encryptor or AesGcmEncryptor()
    return encryptor.encrypt(message, keys.p256dh, keys.auth)
