"""
Payload Encryption Tests

Tests that:
1. build_payload skips encryption for empty or missing messages
2. build_payload delegates to the encryptor and propagates its errors
3. AesGcmEncryptor output decrypts with the receiver's key (aesgcm)
4. Every encryption uses a fresh salt and server key

Run with: pytest tests/test_encryption.py -v
"""

import os
from unittest.mock import MagicMock

import http_ece
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from webpush_sender.core.encoding import decode_key, trim_encode64
from webpush_sender.core.exceptions import ConfigurationError
from webpush_sender.models.subscription import SubscriptionKeys
from webpush_sender.services.encryption import (
    AesGcmEncryptor,
    EncryptedEnvelope,
    build_payload,
)


def _receiver() -> tuple[ec.EllipticCurvePrivateKey, SubscriptionKeys]:
    """Create a browser-side key pair and the matching subscription keys."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    public_bytes = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    keys = SubscriptionKeys(
        p256dh=trim_encode64(public_bytes),
        auth=trim_encode64(os.urandom(16)),
    )
    return private_key, keys


def _decrypt(envelope: EncryptedEnvelope, private_key, keys: SubscriptionKeys) -> bytes:
    return http_ece.decrypt(
        envelope.ciphertext,
        salt=envelope.salt,
        private_key=private_key,
        dh=envelope.server_public_key,
        auth_secret=decode_key(keys.auth),
        version="aesgcm",
    )


# ===================================================================
# Test Class: build_payload
# ===================================================================

class TestBuildPayload:
    """Tests for the payload builder."""

    @pytest.mark.parametrize("message", [None, "", b""])
    def test_empty_message_produces_no_envelope(self, message):
        encryptor = MagicMock()
        _, keys = _receiver()

        assert build_payload(message, keys, encryptor) is None
        encryptor.encrypt.assert_not_called()

    def test_empty_message_without_keys_is_fine(self):
        assert build_payload(None, None) is None

    def test_message_without_keys_raises(self):
        with pytest.raises(ConfigurationError, match="keys are required"):
            build_payload("hello", None)

    def test_delegates_to_encryptor(self):
        _, keys = _receiver()
        envelope = EncryptedEnvelope(ciphertext=b"c", salt=b"s", server_public_key=b"k")
        encryptor = MagicMock()
        encryptor.encrypt.return_value = envelope

        result = build_payload("hello", keys, encryptor)

        assert result is envelope
        encryptor.encrypt.assert_called_once_with("hello", keys.p256dh, keys.auth)

    def test_encryptor_errors_propagate_unchanged(self):
        _, keys = _receiver()
        encryptor = MagicMock()
        encryptor.encrypt.side_effect = ValueError("bad point")

        with pytest.raises(ValueError, match="bad point"):
            build_payload("hello", keys, encryptor)


# ===================================================================
# Test Class: AesGcmEncryptor
# ===================================================================

class TestAesGcmEncryptor:
    """Tests for the default http_ece-backed encryptor."""

    def test_round_trip_with_receiver_key(self):
        private_key, keys = _receiver()

        envelope = AesGcmEncryptor().encrypt("Hello, push!", keys.p256dh, keys.auth)

        assert _decrypt(envelope, private_key, keys) == b"Hello, push!"

    def test_accepts_raw_bytes_keys(self):
        private_key, keys = _receiver()
        raw_keys = SubscriptionKeys(p256dh=decode_key(keys.p256dh), auth=decode_key(keys.auth))

        envelope = AesGcmEncryptor().encrypt(b"\x00binary\xff", raw_keys.p256dh, raw_keys.auth)

        assert _decrypt(envelope, private_key, keys) == b"\x00binary\xff"

    def test_envelope_shape(self):
        _, keys = _receiver()

        envelope = AesGcmEncryptor().encrypt("hi", keys.p256dh, keys.auth)

        assert len(envelope.salt) == 16
        assert len(envelope.server_public_key) == 65
        assert envelope.server_public_key[0] == 0x04
        assert envelope.ciphertext != b"hi"

    def test_fresh_salt_and_server_key_per_call(self):
        _, keys = _receiver()
        encryptor = AesGcmEncryptor()

        first = encryptor.encrypt("same", keys.p256dh, keys.auth)
        second = encryptor.encrypt("same", keys.p256dh, keys.auth)

        assert first.salt != second.salt
        assert first.server_public_key != second.server_public_key
        assert first.ciphertext != second.ciphertext

    def test_empty_message_rejected(self):
        _, keys = _receiver()
        with pytest.raises(ConfigurationError):
            AesGcmEncryptor().encrypt("", keys.p256dh, keys.auth)

    def test_missing_auth_rejected(self):
        _, keys = _receiver()
        with pytest.raises(ConfigurationError):
            AesGcmEncryptor().encrypt("hi", keys.p256dh, "")
