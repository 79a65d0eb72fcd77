"""
Unit tests for session key material and entry decryption.
"""

import base64
import warnings

import pytest
from cryptography.utils import CryptographyDeprecationWarning

from oastwatch.collaborator.crypto import SessionKeys, decrypt_entry
from oastwatch.core.exceptions import DecodeError


@pytest.fixture(scope="module")
def keys() -> SessionKeys:
    """Provide one key pair for the module (generation is slow)."""
    return SessionKeys()


class TestSessionKeys:
    """Tests for the per-session RSA key pair."""

    def test_public_key_is_base64_pem(self, keys):
        pem = base64.b64decode(keys.public_key_b64)
        assert pem.startswith(b"-----BEGIN PUBLIC KEY-----")

    def test_repr_hides_key(self, keys):
        assert "redacted" in repr(keys)

    def test_round_trip_through_server_encryption(self, keys, encrypt):
        body = encrypt(keys.public_key_b64, ['{"protocol": "smb"}', "second"])

        aes_key = keys.decrypt_aes_key(body["aes_key"])

        assert len(aes_key) == 32
        assert [decrypt_entry(aes_key, item) for item in body["data"]] == [
            '{"protocol": "smb"}',
            "second",
        ]

    def test_foreign_key_rejected(self, keys, encrypt):
        other = SessionKeys()
        body = encrypt(other.public_key_b64, ["x"])

        with pytest.raises(DecodeError):
            keys.decrypt_aes_key(body["aes_key"])

    def test_garbage_key_rejected(self, keys):
        with pytest.raises(DecodeError):
            keys.decrypt_aes_key(base64.b64encode(b"garbage").decode())


class TestDecryptEntry:
    """Tests for AES-CFB entry decryption."""

    def test_short_ciphertext_rejected(self):
        with pytest.raises(DecodeError):
            decrypt_entry(b"\x00" * 32, base64.b64encode(b"short").decode())

    def test_bad_key_length_rejected(self):
        blob = base64.b64encode(b"\x00" * 32).decode()
        with pytest.raises(DecodeError):
            decrypt_entry(b"\x00" * 7, blob)

    def test_decryption_raises_no_deprecation_warnings(self, keys, encrypt):
        with warnings.catch_warnings():
            warnings.simplefilter("error", CryptographyDeprecationWarning)
            body = encrypt(keys.public_key_b64, ["quiet"])
            aes_key = keys.decrypt_aes_key(body["aes_key"])
            assert decrypt_entry(aes_key, body["data"][0]) == "quiet"
