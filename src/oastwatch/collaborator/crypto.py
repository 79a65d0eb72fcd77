"""
Session Key Material

RSA key pair generated per registration. The server encrypts each poll's
AES key to the public half; interaction entries are AES-256-CFB encrypted
with that key and prefixed with their IV.
"""

import base64
import binascii

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.decrepit.ciphers.modes import CFB
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from ..core.exceptions import DecodeError

RSA_KEY_SIZE = 2048
AES_BLOCK_SIZE = 16


class SessionKeys:
    """
    Key pair owned by a single registered session.

    The private key never leaves this object.
    """

    def __init__(self, key_size: int = RSA_KEY_SIZE) -> None:
        self._private_key = rsa.generate_private_key(
            public_exponent=65537, key_size=key_size, backend=default_backend()
        )

    @property
    def public_key_b64(self) -> str:
        """PEM-encoded public key, base64 wrapped, as sent at registration."""
        pem = self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return base64.b64encode(pem).decode("ascii")

    def decrypt_aes_key(self, encrypted_key: str) -> bytes:
        """
        Recover the AES key delivered with a poll response.

        Args:
            encrypted_key: Base64 RSA-OAEP (SHA-256) ciphertext

        Returns:
            Raw AES key bytes

        Raises:
            DecodeError: If the key cannot be decoded or decrypted
        """
        try:
            return self._private_key.decrypt(
                base64.b64decode(encrypted_key),
                padding.OAEP(
                    mgf=padding.MGF1(algorithm=hashes.SHA256()),
                    algorithm=hashes.SHA256(),
                    label=None,
                ),
            )
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Failed to decrypt session AES key: {e}") from e

    def __repr__(self) -> str:
        return "SessionKeys(<redacted>)"


def decrypt_entry(aes_key: bytes, encrypted_entry: str) -> str:
    """
    Decrypt one interaction entry.

    Args:
        aes_key: Key recovered with SessionKeys.decrypt_aes_key
        encrypted_entry: Base64 of IV followed by AES-CFB ciphertext

    Returns:
        Entry plaintext

    Raises:
        DecodeError: If the entry cannot be decoded or decrypted
    """
    try:
        blob = base64.b64decode(encrypted_entry)
        if len(blob) < AES_BLOCK_SIZE:
            raise ValueError("ciphertext shorter than IV")

        cipher = Cipher(
            algorithms.AES(aes_key),
            CFB(blob[:AES_BLOCK_SIZE]),
            backend=default_backend(),
        )
        decryptor = cipher.decryptor()
        plaintext = decryptor.update(blob[AES_BLOCK_SIZE:]) + decryptor.finalize()
        return plaintext.decode("utf-8").strip()
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Failed to decrypt log entry: {e}") from e
