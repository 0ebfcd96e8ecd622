"""
Vault file encryption.

Uses AES-256-GCM with a key derived from the user's passphrase (Argon2id).
Container layout:

    salt (32) || nonce (12) || AES-GCM ciphertext + tag

The plaintext is prefixed with a fixed marker before sealing. After a
successful decrypt the marker is checked as a second passphrase gate.
"""

import os
import hmac

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import DecryptionError, EncryptionError, InvalidFormatError
from .passphrase import Passphrase, PassphraseDeriver
from .secret import wipe_bytes


class VaultEnvelope:
    """Seals and opens the vault container."""

    SALT_LEN = PassphraseDeriver.SALT_LEN
    NONCE_LEN = 12  # 96 bits for AES-GCM
    TAG_LEN = 16
    MAGIC = b"CYKEL_V1"
    HEADER_LEN = SALT_LEN + NONCE_LEN
    MIN_LEN = HEADER_LEN + len(MAGIC)

    @classmethod
    def encrypt(cls, passphrase: Passphrase, plaintext: bytes) -> bytes:
        """
        Encrypt plaintext with a passphrase.

        A fresh salt and nonce are drawn on every call, so every call also
        runs a fresh key derivation.

        Args:
            passphrase: The vault passphrase
            plaintext: Bytes to seal

        Returns:
            salt || nonce || ciphertext (tag appended by the cipher)
        """
        salt = os.urandom(cls.SALT_LEN)
        nonce = os.urandom(cls.NONCE_LEN)

        key = PassphraseDeriver.derive_key(passphrase, salt)
        payload = bytearray(cls.MAGIC)
        payload += plaintext
        try:
            aesgcm = AESGCM(key)
            ciphertext = aesgcm.encrypt(nonce, payload, None)
        except (ValueError, TypeError, OverflowError) as e:
            raise EncryptionError(f"encryption failed: {e}") from e
        finally:
            wipe_bytes(key)
            wipe_bytes(payload)

        return salt + nonce + ciphertext

    @classmethod
    def decrypt(cls, passphrase: Passphrase, container: bytes) -> bytes:
        """
        Decrypt a container produced by encrypt().

        Args:
            passphrase: The vault passphrase
            container: Raw vault file contents

        Returns:
            The original plaintext

        Raises:
            InvalidFormatError: Container is too short to hold the header and marker
            DecryptionError: Wrong passphrase, or the container was altered
        """
        if len(container) < cls.MIN_LEN:
            raise InvalidFormatError(
                f"vault container is {len(container)} bytes, need at least {cls.MIN_LEN}"
            )

        salt = container[:cls.SALT_LEN]
        nonce = container[cls.SALT_LEN:cls.HEADER_LEN]
        ciphertext = container[cls.HEADER_LEN:]

        key = PassphraseDeriver.derive_key(passphrase, salt)
        try:
            decrypted = bytearray(AESGCM(key).decrypt(nonce, ciphertext, None))
        except (InvalidTag, ValueError):
            raise DecryptionError() from None
        finally:
            wipe_bytes(key)

        try:
            marker = bytes(decrypted[:len(cls.MAGIC)])
            if not hmac.compare_digest(marker, cls.MAGIC):
                raise DecryptionError()
            return bytes(decrypted[len(cls.MAGIC):])
        finally:
            wipe_bytes(decrypted)


def encrypt(passphrase: Passphrase, plaintext: bytes) -> bytes:
    """Module-level shortcut for VaultEnvelope.encrypt."""
    return VaultEnvelope.encrypt(passphrase, plaintext)


def decrypt(passphrase: Passphrase, container: bytes) -> bytes:
    """Module-level shortcut for VaultEnvelope.decrypt."""
    return VaultEnvelope.decrypt(passphrase, container)
