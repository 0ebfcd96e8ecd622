"""
Exceptions raised by the encryption envelope.
"""


class CryptoError(Exception):
    """Base class for envelope failures."""


class KeyDerivationError(CryptoError):
    """Argon2 rejected its parameters. This is a configuration bug, not a user error."""


class EncryptionError(CryptoError):
    """The cipher could not be constructed or failed to encrypt."""


class DecryptionError(CryptoError):
    """
    Wrong passphrase, tampered container or marker mismatch.

    The three causes are deliberately reported with the same type and message.
    """

    def __init__(self):
        super().__init__("decryption failed: wrong passphrase or corrupted data")


class InvalidFormatError(CryptoError):
    """Container is shorter than its fixed-size header."""
