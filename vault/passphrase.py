"""
Passphrase derivation using Argon2id.

The passphrase is stretched into the AES-256 key that seals the vault file.
"""

from typing import Union

from argon2.exceptions import HashingError
from argon2.low_level import hash_secret_raw, Type

from .errors import KeyDerivationError

Passphrase = Union[str, bytes, bytearray, memoryview]


class PassphraseDeriver:
    """Derives encryption keys from passphrases using Argon2id."""

    # Argon2id parameters
    TIME_COST = 3  # iterations
    MEMORY_COST = 65536  # 64 MiB
    PARALLELISM = 1
    HASH_LEN = 32  # 256 bits for AES-256
    SALT_LEN = 32

    @classmethod
    def derive_key(cls, passphrase: Passphrase, salt: bytes) -> bytearray:
        """
        Derive a 256-bit key from a passphrase and salt using Argon2id.

        Args:
            passphrase: The user's passphrase, as text or as raw UTF-8 bytes
            salt: Salt bytes stored in the vault header

        Returns:
            The derived key in a mutable buffer, so the caller can zero it

        Raises:
            KeyDerivationError: If Argon2 rejects the parameters
        """
        if isinstance(passphrase, str):
            secret = passphrase.encode("utf-8")
        else:
            secret = bytes(passphrase)

        try:
            derived_key = hash_secret_raw(
                secret=secret,
                salt=bytes(salt),
                time_cost=cls.TIME_COST,
                memory_cost=cls.MEMORY_COST,
                parallelism=cls.PARALLELISM,
                hash_len=cls.HASH_LEN,
                type=Type.ID,  # Argon2id
            )
        except HashingError as e:
            raise KeyDerivationError(f"Argon2id derivation failed: {e}") from e

        return bytearray(derived_key)
