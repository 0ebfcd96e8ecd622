"""
Cryptographic envelope for the Cykel vault file.

Handles:
- Passphrase derivation (Argon2id)
- Vault encryption (AES-256-GCM)
- Zeroizable secret buffers
"""

from .envelope import VaultEnvelope, encrypt, decrypt
from .errors import (
    CryptoError,
    DecryptionError,
    EncryptionError,
    InvalidFormatError,
    KeyDerivationError,
)
from .passphrase import PassphraseDeriver
from .secret import SecretBuffer

__all__ = [
    "VaultEnvelope",
    "PassphraseDeriver",
    "SecretBuffer",
    "encrypt",
    "decrypt",
    "CryptoError",
    "DecryptionError",
    "EncryptionError",
    "InvalidFormatError",
    "KeyDerivationError",
]
