"""
Encrypted on-disk storage for the vault.

The whole VaultData aggregate is serialized to JSON, sealed with the
passphrase and written as a single file. There is no partial load or save.
"""

import os
import json
import logging
import tempfile
from pathlib import Path
from typing import Optional

from config import config
from models import VaultData
from vault import VaultEnvelope, CryptoError, DecryptionError, InvalidFormatError
from vault.passphrase import Passphrase

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base class for vault storage failures."""


class VaultOpenError(StorageError):
    """
    The vault could not be opened.

    Raised for a wrong passphrase, a corrupted or truncated file, and a payload
    that decrypts but does not deserialize. The underlying error is kept as
    __cause__.
    """

    def __init__(self):
        super().__init__("cannot open vault")


class StorageIOError(StorageError):
    """Filesystem error while reading, writing or deleting the vault."""


def serialize(data: VaultData) -> bytes:
    """Canonical byte encoding of the aggregate."""
    return json.dumps(data.to_dict(), ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def deserialize(raw: bytes) -> VaultData:
    return VaultData.from_dict(json.loads(raw.decode("utf-8")))


def export_json(data: VaultData) -> str:
    """Pretty-printed plaintext export."""
    return json.dumps(data.to_dict(), ensure_ascii=False, indent=2)


class VaultStore:
    """Reads and writes the encrypted vault file."""

    def __init__(self, vault_path: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            vault_path: Path to the vault file. Defaults to the per-user
                application data location from config.
        """
        self.vault_path = Path(vault_path) if vault_path is not None else config.vault_path

    def exists(self) -> bool:
        """Check if a vault file has been written."""
        return self.vault_path.exists()

    def save(self, passphrase: Passphrase, data: VaultData) -> None:
        """
        Encrypt and write the aggregate, replacing any previous file.

        The container is written to a temporary file in the same directory and
        renamed over the vault, so a crash mid-write leaves the old file intact.

        Args:
            passphrase: Passphrase to seal the vault with
            data: The full aggregate
        """
        plaintext = serialize(data)
        try:
            container = VaultEnvelope.encrypt(passphrase, plaintext)
        except CryptoError as e:
            raise StorageError(f"could not encrypt vault: {e}") from e

        try:
            self.vault_path.parent.mkdir(parents=True, exist_ok=True)
            self._write_atomic(container)
        except OSError as e:
            raise StorageIOError(f"could not write vault to {self.vault_path}: {e}") from e

        logger.info(f"Vault saved ({len(container)} bytes)")

    def _write_atomic(self, container: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.vault_path.name}.", suffix=".tmp", dir=self.vault_path.parent
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(container)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.vault_path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def load(self, passphrase: Passphrase) -> VaultData:
        """
        Read and decrypt the vault.

        Args:
            passphrase: The vault passphrase

        Returns:
            The decrypted aggregate

        Raises:
            VaultOpenError: Wrong passphrase, corrupted file or unreadable payload
            StorageIOError: The file could not be read
        """
        try:
            container = self.vault_path.read_bytes()
        except OSError as e:
            raise StorageIOError(f"could not read vault at {self.vault_path}: {e}") from e

        try:
            plaintext = VaultEnvelope.decrypt(passphrase, container)
        except (DecryptionError, InvalidFormatError) as e:
            raise VaultOpenError() from e
        except CryptoError as e:
            raise StorageError(f"could not decrypt vault: {e}") from e

        try:
            return deserialize(plaintext)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise VaultOpenError() from e

    def wipe(self) -> None:
        """Delete the vault file. Missing file is not an error."""
        try:
            self.vault_path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageIOError(f"could not delete vault at {self.vault_path}: {e}") from e
        logger.info("Vault file deleted")
