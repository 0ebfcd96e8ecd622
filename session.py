"""
Vault session: the locked/unlocked state of the running app.

While unlocked the session holds the passphrase (in a SecretBuffer) and the
decrypted VaultData. Every read and write of the aggregate goes through one
exclusive lock.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from cycles import rebuild_cycles
from models import VaultData
from storage import VaultOpenError, VaultStore, StorageIOError
from vault import SecretBuffer

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Base class for session state errors."""


class SessionLockedError(SessionError):
    """The vault is locked."""

    def __init__(self):
        super().__init__("app is locked")


class VaultExistsError(SessionError):
    """Setup was requested but a vault file already exists."""


class _Unlocked:
    """Unlocked state: the passphrase and the decrypted aggregate."""

    def __init__(self, passphrase: SecretBuffer, data: VaultData):
        self.passphrase = passphrase
        self.data = data


class VaultSession:
    """Two-state machine: locked, or unlocked with a passphrase and aggregate."""

    def __init__(self, store: VaultStore):
        self.store = store
        self._lock = threading.Lock()
        self._state: Optional[_Unlocked] = None

    @property
    def is_unlocked(self) -> bool:
        return self._state is not None

    def is_setup(self) -> bool:
        return self.store.exists()

    def setup(self, passphrase: str) -> None:
        """
        Create an empty vault sealed with the passphrase and unlock it.

        Raises:
            VaultExistsError: If a vault file is already present
        """
        with self._lock:
            if self.store.exists():
                raise VaultExistsError("a vault already exists; wipe it before setting up again")
            secret = SecretBuffer(passphrase)
            data = VaultData()
            try:
                self.store.save(secret.value, data)
            except BaseException:
                secret.wipe()
                raise
            self._replace_state(_Unlocked(secret, data))
        logger.info("Vault created and unlocked")

    def unlock(self, passphrase: str) -> bool:
        """
        Try to open the vault.

        On success the cycles are rebuilt from the day logs and the vault is
        re-saved, so stale derived data heals itself.

        Returns:
            True if unlocked, False on a wrong passphrase, a corrupted vault or
            a missing file. A failed attempt leaves the session locked.
        """
        secret = SecretBuffer(passphrase)
        with self._lock:
            try:
                data = self.store.load(secret.value)
            except VaultOpenError:
                secret.wipe()
                logger.warning("Unlock failed: cannot open vault")
                return False
            except StorageIOError as e:
                secret.wipe()
                logger.warning(f"Unlock failed: {e}")
                return False

            data.cycles = rebuild_cycles(data.day_logs)
            try:
                self.store.save(secret.value, data)
            except BaseException:
                secret.wipe()
                raise
            self._replace_state(_Unlocked(secret, data))
        logger.info("Vault unlocked")
        return True

    def lock(self) -> None:
        """Scrub the passphrase and drop the aggregate."""
        with self._lock:
            self._replace_state(None)
        logger.info("Vault locked")

    def _replace_state(self, state: Optional[_Unlocked]) -> None:
        previous = self._state
        self._state = state
        if previous is not None and previous is not state:
            previous.passphrase.wipe()
            previous.data = None

    @contextmanager
    def read(self) -> Iterator[VaultData]:
        """
        Hold the session lock for a read of the aggregate.

        Raises:
            SessionLockedError: If the vault is locked
        """
        with self._lock:
            yield self._require_unlocked().data

    @contextmanager
    def write(self) -> Iterator[VaultData]:
        """
        Hold the session lock for a mutation, then persist.

        The aggregate is saved under the held passphrase when the block exits
        without an exception.

        Raises:
            SessionLockedError: If the vault is locked
        """
        with self._lock:
            state = self._require_unlocked()
            yield state.data
            self.store.save(state.passphrase.value, state.data)

    def wipe(self) -> None:
        """Lock the session and delete the vault file in one step."""
        with self._lock:
            self._replace_state(None)
            self.store.wipe()
        logger.info("Vault locked and wiped")

    def _require_unlocked(self) -> _Unlocked:
        if self._state is None:
            raise SessionLockedError()
        return self._state
