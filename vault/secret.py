"""
Mutable buffers for passphrases and derived keys.

Python strings and bytes are immutable, so a secret held in one can only be
dropped, never erased. SecretBuffer keeps the secret in a bytearray that is
overwritten with zeros when the holder is done with it.
"""

from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


class SecretBuffer:
    """A bytearray that is zeroed on release."""

    def __init__(self, value: Union[str, BytesLike]):
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._buf: bytearray | None = bytearray(value)

    @property
    def value(self) -> bytearray:
        """The live buffer. Do not keep references past wipe()."""
        if self._buf is None:
            raise ValueError("secret buffer has been wiped")
        return self._buf

    @property
    def is_wiped(self) -> bool:
        return self._buf is None

    def wipe(self) -> None:
        """Overwrite every byte with zero and release the buffer."""
        if self._buf is None:
            return
        wipe_bytes(self._buf)
        self._buf = None

    def __len__(self) -> int:
        return 0 if self._buf is None else len(self._buf)

    def __enter__(self) -> "SecretBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        state = "wiped" if self._buf is None else f"{len(self._buf)} bytes"
        return f"<SecretBuffer {state}>"

    __str__ = __repr__


def wipe_bytes(buf: bytearray) -> None:
    """Zero a bytearray in place."""
    buf[:] = bytes(len(buf))
