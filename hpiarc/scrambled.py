"""Positional reader over HPI archive bytes with transparent de-obfuscation.

HPI archives scramble their directory and payload bytes with a positional XOR
cipher keyed from the header. For a derived 32-bit mask ``m`` the byte ``b``
stored at absolute position ``p`` reads back as::

    ((m ^ p) ^ ~b) & 0xFF

The transform is its own inverse, so the same helpers encode and decode.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Optional

from .constants import EOF
from .errors import ArchiveNotOpenError, BufferTooSmallError, TruncatedArchiveError


logger = logging.getLogger(__name__)


def derive_mask(raw_key: int) -> int:
    # Not a true rotation; archives in the wild depend on these exact shifts.
    raw_key &= 0xFFFFFFFF
    return ~((raw_key << 2) | (raw_key >> 6)) & 0xFFFFFFFF


def scramble_byte(mask: int, position: int, value: int) -> int:
    return ((mask ^ position) ^ ~value) & 0xFF


def _keystream(mask: int, offset: int, length: int) -> bytes:
    # Keystream byte at position p is ~(m ^ p) & 0xFF, which repeats every 256 bytes.
    base = (mask & 0xFF) ^ 0xFF
    start = offset & 0xFF
    period = bytes(base ^ ((start + i) & 0xFF) for i in range(256))
    reps = length // 256 + 1
    return (period * reps)[:length]


def transform(data: bytes, mask: int, offset: int) -> bytes:
    """Apply the positional cipher to ``data`` stored at absolute ``offset``."""
    n = len(data)
    if n == 0:
        return b""
    x = int.from_bytes(data, "little") ^ int.from_bytes(_keystream(mask, offset, n), "little")
    return x.to_bytes(n, "little")


class ScrambledStream:
    """Random-access reader that owns its own cursor.

    Every read seeks the underlying file object to the stream's cursor first,
    so other users of the same file object cannot shift it.
    """

    def __init__(self, f: BinaryIO, *, owns_file: bool = False):
        self.f: Optional[BinaryIO] = f
        self._owns_file = owns_file
        self._pos = 0
        self.key = 0
        self.scrambled = False

    @classmethod
    def open(cls, path: str) -> "ScrambledStream":
        return cls(open(path, "rb"), owns_file=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        if self.f is not None and self._owns_file:
            self.f.close()
        self.f = None

    @property
    def position(self) -> int:
        return self._pos

    def set_key(self, raw_key: int):
        """Set or unset the de-obfuscation key (0 disables)."""
        if raw_key:
            self.key = derive_mask(raw_key)
            self.scrambled = True
            logger.debug(f"stream key set: raw=0x{raw_key:08X} mask=0x{self.key:08X}")
        else:
            self.key = 0
            self.scrambled = False
            logger.debug("stream key cleared; reads are pass-through")

    def seek(self, position: int):
        if position < 0:
            raise ValueError(f"Negative seek position: {position}")
        self._pos = position

    def read_byte(self) -> int:
        """Read one byte at the cursor; returns EOF (untransformed) past end of data."""
        f = self._file()
        f.seek(self._pos)
        raw = f.read(1)
        if not raw:
            return EOF
        pos = self._pos
        self._pos += 1
        if self.scrambled:
            return scramble_byte(self.key, pos, raw[0])
        return raw[0]

    def read_buffer(self, destination) -> int:
        return self._read_into(destination, len(destination))

    def read_buffer_at(self, destination, offset: int, length: int) -> int:
        if length < 0:
            raise ValueError(f"Negative read length: {length}")
        if len(destination) < length:
            raise BufferTooSmallError(
                f"Destination holds {len(destination)} bytes; {length} requested"
            )
        self.seek(offset)
        return self._read_into(destination, length)

    def read_uint8(self) -> int:
        pos = self._pos
        b = self.read_byte()
        if b == EOF:
            raise TruncatedArchiveError(f"Unexpected EOF reading u8 at offset {pos}")
        return b

    def read_uint32_le(self) -> int:
        pos = self._pos
        a = self.read_byte()
        b = self.read_byte()
        c = self.read_byte()
        d = self.read_byte()
        if EOF in (a, b, c, d):
            raise TruncatedArchiveError(f"Unexpected EOF reading u32 at offset {pos}")
        return (d << 24) | (c << 16) | (b << 8) | a

    def read_cstring(self) -> str:
        """Read bytes up to a NUL or end of data."""
        data = bytearray()
        while True:
            b = self.read_byte()
            if b == 0 or b == EOF:
                break
            data.append(b)
        return data.decode("latin-1")

    # internals
    def _file(self) -> BinaryIO:
        if self.f is None:
            raise ArchiveNotOpenError("Stream is closed")
        return self.f

    def _read_into(self, destination, length: int) -> int:
        f = self._file()
        f.seek(self._pos)
        data = f.read(length)
        n = len(data)
        if self.scrambled:
            data = transform(data, self.key, self._pos)
        destination[:n] = data
        self._pos += n
        return n
