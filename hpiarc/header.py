from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .constants import (
    BANK_MAGIC,
    HAPI_MAGIC,
    HDR_OFF_BANK_MAGIC,
    HDR_OFF_DIRECTORY,
    HDR_OFF_HAPI_MAGIC,
    HDR_OFF_KEY,
    HDR_OFF_VERSION,
    SUPPORTED_VERSIONS,
)
from .scrambled import ScrambledStream


@dataclass(frozen=True)
class Header:
    hapi_magic: int
    bank_magic: int
    directory_offset: int
    key: int
    version: int

    def problem(self) -> Optional[str]:
        """Return why this header is unusable, or None when it validates."""
        if self.hapi_magic != HAPI_MAGIC:
            return f"Bad archive magic 0x{self.hapi_magic:08X}"
        if self.bank_magic != BANK_MAGIC:
            return f"Bad bank magic 0x{self.bank_magic:08X}"
        if self.version not in SUPPORTED_VERSIONS:
            return f"Unsupported version 0x{self.version:08X}"
        return None


def _field(stream: ScrambledStream, offset: int) -> int:
    stream.seek(offset)
    return stream.read_uint32_le()


def read_header(stream: ScrambledStream) -> Header:
    # Fields are read before any key is set, so they are always clear text.
    return Header(
        hapi_magic=_field(stream, HDR_OFF_HAPI_MAGIC),
        bank_magic=_field(stream, HDR_OFF_BANK_MAGIC),
        directory_offset=_field(stream, HDR_OFF_DIRECTORY),
        key=_field(stream, HDR_OFF_KEY),
        version=_field(stream, HDR_OFF_VERSION),
    )
