from __future__ import annotations

from typing import Callable

from .constants import COMPRESSION_LZ77, COMPRESSION_NONE, COMPRESSION_ZLIB
from .errors import UnsupportedCompressionError


# (compression, raw_bytes) -> decoded_bytes
Decoder = Callable[[int, bytes], bytes]

_NAMES = {
    COMPRESSION_NONE: "none",
    COMPRESSION_LZ77: "lz77",
    COMPRESSION_ZLIB: "zlib",
}


def compression_name(compression: int) -> str:
    return _NAMES.get(compression, f"unknown({compression})")


def passthrough_decoder(compression: int, raw: bytes) -> bytes:
    if compression == COMPRESSION_NONE:
        return raw
    # Unknown/unsupported codec: fail fast
    raise UnsupportedCompressionError(
        f"No decoder configured for {compression_name(compression)} payloads"
    )
