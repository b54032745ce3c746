"""
hpiarc: reader for HAPI (.hpi) game asset archives.

- Header validation (HAPI/BANK magics, two known versions) with a tagged
  open result: a walked HpiReader or an InvalidArchive carrying the reason.
- Transparent removal of the positional XOR scrambling keyed from the header.
- Depth-first catalog of every directory and file with full forward-slash paths.
- Raw payload retrieval; decompression is left to a pluggable decoder.
"""

from .catalog import HpiReader, InvalidArchive, open_archive
from .entry import Entry, FileInfo
from .scrambled import ScrambledStream

__version__ = "0.1"

__all__ = [
    "constants",
    "errors",
    "catalog",
    "scrambled",
    "codec",
    "HpiReader",
    "InvalidArchive",
    "open_archive",
    "Entry",
    "FileInfo",
    "ScrambledStream",
]
