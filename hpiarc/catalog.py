from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, List, Optional, Set, Union

from .codec import Decoder, passthrough_decoder
from .constants import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_ENTRIES,
    ENTRY_DESC_SIZE,
    KIND_DIR,
    KIND_FILE,
)
from .entry import Entry, FileInfo
from .errors import (
    ArchiveNotOpenError,
    BufferTooSmallError,
    CatalogError,
    CatalogLimitError,
    DirectoryCycleError,
    DuplicatePathError,
    HpiError,
    NotAFileError,
    TruncatedArchiveError,
)
from .header import Header, read_header
from .pathutil import check_name, join_path, norm_path, path_key
from .scrambled import ScrambledStream


logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", BinaryIO]


@dataclass(frozen=True)
class InvalidArchive:
    """Result of opening a source whose header does not validate.

    Behaves like an empty catalog so listing code keeps working.
    """

    source: Any
    reason: str

    @property
    def valid(self) -> bool:
        return False

    @property
    def entries(self) -> List[Entry]:
        return []

    def list(self) -> List[Entry]:
        return []

    def find(self, path: str) -> Optional[Entry]:
        return None

    def children(self, handle: Optional[int] = None) -> List[Entry]:
        return []

    def listdir(self, path: str = "") -> List[str]:
        if norm_path(path):
            raise FileNotFoundError(path)
        return []

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class HpiReader:
    """Catalog of an HPI archive.

    ``open()`` validates the header and, when it passes, walks the whole
    directory tree before returning. A header that fails validation leaves the
    reader with ``valid == False``, ``invalid_reason`` set, and no entries.
    """

    def __init__(
        self,
        source: Source,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.source = source
        self.max_entries = max_entries
        self.max_depth = max_depth
        self.stream: Optional[ScrambledStream] = None
        self.header: Optional[Header] = None
        self.entries: List[Entry] = []
        self.valid = False
        self.invalid_reason: Optional[str] = None
        self._by_key: Dict[str, int] = {}
        self._paths: Set[str] = set()
        self._top: List[int] = []
        self._ancestors: Set[int] = set()
        self._building = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.stream is not None or self.valid or self.invalid_reason is not None:
            return
        if hasattr(self.source, "read"):
            self.stream = ScrambledStream(self.source)  # type: ignore[arg-type]
        else:
            self.stream = ScrambledStream.open(os.fspath(self.source))  # type: ignore[arg-type]
        try:
            try:
                header = read_header(self.stream)
            except TruncatedArchiveError:
                reason: Optional[str] = "Archive too short for header"
            else:
                reason = header.problem()
            if reason is not None:
                logger.warning(f"rejecting {self.source!r}: {reason}")
                self.invalid_reason = reason
                self.close()
                return
            self.header = header
            self.stream.set_key(header.key)
            self._building = True
            self._read_directory("", header.directory_offset, parent=None, depth=0)
            self._building = False
            self.valid = True
            logger.info(
                f"opened {self.source!r}: {len(self.entries)} entries, "
                f"version 0x{header.version:08X}, scrambled={self.stream.scrambled}"
            )
        except (HpiError, OSError, ValueError) as exc:
            # No partial catalogs: drop whatever the walk produced
            self._building = False
            self.entries = []
            self._by_key = {}
            self._paths = set()
            self._top = []
            self._ancestors = set()
            self.close()
            raise exc

    def close(self):
        if self.stream is not None:
            self.stream.close()
            self.stream = None

    def list(self) -> List[Entry]:
        return self.entries

    # tree walk
    def walk_directory(
        self,
        parent_path: str,
        directory_name: str,
        offset: int,
        *,
        parent: Optional[int] = None,
        depth: int = 1,
    ) -> int:
        """Append the directory at ``parent_path/directory_name`` and walk it.

        Returns the index of the new entry in ``entries``.
        """
        self._check_building()
        idx = self._append(KIND_DIR, parent_path, directory_name, offset, parent)
        self._read_directory(self.entries[idx].path, offset, parent=idx, depth=depth)
        return idx

    def walk_file(
        self,
        parent_path: str,
        file_name: str,
        offset: int,
        *,
        parent: Optional[int] = None,
    ) -> int:
        self._check_building()
        s = self._require_stream()
        s.seek(offset)
        data_offset = s.read_uint32_le()
        length = s.read_uint32_le()
        compression = s.read_uint8()
        info = FileInfo(data_offset=data_offset, length=length, compression=compression)
        return self._append(KIND_FILE, parent_path, file_name, offset, parent, info)

    # lookup
    def entry(self, handle: int) -> Entry:
        return self.entries[handle]

    def find(self, path: str) -> Optional[Entry]:
        """Case-insensitive path lookup; among case variants the first in catalog order wins."""
        idx = self._by_key.get(path_key(path))
        return None if idx is None else self.entries[idx]

    def children(self, handle: Optional[int] = None) -> List[Entry]:
        if handle is None:
            return [self.entries[i] for i in self._top]
        return [self.entries[i] for i in self.entries[handle].children]

    def listdir(self, path: str = "") -> List[str]:
        if not norm_path(path):
            return [e.name for e in self.children(None)]
        e = self.find(path)
        if e is None:
            raise FileNotFoundError(path)
        if not e.is_dir:
            raise NotADirectoryError(path)
        return [c.name for c in self.children(e.index)]

    # data
    def get_data(self, entry: Union[Entry, int], destination) -> int:
        """Copy the raw (possibly still compressed) payload into ``destination``.

        Returns the number of bytes copied, which is short only when the
        archive ends before the declared length.
        """
        e = self._resolve(entry)
        if not e.is_file or e.info is None:
            raise NotAFileError(f"Not a file: {e.path}")
        info = e.info
        if len(destination) < info.length:
            raise BufferTooSmallError(
                f"Destination holds {len(destination)} bytes; {e.path} needs {info.length}"
            )
        return self._require_stream().read_buffer_at(destination, info.data_offset, info.length)

    def read_raw(self, entry: Union[Entry, int]) -> bytes:
        e = self._resolve(entry)
        buf = bytearray(e.size)
        n = self.get_data(e, buf)
        if n != e.size:
            raise TruncatedArchiveError(
                f"Payload of {e.path} truncated: {n} of {e.size} bytes present"
            )
        return bytes(buf)

    def read(self, entry: Union[Entry, int], decoder: Optional[Decoder] = None) -> bytes:
        e = self._resolve(entry)
        raw = self.read_raw(e)
        assert e.info is not None
        return (decoder or passthrough_decoder)(e.info.compression, raw)

    def extract(self, entry: Union[Entry, int], out_path: str, decoder: Optional[Decoder] = None):
        e = self._resolve(entry)
        if e.is_dir:
            os.makedirs(out_path, exist_ok=True)
            return
        data = self.read(e, decoder)
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "wb") as wf:
            wf.write(data)

    # internals
    def _require_stream(self) -> ScrambledStream:
        if self.stream is None:
            raise ArchiveNotOpenError("Archive not open")
        return self.stream

    def _resolve(self, entry: Union[Entry, int]) -> Entry:
        if isinstance(entry, Entry):
            return entry
        return self.entries[entry]

    def _check_building(self):
        if not self._building:
            raise CatalogError("Catalog is sealed; entries are only added while opening")

    def _read_directory(self, path: str, offset: int, *, parent: Optional[int], depth: int):
        if depth > self.max_depth:
            raise CatalogLimitError(f"Directory nesting exceeds {self.max_depth} at {path!r}")
        if offset in self._ancestors:
            raise DirectoryCycleError(f"Directory record at {offset} contains itself ({path!r})")
        s = self._require_stream()
        s.seek(offset)
        count = s.read_uint32_le()
        list_offset = s.read_uint32_le()
        if count > self.max_entries - len(self.entries):
            raise CatalogLimitError(f"Directory {path!r} declares {count} entries")
        logger.debug(f"walking {path or '/'!r} at {offset}: {count} entries")
        self._ancestors.add(offset)
        for i in range(count):
            s.seek(list_offset + i * ENTRY_DESC_SIZE)
            name_offset = s.read_uint32_le()
            record_offset = s.read_uint32_le()
            kind = s.read_uint8()
            s.seek(name_offset)
            name = check_name(s.read_cstring())
            if kind == KIND_DIR:
                self.walk_directory(path, name, record_offset, parent=parent, depth=depth + 1)
            elif kind == KIND_FILE:
                self.walk_file(path, name, record_offset, parent=parent)
            else:
                raise CatalogError(f"Unknown entry kind {kind} for {join_path(path, name)!r}")
        self._ancestors.discard(offset)

    def _append(
        self,
        kind: int,
        parent_path: str,
        name: str,
        offset: int,
        parent: Optional[int],
        info: Optional[FileInfo] = None,
    ) -> int:
        check_name(name)
        path = norm_path(join_path(parent_path, name))
        if path in self._paths:
            raise DuplicatePathError(f"Duplicate path in archive: {path}")
        if len(self.entries) >= self.max_entries:
            raise CatalogLimitError(f"Archive has more than {self.max_entries} entries")
        idx = len(self.entries)
        self.entries.append(
            Entry(index=idx, kind=kind, name=name, path=path, offset=offset, parent=parent, info=info)
        )
        self._paths.add(path)
        # first of several case variants wins lookups
        self._by_key.setdefault(path.lower(), idx)
        if parent is None:
            self._top.append(idx)
        else:
            self.entries[parent].children.append(idx)
        return idx


def open_archive(source: Source, **kwargs) -> Union[HpiReader, InvalidArchive]:
    """Open ``source`` and return either a walked reader or an InvalidArchive.

    Check ``result.valid`` (or ``isinstance``) before reading data.
    """
    reader = HpiReader(source, **kwargs)
    reader.open()
    if reader.valid:
        return reader
    return InvalidArchive(source=source, reason=reader.invalid_reason or "invalid archive")
