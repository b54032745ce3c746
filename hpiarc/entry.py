from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .constants import COMPRESSION_NONE, KIND_DIR, KIND_FILE


@dataclass(frozen=True)
class FileInfo:
    data_offset: int
    length: int
    compression: int = COMPRESSION_NONE

    @property
    def compressed(self) -> bool:
        return self.compression != COMPRESSION_NONE


@dataclass
class Entry:
    index: int
    kind: int  # 0=file, 1=dir
    name: str
    path: str
    offset: int  # directory record or file record
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    info: Optional[FileInfo] = None

    @property
    def is_dir(self) -> bool:
        return self.kind == KIND_DIR

    @property
    def is_file(self) -> bool:
        return self.kind == KIND_FILE

    @property
    def size(self) -> int:
        return self.info.length if self.info is not None else 0
