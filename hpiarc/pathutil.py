from __future__ import annotations

from .errors import UnsafePathError


def norm_path(p: str) -> str:
    """Normalize archive paths to a canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments
    """
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise UnsafePathError("Path may not contain '..'")
    return "/".join(parts)


def check_name(name: str) -> str:
    """Validate a single entry name as stored in a directory descriptor."""
    if not name or name in (".", ".."):
        raise UnsafePathError(f"Invalid entry name {name!r}")
    if "/" in name or "\\" in name:
        raise UnsafePathError(f"Entry name may not contain separators: {name!r}")
    return name


def join_path(parent: str, name: str) -> str:
    # "A" + "B" -> "A/B"; top-level names have an empty parent
    if not parent:
        return name
    return parent + "/" + name


def path_key(p: str) -> str:
    """Case-insensitive lookup key for an archive path."""
    return norm_path(p).lower()
