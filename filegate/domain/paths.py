from __future__ import annotations

import os
from pathlib import Path

from .errors import InvalidPathError

__all__ = [
    "ROOT",
    "canonicalize",
    "to_absolute",
    "parent_of",
    "basename",
]

# The canonical form of the storage root itself.
ROOT = ""


def canonicalize(raw: str) -> str:
    """Turn an untrusted client path into a canonical, root-relative path.

    Rules:
    - Backslashes become forward slashes.
    - Empty and "." segments are dropped, so a leading "/" is reinterpreted
      as root-relative rather than rejected.
    - ".." pops the previous segment; popping past the root is rejected.
    - NUL characters are rejected.
    - "", "/" and "." all normalize to "" (the storage root).

    Raises:
        InvalidPathError: if the path is not a string or would escape the root.
    """
    if not isinstance(raw, str):
        raise InvalidPathError("path must be a string")
    if "\x00" in raw:
        raise InvalidPathError("path contains a NUL character")

    segments: list[str] = []
    for seg in raw.replace("\\", "/").split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            if not segments:
                raise InvalidPathError("path escapes the storage root")
            segments.pop()
            continue
        segments.append(seg)
    return "/".join(segments)


def to_absolute(path: str, root: Path) -> Path:
    """Join a canonical path onto the storage root.

    This is the only place a request path becomes a filesystem location.
    """
    if path == ROOT:
        return root
    candidate = root.joinpath(*path.split("/"))
    # Re-check containment in case a non-canonical string slipped through.
    if os.path.commonpath([str(root), os.path.normpath(candidate)]) != str(root):
        raise InvalidPathError("path escapes the storage root")
    return candidate


def parent_of(path: str) -> str:
    """Return the canonical parent of a canonical path ("" for top-level items)."""
    head, _, _ = path.rpartition("/")
    return head


def basename(path: str) -> str:
    """Return the last segment of a canonical path ("" for the root)."""
    return path.rpartition("/")[2]
