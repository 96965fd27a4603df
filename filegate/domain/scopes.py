from __future__ import annotations

import posixpath
import re
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .paths import ROOT, canonicalize

__all__ = [
    "ScopeKind",
    "PrefixScope",
    "PatternScope",
    "Scope",
    "prefix_scope",
    "matches",
]

ScopeKind = Literal["file", "directory"]


class PrefixScope(BaseModel):
    """Grant by path prefix.

    - ""          -> the whole tree
    - "docs/"     -> the directory "docs" and everything under it
    - "report.pdf" -> exactly that one file
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["prefix"] = "prefix"
    prefix: str

    @field_validator("prefix")
    @classmethod
    def _must_be_canonical(cls, v: str) -> str:
        body = v[:-1] if v.endswith("/") else v
        if v == "/" or canonicalize(body) != body:
            raise ValueError("prefix must be a canonical path")
        return v

    @property
    def is_directory(self) -> bool:
        return self.prefix == ROOT or self.prefix.endswith("/")


class PatternScope(BaseModel):
    """Grant by regular expression, searched (unanchored) in the canonical path."""

    model_config = ConfigDict(frozen=True)

    type: Literal["pattern"] = "pattern"
    pattern: str

    @field_validator("pattern")
    @classmethod
    def _must_compile(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"pattern is not a valid regular expression: {e}") from e
        return v


Scope = Annotated[Union[PrefixScope, PatternScope], Field(discriminator="type")]


def prefix_scope(raw: str, kind: Optional[ScopeKind] = None) -> PrefixScope:
    """Build a PrefixScope from an issuance path.

    `kind` decides file vs directory when given. Without it, a trailing "/"
    means directory, and otherwise a last segment with no extension is taken
    as a directory.
    """
    path = canonicalize(raw)
    if path == ROOT:
        return PrefixScope(prefix=ROOT)

    if kind is None:
        trailing = raw.replace("\\", "/").endswith("/")
        _, ext = posixpath.splitext(posixpath.basename(path))
        kind = "directory" if trailing or not ext else "file"

    return PrefixScope(prefix=f"{path}/" if kind == "directory" else path)


def matches(scope: PrefixScope | PatternScope, path: str) -> bool:
    """Return True if the canonical `path` falls inside `scope`."""
    if isinstance(scope, PatternScope):
        return re.search(scope.pattern, path) is not None

    prefix = scope.prefix
    if prefix == ROOT:
        return True
    if prefix.endswith("/"):
        # The directory itself matches with or without the trailing slash.
        return path.startswith(prefix) or path + "/" == prefix
    return path == prefix
