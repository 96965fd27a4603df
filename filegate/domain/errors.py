from __future__ import annotations

__all__ = [
    "FileGateError",
    "InvalidPathError",
    "InvalidTokenError",
    "PathNotInScopeError",
    "NotFoundError",
    "IsDirectoryError",
    "InvalidTargetError",
    "RootDeletionError",
    "StorageIOError",
]


class FileGateError(Exception):
    """Base class for every core failure.

    The `code` attribute is the stable machine code the API maps to a response.
    """

    code: str = "error"


class InvalidPathError(FileGateError, ValueError):
    code = "invalid_path"


class InvalidTokenError(FileGateError):
    code = "invalid_token"


class PathNotInScopeError(FileGateError):
    code = "path_not_in_scope"


class NotFoundError(FileGateError):
    code = "not_found"


class IsDirectoryError(FileGateError):
    code = "is_directory"


class InvalidTargetError(FileGateError):
    code = "invalid_target"


class RootDeletionError(FileGateError):
    code = "root_deletion"


class StorageIOError(FileGateError):
    code = "io_error"
