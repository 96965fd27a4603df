from __future__ import annotations

from fastapi import HTTPException, status

from ..domain.errors import FileGateError
from ..service.authorizer import Denied

__all__ = ["STATUS_BY_CODE", "http_error", "denial_error"]

# Stable mapping so clients can tell "not authorized" from "not found" from "server fault".
STATUS_BY_CODE: dict[str, int] = {
    "invalid_path": status.HTTP_400_BAD_REQUEST,
    "invalid_token": status.HTTP_401_UNAUTHORIZED,
    "path_not_in_scope": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "is_directory": status.HTTP_409_CONFLICT,
    "invalid_target": status.HTTP_400_BAD_REQUEST,
    "root_deletion": status.HTTP_403_FORBIDDEN,
    "io_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"error_code": code, "error_message": message},
    )


def http_error(exc: FileGateError) -> HTTPException:
    return _error(exc.code, str(exc))


def denial_error(denied: Denied) -> HTTPException:
    return _error(denied.reason.value, denied.message)
