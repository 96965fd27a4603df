from __future__ import annotations

from collections.abc import AsyncIterator
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from starlette.datastructures import UploadFile

from ..domain.errors import FileGateError, InvalidTargetError
from ..domain.paths import basename
from ..domain.scopes import PrefixScope
from ..service.authorizer import Allowed, Denied
from ..service.storage import CHUNK_SIZE
from .deps import get_authorizer, get_storage
from .errors import denial_error, http_error
from .models import DeleteResponse, ListResponse, WriteResponse

router = APIRouter(tags=["files"])


async def _authorize(request: Request, token: str, path: str) -> Allowed:
    decision = await get_authorizer(request).authorize(token, path)
    if isinstance(decision, Denied):
        raise denial_error(decision)
    return decision


async def _iter_upload(upload: UploadFile) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


@router.get("/files/{token}/{path:path}", summary="Download a file")
async def read_file(request: Request, token: str, path: str) -> StreamingResponse:
    """Stream a file the token grants; directories are not downloadable."""
    allowed = await _authorize(request, token, path)
    try:
        chunks, size = await get_storage(request).open_read(allowed.path)
    except FileGateError as e:
        raise http_error(e)
    return StreamingResponse(
        chunks,
        media_type="application/octet-stream",
        headers={
            "Content-Length": str(size),
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(basename(allowed.path))}",
        },
    )


@router.put("/files/{token}/{path:path}", response_model=WriteResponse, summary="Upload a file (raw body)")
async def put_file(request: Request, token: str, path: str) -> WriteResponse:
    """Stream the request body to the file, creating parent folders."""
    allowed = await _authorize(request, token, path)
    try:
        size = await get_storage(request).write(allowed.path, request.stream())
    except FileGateError as e:
        raise http_error(e)
    return WriteResponse(path=allowed.path, size=size)


@router.patch("/files/{token}/{path:path}", response_model=WriteResponse, summary="Upload a file (multipart)")
async def patch_file(request: Request, token: str, path: str) -> WriteResponse:
    """Store the `file` form field at the path, creating parent folders.

    The form is parsed only after the token is accepted.
    """
    allowed = await _authorize(request, token, path)
    form = await request.form()
    try:
        file = form.get("file")
        if not isinstance(file, UploadFile):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"error_code": "missing_file", "error_message": "multipart field 'file' is required"},
            )
        size = await get_storage(request).write(allowed.path, _iter_upload(file))
    except FileGateError as e:
        raise http_error(e)
    finally:
        await form.close()
    return WriteResponse(path=allowed.path, size=size)


@router.delete("/files/{token}/{path:path}", response_model=DeleteResponse, summary="Delete a file or folder")
async def delete_file(request: Request, token: str, path: str) -> DeleteResponse:
    allowed = await _authorize(request, token, path)
    try:
        await get_storage(request).delete(allowed.path)
    except FileGateError as e:
        raise http_error(e)
    return DeleteResponse(path=allowed.path)


async def _list(request: Request, token: str, path: str) -> ListResponse:
    allowed = await _authorize(request, token, path)
    scope = allowed.token.scope
    if isinstance(scope, PrefixScope) and not scope.is_directory:
        # Listing auto-creates folders; a single-file grant must not turn its file into one.
        raise http_error(InvalidTargetError(f"token grants a single file: {allowed.path}"))
    try:
        items = await get_storage(request).list(allowed.path)
    except FileGateError as e:
        raise http_error(e)
    return ListResponse(path=allowed.path, items=items)


@router.get("/list/{token}", response_model=ListResponse, summary="List the storage root")
async def list_root(request: Request, token: str) -> ListResponse:
    return await _list(request, token, "")


@router.get("/list/{token}/{path:path}", response_model=ListResponse, summary="List a folder")
async def list_dir(request: Request, token: str, path: str) -> ListResponse:
    return await _list(request, token, path)
