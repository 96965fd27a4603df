from __future__ import annotations

import secrets
from datetime import UTC, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from pydantic import ValidationError

from ..config import Settings
from ..domain.errors import FileGateError, InvalidPathError
from ..domain.paths import canonicalize
from ..domain.scopes import prefix_scope
from ..domain.tokens import Token
from ..logging_conf import get_logger
from ..service.tokens import SigningDisabledError
from .deps import get_settings, get_storage, get_tokens
from .errors import http_error
from .models import (
    DeleteItemRequest,
    DeleteResponse,
    ListResponse,
    SignedTokenCreateRequest,
    TokenCreateRequest,
    TokenCreateResponse,
)

logger = get_logger("api.admin")


def require_admin(request: Request, x_admin_key: Optional[str] = Header(None)) -> None:
    """Check the X-Admin-Key header against ADMIN_KEY in constant time."""
    expected = get_settings(request).admin_key
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error_code": "admin_disabled", "error_message": "ADMIN_KEY is not configured"},
        )
    if x_admin_key is None or not secrets.compare_digest(x_admin_key.encode(), expected.encode()):
        logger.warning("admin.denied", extra={"event": "admin_denied", "path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error_code": "invalid_admin_key", "error_message": "missing or wrong X-Admin-Key"},
        )


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _ttl_ms(expires_in_hours: Optional[int], settings: Settings) -> Optional[int]:
    """None -> server default, 0 -> never, n -> n hours."""
    if expires_in_hours is None:
        return settings.default_ttl_ms
    if expires_in_hours == 0:
        return None
    return expires_in_hours * 60 * 60 * 1000


def _expires_at(token: Token) -> Optional[datetime]:
    if token.never_expires:
        return None
    return datetime.fromtimestamp(token.expiry_ms / 1000, UTC)


def _bad_request(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error_code": code, "error_message": message},
    )


@router.post(
    "/tokens",
    response_model=TokenCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a prefix token",
)
async def create_token(request: Request, req: TokenCreateRequest) -> TokenCreateResponse:
    settings = get_settings(request)
    try:
        scope = prefix_scope(req.path_prefix, req.kind)
    except InvalidPathError as e:
        raise http_error(e)

    token = await get_tokens(request).issue(scope, ttl_ms=_ttl_ms(req.expires_in_hours, settings))
    base = settings.public_base_url or str(request.base_url).rstrip("/")
    return TokenCreateResponse(
        access_token=token.id,
        scope_type=scope.type,
        path_prefix=scope.prefix,
        expires_at=_expires_at(token),
        access_url_preview=f"{base}/files/{token.id}/{scope.prefix}",
    )


@router.post(
    "/tokens/signed",
    response_model=TokenCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a signed pattern token",
)
async def create_signed_token(request: Request, req: SignedTokenCreateRequest) -> TokenCreateResponse:
    settings = get_settings(request)
    try:
        token = await get_tokens(request).issue_signed(
            req.pattern, ttl_ms=_ttl_ms(req.expires_in_hours, settings)
        )
    except SigningDisabledError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error_code": "signing_disabled", "error_message": str(e)},
        )
    except ValidationError:
        raise _bad_request("invalid_pattern", "pattern is not a valid regular expression")

    return TokenCreateResponse(
        access_token=token.id,
        scope_type="pattern",
        pattern=req.pattern,
        expires_at=_expires_at(token),
    )


@router.delete(
    "/tokens/{token_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke a token (idempotent)",
)
async def revoke_token(request: Request, token_id: str) -> None:
    await get_tokens(request).revoke(token_id)


@router.get("/files", response_model=ListResponse, summary="List any folder")
async def list_files(request: Request, path: str = Query("", description="Folder relative to the root")) -> ListResponse:
    try:
        canonical = canonicalize(path)
        items = await get_storage(request).list(canonical)
    except FileGateError as e:
        raise http_error(e)
    return ListResponse(path=canonical, items=items)


@router.post("/delete-item", response_model=DeleteResponse, summary="Delete any file or folder")
async def delete_item(request: Request, req: DeleteItemRequest) -> DeleteResponse:
    if not req.path:
        raise _bad_request("invalid_path", "path is required")
    try:
        canonical = canonicalize(req.path)
        await get_storage(request).delete(canonical)
    except FileGateError as e:
        raise http_error(e)
    logger.info("admin.delete_item", extra={"event": "admin_delete_item", "path": canonical})
    return DeleteResponse(path=canonical)
