from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..domain.scopes import ScopeKind
from ..service.storage import StorageItem

# A century; keeps expiry within datetime and sqlite INTEGER range.
MAX_TTL_HOURS = 24 * 365 * 100


class WriteResponse(BaseModel):
    """Result of a successful upload."""
    success: bool = True
    path: str
    size: int


class DeleteResponse(BaseModel):
    """Result of a successful delete (ancestors may have been pruned too)."""
    success: bool = True
    path: str


class ListResponse(BaseModel):
    """Directory listing: folders first, then files, each by name."""
    path: str
    items: list[StorageItem]


class TokenCreateRequest(BaseModel):
    """Issue a prefix token.

    `kind` pins file vs directory; without it a trailing "/" or a missing
    extension means directory. `expires_in_hours=0` never expires; omitted
    uses the server default.
    """
    path_prefix: str
    kind: Optional[ScopeKind] = None
    expires_in_hours: Optional[int] = Field(default=None, ge=0, le=MAX_TTL_HOURS)


class SignedTokenCreateRequest(BaseModel):
    """Issue a signed token whose scope is a regular expression."""
    pattern: str
    expires_in_hours: Optional[int] = Field(default=None, ge=0, le=MAX_TTL_HOURS)


class TokenCreateResponse(BaseModel):
    access_token: str
    scope_type: str
    path_prefix: Optional[str] = None
    pattern: Optional[str] = None
    expires_at: Optional[datetime] = None  # None -> never
    access_url_preview: Optional[str] = None


class DeleteItemRequest(BaseModel):
    path: str
