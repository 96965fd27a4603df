from __future__ import annotations

from typing import Optional
from uuid import uuid4

from jose import JWTError
from jose import jwt as jose_jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidTokenError
from .scopes import PatternScope, Scope

__all__ = [
    "NEVER_EXPIRES",
    "SIGNED_ALGORITHM",
    "Token",
    "new_token_id",
    "expiry_for",
    "looks_signed",
    "encode_signed_token",
    "decode_signed_token",
]

# Expiry sentinel for tokens that never expire (largest exact integer in a JS double).
NEVER_EXPIRES = 2**53 - 1
SIGNED_ALGORITHM = "HS256"


# ------------------------
# Schema
# ------------------------
class Token(BaseModel):
    """A capability: an unguessable id bound to a path scope and an expiry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    scope: Scope
    expiry_ms: int = Field(..., ge=0)  # epoch ms, or NEVER_EXPIRES

    @property
    def never_expires(self) -> bool:
        return self.expiry_ms == NEVER_EXPIRES

    def is_expired(self, now_ms: int) -> bool:
        return not self.never_expires and now_ms > self.expiry_ms


def new_token_id() -> str:
    return str(uuid4())


def expiry_for(now_ms: int, ttl_ms: Optional[int]) -> int:
    """Absolute expiry for a ttl; None means the token never expires."""
    if ttl_ms is None:
        return NEVER_EXPIRES
    if ttl_ms < 0:
        raise ValueError("ttl_ms must be >= 0")
    expiry = now_ms + ttl_ms
    if expiry >= NEVER_EXPIRES:
        raise ValueError("ttl_ms is too large")
    return expiry


# ------------------------
# Signed (pattern) tokens
# ------------------------

def looks_signed(token_id: str) -> bool:
    """Compact JWS strings have exactly three dot-separated parts; UUIDs have none."""
    return token_id.count(".") == 2


def encode_signed_token(*, pattern: str, secret: str, expires_at_ms: Optional[int] = None) -> str:
    """Mint an HS256 JWT whose `path` claim is the granted regular expression."""
    PatternScope(pattern=pattern)  # validate before signing
    claims: dict = {"path": pattern}
    if expires_at_ms is not None and expires_at_ms != NEVER_EXPIRES:
        # exp is whole seconds; round up so the token never expires before its ttl
        claims["exp"] = -(-expires_at_ms // 1000)
    return jose_jwt.encode(claims, secret, algorithm=SIGNED_ALGORITHM)


def decode_signed_token(token: str, *, secret: str) -> Token:
    """Verify a signed token and return it as a pattern-scoped Token.

    Expiry is not checked here; callers compare `expiry_ms` against their clock.

    Raises:
        InvalidTokenError: bad signature, malformed JWT, or unusable `path` claim.
    """
    try:
        claims = jose_jwt.decode(
            token,
            secret,
            algorithms=[SIGNED_ALGORITHM],
            options={"verify_exp": False, "verify_aud": False},
        )
    except JWTError as e:
        raise InvalidTokenError(f"signed token rejected: {e}") from e

    pattern = claims.get("path")
    if not isinstance(pattern, str):
        raise InvalidTokenError("signed token has no path claim")

    exp = claims.get("exp")
    if exp is not None and not isinstance(exp, int):
        raise InvalidTokenError("signed token exp claim must be an integer")

    try:
        return Token(
            id=token,
            scope=PatternScope(pattern=pattern),
            expiry_ms=NEVER_EXPIRES if exp is None else exp * 1000,
        )
    except ValidationError as e:
        raise InvalidTokenError(f"signed token payload invalid: {e}") from e
