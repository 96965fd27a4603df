from __future__ import annotations

import asyncio
from typing import Optional

from ..domain.clock import Clock
from ..domain.errors import InvalidTokenError
from ..domain.scopes import PatternScope, PrefixScope
from ..domain.tokens import (
    Token,
    decode_signed_token,
    encode_signed_token,
    expiry_for,
    looks_signed,
    new_token_id,
)
from ..logging_conf import get_logger
from ..store.base import TokenStore

__all__ = ["SigningDisabledError", "TokenService"]

logger = get_logger("service.tokens")


class SigningDisabledError(RuntimeError):
    """Raised when a signed token is requested but no signing secret is configured."""


class TokenService:
    """Issue, look up, revoke and expire capability tokens.

    Stored tokens live in the injected TokenStore. Signed tokens carry their
    scope in the token string and are only verified, never stored.
    """

    def __init__(self, store: TokenStore, clock: Clock, *, signing_secret: Optional[str] = None) -> None:
        self.store = store
        self.clock = clock
        self.signing_secret = signing_secret

    async def issue(self, scope: PrefixScope | PatternScope, *, ttl_ms: Optional[int]) -> Token:
        """Create and persist a token; `ttl_ms=None` never expires."""
        token = Token(
            id=new_token_id(),
            scope=scope,
            expiry_ms=expiry_for(self.clock.now_ms(), ttl_ms),
        )
        await self.store.put(token)
        logger.info(
            "token.issue",
            extra={
                "event": "token_issue",
                "scope": scope.model_dump(),
                "expiry_ms": None if token.never_expires else token.expiry_ms,
            },
        )
        return token

    async def issue_signed(self, pattern: str, *, ttl_ms: Optional[int]) -> Token:
        """Mint a signed pattern token. Nothing is persisted."""
        if not self.signing_secret:
            raise SigningDisabledError("SIGNING_SECRET is not configured")
        expires_at = None if ttl_ms is None else expiry_for(self.clock.now_ms(), ttl_ms)
        raw = encode_signed_token(pattern=pattern, secret=self.signing_secret, expires_at_ms=expires_at)
        logger.info("token.issue_signed", extra={"event": "token_issue_signed", "pattern": pattern})
        return decode_signed_token(raw, secret=self.signing_secret)

    async def lookup(self, token_id: str) -> Optional[Token]:
        """Return the live token for `token_id`, or None.

        Unknown, malformed and expired ids all yield None. An expired stored
        token is deleted on the way out.
        """
        if not token_id:
            return None

        if self.signing_secret and looks_signed(token_id):
            try:
                token = decode_signed_token(token_id, secret=self.signing_secret)
            except InvalidTokenError as e:
                logger.info("token.invalid_signed", extra={"event": "token_invalid_signed", "error": str(e)})
                return None
            if token.is_expired(self.clock.now_ms()):
                logger.info("token.expired", extra={"event": "token_expired", "signed": True})
                return None
            return token

        token = await self.store.get(token_id)
        if token is None:
            return None
        if token.is_expired(self.clock.now_ms()):
            await self.store.delete(token_id)
            logger.info("token.expired", extra={"event": "token_expired", "token_id": token_id})
            return None
        return token

    async def revoke(self, token_id: str) -> None:
        await self.store.delete(token_id)
        logger.info("token.revoke", extra={"event": "token_revoke", "token_id": token_id})

    async def sweep(self) -> int:
        """Delete every stored token past its expiry; return how many went."""
        now = self.clock.now_ms()
        removed = 0
        for token in await self.store.all():
            if token.is_expired(now):
                await self.store.delete(token.id)
                removed += 1
        if removed:
            logger.info("token.sweep", extra={"event": "token_sweep", "removed": removed})
        return removed

    async def run_sweeper(self, interval_s: float) -> None:
        """Sweep forever on a fixed interval until cancelled."""
        while True:
            await asyncio.sleep(interval_s)
            try:
                await self.sweep()
            except Exception:
                logger.exception("token.sweep_failed", extra={"event": "token_sweep_failed"})
