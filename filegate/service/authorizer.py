from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..domain.errors import InvalidPathError
from ..domain.paths import canonicalize
from ..domain.scopes import matches
from ..domain.tokens import Token
from ..logging_conf import get_logger
from .tokens import TokenService

__all__ = ["DenialReason", "Allowed", "Denied", "AuthDecision", "RequestAuthorizer"]

logger = get_logger("service.authorizer")


class DenialReason(str, Enum):
    invalid_path = "invalid_path"
    invalid_token = "invalid_token"
    path_not_in_scope = "path_not_in_scope"


@dataclass(frozen=True)
class Allowed:
    path: str  # canonical
    token: Token


@dataclass(frozen=True)
class Denied:
    reason: DenialReason
    message: str = ""


AuthDecision = Union[Allowed, Denied]


class RequestAuthorizer:
    """Single gate in front of every storage operation reached by a token."""

    def __init__(self, tokens: TokenService) -> None:
        self.tokens = tokens

    async def authorize(self, token_id: str, raw_path: str) -> AuthDecision:
        try:
            path = canonicalize(raw_path)
        except InvalidPathError as e:
            return self._deny(DenialReason.invalid_path, str(e), raw_path)

        token = await self.tokens.lookup(token_id)
        if token is None:
            return self._deny(DenialReason.invalid_token, "invalid or expired token", path)

        if not matches(token.scope, path):
            return self._deny(DenialReason.path_not_in_scope, "path is outside the token's scope", path)

        return Allowed(path=path, token=token)

    @staticmethod
    def _deny(reason: DenialReason, message: str, path: str) -> Denied:
        logger.info("auth.denied", extra={"event": "auth_denied", "reason": reason.value, "path": path})
        return Denied(reason=reason, message=message)
