from __future__ import annotations

from typing import Optional, Protocol

from ..domain.tokens import Token

__all__ = ["TokenStore"]


class TokenStore(Protocol):
    """Keyed record store for tokens.

    Implementations must tolerate concurrent calls. Records are independent,
    so no cross-record transactions are needed.
    """

    async def get(self, token_id: str) -> Optional[Token]: ...

    async def put(self, token: Token) -> None: ...

    async def delete(self, token_id: str) -> None:
        """Remove a record; a missing id is a no-op."""
        ...

    async def all(self) -> list[Token]: ...
