from __future__ import annotations

import threading
from typing import Optional

from ..domain.tokens import Token

__all__ = ["InMemoryTokenStore"]


class InMemoryTokenStore:
    """Lock-guarded dict of tokens. Contents are lost on restart."""

    def __init__(self) -> None:
        self._tokens: dict[str, Token] = {}
        # Held only for dict operations, never across an await.
        self._lock = threading.Lock()

    async def get(self, token_id: str) -> Optional[Token]:
        with self._lock:
            return self._tokens.get(token_id)

    async def put(self, token: Token) -> None:
        with self._lock:
            self._tokens[token.id] = token

    async def delete(self, token_id: str) -> None:
        with self._lock:
            self._tokens.pop(token_id, None)

    async def all(self) -> list[Token]:
        with self._lock:
            return list(self._tokens.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
