from __future__ import annotations

import asyncio
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from ..domain.scopes import PatternScope, PrefixScope
from ..domain.tokens import Token
from ..logging_conf import get_logger

__all__ = ["SqliteTokenStore"]

logger = get_logger("store.sqlite")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS tokens (
    token_id TEXT PRIMARY KEY,
    path_prefix TEXT,
    pattern TEXT,
    expiry INTEGER NOT NULL,
    CHECK ((path_prefix IS NULL) <> (pattern IS NULL))
)
"""


def _row_to_token(row: sqlite3.Row) -> Token:
    if row["pattern"] is not None:
        scope = PatternScope(pattern=row["pattern"])
    else:
        scope = PrefixScope(prefix=row["path_prefix"])
    return Token(id=row["token_id"], scope=scope, expiry_ms=row["expiry"])


class SqliteTokenStore:
    """Persistent token table backed by a single sqlite file.

    One connection is shared across worker threads and serialized by a lock;
    calls run in the default executor so the event loop is never blocked.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.execute(_SCHEMA)
        logger.info("token_db.open", extra={"event": "token_db_open", "db_path": self.db_path})

    # ------------------------
    # Blocking helpers
    # ------------------------

    def _get(self, token_id: str) -> Optional[Token]:
        with self._lock:
            row = self._conn.execute(
                "SELECT token_id, path_prefix, pattern, expiry FROM tokens WHERE token_id = ?",
                (token_id,),
            ).fetchone()
        return _row_to_token(row) if row is not None else None

    def _put(self, token: Token) -> None:
        scope = token.scope
        prefix = scope.prefix if isinstance(scope, PrefixScope) else None
        pattern = scope.pattern if isinstance(scope, PatternScope) else None
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO tokens (token_id, path_prefix, pattern, expiry) VALUES (?, ?, ?, ?)",
                (token.id, prefix, pattern, token.expiry_ms),
            )

    def _delete(self, token_id: str) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM tokens WHERE token_id = ?", (token_id,))

    def _all(self) -> list[Token]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT token_id, path_prefix, pattern, expiry FROM tokens"
            ).fetchall()
        return [_row_to_token(r) for r in rows]

    # ------------------------
    # TokenStore interface
    # ------------------------

    async def get(self, token_id: str) -> Optional[Token]:
        return await asyncio.to_thread(self._get, token_id)

    async def put(self, token: Token) -> None:
        await asyncio.to_thread(self._put, token)

    async def delete(self, token_id: str) -> None:
        await asyncio.to_thread(self._delete, token_id)

    async def all(self) -> list[Token]:
        return await asyncio.to_thread(self._all)

    def close(self) -> None:
        with self._lock:
            self._conn.close()
