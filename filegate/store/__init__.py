"""TokenStore implementations: a keyed record store for capability tokens."""
from .base import TokenStore
from .memory import InMemoryTokenStore
from .sqlite import SqliteTokenStore

__all__ = ["TokenStore", "InMemoryTokenStore", "SqliteTokenStore"]
