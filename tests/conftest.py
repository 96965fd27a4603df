"""Pytest fixtures shared by the unit and HTTP tests.

Time is controlled through FakeClock and tokens live in an in-memory store,
so expiry and storage behaviour can be exercised without sleeping or a database.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

# Ensure project root on PYTHONPATH so `import filegate` works without installing
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from filegate.config import Settings  # noqa: E402
from filegate.main import create_app  # noqa: E402
from filegate.service.authorizer import RequestAuthorizer  # noqa: E402
from filegate.service.storage import StorageEngine  # noqa: E402
from filegate.service.tokens import TokenService  # noqa: E402
from filegate.store import InMemoryTokenStore  # noqa: E402

ADMIN_KEY = "test-admin-key"
SIGNING_SECRET = "test-signing-secret"
START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now_ms: int = START_MS) -> None:
        self._now = now_ms

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> None:
        self._now += ms


async def body(*chunks: bytes):
    """Async byte stream for StorageEngine.write()."""
    for chunk in chunks:
        yield chunk


async def read_all(storage: StorageEngine, path: str) -> bytes:
    chunks, _ = await storage.open_read(path)
    return b"".join([c async for c in chunks])


# ---------------------------------------------------------------------------
# Core components
# ---------------------------------------------------------------------------

@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture()
def tokens(store, clock) -> TokenService:
    return TokenService(store, clock, signing_secret=SIGNING_SECRET)


@pytest.fixture()
def authorizer(tokens) -> RequestAuthorizer:
    return RequestAuthorizer(tokens)


@pytest.fixture()
def storage_root(tmp_path) -> Path:
    root = tmp_path / "storage"
    root.mkdir()
    return root.resolve()


@pytest.fixture()
def storage(storage_root) -> StorageEngine:
    return StorageEngine(storage_root)


# ---------------------------------------------------------------------------
# HTTP app
# ---------------------------------------------------------------------------

@pytest.fixture()
def settings(storage_root) -> Settings:
    return Settings(
        storage_root=storage_root,
        admin_key=ADMIN_KEY,
        signing_secret=SIGNING_SECRET,
    )


@pytest.fixture()
def app(settings, store, clock) -> FastAPI:
    return create_app(settings, store=store, clock=clock)


@pytest.fixture()
def api_client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Key": ADMIN_KEY}
