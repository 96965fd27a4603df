import asyncio

import pytest
from jose import jwt as jose_jwt

from filegate.domain.errors import InvalidTokenError
from filegate.domain.scopes import PatternScope, PrefixScope
from filegate.domain.tokens import (
    NEVER_EXPIRES,
    Token,
    decode_signed_token,
    encode_signed_token,
    expiry_for,
    looks_signed,
)
from filegate.service.tokens import SigningDisabledError, TokenService
from tests.conftest import SIGNING_SECRET, START_MS

HOUR_MS = 60 * 60 * 1000


# ---------------------------------------------------------------------------
# Domain helpers
# ---------------------------------------------------------------------------

def test_expiry_for():
    assert expiry_for(1000, None) == NEVER_EXPIRES
    assert expiry_for(1000, 500) == 1500
    with pytest.raises(ValueError):
        expiry_for(1000, -1)


def test_token_expiry_is_strictly_after():
    token = Token(id="t", scope=PrefixScope(prefix=""), expiry_ms=1000)
    assert not token.is_expired(1000)
    assert token.is_expired(1001)
    forever = Token(id="f", scope=PrefixScope(prefix=""), expiry_ms=NEVER_EXPIRES)
    assert forever.never_expires
    assert not forever.is_expired(NEVER_EXPIRES + 1)


def test_looks_signed():
    assert looks_signed("aaa.bbb.ccc")
    assert not looks_signed("3f2b8c1e-7d4a-4c1b-9a55-0f1e2d3c4b5a")


def test_signed_token_round_trip_keeps_pattern_and_expiry():
    raw = encode_signed_token(pattern="^public/", secret=SIGNING_SECRET, expires_at_ms=START_MS + 5000)
    token = decode_signed_token(raw, secret=SIGNING_SECRET)
    assert token.id == raw
    assert token.scope == PatternScope(pattern="^public/")
    assert token.expiry_ms == START_MS + 5000


def test_signed_token_wrong_secret_is_invalid():
    raw = encode_signed_token(pattern=".*", secret="other-secret")
    with pytest.raises(InvalidTokenError):
        decode_signed_token(raw, secret=SIGNING_SECRET)


@pytest.mark.parametrize("claims", [{"path": "(broken"}, {"sub": "no-path"}, {"path": 42}])
def test_signed_token_bad_payload_is_invalid(claims):
    raw = jose_jwt.encode(claims, SIGNING_SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        decode_signed_token(raw, secret=SIGNING_SECRET)


def test_garbage_signed_token_is_invalid():
    with pytest.raises(InvalidTokenError):
        decode_signed_token("not.a.jwt", secret=SIGNING_SECRET)


# ---------------------------------------------------------------------------
# TokenService
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_issue_and_lookup(tokens):
    token = await tokens.issue(PrefixScope(prefix="docs/"), ttl_ms=HOUR_MS)
    assert token.expiry_ms == START_MS + HOUR_MS
    assert await tokens.lookup(token.id) == token


@pytest.mark.asyncio
async def test_issued_ids_are_unique(tokens):
    ids = {(await tokens.issue(PrefixScope(prefix=""), ttl_ms=None)).id for _ in range(50)}
    assert len(ids) == 50


@pytest.mark.asyncio
async def test_never_expiring_token_survives_time(tokens, clock):
    token = await tokens.issue(PrefixScope(prefix="uploads/"), ttl_ms=None)
    assert token.never_expires
    clock.advance(10 * 365 * 24 * HOUR_MS)
    assert await tokens.lookup(token.id) == token


@pytest.mark.asyncio
async def test_expired_lookup_matches_unknown_and_evicts(tokens, store, clock):
    token = await tokens.issue(PrefixScope(prefix="a/"), ttl_ms=1000)

    clock.advance(1000)
    assert await tokens.lookup(token.id) is not None  # exactly at expiry is still valid

    clock.advance(1)
    expired = await tokens.lookup(token.id)
    unknown = await tokens.lookup("never-issued")
    assert expired is None and unknown is None
    assert await store.get(token.id) is None


@pytest.mark.asyncio
async def test_lookup_empty_id(tokens):
    assert await tokens.lookup("") is None


@pytest.mark.asyncio
async def test_revoke_is_idempotent(tokens):
    token = await tokens.issue(PrefixScope(prefix=""), ttl_ms=None)
    await tokens.revoke(token.id)
    await tokens.revoke(token.id)
    await tokens.revoke("does-not-exist")
    assert await tokens.lookup(token.id) is None


@pytest.mark.asyncio
async def test_sweep_removes_only_expired(tokens, store, clock):
    short = await tokens.issue(PrefixScope(prefix="a/"), ttl_ms=1000)
    long = await tokens.issue(PrefixScope(prefix="b/"), ttl_ms=HOUR_MS)
    forever = await tokens.issue(PrefixScope(prefix="c/"), ttl_ms=None)

    clock.advance(5000)
    assert await tokens.sweep() == 1
    assert {t.id for t in await store.all()} == {long.id, forever.id}
    assert await store.get(short.id) is None
    assert await tokens.sweep() == 0


@pytest.mark.asyncio
async def test_run_sweeper_evicts_in_background(tokens, store, clock):
    token = await tokens.issue(PrefixScope(prefix="a/"), ttl_ms=10)
    clock.advance(11)

    task = asyncio.create_task(tokens.run_sweeper(0.01))
    try:
        for _ in range(100):
            if await store.get(token.id) is None:
                break
            await asyncio.sleep(0.01)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
    assert await store.get(token.id) is None


@pytest.mark.asyncio
async def test_signed_tokens_through_service(tokens, store, clock):
    token = await tokens.issue_signed(r"^public/", ttl_ms=2000)
    assert isinstance(token.scope, PatternScope)
    assert await store.all() == []  # signed tokens are never stored

    found = await tokens.lookup(token.id)
    assert found is not None and found.scope.pattern == "^public/"

    clock.advance(2001)
    assert await tokens.lookup(token.id) is None


@pytest.mark.asyncio
async def test_signed_token_never_expires_without_ttl(tokens, clock):
    token = await tokens.issue_signed(".*", ttl_ms=None)
    clock.advance(10 * 365 * 24 * HOUR_MS)
    assert await tokens.lookup(token.id) is not None


@pytest.mark.asyncio
async def test_tampered_signed_token_is_rejected(tokens):
    token = await tokens.issue_signed("^a/", ttl_ms=None)
    head, payload, sig = token.id.split(".")
    forged = jose_jwt.encode({"path": ".*"}, "attacker", algorithm="HS256").split(".")[1]
    assert await tokens.lookup(f"{head}.{forged}.{sig}") is None


@pytest.mark.asyncio
async def test_signing_disabled(store, clock):
    service = TokenService(store, clock)
    with pytest.raises(SigningDisabledError):
        await service.issue_signed(".*", ttl_ms=None)

    raw = encode_signed_token(pattern=".*", secret=SIGNING_SECRET)
    assert await service.lookup(raw) is None


def test_expiry_for_rejects_overflowing_ttl():
    with pytest.raises(ValueError):
        expiry_for(START_MS, NEVER_EXPIRES)


@pytest.mark.asyncio
async def test_issue_with_overflowing_ttl_stores_nothing(tokens, store):
    with pytest.raises(ValueError):
        await tokens.issue(PrefixScope(prefix="a/"), ttl_ms=NEVER_EXPIRES)
    assert await store.all() == []


@pytest.mark.asyncio
async def test_signed_expiry_rounds_up_to_whole_seconds(tokens, clock):
    clock.advance(400)
    token = await tokens.issue_signed(".*", ttl_ms=1500)  # expires at +1900 ms
    assert token.expiry_ms == START_MS + 2000

    clock.advance(600)
    assert await tokens.lookup(token.id) is not None
    clock.advance(1000)
    assert await tokens.lookup(token.id) is not None
    clock.advance(1)
    assert await tokens.lookup(token.id) is None
