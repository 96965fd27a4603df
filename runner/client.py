from __future__ import annotations

import asyncio
import time

import httpx

from filegate.logging_conf import get_logger
from runner.types import IssueTokenError, SmokeError, Uploaded, UploadError

logger = get_logger("runner.client")


async def wait_for_health(client: httpx.AsyncClient, timeout_s: float = 20.0) -> None:
    """Ping /health until it returns ok or raise after a timeout."""
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        try:
            r = await client.get("/health")
            if r.status_code == 200 and r.json().get("ok") is True:
                logger.info("health.ok", extra={"event": "health_ok"})
                return
        except httpx.HTTPError:
            pass
        await asyncio.sleep(0.25)
    raise SmokeError("Health check did not pass within timeout")


async def issue_token(
    client: httpx.AsyncClient, admin_key: str, path_prefix: str, *, expires_in_hours: int = 1
) -> str:
    """Issue a prefix token through the admin API and return it."""
    r = await client.post(
        "/admin/tokens",
        json={"path_prefix": path_prefix, "expires_in_hours": expires_in_hours},
        headers={"X-Admin-Key": admin_key},
    )
    if r.status_code != 201:
        raise IssueTokenError(f"token issue failed ({r.status_code}): {r.text}")
    body = r.json()
    logger.info("token.issued", extra={"event": "token_issued", "path_prefix": body["path_prefix"]})
    return body["access_token"]


async def revoke_token(client: httpx.AsyncClient, admin_key: str, token: str) -> None:
    r = await client.delete(f"/admin/tokens/{token}", headers={"X-Admin-Key": admin_key})
    r.raise_for_status()


async def upload_one(
    client: httpx.AsyncClient, token: str, path: str, data: bytes, *, retries: int = 2
) -> Uploaded:
    """PUT one file, retrying transient failures."""
    last_err: Exception | None = None
    for attempt in range(retries):
        start = time.perf_counter()
        try:
            r = await client.put(f"/files/{token}/{path}", content=data)
            r.raise_for_status()
            return Uploaded(
                path=r.json()["path"],
                size=r.json()["size"],
                elapsed_ms=(time.perf_counter() - start) * 1000.0,
            )
        except httpx.HTTPError as e:
            last_err = e
            logger.warning(
                "upload.retry",
                extra={"event": "upload_retry", "path": path, "attempt": attempt + 1, "error": str(e)},
            )
    raise UploadError(f"upload failed for {path}: {last_err}")


async def upload_all(
    client: httpx.AsyncClient, token: str, files: list[tuple[str, bytes]]
) -> tuple[list[Uploaded], list[dict]]:
    """Upload files concurrently; return successes and per-file failures."""
    results = await asyncio.gather(
        *(upload_one(client, token, path, data) for path, data in files),
        return_exceptions=True,
    )
    uploaded: list[Uploaded] = []
    failures: list[dict] = []
    for (path, _), res in zip(files, results):
        if isinstance(res, BaseException):
            failures.append({"path": path, "stage": "upload", "error": str(res)})
        else:
            uploaded.append(res)
    logger.info(
        "upload.summary",
        extra={
            "event": "upload_summary",
            "requested": len(files),
            "succeeded": len(uploaded),
            "failed": len(failures),
        },
    )
    return uploaded, failures


async def fetch(client: httpx.AsyncClient, token: str, path: str) -> bytes:
    r = await client.get(f"/files/{token}/{path}")
    r.raise_for_status()
    return r.content


async def list_dir(client: httpx.AsyncClient, token: str, path: str) -> list[dict]:
    r = await client.get(f"/list/{token}/{path}")
    r.raise_for_status()
    return r.json()["items"]


async def delete(client: httpx.AsyncClient, token: str, path: str) -> int:
    """DELETE a path and return the status code (404 is a valid answer)."""
    r = await client.delete(f"/files/{token}/{path}")
    return r.status_code
