#!/usr/bin/env python3
"""End-to-end smoke run against a live filegate server.

Steps:
- wait for server health
- issue a directory token for a fresh smoke/<run-id>/ prefix
- upload the fixture tree concurrently
- read every file back and compare bytes
- list the run folder
- delete every file and check the run folder was pruned
- emit a compact summary and exit code
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from uuid import uuid4

import httpx

from filegate.logging_conf import get_logger, setup_logging
from runner.cli import parse_args
from runner.client import (
    delete,
    fetch,
    issue_token,
    list_dir,
    revoke_token,
    upload_all,
    wait_for_health,
)
from runner.utils import collect_fixtures, summarize, top_level_names

setup_logging()
logger = get_logger("runner")


async def run_smoke(
    client: httpx.AsyncClient,
    *,
    admin_key: str,
    fixtures_dir: Path,
    run_id: str | None = None,
    health_timeout_s: float = 20.0,
) -> tuple[dict, int]:
    await wait_for_health(client, health_timeout_s)
    files = collect_fixtures(fixtures_dir)
    run_dir = f"smoke/{run_id or uuid4().hex[:12]}"
    token = await issue_token(client, admin_key, f"{run_dir}/")

    try:
        uploaded, failures = await upload_all(
            client, token, [(f"{run_dir}/{rel}", data) for rel, data in files]
        )

        for rel, data in files:
            try:
                body = await fetch(client, token, f"{run_dir}/{rel}")
            except httpx.HTTPError as e:
                failures.append({"path": rel, "stage": "read", "error": str(e)})
                continue
            if body != data:
                failures.append({"path": rel, "stage": "read", "error": "content mismatch"})

        listed = {it["name"] for it in await list_dir(client, token, run_dir)}
        expected = top_level_names([rel for rel, _ in files])
        if listed != expected:
            failures.append(
                {"path": run_dir, "stage": "list", "error": f"expected {sorted(expected)}, got {sorted(listed)}"}
            )

        for rel, _ in files:
            code = await delete(client, token, f"{run_dir}/{rel}")
            if code != 200:
                failures.append({"path": rel, "stage": "delete", "error": f"status {code}"})

        # Deleting the last file prunes the run folder, so it must be gone now.
        code = await delete(client, token, run_dir)
        if code != 404:
            failures.append({"path": run_dir, "stage": "prune", "error": f"run folder survived ({code})"})
    finally:
        await revoke_token(client, admin_key, token)

    summary, exit_code = summarize(requested=len(files), uploaded=uploaded, failures=failures)
    logger.info("runner.summary", extra=summary)
    return summary, exit_code


async def _main_async(args) -> int:
    async with httpx.AsyncClient(base_url=args.base_url, timeout=args.timeout) as client:
        _, code = await run_smoke(client, admin_key=args.admin_key, fixtures_dir=Path(args.fixtures))
    return code


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv or sys.argv[1:])
    raise SystemExit(asyncio.run(_main_async(args)))


if __name__ == "__main__":
    main()
