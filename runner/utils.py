from __future__ import annotations

from pathlib import Path

from runner.types import SmokeError, Uploaded


def percentile(values: list[float], p: float) -> float:
    """Compute the p-th percentile using linear interpolation."""
    if not values:
        return 0.0
    s = sorted(values)
    k = (len(s) - 1) * p
    f = int(k)
    c = min(f + 1, len(s) - 1)
    if f == c:
        return s[f]
    d0 = s[f] * (c - k)
    d1 = s[c] * (k - f)
    return d0 + d1


def collect_fixtures(fixtures_dir: Path) -> list[tuple[str, bytes]]:
    """Return (posix relative path, content) for every file under fixtures_dir."""
    if not fixtures_dir.exists():
        raise SmokeError(f"fixtures directory not found: {fixtures_dir}")
    files = sorted(p for p in fixtures_dir.rglob("*") if p.is_file())
    if not files:
        raise SmokeError(f"no fixture files under {fixtures_dir}")
    return [(p.relative_to(fixtures_dir).as_posix(), p.read_bytes()) for p in files]


def top_level_names(paths: list[str]) -> set[str]:
    """First segment of each relative path: what a listing of their parent shows."""
    return {p.split("/", 1)[0] for p in paths}


def summarize(*, requested: int, uploaded: list[Uploaded], failures: list[dict]) -> tuple[dict, int]:
    """Compute the summary dict and an exit code."""
    durations = [u.elapsed_ms for u in uploaded]
    avg_ms = (sum(durations) / len(durations)) if durations else 0.0
    summary = {
        "component": "runner",
        "event": "summary",
        "requested": requested,
        "uploaded": len(uploaded),
        "bytes": sum(u.size for u in uploaded),
        "failure_count": len(failures),
        "timings": {
            "avg_ms": round(avg_ms, 2),
            "p95_ms": round(percentile(durations, 0.95), 2),
            "max_ms": round(max(durations) if durations else 0.0, 2),
        },
        "failures": failures,
    }
    exit_code = 0 if (not failures and len(uploaded) == requested) else 1
    return summary, exit_code
