import httpx
import pytest

from runner.smoke import run_smoke
from runner.types import SmokeError, Uploaded
from runner.utils import collect_fixtures, percentile, summarize, top_level_names
from tests.conftest import ADMIN_KEY


@pytest.fixture()
def fixtures_dir(tmp_path):
    fx = tmp_path / "fixtures"
    (fx / "docs" / "specs").mkdir(parents=True)
    (fx / "img" / "icons").mkdir(parents=True)
    (fx / "readme.txt").write_bytes(b"hello\n")
    (fx / "docs" / "notes.md").write_bytes(b"# notes\n")
    (fx / "docs" / "specs" / "table.csv").write_bytes(b"id,value\n1,a\n")
    (fx / "img" / "icons" / "pixel.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (fx / "empty.bin").write_bytes(b"")
    return fx


def test_percentile():
    assert percentile([], 0.95) == 0.0
    assert percentile([5.0], 0.5) == 5.0
    assert percentile([1.0, 2.0, 3.0, 4.0], 0.5) == pytest.approx(2.5)
    assert percentile([3.0, 1.0, 2.0], 1.0) == 3.0


def test_collect_fixtures(fixtures_dir):
    files = collect_fixtures(fixtures_dir)
    paths = [p for p, _ in files]
    assert paths == sorted(paths)
    assert "docs/specs/table.csv" in paths
    assert dict(files)["empty.bin"] == b""
    assert top_level_names(paths) == {"readme.txt", "docs", "img", "empty.bin"}


def test_collect_fixtures_missing_dir(tmp_path):
    with pytest.raises(SmokeError):
        collect_fixtures(tmp_path / "nope")


def test_summarize_exit_codes():
    ok = [Uploaded(path="a", size=3, elapsed_ms=10.0), Uploaded(path="b", size=4, elapsed_ms=20.0)]
    summary, code = summarize(requested=2, uploaded=ok, failures=[])
    assert code == 0
    assert summary["bytes"] == 7
    assert summary["timings"]["avg_ms"] == 15.0

    _, code = summarize(requested=3, uploaded=ok, failures=[])
    assert code == 1

    _, code = summarize(requested=2, uploaded=ok, failures=[{"path": "a", "stage": "read", "error": "x"}])
    assert code == 1


@pytest.mark.asyncio
async def test_smoke_run_against_app(app, storage_root, fixtures_dir):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        summary, code = await run_smoke(
            client, admin_key=ADMIN_KEY, fixtures_dir=fixtures_dir, run_id="t1", health_timeout_s=2.0
        )

    assert code == 0, summary["failures"]
    assert summary["uploaded"] == 5
    # every file deleted, so the whole smoke/ chain was pruned
    assert not (storage_root / "smoke").exists()
    assert storage_root.exists()


@pytest.mark.asyncio
async def test_smoke_run_bad_admin_key(app, fixtures_dir):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        with pytest.raises(SmokeError):
            await run_smoke(client, admin_key="wrong", fixtures_dir=fixtures_dir, health_timeout_s=2.0)
