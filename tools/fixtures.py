#!/usr/bin/env python3
"""Write the nested fixture tree the smoke runner uploads.

Nesting matters: uploads must create intermediate folders, and deleting the
files must prune them again.
"""
from __future__ import annotations

import base64
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
FX = ROOT / "fixtures"

# Deterministic 1x1 PNG (transparent) via base64, to avoid external deps
_PNG_1x1 = base64.b64decode(
    b"iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/x8AAwMCAO6wZSYAAAAASUVORK5CYII="
)

FILES = [
    (FX / "readme.txt", b"hello from the smoke run\n"),
    (FX / "docs" / "notes.md", b"# notes\n\n- tiny fixture file\n"),
    (FX / "docs" / "specs" / "table.csv", b"id,value\n1,alpha\n"),
    (FX / "docs" / "specs" / "config.json", b"{\n  \"ok\": true\n}\n"),
    (FX / "img" / "icons" / "small" / "pixel.png", _PNG_1x1),
    (FX / "empty.bin", b""),
]


def main() -> None:
    for path, data in FILES:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    created = [str(p.relative_to(ROOT)) for p, _ in FILES if p.exists()]
    print("Created fixtures:")
    for c in created:
        print(" -", c)
    if len(created) != len(FILES):
        raise SystemExit(f"Expected {len(FILES)} fixtures, found {len(created)}")


if __name__ == "__main__":
    main()
