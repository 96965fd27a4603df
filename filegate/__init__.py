"""filegate: a hierarchical file store gated by path-scoped capability tokens."""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("filegate")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.0.0"
