from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Uploaded:
    """A fixture file uploaded during the smoke run."""

    path: str  # path under the run prefix
    size: int
    elapsed_ms: float


class SmokeError(RuntimeError):
    """Raised when the smoke flow cannot proceed (e.g., health never ready)."""


class IssueTokenError(SmokeError):
    """Raised when the admin API refuses to issue the run token."""


class UploadError(SmokeError):
    """Raised when uploading a single file fails after retries."""
