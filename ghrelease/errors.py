"""Error types raised while publishing a release."""
from __future__ import annotations

from typing import Any, Dict, Optional


class ReleaseError(Exception):
    """Base class for every failure that aborts a release run."""


class ConfigurationError(ReleaseError):
    """Missing or invalid settings, credentials or release options."""


class ConflictError(ReleaseError):
    """Raised when a release already exists and the run must not continue."""

    def __init__(self, release_name: str, repository_id: str):
        self.release_name = release_name
        self.repository_id = repository_id
        super().__init__(f"Release {release_name} already exists in {repository_id}. Not creating")


class NetworkError(ReleaseError):
    """Transport-level failure talking to the API."""


class RemoteAPIError(ReleaseError):
    """The API rejected a release or asset operation."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        prefix = f"HTTP {status_code}: " if status_code is not None else ""
        super().__init__(f"{prefix}{message}")
