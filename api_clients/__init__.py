"""API clients for external services."""

from .directory_client import DirectoryApiClient

__all__ = [
    "DirectoryApiClient",
]
