"""Common infrastructure utilities."""

from __future__ import annotations

from .retry_provider import RetryingMediaProvider

__all__ = [
    "RetryingMediaProvider",
]
