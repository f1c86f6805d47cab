"""Exception taxonomy for the Agroland sync pipeline.

FeedError subclasses abort the current run only. PersistenceError and
DownloadError are caught per sub-step and never escape a single product.
"""

from __future__ import annotations

from typing import Optional


class SyncError(Exception):
    """Base class for all sync pipeline errors."""


class FeedError(SyncError):
    """Feed could not be fetched or decoded."""


class TransportError(FeedError):
    """Connectivity or timeout failure talking to the feed."""


class ProtocolError(FeedError):
    """Feed answered with a non-success status code."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(FeedError):
    """Feed body is not a valid product document."""


class PersistenceError(SyncError):
    """A stored function call against the product store failed."""


class DownloadError(SyncError):
    """A product image could not be downloaded."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


__all__ = [
    "SyncError",
    "FeedError",
    "TransportError",
    "ProtocolError",
    "DecodeError",
    "PersistenceError",
    "DownloadError",
]
