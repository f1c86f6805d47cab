"""
agrolandsync - scheduled Agroland catalog sync into the local product store.

Provides:
- SyncService: scheduled worker (run once now, then every interval)
- SyncOrchestrator: one fetch -> upsert run
- truncate_html / derive_pricing: description and pricing rules

Usage:
    from agrolandsync import SyncService

    service = SyncService()
    await service.start()
    ...
    await service.stop()
"""

__version__ = "0.1.0"

from .config import SyncConfig, get_config
from .errors import (
    DecodeError,
    DownloadError,
    FeedError,
    PersistenceError,
    ProtocolError,
    SyncError,
    TransportError,
)
from .harvester import (
    FeedClient,
    ProductStore,
    ProductUpserter,
    RunScheduler,
    SyncOrchestrator,
    derive_pricing,
    truncate_html,
)
from .service import SyncService

__all__ = [
    "__version__",
    # Config
    "SyncConfig",
    "get_config",
    # Pipeline
    "FeedClient",
    "ProductStore",
    "ProductUpserter",
    "RunScheduler",
    "SyncOrchestrator",
    "SyncService",
    "derive_pricing",
    "truncate_html",
    # Errors
    "SyncError",
    "FeedError",
    "TransportError",
    "ProtocolError",
    "DecodeError",
    "PersistenceError",
    "DownloadError",
]
