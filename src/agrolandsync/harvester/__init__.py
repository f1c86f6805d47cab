"""
Harvester module for the Agroland catalog sync.

Components:
- feed: Agroland XML feed client (fetch + image download)
- pricing: purchase / sale price derivation
- html: description building and safe HTML truncation
- store: PostgreSQL stored function adapter
- upserter: per-product core / description / image upsert
- orchestrator: Fetch -> Upsert flow with once-per-day gate
- scheduler: completion-triggered run loop
"""

from .feed import FeedClient
from .html import build_description, truncate_html
from .models import FeedPhoto, FeedProduct, RunState, RunSummary, UpsertOutcome
from .orchestrator import SyncOrchestrator
from .pricing import derive_pricing
from .scheduler import RunScheduler
from .store import ProductStore
from .upserter import ProductUpserter

__all__ = [
    "FeedClient",
    "FeedPhoto",
    "FeedProduct",
    "ProductStore",
    "ProductUpserter",
    "RunScheduler",
    "RunState",
    "RunSummary",
    "SyncOrchestrator",
    "UpsertOutcome",
    "build_description",
    "derive_pricing",
    "truncate_html",
]
