"""
Sync Orchestrator.

Drives one full run: Fetch -> per-item Upsert -> summary.
Gated to one completed run per calendar day; a failed fetch leaves the gate
open so the next scheduler tick retries.
"""

import logging
from datetime import datetime
from typing import Optional

from ..errors import FeedError, PersistenceError
from .feed import FeedClient
from .models import ItemResult, RunState, RunSummary
from .store import ProductStore
from .upserter import ProductUpserter

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Orchestrates the Fetch -> Upsert flow for the Agroland feed.

    Owns RunState exclusively. The scheduler guarantees run_once is never
    re-entered, so no locking is needed.
    """

    def __init__(
        self,
        feed: FeedClient,
        store: ProductStore,
        upserter: ProductUpserter,
        state: Optional[RunState] = None,
    ):
        self.feed = feed
        self.store = store
        self.upserter = upserter
        self.state = state or RunState()

    def already_synced(self, now: datetime) -> bool:
        last = self.state.last_full_sync_date
        return last is not None and last >= now.date()

    async def run_once(self, now: datetime) -> Optional[RunSummary]:
        """Run a full sync unless one already completed on ``now``'s date.

        Returns:
            RunSummary for an attempted run, None for a gated no-op tick.
        """
        self.state.last_run_at = now

        if self.already_synced(now):
            logger.debug(f"Catalog already synced on {self.state.last_full_sync_date}")
            return None

        summary = RunSummary(started_at=now)

        try:
            products = await self.feed.fetch()
        except FeedError as e:
            return self._fail(summary, e, "Error while fetching products")

        summary.total = len(products)
        summary.skipped = self.feed.last_skipped

        completed = False
        try:
            async with self.store:
                logger.info(f"Attempting to update {summary.total} products in database")
                for product in products:
                    summary.record(await self._upsert_item(product))
                completed = True
        except PersistenceError as e:
            if not completed:
                return self._fail(summary, e, "Product store unavailable")
            logger.warning(f"Product store did not close cleanly: {e}")
        except Exception as e:
            # Every item was written; a close failure must not reopen the day.
            if not completed:
                raise
            logger.warning(f"Product store did not close cleanly: {e}")

        self.state.last_full_sync_date = now.date()
        summary.finished_at = datetime.now(now.tzinfo)
        self.state.last_summary = summary

        logger.info(
            f"Products imported: {summary.inserted + summary.updated} out of {summary.total}, "
            f"Inserted: {summary.inserted}, Updated: {summary.updated}, "
            f"Failed: {summary.failed_items}, Skipped: {summary.skipped}"
        )
        return summary

    async def _upsert_item(self, product) -> ItemResult:
        try:
            return await self.upserter.upsert(product)
        except Exception as e:
            logger.exception(
                f"Failed to process product: Product EAN = {product.ean}, Name = {product.name}"
            )
            return ItemResult(
                identity=product.ean, name=product.name, errors=[f"item: {e}"]
            )

    def _fail(self, summary: RunSummary, error: Exception, message: str) -> RunSummary:
        logger.error(f"{message}: {error}")
        summary.failed = True
        summary.error = str(error)
        summary.finished_at = datetime.now(summary.started_at.tzinfo)
        self.state.last_summary = summary
        return summary


__all__ = ["SyncOrchestrator"]
