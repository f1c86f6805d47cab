"""SyncService - process lifecycle for the Agroland sync worker."""

from __future__ import annotations

import asyncio
import logging
import signal
from datetime import datetime
from typing import Optional

import httpx

from .config import SyncConfig, get_config
from .harvester import (
    FeedClient,
    ProductStore,
    ProductUpserter,
    RunScheduler,
    RunSummary,
    SyncOrchestrator,
)

logger = logging.getLogger(__name__)


class SyncService:
    """Wires feed, store, upserter, orchestrator and scheduler together."""

    def __init__(self, config: Optional[SyncConfig] = None):
        self.config = config or get_config()
        self._client: Optional[httpx.AsyncClient] = None
        self.orchestrator: Optional[SyncOrchestrator] = None
        self.scheduler: Optional[RunScheduler] = None

    def _build(self) -> SyncOrchestrator:
        cfg = self.config
        self._client = httpx.AsyncClient(timeout=cfg.http_timeout, follow_redirects=True)
        feed = FeedClient(cfg.api_base_url, cfg.api_key, self._client)
        store = ProductStore(cfg.database_url)
        upserter = ProductUpserter(
            store,
            feed,
            margin=cfg.margin,
            source_tag=cfg.source_tag,
            description_max_length=cfg.description_max_length,
            default_vat=cfg.default_vat,
            identity_fallback=cfg.identity_fallback,
        )
        self.orchestrator = SyncOrchestrator(feed, store, upserter)
        return self.orchestrator

    async def tick(self) -> Optional[RunSummary]:
        """One scheduler tick: a gated orchestrator run."""
        return await self.orchestrator.run_once(datetime.now())

    async def start(self) -> None:
        """Build components and arm the scheduler (first run immediately)."""
        if not self.config.api_base_url or not self.config.api_key:
            logger.warning("AGROLAND_BASE_URL / AGROLAND_API_KEY not configured")
        self._build()
        self.scheduler = RunScheduler(self.tick, interval=self.config.fetch_interval_sec)
        self.scheduler.start()
        logger.info(
            f"Service started. First run immediately. Interval: {self.config.fetch_interval_sec}s"
        )

    async def stop(self) -> None:
        """Stop scheduling, let an in-flight run finish, release resources."""
        if self.scheduler is not None:
            await self.scheduler.stop()
            self.scheduler = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("Service stopped.")
        for handler in logging.getLogger().handlers:
            handler.flush()

    async def run_once(self) -> Optional[RunSummary]:
        """Single immediate run, without the scheduler."""
        self._build()
        try:
            return await self.tick()
        finally:
            await self._client.aclose()
            self._client = None


async def serve(config: Optional[SyncConfig] = None) -> None:
    """Run the sync service until SIGINT/SIGTERM."""
    service = SyncService(config)
    await service.start()

    # Graceful shutdown on SIGINT/SIGTERM
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _shutdown_handler():
        logger.info("Shutdown signal received, stopping sync service...")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _shutdown_handler)

    await stop_event.wait()
    await service.stop()


__all__ = ["SyncService", "serve"]
