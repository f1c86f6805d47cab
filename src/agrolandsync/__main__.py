"""Agroland sync worker - unified entry point.

Start the scheduled service (default):
    python -m agrolandsync

Single sync run, then exit:
    python -m agrolandsync --once

Environment Variables:
    AGROLAND_BASE_URL, AGROLAND_API_KEY - supplier feed endpoint and key
    AGROLAND_MARGIN - sale margin in percent
    AGROLAND_FETCH_INTERVAL_SEC - seconds between scheduler ticks
    DATABASE_URL - PostgreSQL product store
    LOG_PATH, LOGS_EXPIRATION_DAYS - rotated log file and retention
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_path: Optional[str] = None,
    retention_days: int = 30,
):
    """Setup logging configuration.

    With ``log_path`` set, logs also go to a file rotated at midnight,
    keeping ``retention_days`` old files.
    """
    handlers = [logging.StreamHandler()]
    if log_path:
        handlers.append(
            TimedRotatingFileHandler(
                log_path,
                when="midnight",
                backupCount=retention_days,
                encoding="utf-8",
            )
        )
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=handlers,
        force=True,
    )


def main():
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Agroland catalog sync worker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single sync immediately and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: LOG_LEVEL env or INFO)",
    )
    parser.add_argument(
        "--log-path",
        default=None,
        help="Log file path (default: LOG_PATH env, stderr only if unset)",
    )

    args = parser.parse_args()

    from .config import get_config

    config = get_config()
    setup_logging(
        args.log_level or config.log_level,
        args.log_path or config.log_path,
        config.logs_expiration_days,
    )
    logger = logging.getLogger(__name__)

    from .service import SyncService, serve

    try:
        if args.once:
            summary = asyncio.run(SyncService(config).run_once())
            if summary is not None and summary.failed:
                sys.exit(1)
        else:
            asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Sync worker failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
