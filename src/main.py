"""Main entry point for the Job Tracker scheduler."""
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config.settings import settings
from src.logging_config import setup_logging_from_settings
from src.persistence.database import Database
from src.pipeline.ingestion import IngestionOrchestrator
from src.tracking.email_sync import sync_email
from src.tracking.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


async def run_ingest(db: Database) -> None:
    """Run one posting refresh; failures are logged so the scheduler keeps going."""
    logger.info("Starting posting refresh at %s", datetime.now().strftime("%Y-%m-%d %H:%M:%S"))
    try:
        result = await IngestionOrchestrator.from_settings(db, settings).ingest()
        logger.info(
            "Refresh done: %d companies, %d postings, %d new",
            result.companies_scanned, result.postings_seen, result.new_applications,
        )
    except Exception as e:
        logger.error("Posting refresh failed: %s", e, exc_info=True)


async def run_email_sync(db: Database) -> None:
    """Run one email sync off the event loop; failures are logged."""
    if not settings.has_mail_credentials:
        logger.info("Mailbox credentials not configured, skipping email sync")
        return

    try:
        result = await asyncio.to_thread(sync_email, db, settings)
        logger.info("Email sync done: %d application(s) updated", result.updated)
    except ConfigurationError as e:
        logger.warning("Email sync not configured: %s", e)
    except Exception as e:
        logger.error("Email sync failed: %s", e, exc_info=True)


async def async_main():
    """Async main entry point."""
    setup_logging_from_settings(settings)
    logger.info("Job Tracker starting...")
    logger.info("Database: %s", settings.database_url)

    db = Database(settings.database_url, seed_file=settings.companies_seed_file)
    logger.info("Database initialized")

    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        run_ingest,
        IntervalTrigger(minutes=settings.refresh_interval_minutes),
        args=[db],
        id="posting_refresh",
        name="Posting Refresh",
        max_instances=1,
    )

    scheduler.add_job(
        run_email_sync,
        IntervalTrigger(minutes=settings.email_sync_interval_minutes),
        args=[db],
        id="email_sync",
        name="Email Sync",
        max_instances=1,
    )

    scheduler.start()
    logger.info("Scheduler started:")
    logger.info("  - Posting refresh every %d minutes", settings.refresh_interval_minutes)
    logger.info("  - Email sync every %d minutes", settings.email_sync_interval_minutes)
    logger.info("Running initial refresh...")

    try:
        await run_ingest(db)
        await run_email_sync(db)

        logger.info("Job Tracker running. Press Ctrl+C to stop.")

        while True:
            await asyncio.sleep(60)

    except asyncio.CancelledError:
        logger.info("Shutting down...")
    finally:
        scheduler.shutdown()
        db.dispose()


def main():
    """Main entry point."""
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown complete.")


if __name__ == "__main__":
    main()
