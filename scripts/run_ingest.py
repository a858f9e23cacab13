#!/usr/bin/env python3
"""One-time posting refresh.

Fetches every active company's job board once, merges the postings and
exits. Suitable for cron or CI runners.

Usage:
    python -m scripts.run_ingest
    python -m scripts.run_ingest --company-id 3
"""
import argparse
import asyncio
import logging
import sys

from scripts.bootstrap import get_database, settings
from src.pipeline.ingestion import IngestionOrchestrator

logger = logging.getLogger(__name__)


async def main(company_id=None):
    """Run a single refresh."""
    db = get_database()
    logger.info("Job Tracker - One-time Refresh")
    logger.info("Database: %s...", settings.database_url[:50])

    try:
        result = await IngestionOrchestrator.from_settings(db, settings).ingest(company_id)
    finally:
        db.dispose()

    logger.info(
        "Scanned %d companies, saw %d postings, %d new applications",
        result.companies_scanned, result.postings_seen, result.new_applications,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Refresh job postings once")
    parser.add_argument("--company-id", type=int, help="Only refresh this company")
    args = parser.parse_args()

    try:
        asyncio.run(main(args.company_id))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        sys.exit(1)
    except Exception as e:
        logger.error("Error: %s", e)
        sys.exit(1)
