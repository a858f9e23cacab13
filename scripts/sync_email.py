#!/usr/bin/env python3
"""One-time email sync.

Scans the mailbox for recruiter email and advances applications that are
still "new" or "applied".

Usage:
    python -m scripts.sync_email

Environment variables:
    GMAIL_USER: Mailbox username (required)
    GMAIL_APP_PASSWORD: Mailbox app password (required)
"""
import logging
import sys

from scripts.bootstrap import get_database, settings
from src.tracking.email_sync import sync_email
from src.tracking.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def main():
    """Run a single email sync."""
    db = get_database()
    try:
        result = sync_email(db, settings)
    finally:
        db.dispose()

    if result.message:
        logger.info(result.message)
    logger.info("Updated %d application(s)", result.updated)


if __name__ == "__main__":
    try:
        main()
    except ConfigurationError as e:
        logger.error("Not configured: %s", e)
        sys.exit(2)
    except Exception as e:
        logger.error("Error: %s", e)
        sys.exit(1)
