#!/usr/bin/env python3
"""Print tracked jobs, newest postings first.

Usage:
    python -m scripts.list_jobs
    python -m scripts.list_jobs --status applied --limit 20
"""
import argparse
import logging
import sys

from scripts.bootstrap import get_database
from src.persistence.meta import LAST_EMAIL_SYNC, LAST_REFRESHED, get_meta
from src.tracking.application_service import ApplicationService

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="List tracked jobs")
    parser.add_argument("--status", help="Only show applications in this status")
    parser.add_argument("--limit", type=int, default=50, help="Maximum rows")
    args = parser.parse_args(argv)

    db = get_database()
    try:
        with db.session() as session:
            applications = ApplicationService(session).list_tracked_jobs(
                status=args.status, limit=args.limit
            )
            for app in applications:
                job = app.job
                print(
                    f"{app.id:>5}  {app.status:<12} {job.posted_at or '-':<26} "
                    f"{job.company.name:<18} {job.title}"
                    + (f"  [{job.experience}]" if job.experience else "")
                )
            print()
            print(f"Last refreshed:  {get_meta(session, LAST_REFRESHED) or 'never'}")
            print(f"Last email sync: {get_meta(session, LAST_EMAIL_SYNC) or 'never'}")
    finally:
        db.dispose()


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        logger.error("Error: %s", e)
        sys.exit(1)
