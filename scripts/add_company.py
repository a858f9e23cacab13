#!/usr/bin/env python3
"""Start tracking a company's job board.

Usage:
    python -m scripts.add_company "Linear" linear --source ashby
"""
import argparse
import logging
import sys

from scripts.bootstrap import get_database
from src.persistence.models import Source
from src.tracking.company_service import CompanyService
from src.tracking.exceptions import DuplicateCompanyError

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Add a company to track")
    parser.add_argument("name", help="Company display name")
    parser.add_argument("slug", help="Board identifier on the ATS")
    parser.add_argument(
        "--source",
        default=Source.GREENHOUSE.value,
        choices=[source.value for source in Source],
        help="ATS hosting the board",
    )
    parser.add_argument("--website-url", default=None, help="Company website")
    args = parser.parse_args(argv)

    db = get_database()
    try:
        with db.session() as session:
            company = CompanyService(session).add_company(
                args.name, args.slug, website_url=args.website_url, source=args.source
            )
            logger.info("Added company #%d: %s", company.id, company.name)
    finally:
        db.dispose()


if __name__ == "__main__":
    try:
        main()
    except DuplicateCompanyError as e:
        logger.error("%s", e)
        sys.exit(2)
    except Exception as e:
        logger.error("Error: %s", e)
        sys.exit(1)
