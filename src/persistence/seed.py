"""First-run company seeding from config/companies.yaml."""
import logging
from pathlib import Path

import yaml
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.persistence.meta import SEEDED, get_meta, set_meta
from src.persistence.models import Company, Source

logger = logging.getLogger(__name__)


def load_seed_companies(seed_file: Path) -> list[dict]:
    """Read the seed list; a missing file yields an empty list."""
    if not seed_file.exists():
        logger.info("No company seed file at %s", seed_file)
        return []

    with open(seed_file) as f:
        data = yaml.safe_load(f) or {}

    entries = []
    for entry in data.get("companies", []) or []:
        name = (entry.get("name") or "").strip()
        slug = (entry.get("slug") or "").strip().lower()
        if not name or not slug:
            logger.warning("Skipping seed entry without name/slug: %s", entry)
            continue
        try:
            source = Source(entry.get("source") or Source.GREENHOUSE.value)
        except ValueError:
            logger.warning("Skipping seed entry %s with unknown source %r", slug, entry.get("source"))
            continue
        entries.append(
            {
                "name": name,
                "slug": slug,
                "website_url": (entry.get("website_url") or "").strip(),
                "source": source.value,
            }
        )
    return entries


def seed_companies(session: Session, seed_file: Path) -> int:
    """Insert seed companies once per store.

    The "seeded" meta flag keeps companies the user later deleted from
    coming back on the next start.

    Returns:
        Number of companies inserted
    """
    if get_meta(session, SEEDED):
        return 0

    existing = set(session.execute(select(Company.slug)).scalars().all())
    inserted = 0
    for entry in load_seed_companies(seed_file):
        if entry["slug"] in existing:
            continue
        session.add(Company(**entry))
        existing.add(entry["slug"])
        inserted += 1

    set_meta(session, SEEDED, "1")
    logger.info("Seeded %d companies from %s", inserted, seed_file)
    return inserted
