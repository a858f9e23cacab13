"""Ingestion orchestrator: fetch every active company's board and merge postings."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import aiohttp
from sqlalchemy import select

from src.collectors import BaseCollector, NormalizedPosting, collector_for
from src.dedup.upserter import PostingUpserter
from src.matching.role_filter import parse_keywords
from src.persistence.database import Database
from src.persistence.meta import LAST_REFRESHED, TARGET_ROLE, get_meta, mark_now
from src.persistence.models import Company, Source

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of one ingestion run."""

    new_applications: int = 0
    companies_scanned: int = 0
    postings_seen: int = 0
    refreshed_at: Optional[str] = None


@dataclass
class _CompanyRef:
    """Detached view of a company used while its board is being fetched."""

    id: int
    name: str
    slug: str
    source: Source


class IngestionOrchestrator:
    """Fetch postings in polite batches and upsert them per batch."""

    def __init__(
        self,
        db: Database,
        batch_size: int = 5,
        batch_delay_ms: int = 200,
        fetch_timeout: float = 15.0,
        fetch_retries: int = 1,
        collector_factory: Callable[..., BaseCollector] = collector_for,
    ):
        """
        Initialize orchestrator.

        Args:
            db: Store handle
            batch_size: Companies fetched concurrently per batch
            batch_delay_ms: Pause between batches in milliseconds
            fetch_timeout: Per-request timeout for board calls (seconds)
            fetch_retries: Attempts per board call
            collector_factory: Maps a Source to a collector instance
        """
        self.db = db
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay_ms / 1000
        self._collectors = {
            source: collector_factory(source, timeout=fetch_timeout, retries=fetch_retries)
            for source in Source
        }

    @classmethod
    def from_settings(cls, db: Database, settings) -> "IngestionOrchestrator":
        """Build an orchestrator from the application settings."""
        return cls(
            db,
            batch_size=settings.ingest_batch_size,
            batch_delay_ms=settings.ingest_batch_delay_ms,
            fetch_timeout=settings.fetch_timeout_seconds,
            fetch_retries=settings.fetch_retries,
        )

    async def ingest(self, company_id: Optional[int] = None) -> IngestResult:
        """
        Fetch and merge postings for active companies.

        Args:
            company_id: Restrict the run to one company (must be active)

        Returns:
            IngestResult with the count of newly created applications
        """
        companies, keywords = self._load_targets(company_id)
        result = IngestResult(companies_scanned=len(companies))
        logger.info(
            "Ingesting %d companies (keywords: %s)",
            len(companies), ", ".join(keywords) or "<all roles>",
        )

        async with aiohttp.ClientSession() as http:
            for start in range(0, len(companies), self.batch_size):
                batch = companies[start:start + self.batch_size]
                fetched = await asyncio.gather(
                    *(self._fetch_company(http, company, keywords) for company in batch)
                )

                new_apps, seen = self._merge_batch(batch, fetched)
                result.new_applications += new_apps
                result.postings_seen += seen
                logger.info(
                    "Batch %d: %d postings, %d new applications",
                    start // self.batch_size + 1, seen, new_apps,
                )

                if start + self.batch_size < len(companies):
                    await asyncio.sleep(self.batch_delay)

        with self.db.session() as session:
            result.refreshed_at = mark_now(session, LAST_REFRESHED)

        logger.info(
            "Ingestion complete: %d new applications from %d postings",
            result.new_applications, result.postings_seen,
        )
        return result

    def _load_targets(self, company_id: Optional[int]) -> tuple[list[_CompanyRef], list[str]]:
        with self.db.session() as session:
            keywords = parse_keywords(get_meta(session, TARGET_ROLE))

            stmt = select(Company).where(Company.is_active.is_(True)).order_by(Company.id)
            if company_id is not None:
                stmt = stmt.where(Company.id == company_id)

            companies = []
            for company in session.execute(stmt).scalars():
                try:
                    source = company.source_kind
                except ValueError:
                    logger.warning("Skipping %s: unknown source %r", company.slug, company.source)
                    continue
                companies.append(_CompanyRef(company.id, company.name, company.slug, source))
        return companies, keywords

    async def _fetch_company(
        self,
        http: aiohttp.ClientSession,
        company: _CompanyRef,
        keywords: list[str],
    ) -> list[NormalizedPosting]:
        collector = self._collectors[company.source]
        postings = await collector.fetch(company.slug, keywords, session=http)
        logger.debug("%s (%s): %d postings", company.name, company.source.value, len(postings))
        return postings

    def _merge_batch(
        self,
        batch: list[_CompanyRef],
        fetched: list[list[NormalizedPosting]],
    ) -> tuple[int, int]:
        """Upsert one batch atomically. Returns (new applications, postings seen)."""
        new_apps = 0
        seen = 0
        with self.db.session() as session:
            upserter = PostingUpserter(session)
            for ref, postings in zip(batch, fetched):
                company = session.get(Company, ref.id)
                if company is None:
                    # Deleted while its board was being fetched
                    continue
                for posting in postings:
                    seen += 1
                    if upserter.upsert(company, posting):
                        new_apps += 1
        return new_apps, seen
