"""Posting deduplication and upsert."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.collectors.base import NormalizedPosting
from src.persistence.models import Application, ApplicationStatus, Company, Job, utcnow

logger = logging.getLogger(__name__)


class PostingUpserter:
    """Merge normalized postings into the store keyed by external id.

    Re-running against unchanged upstream data only refreshes fetched_at:
    posted_at and experience are filled while null and then frozen, the
    other posting fields are never rewritten, and each job gets exactly
    one application.
    """

    def __init__(self, session: Session):
        """
        Initialize upserter.

        Args:
            session: Database session; the caller owns the transaction
        """
        self.session = session

    def upsert(self, company: Company, posting: NormalizedPosting) -> bool:
        """
        Insert or update one posting and make sure it has an application.

        Args:
            company: Owning company
            posting: Normalized posting from a collector

        Returns:
            True if a new Application was created for the posting
        """
        job = self._upsert_job(company, posting)
        return self._ensure_application(job)

    def _upsert_job(self, company: Company, posting: NormalizedPosting) -> Job:
        job = self.session.execute(
            select(Job).where(Job.external_id == posting.external_id)
        ).scalar_one_or_none()

        if job is None:
            job = Job(
                external_id=posting.external_id,
                company_id=company.id,
                title=posting.title,
                job_url=posting.url,
                location=posting.location,
                department=posting.department,
                posted_at=posting.posted_at,
                experience=posting.experience,
                source=company.source,
                fetched_at=utcnow(),
            )
            self.session.add(job)
            self.session.flush()
            logger.debug("New job %s: %s", job.external_id, job.title)
            return job

        # First write wins for posted_at and experience
        if job.posted_at is None and posting.posted_at:
            job.posted_at = posting.posted_at
        if job.experience is None and posting.experience:
            job.experience = posting.experience
        job.fetched_at = utcnow()
        self.session.flush()
        return job

    def _ensure_application(self, job: Job) -> bool:
        existing = self.session.execute(
            select(Application.id).where(Application.job_id == job.id)
        ).scalar_one_or_none()
        if existing is not None:
            return False

        # Savepoint so a concurrent writer's insert only voids this row
        try:
            with self.session.begin_nested():
                self.session.add(
                    Application(job_id=job.id, status=ApplicationStatus.NEW.value)
                )
        except IntegrityError:
            logger.debug("Application for job %s already created elsewhere", job.id)
            return False
        return True
