"""Application tracking service."""
import logging
from typing import Optional

from sqlalchemy import exists, func, select, update
from sqlalchemy.orm import Session, contains_eager

from src.inbox.classifier import CompanyStatus, EmailMatch
from src.persistence.models import (
    OVERWRITABLE_STATUSES,
    Application,
    ApplicationStatus,
    Company,
    Job,
    utcnow,
)

from .exceptions import ApplicationNotFoundError, InvalidStatusError

logger = logging.getLogger(__name__)


class ApplicationService:
    """Service for reading and updating applications.

    Methods flush but never commit; the caller's session scope owns the
    transaction.
    """

    VALID_STATUSES = frozenset(status.value for status in ApplicationStatus)

    def __init__(self, session: Session):
        """
        Initialize application service.

        Args:
            session: Database session
        """
        self.session = session

    def get_application(self, application_id: int) -> Optional[Application]:
        """Get an application by ID."""
        return self.session.get(Application, application_id)

    def update_application(
        self,
        application_id: int,
        status: Optional[str] = None,
        notes: Optional[str] = None,
        marked_complete: Optional[bool] = None,
    ) -> Application:
        """
        Apply a manual edit to an application.

        Manual edits are not gated: a user may move an application to any
        status, in any order.

        Args:
            application_id: Application ID
            status: New status
            notes: Replacement notes text
            marked_complete: Completion flag

        Returns:
            Updated application

        Raises:
            InvalidStatusError: if status is not a known status
            ValueError: if no field was given
            ApplicationNotFoundError: if the application does not exist
        """
        if status is not None and status not in self.VALID_STATUSES:
            raise InvalidStatusError(status)
        if status is None and notes is None and marked_complete is None:
            raise ValueError("Nothing to update")

        application = self.get_application(application_id)
        if application is None:
            raise ApplicationNotFoundError(application_id)

        if status is not None:
            application.status = status
        if notes is not None:
            application.notes = notes
        if marked_complete is not None:
            application.marked_complete = bool(marked_complete)
        application.updated_at = utcnow()

        self.session.flush()
        return application

    def list_tracked_jobs(
        self,
        status: Optional[str] = None,
        company_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[Application]:
        """
        Applications of active companies, newest postings first.

        Postings without a publish date sort after dated ones. Each
        application comes with its job and company loaded.

        Args:
            status: Filter by status
            company_id: Filter by company
            limit: Maximum results

        Returns:
            List of applications
        """
        stmt = (
            select(Application)
            .join(Application.job)
            .join(Job.company)
            .where(Company.is_active.is_(True))
            .options(contains_eager(Application.job).contains_eager(Job.company))
            .order_by(Job.posted_at.desc().nulls_last(), Job.fetched_at.desc())
        )

        if status:
            stmt = stmt.where(Application.status == status)
        if company_id is not None:
            stmt = stmt.where(Company.id == company_id)
        if limit:
            stmt = stmt.limit(limit)

        return list(self.session.execute(stmt).scalars().all())

    def companies_for_email_sync(self) -> list[CompanyStatus]:
        """
        Active companies that own at least one job.

        Each is paired with the status of its most recently updated
        application, or "new" when it has none yet.
        """
        latest_status = (
            select(Application.status)
            .join(Job, Application.job_id == Job.id)
            .where(Job.company_id == Company.id)
            .order_by(Application.updated_at.desc(), Application.id.desc())
            .limit(1)
            .correlate(Company)
            .scalar_subquery()
        )
        stmt = (
            select(
                Company.id,
                Company.name,
                func.coalesce(latest_status, ApplicationStatus.NEW.value),
            )
            .where(Company.is_active.is_(True))
            .where(exists().where(Job.company_id == Company.id))
            .order_by(Company.id)
        )
        return [
            CompanyStatus(id=company_id, name=name, current_status=status)
            for company_id, name, status in self.session.execute(stmt).all()
        ]

    def apply_email_matches(self, matches: dict[int, EmailMatch]) -> int:
        """
        Write classified email results to applications.

        Only applications still in "new" or "applied" are changed; anything
        a user has moved further along is left alone.

        Args:
            matches: Best email match per company id

        Returns:
            Number of applications changed
        """
        changed = 0
        for company_id, match in matches.items():
            stmt = (
                update(Application)
                .where(
                    Application.job_id.in_(
                        select(Job.id).where(Job.company_id == company_id)
                    )
                )
                .where(Application.status.in_(sorted(OVERWRITABLE_STATUSES)))
                .values(
                    status=match.detected_status,
                    email_subject=match.subject,
                    email_from=match.sender,
                    email_date=match.date,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            rows = self.session.execute(stmt).rowcount or 0
            if rows:
                logger.info(
                    "Company %s: %d application(s) -> %s",
                    company_id, rows, match.detected_status,
                )
            changed += rows

        if changed:
            # Loaded Application objects no longer reflect the table
            self.session.expire_all()
        return changed
