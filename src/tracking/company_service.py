"""Company administration service."""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.persistence.models import Company, Source

from .exceptions import CompanyNotFoundError, DuplicateCompanyError

logger = logging.getLogger(__name__)


def normalize_slug(slug: str) -> str:
    """Board identifiers are stored trimmed and lower-cased."""
    return (slug or "").strip().lower()


class CompanyService:
    """Service for managing tracked companies."""

    def __init__(self, session: Session):
        """
        Initialize company service.

        Args:
            session: Database session
        """
        self.session = session

    def get_company(self, company_id: int) -> Optional[Company]:
        """Get a company by ID."""
        return self.session.get(Company, company_id)

    def get_by_slug(self, slug: str) -> Optional[Company]:
        """Get a company by its board slug."""
        stmt = select(Company).where(Company.slug == normalize_slug(slug))
        return self.session.execute(stmt).scalar_one_or_none()

    def list_companies(self, active_only: bool = False) -> list[Company]:
        """
        List companies by name.

        Args:
            active_only: Exclude deactivated companies

        Returns:
            List of companies
        """
        stmt = select(Company).order_by(Company.name)
        if active_only:
            stmt = stmt.where(Company.is_active.is_(True))
        return list(self.session.execute(stmt).scalars().all())

    def add_company(
        self,
        name: str,
        slug: str,
        website_url: Optional[str] = None,
        source: str = Source.GREENHOUSE.value,
    ) -> Company:
        """
        Start tracking a company.

        Args:
            name: Display name
            slug: Board identifier on the company's ATS
            website_url: Company website
            source: ATS the board lives on

        Returns:
            Created Company

        Raises:
            ValueError: if name or slug is blank, or source is unknown
            DuplicateCompanyError: if the slug is already tracked
        """
        name = (name or "").strip()
        slug = normalize_slug(slug)
        if not name or not slug:
            raise ValueError("Company name and slug are required")
        try:
            source_kind = Source(source or Source.GREENHOUSE.value)
        except ValueError:
            raise ValueError(
                f"Unknown source: {source}. Must be one of {[s.value for s in Source]}"
            ) from None

        if self.get_by_slug(slug) is not None:
            raise DuplicateCompanyError(slug)

        company = Company(
            name=name,
            slug=slug,
            website_url=website_url or None,
            source=source_kind.value,
            is_active=True,
        )
        try:
            with self.session.begin_nested():
                self.session.add(company)
        except IntegrityError:
            raise DuplicateCompanyError(slug) from None

        logger.info("Tracking %s (%s:%s)", name, source_kind.value, slug)
        return company

    def set_active(self, company_id: int, is_active: bool) -> Company:
        """
        Activate or deactivate a company without deleting its history.

        Raises:
            CompanyNotFoundError: if the company does not exist
        """
        company = self.get_company(company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        company.is_active = bool(is_active)
        self.session.flush()
        return company

    def delete_company(self, company_id: int) -> None:
        """
        Delete a company together with its jobs and applications.

        Raises:
            CompanyNotFoundError: if the company does not exist
        """
        company = self.get_company(company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        self.session.delete(company)
        self.session.flush()
        logger.info("Deleted company %s", company.slug)
