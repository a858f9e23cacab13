"""SQLAlchemy models for Job Tracker."""
import re
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def mailbox_search_key(name: str) -> str:
    """Reduce a company name to lowercase alphanumerics for sender matching.

    "Scale AI, Inc." -> "scaleaiinc", which is what shows up in sender
    addresses like jobs@scaleai.com far more often than the display name.
    """
    if not name:
        return ""
    return re.sub(r"[^a-z0-9]", "", name.lower())


class Source(str, Enum):
    """Applicant tracking system a company publishes its postings on."""

    GREENHOUSE = "greenhouse"
    LEVER = "lever"
    ASHBY = "ashby"


class ApplicationStatus(str, Enum):
    """Lifecycle status of an application.

    Ordered by how far along the process is; the order is informational
    only since users may set any status by hand.
    """

    NEW = "new"
    APPLIED = "applied"
    PHONE_SCREEN = "phone_screen"
    INTERVIEW = "interview"
    OFFER = "offer"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    COMPLETE = "complete"


# Statuses that automated email inference is allowed to replace
OVERWRITABLE_STATUSES = frozenset({ApplicationStatus.NEW.value, ApplicationStatus.APPLIED.value})


def is_overwritable(status: str) -> bool:
    """Check whether an application in this status may be updated from email."""
    return status in OVERWRITABLE_STATUSES


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Company(Base):
    """Employer whose ATS board is tracked."""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False)  # ATS board identifier
    website_url = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)
    source = Column(String, nullable=False, default=Source.GREENHOUSE.value)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    jobs = relationship(
        "Job",
        back_populates="company",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def source_kind(self) -> Source:
        """Source as the closed enum (unset rows default to Greenhouse)."""
        return Source(self.source or Source.GREENHOUSE.value)

    def __repr__(self) -> str:
        return f"<Company {self.name} ({self.source}:{self.slug})>"


class Job(Base):
    """Job posting seen on a company's board."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Source-qualified natural key: "123" (greenhouse), "lever_abc", "ashby_abc"
    external_id = Column(String, unique=True, nullable=False)
    company_id = Column(
        Integer,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String, nullable=False)
    job_url = Column(String, nullable=False)
    location = Column(String)
    department = Column(String)
    posted_at = Column(String)  # ISO-8601 text as published; first write wins
    experience = Column(String)  # e.g. "5+ years of product management"; first write wins
    fetched_at = Column(DateTime, default=utcnow)
    source = Column(String, default=Source.GREENHOUSE.value)

    # Relationships
    company = relationship("Company", back_populates="jobs")
    application = relationship(
        "Application",
        back_populates="job",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Job {self.external_id} - {self.title}>"


class Application(Base):
    """Application tracking, one per job."""

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(
        Integer,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Statuses: new, applied, phone_screen, interview, offer, rejected, withdrawn, complete
    status = Column(String, nullable=False, default=ApplicationStatus.NEW.value)
    notes = Column(Text)
    marked_complete = Column(Boolean, nullable=False, default=False)

    # Most recent email that drove a status change
    email_subject = Column(String)
    email_from = Column(String)
    email_date = Column(String)

    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    job = relationship("Job", back_populates="application")

    def __repr__(self) -> str:
        return f"<Application job={self.job_id} ({self.status})>"


class Meta(Base):
    """Process-wide key/value register (timestamps, preferences)."""

    __tablename__ = "meta"

    key = Column(String, primary_key=True)
    value = Column(Text)

    def __repr__(self) -> str:
        return f"<Meta {self.key}={self.value!r}>"
