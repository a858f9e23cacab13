"""Pytest fixtures for Job Tracker tests."""
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.collectors.base import NormalizedPosting
from src.persistence.database import Database
from src.persistence.models import Application, Company, Job


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def db():
    """Fresh in-memory store for each test."""
    database = Database("sqlite://")
    yield database
    database.dispose()


@pytest.fixture
def session(db):
    """Plain session on the test store (caller commits)."""
    s = db.session_direct()
    yield s
    s.close()


@pytest.fixture
def company_factory(session):
    """
    Factory fixture to create companies.

    Usage:
        acme = company_factory("Acme", "acme", source="lever")
    """

    def _create(name="Acme", slug="acme", source="greenhouse", is_active=True):
        company = Company(name=name, slug=slug, source=source, is_active=is_active)
        session.add(company)
        session.commit()
        return company

    return _create


@pytest.fixture
def job_factory(session):
    """Factory fixture to create a job with its application."""
    counter = {"n": 0}

    def _create(company, status="new", title="Product Manager", posted_at=None):
        counter["n"] += 1
        job = Job(
            external_id=f"{company.slug}-{counter['n']}",
            company_id=company.id,
            title=title,
            job_url=f"https://example.com/{company.slug}/{counter['n']}",
            posted_at=posted_at,
            source=company.source,
        )
        session.add(job)
        session.flush()
        application = Application(job_id=job.id, status=status)
        session.add(application)
        session.commit()
        return job, application

    return _create


@pytest.fixture
def sample_posting():
    """A normalized Greenhouse posting."""
    return NormalizedPosting(
        external_id="4012345",
        title="Senior Product Manager",
        url="https://boards.greenhouse.io/acme/jobs/4012345",
        location="Remote - US",
        department="Product",
        posted_at=None,
        experience=None,
    )


@pytest.fixture
def mail_settings():
    """Settings stand-in with mailbox credentials configured."""
    return SimpleNamespace(
        gmail_user="me@example.com",
        gmail_app_password="app-password",
        imap_host="imap.example.com",
        imap_port=993,
        imap_timeout_seconds=5.0,
        email_sync_deadline_seconds=None,
        email_recent_limit=3,
    )


# =============================================================================
# MOCK FIXTURES (For external services)
# =============================================================================


class _async_context:
    """Helper to create an async context manager from a mock response."""

    def __init__(self, resp):
        self.resp = resp

    async def __aenter__(self):
        return self.resp

    async def __aexit__(self, *args):
        pass


@pytest.fixture
def mock_http_session():
    """
    Factory for an aiohttp-like session whose GET returns a canned response.

    Usage:
        http = mock_http_session({"jobs": []}, status=200)
    """

    def _create(payload=None, status=200, side_effect=None):
        mock_resp = AsyncMock()
        mock_resp.status = status
        mock_resp.json = AsyncMock(return_value=payload, side_effect=side_effect)

        mock_session = AsyncMock()
        mock_session.get = MagicMock(return_value=_async_context(mock_resp))
        return mock_session

    return _create
