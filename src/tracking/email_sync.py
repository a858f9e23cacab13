"""Email sync: classify inbox messages and apply safe status updates."""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from src.inbox.classifier import CompanyStatus, EmailClassifier
from src.inbox.client import ImapMailbox
from src.persistence.database import Database
from src.persistence.meta import LAST_EMAIL_SYNC, mark_now

from .application_service import ApplicationService
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class EmailSyncResult:
    """Outcome of one email sync."""

    updated: int = 0
    message: Optional[str] = None
    synced_at: Optional[str] = None


def sync_email(
    db: Database,
    settings,
    companies: Optional[list[CompanyStatus]] = None,
    mailbox_factory: Optional[Callable[..., ImapMailbox]] = None,
) -> EmailSyncResult:
    """
    Scan the mailbox and move applications along from recruiter email.

    Args:
        db: Store handle
        settings: Application settings (mailbox credentials and limits)
        companies: Companies to scan; derived from the store when None
        mailbox_factory: Builds a mailbox from settings (defaults to IMAP)

    Returns:
        EmailSyncResult with the number of applications changed

    Raises:
        ConfigurationError: if mailbox credentials are not configured
    """
    if not (settings.gmail_user and settings.gmail_app_password):
        raise ConfigurationError("GMAIL_USER and GMAIL_APP_PASSWORD must be set")

    if companies is None:
        with db.session() as session:
            companies = ApplicationService(session).companies_for_email_sync()

    if not companies:
        logger.info("No companies to sync")
        return EmailSyncResult(updated=0, message="No companies to sync")

    factory = mailbox_factory or ImapMailbox.from_settings
    with factory(settings) as mailbox:
        classifier = EmailClassifier(
            mailbox,
            recent_limit=settings.email_recent_limit,
            deadline_seconds=settings.email_sync_deadline_seconds,
        )
        matches = classifier.scan(companies)

    with db.session() as session:
        updated = ApplicationService(session).apply_email_matches(matches)
        synced_at = mark_now(session, LAST_EMAIL_SYNC)

    logger.info("Email sync updated %d application(s)", updated)
    return EmailSyncResult(updated=updated, synced_at=synced_at)
