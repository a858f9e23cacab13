"""Infer application status from recruiting email subjects."""
import logging
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from src.persistence.models import ApplicationStatus, is_overwritable, mailbox_search_key

from .client import EnvelopeSummary, ImapMailbox

logger = logging.getLogger(__name__)


# Highest priority first. Matching is a case-insensitive substring check.
STATUS_RULES: list[tuple[str, tuple[str, ...]]] = [
    (
        ApplicationStatus.OFFER.value,
        (
            "offer letter",
            "formal offer",
            "we'd like to offer",
            "we would like to offer",
        ),
    ),
    (
        ApplicationStatus.INTERVIEW.value,
        (
            "interview",
            "schedule",
            "next steps",
            "move forward",
            "moving forward",
            "phone screen",
            "video call",
            "hiring manager",
        ),
    ),
    (
        ApplicationStatus.REJECTED.value,
        (
            "unfortunately",
            "not moving forward",
            "other candidates",
            "not selected",
            "decided to move",
            "will not be moving",
            "position has been filled",
            "we won't be",
        ),
    ),
    (
        ApplicationStatus.APPLIED.value,
        (
            "received your application",
            "thank you for applying",
            "application received",
            "we received your",
            "successfully submitted",
        ),
    ),
]


def rule_index(subject: str) -> Optional[int]:
    """Index of the first rule whose keywords appear in the subject, else None."""
    text = (subject or "").lower()
    if not text:
        return None
    for index, (_status, keywords) in enumerate(STATUS_RULES):
        if any(keyword in text for keyword in keywords):
            return index
    return None


def classify_subject(subject: str) -> Optional[str]:
    """
    Map an email subject to an application status.

    Rules are checked in priority order, so "not moving forward" is read
    as an interview signal because "moving forward" is listed first.

    Args:
        subject: Email subject line

    Returns:
        Status value, or None if no rule matches
    """
    index = rule_index(subject)
    return STATUS_RULES[index][0] if index is not None else None


@dataclass
class CompanyStatus:
    """A company together with the status of its latest application."""

    id: int
    name: str
    current_status: str


@dataclass
class EmailMatch:
    """Best classified email found for one company."""

    subject: str
    sender: str
    date: str
    detected_status: str


class EmailClassifier:
    """Scan a mailbox for status signals, one company at a time."""

    def __init__(
        self,
        mailbox: ImapMailbox,
        recent_limit: int = 3,
        deadline_seconds: Optional[float] = None,
    ):
        """
        Initialize classifier.

        Args:
            mailbox: Open mailbox to search
            recent_limit: How many of the most recent matches to examine
            deadline_seconds: Stop scanning new companies after this long
        """
        self.mailbox = mailbox
        self.recent_limit = max(1, recent_limit)
        self.deadline_seconds = deadline_seconds

    def scan(self, companies: Iterable[CompanyStatus]) -> dict[int, EmailMatch]:
        """
        Find the best status signal for each eligible company.

        Companies whose status is past "applied" are not searched at all.
        Errors for one company are logged and that company is skipped.

        Args:
            companies: Companies with their current application status

        Returns:
            Mapping of company id to its best match; companies without a
            classifiable email are absent
        """
        companies = list(companies)
        started = time.monotonic()
        matches: dict[int, EmailMatch] = {}

        for position, company in enumerate(companies):
            if self._deadline_passed(started):
                logger.warning(
                    "Email scan deadline of %.0fs reached, skipping %d companies",
                    self.deadline_seconds, len(companies) - position,
                )
                break

            if not is_overwritable(company.current_status) or not company.name.strip():
                continue

            try:
                match = self._scan_company(company)
            except Exception as e:
                logger.warning("Email scan failed for %s: %s", company.name, e)
                continue

            if match is not None:
                logger.info(
                    "%s: %r -> %s", company.name, match.subject, match.detected_status
                )
                matches[company.id] = match

        logger.info("Email scan matched %d of %d companies", len(matches), len(companies))
        return matches

    def _deadline_passed(self, started: float) -> bool:
        if self.deadline_seconds is None:
            return False
        return time.monotonic() - started >= self.deadline_seconds

    def _scan_company(self, company: CompanyStatus) -> Optional[EmailMatch]:
        uids = self.mailbox.search(company.name, mailbox_search_key(company.name))
        if not uids:
            return None

        envelopes = self.mailbox.fetch_headers(uids[-self.recent_limit:])
        return self._best_match(envelopes)

    @staticmethod
    def _best_match(envelopes: list[EnvelopeSummary]) -> Optional[EmailMatch]:
        best: Optional[EmailMatch] = None
        best_index: Optional[int] = None

        for envelope in envelopes:
            index = rule_index(envelope.subject)
            if index is None:
                continue
            # Strict comparison: on equal priority the older message stays
            if best_index is None or index < best_index:
                best_index = index
                best = EmailMatch(
                    subject=envelope.subject,
                    sender=envelope.sender,
                    date=envelope.date,
                    detected_status=STATUS_RULES[index][0],
                )
        return best
