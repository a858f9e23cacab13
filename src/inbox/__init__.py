"""Mailbox access and email-based status inference."""
from .classifier import (
    STATUS_RULES,
    CompanyStatus,
    EmailClassifier,
    EmailMatch,
    classify_subject,
)
from .client import EnvelopeSummary, ImapMailbox, MailboxError

__all__ = [
    "STATUS_RULES",
    "CompanyStatus",
    "EmailClassifier",
    "EmailMatch",
    "EnvelopeSummary",
    "ImapMailbox",
    "MailboxError",
    "classify_subject",
]
