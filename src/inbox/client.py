"""IMAP mailbox client."""
import email
import imaplib
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.header import decode_header, make_header
from email.utils import parseaddr, parsedate_to_datetime
from typing import Optional

from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

_UID_RE = re.compile(rb"UID (\d+)")
_HEADER_QUERY = "(UID BODY.PEEK[HEADER.FIELDS (SUBJECT FROM DATE)])"
_NO_DATE = datetime(1, 1, 1)


class MailboxError(Exception):
    """Raised when the IMAP server rejects a command."""

    pass


@dataclass
class EnvelopeSummary:
    """Headers of one message needed for classification."""

    uid: int
    subject: str
    sender: str
    date: str  # ISO-8601, "" when the Date header is unusable


def _quote(value: str) -> str:
    """Quote a string argument for an IMAP SEARCH criterion."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def normalize_email_date(raw: Optional[str]) -> str:
    """Turn a Date header into ISO-8601 UTC text.

    RFC 2822 parsing first, then a lenient parse for the malformed dates
    some mailers send. Returns "" when neither works or when the header
    does not carry a full date.
    """
    if not raw:
        return ""
    try:
        moment = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        try:
            moment = dateutil_parser.parse(raw, default=_NO_DATE)
        except (ValueError, OverflowError):
            logger.debug("Unparseable Date header: %r", raw)
            return ""
        if moment.year == _NO_DATE.year:
            # Missing year; dateutil would otherwise fill the gaps from the default
            logger.debug("Incomplete Date header: %r", raw)
            return ""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.isoformat()


class ImapMailbox:
    """Read-only IMAP session over TLS.

    Use as a context manager: the connection is opened, logged in and the
    folder selected on enter, and logged out on exit whatever happened
    inside the block.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        timeout: Optional[float] = 30.0,
        folder: str = "INBOX",
    ):
        """
        Initialize mailbox.

        Args:
            host: IMAP server host
            port: IMAP over TLS port (usually 993)
            user: Mailbox username
            password: Application password
            timeout: Socket timeout applied to every command (seconds)
            folder: Folder to open
        """
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout
        self.folder = folder
        self._conn: Optional[imaplib.IMAP4_SSL] = None

    @classmethod
    def from_settings(cls, settings) -> "ImapMailbox":
        """Build a mailbox from the application settings."""
        return cls(
            host=settings.imap_host,
            port=settings.imap_port,
            user=settings.gmail_user,
            password=settings.gmail_app_password,
            timeout=settings.imap_timeout_seconds,
        )

    def __enter__(self) -> "ImapMailbox":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        """Connect, authenticate and select the folder read-only."""
        logger.info("Connecting to %s:%d as %s", self.host, self.port, self.user)
        self._conn = imaplib.IMAP4_SSL(self.host, self.port, timeout=self.timeout)
        try:
            self._conn.login(self.user, self.password)
            typ, data = self._conn.select(self.folder, readonly=True)
            if typ != "OK":
                raise MailboxError(f"Cannot open {self.folder}: {data!r}")
        except Exception:
            self.close()
            raise

    def close(self) -> None:
        """Log out; errors on the way out are logged, not raised."""
        if self._conn is None:
            return
        try:
            self._conn.logout()
        except (imaplib.IMAP4.error, OSError) as e:
            logger.warning("IMAP logout failed: %s", e)
        finally:
            self._conn = None

    @property
    def connection(self) -> imaplib.IMAP4_SSL:
        if self._conn is None:
            raise MailboxError("Mailbox is not open")
        return self._conn

    def search(self, subject: str, sender: str) -> list[int]:
        """
        UIDs of messages whose subject or sender contains the given text.

        Args:
            subject: Substring to look for in the Subject header
            sender: Substring to look for in the From header (skipped if empty)

        Returns:
            Matching UIDs in ascending order (oldest first)
        """
        conn = self.connection
        if subject.isascii():
            if sender:
                criteria = ("OR", "SUBJECT", _quote(subject), "FROM", _quote(sender))
            else:
                criteria = ("SUBJECT", _quote(subject))
        else:
            # imaplib appends the literal after the last argument
            conn.literal = subject.encode("utf-8")
            criteria = ("CHARSET", "UTF-8")
            if sender:
                criteria += ("OR", "FROM", _quote(sender))
            criteria += ("SUBJECT",)

        typ, data = conn.uid("SEARCH", *criteria)
        if typ != "OK":
            raise MailboxError(f"SEARCH failed: {data!r}")

        raw = data[0] if data and data[0] else b""
        return sorted(int(uid) for uid in raw.split())

    def fetch_headers(self, uids: list[int]) -> list[EnvelopeSummary]:
        """
        Subject, sender and date for the given UIDs.

        Args:
            uids: Message UIDs

        Returns:
            EnvelopeSummary list in ascending UID order
        """
        if not uids:
            return []

        uid_set = ",".join(str(uid) for uid in uids)
        typ, data = self.connection.uid("FETCH", uid_set, _HEADER_QUERY)
        if typ != "OK":
            raise MailboxError(f"FETCH failed: {data!r}")

        data = data or []
        envelopes = []
        for index, item in enumerate(data):
            # Header payloads come back as (b"<seq> (UID n BODY[...] {len}", b"<headers>")
            if not isinstance(item, tuple) or len(item) < 2:
                continue
            following = data[index + 1] if index + 1 < len(data) else b""
            uid = self._response_uid(item[0], following, uids)
            if uid is None:
                logger.debug("FETCH item without UID: %r", item[0])
                continue
            envelopes.append(self._parse_headers(uid, item[1]))

        return sorted(envelopes, key=lambda env: env.uid)

    @staticmethod
    def _response_uid(prefix: bytes, following, requested: list[int]) -> Optional[int]:
        """UID of one FETCH item.

        Servers may send the UID before or after the header literal. In the
        latter case it lands in the element that closes the response.
        """
        uid_match = _UID_RE.search(prefix)
        if uid_match is None and isinstance(following, bytes):
            uid_match = _UID_RE.search(following)
        if uid_match is not None:
            return int(uid_match.group(1))
        if len(requested) == 1:
            return requested[0]
        return None

    def _parse_headers(self, uid: int, raw: bytes) -> EnvelopeSummary:
        msg = email.message_from_bytes(raw)
        raw_subject = msg.get("Subject", "") or ""
        try:
            subject = str(make_header(decode_header(raw_subject)))
        except (UnicodeDecodeError, LookupError, ValueError):
            # Unknown charset or broken encoded-word: keep the raw header
            subject = str(raw_subject)
        sender = parseaddr(str(msg.get("From", "") or ""))[1]
        return EnvelopeSummary(
            uid=uid,
            subject=" ".join(subject.split()),
            sender=sender,
            date=normalize_email_date(msg.get("Date")),
        )
