"""Base collector interface."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import aiohttp

from src.matching.role_filter import matches_role
from src.persistence.models import Source

from .utils import http_get_json

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass
class NormalizedPosting:
    """Standardized posting produced by every collector."""

    external_id: str
    title: str
    url: str
    location: str = ""
    department: str = ""
    posted_at: Optional[str] = None
    experience: Optional[str] = None


class BaseCollector(ABC):
    """Abstract base class for ATS board collectors.

    Subclasses describe one board API: where to fetch, how to find the
    posting list in the payload and how to map one posting. ``fetch`` owns
    the transport and never raises.
    """

    source: Source
    title_field: str = "title"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        retries: int = 1,
    ):
        """
        Initialize collector.

        Args:
            timeout: Per-request timeout in seconds
            retries: Attempts per board call (1 = no retry)
        """
        self.timeout = timeout
        self.retries = retries

    @property
    def name(self) -> str:
        return self.source.value

    @abstractmethod
    def board_url(self, slug: str) -> str:
        """Public board API URL for a company slug."""

    @abstractmethod
    def _extract_postings(self, data: Any) -> list[dict]:
        """Return the raw posting dicts from a board payload ([] if malformed)."""

    @abstractmethod
    def _parse_posting(self, data: dict) -> Optional[NormalizedPosting]:
        """Map one raw posting, or None if it lacks an id or title."""

    async def fetch(
        self,
        slug: str,
        keywords: Iterable[str],
        session: Optional[aiohttp.ClientSession] = None,
    ) -> list[NormalizedPosting]:
        """
        Fetch a company's postings whose titles match the keywords.

        Transport failures, timeouts, non-2xx responses and malformed
        payloads all yield an empty list so one board cannot fail a batch.

        Args:
            slug: Board identifier for the company on this ATS
            keywords: Role keywords; empty means keep every posting
            session: Shared HTTP session (a private one is opened if omitted)

        Returns:
            List of NormalizedPosting objects.
        """
        keywords = list(keywords)
        try:
            if session is None:
                async with aiohttp.ClientSession() as own_session:
                    return await self._fetch_board(own_session, slug, keywords)
            return await self._fetch_board(session, slug, keywords)
        except Exception as e:
            logger.warning("%s fetch failed for %s: %s", self.name, slug, e)
            return []

    async def _fetch_board(
        self,
        session: aiohttp.ClientSession,
        slug: str,
        keywords: list[str],
    ) -> list[NormalizedPosting]:
        data = await http_get_json(
            session,
            self.board_url(slug),
            retries=self.retries,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )
        if data is None:
            return []

        postings = []
        for raw in self._extract_postings(data):
            if not isinstance(raw, dict):
                continue
            # Filter on the raw title before the (costlier) description parsing
            if not matches_role(str(raw.get(self.title_field) or ""), keywords):
                continue
            try:
                posting = self._parse_posting(raw)
            except Exception as e:
                logger.warning(
                    "%s/%s: skipping malformed posting %r: %s",
                    self.name, slug, raw.get("id"), e,
                )
                continue
            if posting is not None:
                postings.append(posting)

        logger.debug("%s/%s: %d matching postings", self.name, slug, len(postings))
        return postings

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
