"""Ashby job board collector."""
from typing import Any, Optional

from src.persistence.models import Source
from src.pipeline.experience import extract_experience

from .base import BaseCollector, NormalizedPosting
from .utils import text_or_empty


class AshbyCollector(BaseCollector):
    """Collector for Ashby job boards."""

    source = Source.ASHBY

    def board_url(self, slug: str) -> str:
        return (
            "https://boards-api.ashbyhq.com/posting-public/job-board"
            f"?organizationHostedJobsPageName={slug}"
        )

    def _extract_postings(self, data: Any) -> list[dict]:
        if not isinstance(data, dict):
            return []
        postings = data.get("jobPostings")
        return postings if isinstance(postings, list) else []

    def _parse_posting(self, data: dict) -> Optional[NormalizedPosting]:
        """Parse Ashby posting data to NormalizedPosting."""
        posting_id = text_or_empty(data.get("id"))
        title = text_or_empty(data.get("title"))
        if not posting_id or not title:
            return None

        return NormalizedPosting(
            external_id=f"ashby_{posting_id}",
            title=title,
            url=text_or_empty(data.get("jobUrl")),
            location=text_or_empty(data.get("locationName")),
            department=text_or_empty(data.get("departmentName")),
            posted_at=data.get("publishedDate") or None,
            experience=extract_experience(data.get("descriptionHtml")),
        )
