"""Greenhouse job board collector."""
from typing import Any, Optional

from src.persistence.models import Source
from src.pipeline.experience import extract_experience

from .base import BaseCollector, NormalizedPosting
from .utils import text_or_empty


class GreenhouseCollector(BaseCollector):
    """Collector for Greenhouse job boards."""

    source = Source.GREENHOUSE

    def board_url(self, slug: str) -> str:
        # content=true inlines the description so no per-job request is needed
        return f"https://boards-api.greenhouse.io/v1/boards/{slug}/jobs?content=true"

    def _extract_postings(self, data: Any) -> list[dict]:
        if not isinstance(data, dict):
            return []
        jobs = data.get("jobs")
        return jobs if isinstance(jobs, list) else []

    def _parse_posting(self, data: dict) -> Optional[NormalizedPosting]:
        """Parse Greenhouse job data to NormalizedPosting."""
        job_id = data.get("id")
        title = text_or_empty(data.get("title"))
        if job_id is None or not title:
            return None

        location = data.get("location") or {}
        departments = data.get("departments") or []
        department = ""
        if departments and isinstance(departments[0], dict):
            department = text_or_empty(departments[0].get("name"))

        return NormalizedPosting(
            # Greenhouse ids are used bare; other sources are prefixed
            external_id=str(job_id),
            title=title,
            url=text_or_empty(data.get("absolute_url")),
            location=text_or_empty(location.get("name")) if isinstance(location, dict) else "",
            department=department,
            posted_at=data.get("first_published") or data.get("updated_at") or None,
            experience=extract_experience(data.get("content")),
        )
