"""Lever job board collector."""
from typing import Any, Optional

from src.persistence.models import Source
from src.pipeline.experience import extract_experience

from .base import BaseCollector, NormalizedPosting
from .utils import epoch_ms_to_iso, text_or_empty


class LeverCollector(BaseCollector):
    """Collector for Lever job boards."""

    source = Source.LEVER
    title_field = "text"

    def board_url(self, slug: str) -> str:
        return f"https://api.lever.co/v0/postings/{slug}?mode=json"

    def _extract_postings(self, data: Any) -> list[dict]:
        # Lever answers with a bare array; anything else is an error payload
        return data if isinstance(data, list) else []

    def _parse_posting(self, data: dict) -> Optional[NormalizedPosting]:
        """Parse Lever posting data to NormalizedPosting."""
        posting_id = text_or_empty(data.get("id"))
        title = text_or_empty(data.get("text"))
        if not posting_id or not title:
            return None

        categories = data.get("categories") or {}
        content = data.get("content") or {}

        # Description: content block first, then the top-level fields
        description = (
            content.get("descriptionHtml")
            or content.get("descriptionPlain")
            or data.get("description")
            or data.get("descriptionPlain")
        )

        return NormalizedPosting(
            external_id=f"lever_{posting_id}",
            title=title,
            url=text_or_empty(data.get("hostedUrl")),
            location=text_or_empty(categories.get("location")),
            department=text_or_empty(categories.get("department") or categories.get("team")),
            posted_at=epoch_ms_to_iso(data.get("createdAt")),
            experience=extract_experience(description),
        )
