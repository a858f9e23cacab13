"""Title keyword filter shared by all collectors."""
from typing import Iterable, Optional


def parse_keywords(target_role: Optional[str]) -> list[str]:
    """Split the comma-separated target role preference into keywords.

    "Product Manager, Product Lead" -> ["product manager", "product lead"]
    """
    if not target_role:
        return []
    return [part.strip().lower() for part in target_role.split(",") if part.strip()]


def matches_role(title: str, keywords: Iterable[str]) -> bool:
    """Check if a job title contains any of the keywords (case-insensitive).

    An empty keyword list means no filtering is configured, so every title
    matches.
    """
    terms = [kw.strip().lower() for kw in keywords if kw and kw.strip()]
    if not terms:
        return True
    title_lower = (title or "").lower()
    return any(term in title_lower for term in terms)
