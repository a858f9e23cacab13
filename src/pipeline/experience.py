"""Years-of-experience label extraction from job descriptions."""
import html
import re
from typing import Optional

from bs4 import BeautifulSoup

# Longest label shown in the jobs table
MAX_LABEL_LENGTH = 45
ELLIPSIS = "…"

# "5 years", "5+ years", "3-5 years", "3 – 5+ years of product management ..."
EXPERIENCE_PATTERN = re.compile(
    r"\d+\+?\s*(?:[-–]\s*\d+\+?)?\s*years?(?:\s+of(?:\s+\w+){0,4})?",
    re.IGNORECASE,
)


def description_to_text(description: Optional[str]) -> str:
    """Flatten an HTML (possibly entity-escaped) description to plain text."""
    if not description:
        return ""
    # Greenhouse content arrives entity-encoded, decode first then strip tags
    decoded = html.unescape(description)
    soup = BeautifulSoup(decoded, "html.parser")
    text = soup.get_text(separator=" ")
    return re.sub(r"\s+", " ", text).strip()


def extract_experience(description: Optional[str]) -> Optional[str]:
    """Pull a short "N+ years of ..." label out of a job description.

    Args:
        description: Raw HTML or plain-text description (may be None)

    Returns:
        The first matching phrase, truncated with an ellipsis past 45
        characters, or None when no years pattern is present.
    """
    text = description_to_text(description)
    if not text:
        return None

    match = EXPERIENCE_PATTERN.search(text)
    if not match:
        return None

    label = match.group(0).strip()
    if len(label) > MAX_LABEL_LENGTH:
        label = label[: MAX_LABEL_LENGTH - 3] + ELLIPSIS
    return label
