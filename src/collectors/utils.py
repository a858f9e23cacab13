"""Shared utilities for job collectors."""
import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp

logger = logging.getLogger(__name__)


def _backoff(attempt: int) -> float:
    return (2 ** attempt) + random.uniform(0, 1)


async def http_get_json(
    session: aiohttp.ClientSession,
    url: str,
    *,
    retries: int = 3,
    **kwargs,
) -> dict | list | None:
    """GET request returning parsed JSON with retry on transient failures.

    Retries on 429 (rate limit), 5xx (server error), timeouts, and
    connection errors with exponential backoff + jitter, up to ``retries``
    attempts in total.

    Returns None on non-retryable errors (400, 403, 404, etc.) and once
    the attempts are exhausted. A body that is not valid JSON raises.
    """
    retries = max(1, retries)
    last_error = None
    for attempt in range(retries):
        is_last = attempt == retries - 1
        try:
            async with session.get(url, **kwargs) as resp:
                if resp.status == 429 or resp.status >= 500:
                    last_error = f"HTTP {resp.status}"
                    if not is_last:
                        wait = _backoff(attempt)
                        logger.warning(
                            "HTTP %d from %s, retrying in %.1fs (attempt %d/%d)",
                            resp.status, url, wait, attempt + 1, retries,
                        )
                        await asyncio.sleep(wait)
                    continue
                if resp.status < 200 or resp.status >= 300:
                    logger.info("HTTP %d from %s", resp.status, url)
                    return None
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            last_error = e
            if not is_last:
                wait = _backoff(attempt)
                logger.warning(
                    "Request to %s failed: %s, retrying in %.1fs (attempt %d/%d)",
                    url, e, wait, attempt + 1, retries,
                )
                await asyncio.sleep(wait)

    if last_error:
        logger.warning("Giving up on %s after %d attempt(s): %s", url, retries, last_error)
    return None


def epoch_ms_to_iso(timestamp: Any) -> Optional[str]:
    """
    Render a Unix timestamp in milliseconds as ISO-8601 UTC text.

    1704067200000 -> "2024-01-01T00:00:00.000Z"

    Args:
        timestamp: Milliseconds since the epoch (int, float or numeric string)

    Returns:
        ISO string or None if the value is missing or unparseable
    """
    if not timestamp:
        return None
    try:
        moment = datetime.fromtimestamp(int(timestamp) / 1000, tz=timezone.utc)
    except (ValueError, TypeError, OverflowError, OSError):
        return None
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def text_or_empty(value: Any) -> str:
    """Stringify an optional payload field, mapping None to ""."""
    if value is None:
        return ""
    return str(value).strip()
