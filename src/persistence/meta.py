"""Key/value register stored in the meta table."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.persistence.models import Meta

LAST_REFRESHED = "last_refreshed"
LAST_EMAIL_SYNC = "last_email_sync"
SEEDED = "seeded"
TARGET_ROLE = "target_role"

# Preference keys and the defaults reported when unset
PREFERENCE_DEFAULTS = {
    "target_role": None,
    "target_location": None,
    "target_location_type": "all",
    "target_exp": "all",
    "target_date_within": "any",
}


def get_meta(session: Session, key: str) -> Optional[str]:
    """Read a value, or None when the key was never written."""
    return session.execute(select(Meta.value).where(Meta.key == key)).scalar_one_or_none()


def set_meta(session: Session, key: str, value: Optional[str]) -> None:
    """Write a value (last write wins)."""
    row = session.get(Meta, key)
    if row is None:
        session.add(Meta(key=key, value=value))
    else:
        row.value = value
    session.flush()


def mark_now(session: Session, key: str) -> str:
    """Store the current UTC time as ISO-8601 under key and return it."""
    stamp = datetime.now(timezone.utc).isoformat()
    set_meta(session, key, stamp)
    return stamp


def get_preferences(session: Session) -> dict[str, Optional[str]]:
    """All user preferences with defaults filled in."""
    rows = session.execute(
        select(Meta.key, Meta.value).where(Meta.key.in_(list(PREFERENCE_DEFAULTS)))
    ).all()
    stored = {key: value for key, value in rows}
    return {
        key: stored.get(key) if stored.get(key) is not None else default
        for key, default in PREFERENCE_DEFAULTS.items()
    }


def set_preferences(session: Session, **values: Optional[str]) -> None:
    """Update the given preferences; keys passed as None are left untouched."""
    unknown = set(values) - set(PREFERENCE_DEFAULTS)
    if unknown:
        raise ValueError(f"Unknown preference(s): {', '.join(sorted(unknown))}")
    for key, value in values.items():
        if value is not None:
            set_meta(session, key, value)
