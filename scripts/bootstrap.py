"""Bootstrap module for scripts - path setup and the shared store handle.

Usage:
    from scripts.bootstrap import settings, get_database
"""
import sys
from pathlib import Path

# Add project root to path
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from config.settings import settings
from src.logging_config import setup_logging_from_settings
from src.persistence.database import Database


def get_database() -> Database:
    """Configure logging and open the store (tables, migrations, seed)."""
    setup_logging_from_settings(settings)
    return Database(settings.database_url, seed_file=settings.companies_seed_file)


__all__ = ["settings", "get_database"]
