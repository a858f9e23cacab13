"""Database persistence layer."""
from .database import Database
from .models import (
    Application,
    ApplicationStatus,
    Base,
    Company,
    Job,
    Meta,
    Source,
)

__all__ = [
    "Base",
    "Company",
    "Job",
    "Application",
    "Meta",
    "Source",
    "ApplicationStatus",
    "Database",
]
