"""Application tracking services."""
from .application_service import ApplicationService
from .company_service import CompanyService
from .email_sync import EmailSyncResult, sync_email

__all__ = ["ApplicationService", "CompanyService", "EmailSyncResult", "sync_email"]
