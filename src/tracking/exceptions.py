"""Tracking exceptions for Job Tracker."""


class TrackerError(Exception):
    """Base exception for tracking errors."""

    pass


class ConfigurationError(TrackerError):
    """Raised when required configuration (e.g. mailbox credentials) is missing."""

    def __init__(self, message: str):
        super().__init__(message)


class DuplicateCompanyError(TrackerError):
    """Raised when adding a company whose slug is already tracked."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Company with this slug already exists: {slug}")


class CompanyNotFoundError(TrackerError):
    """Raised when a company id does not exist."""

    def __init__(self, company_id: int):
        self.company_id = company_id
        super().__init__(f"Company not found: {company_id}")


class ApplicationNotFoundError(TrackerError):
    """Raised when an application id does not exist."""

    def __init__(self, application_id: int):
        self.application_id = application_id
        super().__init__(f"Application not found: {application_id}")


class InvalidStatusError(TrackerError):
    """Raised when a status is not one of the known application statuses."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Invalid status: {status}")
