"""Application settings using Pydantic."""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///job_tracker.db",
        description="SQLAlchemy database URL",
    )

    # Mailbox (IMAP with an app password)
    gmail_user: Optional[str] = Field(
        default=None,
        description="Mailbox username used for email sync",
    )
    gmail_app_password: Optional[str] = Field(
        default=None,
        description="Mailbox application password used for email sync",
    )
    imap_host: str = Field(
        default="imap.gmail.com",
        description="IMAP server host",
    )
    imap_port: int = Field(
        default=993,
        description="IMAP server port (implicit TLS)",
    )
    imap_timeout_seconds: float = Field(
        default=30.0,
        description="Socket timeout applied to every IMAP command",
    )
    email_sync_deadline_seconds: float = Field(
        default=300.0,
        description="Upper bound on one full inbox scan; remaining companies are skipped",
    )
    email_recent_limit: int = Field(
        default=3,
        description="How many of the most recent matching messages to classify per company",
    )

    # Job board fetching
    fetch_timeout_seconds: float = Field(
        default=15.0,
        description="Per-request timeout for ATS board calls",
    )
    fetch_retries: int = Field(
        default=1,
        description="Attempts per ATS board call (1 = no retry)",
    )
    ingest_batch_size: int = Field(
        default=5,
        description="Companies fetched concurrently per batch",
    )
    ingest_batch_delay_ms: int = Field(
        default=200,
        description="Pause between ingestion batches (milliseconds)",
    )

    # Scheduler intervals
    refresh_interval_minutes: int = Field(
        default=60,
        description="How often to refresh job postings (minutes)",
    )
    email_sync_interval_minutes: int = Field(
        default=30,
        description="How often to sync application status from email (minutes)",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_file: Optional[str] = Field(
        default="logs/job_tracker.log",
        description="Rotating log file path (empty to disable)",
    )

    # Paths
    config_dir: Path = Field(
        default=Path(__file__).parent,
        description="Configuration directory",
    )

    @property
    def companies_seed_file(self) -> Path:
        """Path to the companies.yaml seed list."""
        return self.config_dir / "companies.yaml"

    @property
    def project_root(self) -> Path:
        """Project root directory."""
        return self.config_dir.parent

    @property
    def has_mail_credentials(self) -> bool:
        """True when both mailbox username and app password are set."""
        return bool(self.gmail_user) and bool(self.gmail_app_password)


# Global settings instance
settings = Settings()
