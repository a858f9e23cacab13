"""Tests for infrastructure: HTTP retry helper, timestamp helpers, logging, settings."""
import asyncio
import logging
import logging.handlers
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.collectors.utils import epoch_ms_to_iso, http_get_json, text_or_empty


class FakeContextManager:
    """Async context manager yielding a response, or raising when given an exception."""

    def __init__(self, resp):
        self.resp = resp

    async def __aenter__(self):
        if isinstance(self.resp, BaseException):
            raise self.resp
        return self.resp

    async def __aexit__(self, *args):
        pass


def _response(status, payload=None):
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=payload)
    return resp


def _session(*responses):
    session = MagicMock()
    session.get = MagicMock(side_effect=[FakeContextManager(r) for r in responses])
    return session


# =============================================================================
# Retry utility tests
# =============================================================================


class TestHTTPRetry:
    """Test retry helper in collectors/utils.py."""

    @pytest.mark.asyncio
    async def test_success(self):
        session = _session(_response(200, {"jobs": []}))

        assert await http_get_json(session, "https://api.example.com/jobs") == {"jobs": []}

    @pytest.mark.asyncio
    async def test_list_payload(self):
        session = _session(_response(200, [{"id": "1"}]))

        assert await http_get_json(session, "https://api.example.com/jobs") == [{"id": "1"}]

    @pytest.mark.asyncio
    async def test_404_returns_none_without_retry(self):
        session = _session(_response(404, {}))

        assert await http_get_json(session, "https://api.example.com/jobs", retries=3) is None
        assert session.get.call_count == 1

    @pytest.mark.asyncio
    async def test_retries_on_500(self):
        session = _session(_response(500), _response(200, {"ok": True}))

        with patch("src.collectors.utils._backoff", return_value=0):
            result = await http_get_json(session, "https://api.example.com/jobs", retries=2)

        assert result == {"ok": True}
        assert session.get.call_count == 2

    @pytest.mark.asyncio
    async def test_retries_on_timeout(self):
        session = _session(asyncio.TimeoutError(), _response(200, {"ok": True}))

        with patch("src.collectors.utils._backoff", return_value=0):
            result = await http_get_json(session, "https://api.example.com/jobs", retries=2)

        assert result == {"ok": True}

    @pytest.mark.asyncio
    async def test_single_attempt_does_not_sleep(self):
        session = _session(_response(429))

        with patch("src.collectors.utils.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await http_get_json(session, "https://api.example.com/jobs", retries=1) is None

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self):
        session = _session(_response(503), _response(503), _response(503))

        with patch("src.collectors.utils._backoff", return_value=0):
            assert await http_get_json(session, "https://api.example.com/jobs", retries=3) is None

        assert session.get.call_count == 3

    @pytest.mark.asyncio
    async def test_forwards_request_options(self):
        session = _session(_response(200, {}))

        await http_get_json(session, "https://api.example.com/jobs", timeout="t")

        session.get.assert_called_once_with("https://api.example.com/jobs", timeout="t")


class TestPayloadHelpers:
    """Tests for payload conversion helpers."""

    def test_epoch_ms_to_iso(self):
        assert epoch_ms_to_iso(1704067200000) == "2024-01-01T00:00:00.000Z"
        assert epoch_ms_to_iso("1704067200123") == "2024-01-01T00:00:00.123Z"

    @pytest.mark.parametrize("value", [None, 0, "", "soon"])
    def test_epoch_ms_to_iso_invalid(self, value):
        assert epoch_ms_to_iso(value) is None

    def test_text_or_empty(self):
        assert text_or_empty(None) == ""
        assert text_or_empty("  Remote ") == "Remote"
        assert text_or_empty(42) == "42"


# =============================================================================
# Logging configuration tests
# =============================================================================


class TestLoggingConfig:
    """Test logging setup."""

    def test_setup_logging_configures_root_logger(self):
        """setup_logging should add a console handler to the root logger."""
        from src.logging_config import setup_logging

        root = logging.getLogger()
        original_handlers = root.handlers.copy()
        root.handlers.clear()

        try:
            setup_logging(level="INFO")
            assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)
        finally:
            root.handlers = original_handlers

    def test_setup_logging_idempotent(self):
        """Calling setup_logging twice should not add duplicate handlers."""
        from src.logging_config import setup_logging

        root = logging.getLogger()
        original_handlers = root.handlers.copy()
        root.handlers.clear()

        try:
            setup_logging(level="INFO")
            count_after_first = len(root.handlers)
            setup_logging(level="INFO")
            assert len(root.handlers) == count_after_first
        finally:
            root.handlers = original_handlers

    def test_setup_logging_force_replaces_handlers(self, tmp_path):
        from src.logging_config import setup_logging

        root = logging.getLogger()
        original_handlers = root.handlers.copy()
        root.handlers.clear()

        try:
            setup_logging(level="INFO")
            setup_logging(level="DEBUG", log_file=str(tmp_path / "forced.log"), force=True)
            assert root.level == logging.DEBUG
            assert any(
                isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers
            )
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = original_handlers

    def test_setup_logging_from_settings(self, tmp_path):
        from src.logging_config import setup_logging_from_settings

        root = logging.getLogger()
        original_handlers = root.handlers.copy()
        root.handlers.clear()

        log_file = tmp_path / "logs" / "tracker.log"
        try:
            setup_logging_from_settings(SimpleNamespace(log_level="warning", log_file=str(log_file)))
            assert root.level == logging.WARNING
            assert log_file.parent.exists()
            assert logging.getLogger("aiohttp").level == logging.WARNING
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = original_handlers

    def test_unknown_level_falls_back_to_info(self):
        from src.logging_config import setup_logging

        root = logging.getLogger()
        original_handlers = root.handlers.copy()
        root.handlers.clear()

        try:
            setup_logging(level="LOUD")
            assert root.level == logging.INFO
        finally:
            root.handlers = original_handlers


# =============================================================================
# Settings tests
# =============================================================================


class TestSettings:
    """Tests for the settings model."""

    def test_defaults(self, monkeypatch):
        from config.settings import Settings

        monkeypatch.delenv("GMAIL_USER", raising=False)
        monkeypatch.delenv("GMAIL_APP_PASSWORD", raising=False)
        s = Settings(_env_file=None)

        assert s.fetch_timeout_seconds == 15.0
        assert s.ingest_batch_size == 5
        assert s.ingest_batch_delay_ms == 200
        assert s.email_recent_limit == 3
        assert s.has_mail_credentials is False
        assert s.companies_seed_file.name == "companies.yaml"

    def test_env_overrides(self, monkeypatch):
        from config.settings import Settings

        monkeypatch.setenv("GMAIL_USER", "me@example.com")
        monkeypatch.setenv("GMAIL_APP_PASSWORD", "abcd efgh")
        monkeypatch.setenv("INGEST_BATCH_SIZE", "10")
        s = Settings(_env_file=None)

        assert s.has_mail_credentials is True
        assert s.ingest_batch_size == 10
