"""Testes para config.logging.

Cobre: configure_logging, get_logger, log_protection_event,
WebhookContextFilter, create_json_formatter.
"""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock

import pytest

from config.logging import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    WebhookContextFilter,
    configure_logging,
    create_json_formatter,
    get_logger,
    log_protection_event,
)
from config.logging.config import DEFAULT_SERVICE_NAME, VALID_LOG_LEVELS


def _record(msg: str = "msg", **attrs: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestConfigureLogging:
    """Testes para configure_logging."""

    def test_configure_logging_default_level(self) -> None:
        """Configura logging com nível padrão INFO."""
        configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_case_insensitive(self) -> None:
        configure_logging(level="warning")
        assert logging.getLogger().level == logging.WARNING

    def test_configure_logging_invalid_level_raises(self) -> None:
        """Nível inválido levanta ValueError."""
        with pytest.raises(ValueError, match="Nível de log inválido"):
            configure_logging(level="VERBOSE")

    def test_configure_logging_replaces_handlers(self) -> None:
        """Handlers existentes são substituídos por um único handler JSON."""
        root = logging.getLogger()
        root.handlers = [logging.NullHandler(), logging.NullHandler()]
        configure_logging()
        assert len(root.handlers) == 1
        assert any(isinstance(f, WebhookContextFilter) for f in root.handlers[0].filters)

    def test_constants(self) -> None:
        assert {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} == VALID_LOG_LEVELS
        assert DEFAULT_SERVICE_NAME == "agenda-sync"


def test_get_logger_same_name_returns_same_instance() -> None:
    assert get_logger("agenda.module") is get_logger("agenda.module")


class TestLogProtectionEvent:
    """Eventos de degradação em WARNING, demais em INFO."""

    @pytest.mark.parametrize(
        "event_type",
        ["circuit_opened", "request_blocked", "rate_limited", "security_violation", "bypass_used"],
    )
    def test_degradation_events_are_warnings(self, event_type: str) -> None:
        logger = MagicMock(spec=logging.Logger)

        log_protection_event(logger, event_type, provider="zoom")

        level, template, name = logger.log.call_args[0]
        assert level == logging.WARNING
        assert template == "protection_%s"
        assert name == event_type

    def test_other_events_are_info(self) -> None:
        logger = MagicMock(spec=logging.Logger)

        log_protection_event(logger, "circuit_closed", provider="caldav", successes=3)

        assert logger.log.call_args[0][0] == logging.INFO
        extra = logger.log.call_args[1]["extra"]
        assert extra == {"protection_event": "circuit_closed", "successes": 3, "provider": "caldav"}

    def test_provider_is_optional(self) -> None:
        logger = MagicMock(spec=logging.Logger)

        log_protection_event(logger, "health_reset")

        assert "provider" not in logger.log.call_args[1]["extra"]


class TestWebhookContextFilter:
    def test_injects_context_from_getters(self) -> None:
        filter_ = WebhookContextFilter("agenda-sync", lambda: "webhook_1_ab", lambda: "zoom")
        record = _record()

        assert filter_.filter(record) is True
        assert record.correlation_id == "webhook_1_ab"
        assert record.provider == "zoom"
        assert record.service == "agenda-sync"

    def test_preserves_explicit_values(self) -> None:
        filter_ = WebhookContextFilter("svc", lambda: "from-getter", lambda: "zoom")
        record = _record(correlation_id="explicit-id", provider="caldav")

        filter_.filter(record)

        assert record.correlation_id == "explicit-id"
        assert record.provider == "caldav"

    def test_defaults_to_empty_strings(self) -> None:
        filter_ = WebhookContextFilter("svc")
        record = _record()

        filter_.filter(record)

        assert record.correlation_id == ""
        assert record.provider == ""


class TestJsonFormatter:
    def test_renames_and_includes_required_fields(self) -> None:
        formatter = create_json_formatter()
        record = _record("job_completed", correlation_id="webhook_1_ab", provider="zoom", service="svc")

        payload = json.loads(formatter.format(record))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "test"
        assert payload["message"] == "job_completed"
        assert payload["correlation_id"] == "webhook_1_ab"
        assert payload["provider"] == "zoom"

    def test_field_constants(self) -> None:
        assert "correlation_id" in REQUIRED_LOG_FIELDS
        assert "provider" in REQUIRED_LOG_FIELDS
        assert FIELD_RENAME_MAP == {"levelname": "level", "name": "logger"}
