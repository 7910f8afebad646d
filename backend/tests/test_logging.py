"""Structured logging configuration tests."""

import json

import pytest
import structlog
from structlog.testing import capture_logs

from vibein.influencers import InfluencerService
from vibein.logging_config import add_app_context, build_processors, configure_logging, get_logger
from vibein.settings import settings
from vibein.storage import MemoryDocumentStore


@pytest.fixture
def restore_structlog():
    yield
    structlog.reset_defaults()


class TestProcessors:

    def test_app_context_added(self):
        event = add_app_context(None, "info", {"event": "offer_joined"})
        assert event["app"] == settings.app_name
        assert event["env"] == settings.env

    def test_app_context_does_not_override(self):
        event = add_app_context(None, "info", {"event": "offer_joined", "env": "staging"})
        assert event["env"] == "staging"

    def test_json_chain_formats_tracebacks(self):
        processors = build_processors("json")
        assert structlog.processors.format_exc_info in processors
        assert any(isinstance(p, structlog.processors.StackInfoRenderer) for p in processors)
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_chain(self):
        processors = build_processors("console")
        assert structlog.processors.format_exc_info not in processors
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


class TestConfigureLogging:

    def test_json_error_carries_traceback(self, capsys, restore_structlog):
        configure_logging(level="info", log_format="json")
        logger = get_logger("vibein.tests")

        try:
            raise RuntimeError("database is locked")
        except RuntimeError as e:
            logger.error("document_store_error", error=str(e), exc_info=True)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "document_store_error"
        assert event["level"] == "error"
        assert event["app"] == settings.app_name
        assert "RuntimeError: database is locked" in event["exception"]

    def test_level_filters(self, capsys, restore_structlog):
        configure_logging(level="warning", log_format="json")
        get_logger("vibein.tests").info("offer_joined")
        assert "offer_joined" not in capsys.readouterr().out


class TestServiceLoggers:

    def test_influencer_service_logs_events(self):
        with capture_logs() as logs:
            service = InfluencerService(MemoryDocumentStore())
            service.create_profile("inf-a", "Ana")

        assert {"event": "influencer_profile_created", "influencer_id": "inf-a", "log_level": "info"} in logs
