"""Tests for logging and tracing setup."""
import logging
import os

from archie.core.config import Settings
from archie.core.logging_config import SuppressHealthCheckFilter
from archie.core.tracing import configure_tracing


def make_record(message, args=()):
    return logging.LogRecord("uvicorn.access", logging.INFO, __file__, 1, message, args, None)


def test_health_check_access_logs_are_suppressed():
    health_filter = SuppressHealthCheckFilter()

    assert health_filter.filter(make_record("GET /api/healthz HTTP/1.1 200")) is False
    assert health_filter.filter(make_record("POST /api/threads HTTP/1.1 201")) is True


def test_failing_health_checks_are_kept():
    record = make_record('%s - "%s %s HTTP/%s" %d', ("127.0.0.1", "GET", "/api/health", "1.1", 503))

    assert SuppressHealthCheckFilter().filter(record) is True


def test_tracing_disabled_by_default(monkeypatch):
    monkeypatch.setenv("LANGSMITH_TRACING", "true")

    assert configure_tracing(Settings(LANGSMITH_TRACING=False)) is False
    assert os.environ["LANGSMITH_TRACING"] == "false"


def test_tracing_enabled_exports_settings(monkeypatch):
    for name in ("LANGSMITH_TRACING", "LANGSMITH_API_KEY", "LANGSMITH_PROJECT"):
        monkeypatch.setenv(name, "")
    settings = Settings(LANGSMITH_TRACING=True, LANGSMITH_API_KEY="key", LANGSMITH_PROJECT="archie-tests")

    assert configure_tracing(settings) is True
    assert os.environ["LANGSMITH_PROJECT"] == "archie-tests"
