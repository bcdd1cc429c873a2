"""Tests for settings validation and the JSON log formatter."""

import json
import logging
from decimal import Decimal

import pytest
from pydantic import ValidationError

from pharmreturns.config import Settings
from pharmreturns.middleware.logging_config import JSONFormatter, configure_logging
from pharmreturns.middleware.request_context import _request_id_var
from pharmreturns.services.batch_aggregator import FeeSchedule


class TestSettings:
    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.catalog_backend == "memory"
        assert s.service_fee_rate == Decimal("0.03")
        assert s.database_url.startswith("sqlite+aiosqlite")

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, catalog_backend="redis")

    def test_fee_bounds_checked(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, service_fee_min=Decimal("600"))

    def test_production_rejects_sqlite_catalog(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, environment="production", catalog_backend="database")

    def test_production_memory_catalog_allowed(self):
        s = Settings(_env_file=None, environment="production")
        assert s.catalog_backend == "memory"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SERVICE_FEE_MAX", "250")
        assert Settings(_env_file=None).service_fee_max == Decimal("250")

    def test_fee_schedule_from_settings(self):
        assert FeeSchedule.from_settings() == FeeSchedule()


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("pharmreturns.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["message"] == "hello x"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "pharmreturns.test"
        assert entry["request_id"] is None

    def test_request_id_and_extras(self):
        token = _request_id_var.set("req-1")
        try:
            line = JSONFormatter().format(_record(batch_size=3, net_credit=Decimal("953.50")))
        finally:
            _request_id_var.reset(token)
        entry = json.loads(line)
        assert entry["request_id"] == "req-1"
        assert entry["batch_size"] == 3
        assert entry["net_credit"] == "953.50"

    def test_configure_quiets_access_log(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("DEBUG", "json")
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert root.level == logging.DEBUG
            assert logging.getLogger("uvicorn.access").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
