import logging
from pathlib import Path

import structlog

from flow.config import FlowSettings
from flow.logging_config import configure_logging


def test_settings_defaults(monkeypatch):
    for key in ("FLOW_DATA_PATH", "FLOW_HORIZON_YEARS", "FLOW_VERBOSE", "FLOW_LOG_JSON"):
        monkeypatch.delenv(key, raising=False)
    s = FlowSettings()
    assert s.data_path == Path("data/transactions.json")
    assert s.horizon_years == 1
    assert s.verbose is False


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FLOW_DATA_PATH", str(tmp_path / "tx.json"))
    monkeypatch.setenv("FLOW_HORIZON_YEARS", "3")
    monkeypatch.setenv("FLOW_LOG_JSON", "true")
    s = FlowSettings()
    assert s.data_path == tmp_path / "tx.json"
    assert s.horizon_years == 3
    assert s.log_json is True


def test_configure_logging_levels():
    configure_logging(verbose=True, log_json=True)
    assert logging.getLogger("flow").level == logging.DEBUG
    assert len(logging.getLogger().handlers) == 1

    configure_logging(verbose=False)
    assert logging.getLogger("flow").level == logging.INFO
    structlog.get_logger("flow.test").info("config.test", ok=True)
