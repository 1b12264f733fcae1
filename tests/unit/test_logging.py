"""
Unit tests for logging setup.
It asserts expected behavior and guards against regressions in the corresponding component.
These tests are executed by `pytest` locally and in CI and should remain deterministic.
"""

import logging

import pytest

from src.common import logging as logging_module
from src.common import settings as settings_module


@pytest.fixture
def fresh_logging(monkeypatch: pytest.MonkeyPatch):
    package_logger = logging.getLogger(logging_module.PACKAGE_LOGGER)
    previous_level = package_logger.level
    monkeypatch.setattr(logging_module, "_LOGGING_CONFIGURED", False)
    settings_module.get_settings.cache_clear()
    yield package_logger
    package_logger.setLevel(previous_level)
    settings_module.get_settings.cache_clear()


def test_configure_logging_applies_level_to_data_layer(
    fresh_logging: logging.Logger, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    logging_module.configure_logging()
    assert fresh_logging.level == logging.WARNING
    assert not logging.getLogger("forecast_dashboard.transport").isEnabledFor(logging.INFO)


def test_configure_logging_runs_once(
    fresh_logging: logging.Logger, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    logging_module.configure_logging()
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    settings_module.get_settings.cache_clear()
    logging_module.configure_logging()
    assert fresh_logging.level == logging.DEBUG
