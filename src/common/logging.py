"""
Logging setup for the dashboard data layer.
Two named loggers report through it: `forecast_dashboard.transport` logs each retry at
INFO (method, path, backoff delay, attempt number), and `forecast_dashboard.entity_store`
logs each failed fetch at WARNING with the raw error behind the message shown in the UI.
`LOG_LEVEL=WARNING` therefore hides retries that eventually succeeded.
"""

from __future__ import annotations

import logging

from src.common.settings import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PACKAGE_LOGGER = "forecast_dashboard"

_LOGGING_CONFIGURED = False


def configure_logging() -> None:
    """Configure process-wide logging from environment settings."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT)
    # basicConfig is a no-op once the host (Streamlit) has configured the root logger.
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    _LOGGING_CONFIGURED = True
