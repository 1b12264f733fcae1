# This file defines runtime configuration for the forecast dashboard data layer.
# It exists so the backend endpoint, timeout, and retry policy can be tuned through environment variables.
# Keeping these values centralized avoids hard-coded behavior scattered across the client and store.

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY_SECONDS = 1.0
DEFAULT_EXCLUDED_MODEL_TYPES = ("dl",)
DEFAULT_FORECAST_HORIZON = 7


@dataclass(frozen=True)
class DashboardConfig:
    api_base_url: str
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_delay_seconds: float = DEFAULT_RETRY_BASE_DELAY_SECONDS
    excluded_model_types: tuple[str, ...] = DEFAULT_EXCLUDED_MODEL_TYPES
    default_forecast_horizon: int = DEFAULT_FORECAST_HORIZON

    def clamp_horizon(self, requested_horizon: int | None) -> int:
        if requested_horizon is None:
            return self.default_forecast_horizon
        return max(1, int(requested_horizon))


def _parse_type_list(raw_value: str | None) -> tuple[str, ...]:
    if raw_value is None:
        return DEFAULT_EXCLUDED_MODEL_TYPES
    return tuple(part.strip().lower() for part in raw_value.split(",") if part.strip())


def load_dashboard_config(*, load_env: bool = True) -> DashboardConfig:
    if load_env:
        load_dotenv()

    api_base_url = os.getenv("FORECAST_API_ENDPOINT")
    if not api_base_url:
        api_host = os.getenv("API_HOST", "localhost")
        api_port = os.getenv("API_PORT", "8000")
        api_base_url = f"http://{api_host}:{api_port}"

    max_retries = int(os.getenv("FORECAST_MAX_RETRIES", str(DEFAULT_MAX_RETRIES)))
    if max_retries < 0:
        raise RuntimeError("FORECAST_MAX_RETRIES must be zero or greater.")

    return DashboardConfig(
        api_base_url=api_base_url.rstrip("/"),
        request_timeout_seconds=float(
            os.getenv("FORECAST_REQUEST_TIMEOUT_SECONDS", str(DEFAULT_REQUEST_TIMEOUT_SECONDS))
        ),
        max_retries=max_retries,
        retry_base_delay_seconds=float(
            os.getenv(
                "FORECAST_RETRY_BASE_DELAY_SECONDS", str(DEFAULT_RETRY_BASE_DELAY_SECONDS)
            )
        ),
        excluded_model_types=_parse_type_list(os.getenv("FORECAST_EXCLUDED_MODEL_TYPES")),
        default_forecast_horizon=int(
            os.getenv("FORECAST_DEFAULT_HORIZON", str(DEFAULT_FORECAST_HORIZON))
        ),
    )
