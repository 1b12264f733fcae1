# This file binds the data access layer to a Streamlit browser session.
# It exists so each session gets exactly one EntityStore, created at session start and torn down at its end.
# The models list is requested eagerly when the session's data access object is created.

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, MutableMapping
from typing import Any, TypeVar

import streamlit as st

from src.common.logging import configure_logging
from src.forecast_dashboard.dashboard_config import DashboardConfig, load_dashboard_config
from src.forecast_dashboard.data_access import ForecastDataAccess

SESSION_KEY = "forecast_data_access"

T = TypeVar("T")


def run_sync(coroutine: Coroutine[Any, Any, T]) -> T:
    """Drive a data-access coroutine from a Streamlit script run."""

    return asyncio.run(coroutine)


def get_session_data_access(
    session_state: MutableMapping[str, Any] | None = None,
    *,
    config: DashboardConfig | None = None,
    data_access: ForecastDataAccess | None = None,
    eager_models: bool = True,
) -> ForecastDataAccess:
    state = st.session_state if session_state is None else session_state
    existing = state.get(SESSION_KEY)
    if existing is not None:
        return existing

    configure_logging()
    access = data_access or ForecastDataAccess(config=config or load_dashboard_config())
    state[SESSION_KEY] = access
    if eager_models:
        run_sync(access.load_models())
    return access


def end_session(session_state: MutableMapping[str, Any] | None = None) -> None:
    state = st.session_state if session_state is None else session_state
    access = state.pop(SESSION_KEY, None)
    if access is not None:
        access.close()
