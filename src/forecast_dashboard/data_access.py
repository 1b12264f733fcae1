# This file is the single data interface for the forecast dashboard panels.
# It exists so panels can request business-ready payloads without caring about transport or caching.
# Every resource kind goes through the session's EntityStore, so repeated or concurrent
# requests for the same entity share one network call and one cache entry.
# The models list is loaded eagerly per session and filtered once at ingestion.

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterable, Mapping
from functools import partial
from typing import Any

from src.forecast_dashboard.api_client import DEFAULT_TEST_SIZE_DAYS, ForecastApiClient
from src.forecast_dashboard.dashboard_config import DashboardConfig
from src.forecast_dashboard.entity_store import EntityStore, ResourceView
from src.forecast_dashboard.payloads import (
    EvaluationResponse,
    FeatureManifest,
    InterpretationResponse,
    ModelInfo,
    PredictionResponse,
    filter_models,
)
from src.forecast_dashboard.series_aligner import AlignedTable, align, series_from_predictions
from src.forecast_dashboard.transport import ForecastTransport
from src.forecast_dashboard.ui_text import failure_message

MODELS = "models"
EVALUATION = "evaluation"
INTERPRETATION = "interpretation"
FEATURES = "features"
PREDICTIONS = "predictions"
SIMULATION = "simulation"
COMPARISON = "comparison"
HISTORICAL = "historical"
PATTERNS = "patterns"
ANOMALIES = "anomalies"
PEAKS = "peaks"
DECOMPOSITION = "decomposition"
STATISTICAL_TESTS = "statistical_tests"
RESIDUAL_ANALYSIS = "residual_analysis"
ERROR_ANALYSIS = "error_analysis"
VISUALIZATION = "visualization"
LATEX_EXPORT = "latex_export"
REPRODUCIBILITY_REPORT = "reproducibility_report"
MODEL_DIAGNOSTICS = "model_diagnostics"

SCIENTIFIC_KINDS = (
    STATISTICAL_TESTS,
    RESIDUAL_ANALYSIS,
    ERROR_ANALYSIS,
    VISUALIZATION,
    LATEX_EXPORT,
    REPRODUCIBILITY_REPORT,
    MODEL_DIAGNOSTICS,
)

MODELS_KEY = "all"


class ForecastDataAccess:
    def __init__(
        self,
        *,
        config: DashboardConfig,
        api_client: ForecastApiClient | None = None,
        store: EntityStore | None = None,
    ) -> None:
        self.config = config
        self.api_client = api_client or ForecastApiClient(
            transport=ForecastTransport(
                base_url=config.api_base_url,
                timeout_seconds=config.request_timeout_seconds,
                max_retries=config.max_retries,
                base_delay_seconds=config.retry_base_delay_seconds,
            )
        )
        self.store = store or EntityStore()

    async def load_models(self) -> dict[str, ModelInfo] | None:
        async def loader() -> dict[str, ModelInfo]:
            models = await self.api_client.get_models()
            return filter_models(models, excluded_types=self.config.excluded_model_types)

        return await self.store.get_or_fetch(MODELS, MODELS_KEY, loader)

    def models_view(self) -> ResourceView:
        return self.store.view(MODELS, MODELS_KEY)

    async def get_evaluation(self, model_id: str) -> EvaluationResponse | None:
        return await self.store.get_or_fetch(
            EVALUATION, model_id, partial(self.api_client.get_evaluation, model_id)
        )

    async def get_interpretation(self, model_id: str) -> InterpretationResponse | None:
        return await self.store.get_or_fetch(
            INTERPRETATION, model_id, partial(self.api_client.get_interpretation, model_id)
        )

    async def get_features(self, model_id: str) -> FeatureManifest | None:
        return await self.store.get_or_fetch(
            FEATURES, model_id, partial(self.api_client.get_features, model_id)
        )

    async def get_forecasts(
        self, model_ids: Iterable[str], forecast_horizon: int | None = None
    ) -> list[PredictionResponse]:
        """Fetch one forecast per model; models whose fetch failed are left out."""

        horizon = self.config.clamp_horizon(forecast_horizon)
        unique_ids = list(dict.fromkeys(model_ids))
        results = await asyncio.gather(
            *(
                self.store.get_or_fetch(
                    PREDICTIONS,
                    prediction_key(model_id, horizon),
                    partial(self._fetch_forecast, model_id, horizon),
                    error_message=failure_message(PREDICTIONS, model_id),
                )
                for model_id in unique_ids
            )
        )
        return [result for result in results if result is not None]

    async def forecast_table(
        self, model_ids: Iterable[str], forecast_horizon: int | None = None
    ) -> AlignedTable:
        predictions = await self.get_forecasts(model_ids, forecast_horizon)
        return align(series_from_predictions(predictions))

    def forecast_view(self, model_id: str, forecast_horizon: int | None = None) -> ResourceView:
        horizon = self.config.clamp_horizon(forecast_horizon)
        return self.store.view(PREDICTIONS, prediction_key(model_id, horizon))

    async def run_simulation(self, request: Mapping[str, Any]) -> PredictionResponse | None:
        return await self.store.get_or_fetch(
            SIMULATION, request_key(request), partial(self.api_client.post_simulation, request)
        )

    async def compare_scenarios(self, request: Mapping[str, Any]) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            COMPARISON, request_key(request), partial(self.api_client.post_compare, request)
        )

    async def get_historical(self, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            HISTORICAL, request_key(params), partial(self.api_client.get_historical, params)
        )

    async def get_patterns(self, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            PATTERNS, request_key(params), partial(self.api_client.get_patterns, params)
        )

    async def get_anomalies(self, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            ANOMALIES, request_key(params), partial(self.api_client.get_anomalies, params)
        )

    async def get_peaks(self, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            PEAKS, request_key(params), partial(self.api_client.get_peaks, params)
        )

    async def get_decomposition(
        self, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            DECOMPOSITION, request_key(params), partial(self.api_client.get_decomposition, params)
        )

    async def run_statistical_tests(self, request: Mapping[str, Any]) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            STATISTICAL_TESTS,
            request_key(request),
            partial(self.api_client.post_statistical_tests, request),
        )

    async def run_residual_analysis(self, request: Mapping[str, Any]) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            RESIDUAL_ANALYSIS,
            request_key(request),
            partial(self.api_client.post_residual_analysis, request),
        )

    async def run_error_analysis(self, request: Mapping[str, Any]) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            ERROR_ANALYSIS, request_key(request), partial(self.api_client.post_error_analysis, request)
        )

    async def generate_visualization(self, request: Mapping[str, Any]) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            VISUALIZATION, request_key(request), partial(self.api_client.post_visualization, request)
        )

    async def export_latex(self, request: Mapping[str, Any]) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            LATEX_EXPORT, request_key(request), partial(self.api_client.post_latex_export, request)
        )

    async def get_reproducibility_report(
        self, request: Mapping[str, Any] | None = None
    ) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            REPRODUCIBILITY_REPORT,
            request_key(request),
            partial(self.api_client.post_reproducibility_report, request),
        )

    async def get_model_diagnostics(
        self, model_id: str, test_size_days: int = DEFAULT_TEST_SIZE_DAYS
    ) -> dict[str, Any] | None:
        return await self.store.get_or_fetch(
            MODEL_DIAGNOSTICS,
            request_key({"model_id": model_id, "test_size_days": test_size_days}),
            partial(self.api_client.get_model_diagnostics, model_id, test_size_days),
            error_message=failure_message(MODEL_DIAGNOSTICS, model_id),
        )

    def clear_scientific(self) -> None:
        for kind in SCIENTIFIC_KINDS:
            self.store.clear(kind)

    def clear_predictions(self) -> None:
        self.store.clear(PREDICTIONS)

    def clear_simulation(self) -> None:
        self.store.clear(SIMULATION)

    def clear_compare(self) -> None:
        self.store.clear(COMPARISON)

    def close(self) -> None:
        self.store.reset()
        self.api_client.transport.close()

    async def _fetch_forecast(self, model_id: str, horizon: int) -> PredictionResponse:
        predictions = await self.api_client.post_predictions(
            model_ids=[model_id], forecast_horizon=horizon
        )
        for prediction in predictions:
            if prediction.model_id == model_id:
                return prediction
        raise ValueError(f"Prediction response did not include model {model_id}")


def prediction_key(model_id: str, horizon: int) -> str:
    return f"{model_id}@{horizon}"


def request_key(payload: Mapping[str, Any] | None) -> str:
    """Stable cache key for a request body or query: key order does not matter."""

    return json.dumps(dict(payload or {}), sort_keys=True, separators=(",", ":"), default=str)
