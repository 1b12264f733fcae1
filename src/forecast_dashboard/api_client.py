# This file implements the endpoint client used by the forecast dashboard.
# It exists so dashboard panels can call backend endpoints without embedding request details everywhere.
# Each coroutine builds one request descriptor, sends it through the retrying transport,
# and parses the JSON body into the typed payloads from payloads.py.

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from src.forecast_dashboard.payloads import (
    EvaluationResponse,
    FeatureManifest,
    InterpretationResponse,
    ModelInfo,
    PredictionResponse,
    parse_interpretation,
    parse_models,
    parse_predictions,
)
from src.forecast_dashboard.transport import ForecastTransport, RequestDescriptor

DEFAULT_TEST_SIZE_DAYS = 30


class ForecastApiClient:
    def __init__(self, *, transport: ForecastTransport) -> None:
        self.transport = transport

    async def get_models(self) -> dict[str, ModelInfo]:
        payload = await self._get("/api/models")
        return parse_models(payload)

    async def get_evaluation(self, model_id: str) -> EvaluationResponse:
        payload = await self._get(f"/api/evaluation/{_segment(model_id)}")
        return EvaluationResponse.model_validate(payload)

    async def get_interpretation(self, model_id: str) -> InterpretationResponse:
        payload = await self._get(f"/api/interpret/{_segment(model_id)}")
        return parse_interpretation(payload)

    async def get_features(self, model_id: str) -> FeatureManifest:
        payload = await self._get(f"/api/features/{_segment(model_id)}")
        return FeatureManifest.model_validate(payload)

    async def post_predictions(
        self, *, model_ids: list[str], forecast_horizon: int
    ) -> list[PredictionResponse]:
        payload = await self._post(
            "/api/predict",
            body={"model_ids": list(model_ids), "forecast_horizon": forecast_horizon},
        )
        return parse_predictions(payload)

    async def post_simulation(self, request: Mapping[str, Any]) -> PredictionResponse:
        payload = await self._post("/api/simulate", body=dict(request))
        return PredictionResponse.model_validate(payload)

    async def post_compare(self, request: Mapping[str, Any]) -> dict[str, Any]:
        return await self._post_object("/api/compare", body=dict(request))

    async def get_historical(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return await self._get_object("/api/historical", params=params)

    async def get_patterns(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return await self._get_object("/api/patterns", params=params)

    async def get_anomalies(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return await self._get_object("/api/anomalies", params=params)

    async def get_peaks(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return await self._get_object("/api/peaks", params=params)

    async def get_decomposition(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return await self._get_object("/api/decomposition", params=params)

    # Scientific analysis endpoints. Bodies are passed through as given; the backend
    # validates them and answers 422 on a malformed request.

    async def post_statistical_tests(self, request: Mapping[str, Any]) -> dict[str, Any]:
        return await self._post_object("/api/scientific/statistical-tests", body=dict(request))

    async def post_residual_analysis(self, request: Mapping[str, Any]) -> dict[str, Any]:
        return await self._post_object("/api/scientific/residual-analysis", body=dict(request))

    async def post_error_analysis(self, request: Mapping[str, Any]) -> dict[str, Any]:
        return await self._post_object("/api/scientific/error-analysis", body=dict(request))

    async def post_visualization(self, request: Mapping[str, Any]) -> dict[str, Any]:
        return await self._post_object("/api/scientific/visualize", body=dict(request))

    async def post_latex_export(self, request: Mapping[str, Any]) -> dict[str, Any]:
        return await self._post_object("/api/scientific/latex-export", body=dict(request))

    async def post_reproducibility_report(
        self, request: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self._post_object(
            "/api/scientific/reproducibility-report", body=dict(request or {})
        )

    async def get_model_diagnostics(
        self, model_id: str, test_size_days: int = DEFAULT_TEST_SIZE_DAYS
    ) -> dict[str, Any]:
        return await self._get_object(
            f"/api/scientific/model-diagnostics/{_segment(model_id)}",
            params={"test_size_days": test_size_days},
        )

    async def _get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        descriptor = RequestDescriptor(
            method="GET", path=path, params=dict(params) if params else None
        )
        response = await self.transport.send(descriptor)
        return response.body

    async def _post(self, path: str, *, body: Any) -> Any:
        descriptor = RequestDescriptor(method="POST", path=path, body=body)
        response = await self.transport.send(descriptor)
        return response.body

    async def _get_object(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        return _require_object(await self._get(path, params=params), path)

    async def _post_object(self, path: str, *, body: Any) -> dict[str, Any]:
        return _require_object(await self._post(path, body=body), path)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _require_object(payload: Any, path: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected payload shape from {path}")
    return payload
