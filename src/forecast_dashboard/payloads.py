# This file defines typed payloads returned by the forecasting service.
# It exists so dashboard panels read explicit fields instead of probing untyped JSON objects.
# Interpretation responses may carry feature importance, SHAP values, or both, with capability checks for each.
# Unknown extra fields are retained so newer backend versions do not break parsing.

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PayloadModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, protected_namespaces=())


class ModelInfo(PayloadModel):
    description: str = ""
    type: str
    supports_conditions: bool = False
    supports_simulation: bool = False


class PredictionResponse(PayloadModel):
    model_id: str
    # Kept raw: the series aligner skips malformed values instead of failing the whole payload.
    forecast: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


class EvaluationResponse(PayloadModel):
    model_id: str
    accuracy_metrics: dict[str, float | None] = Field(default_factory=dict)
    performance_metrics: dict[str, float] = Field(default_factory=dict)
    interpretation: dict[str, Any] | None = None
    error_analysis: dict[str, Any] | None = None


class FeatureManifest(PayloadModel):
    model_id: str
    type: str | None = None
    granularity: str | None = None
    feature_set: str | None = None
    supports_conditions: bool = False
    feature_names: list[str] = Field(default_factory=list)
    feature_count: int | None = None
    available_conditions: dict[str, list[str]] = Field(default_factory=dict)
    note: str | None = None
class ShapValues(PayloadModel):
    base_value: float
    prediction_value: float
    feature_contributions: dict[str, float] = Field(default_factory=dict)


class InterpretationResponse(PayloadModel):
    """Feature importance and SHAP values for one model; either part may be missing.

    The backend reports a part it could not compute as `{"error": "..."}`. That part
    is left as None here and its message is kept in the matching `*_error` field.
    """

    model_id: str | None = None
    feature_importance: dict[str, float] | None = None
    shap_values: ShapValues | None = None
    feature_importance_error: str | None = None
    shap_error: str | None = None

    @property
    def has_feature_importance(self) -> bool:
        return self.feature_importance is not None

    @property
    def has_shap_values(self) -> bool:
        return self.shap_values is not None


_SHAP_FIELDS = ("base_value", "prediction_value", "feature_contributions")


def parse_interpretation(payload: Any) -> InterpretationResponse:
    """Validate an interpretation payload carrying importance, SHAP values, or both.

    Older responses put the SHAP fields at the top level; they are moved into
    `shap_values`. A payload with neither part is rejected with a `ValueError`
    so the caller records a failed fetch.
    """

    if not isinstance(payload, Mapping):
        raise ValueError("Invalid interpretation response format")

    data = dict(payload)
    if data.get("shap_values") is None and "base_value" in data:
        data["shap_values"] = {field: data[field] for field in _SHAP_FIELDS if field in data}
    if "feature_importance" not in data and "shap_values" not in data:
        raise ValueError("Invalid interpretation response format")

    data["feature_importance"], data["feature_importance_error"] = _split_error(
        data.get("feature_importance")
    )
    data["shap_values"], data["shap_error"] = _split_error(data.get("shap_values"))
    return InterpretationResponse.model_validate(data)


def _split_error(block: Any) -> tuple[Any, str | None]:
    if isinstance(block, Mapping) and isinstance(block.get("error"), str):
        return None, block["error"]
    return block, None


def parse_models(payload: Any) -> dict[str, ModelInfo]:
    if not isinstance(payload, Mapping):
        raise ValueError("Models response must be an object keyed by model id")
    return {str(model_id): ModelInfo.model_validate(info) for model_id, info in payload.items()}


def filter_models(
    models: Mapping[str, ModelInfo], *, excluded_types: Iterable[str]
) -> dict[str, ModelInfo]:
    """Drop model types the dashboard cannot render; applied once when the list is ingested."""

    excluded = {model_type.lower() for model_type in excluded_types}
    return {
        model_id: info for model_id, info in models.items() if info.type.lower() not in excluded
    }


def parse_predictions(payload: Any) -> list[PredictionResponse]:
    if isinstance(payload, Mapping):
        payload = [payload]
    if not isinstance(payload, list):
        raise ValueError("Prediction response must be a list of model forecasts")
    return [PredictionResponse.model_validate(item) for item in payload]
