# This test file validates endpoint paths and payload parsing of the forecast API client.
# It exists so request building and typed parsing stay stable as endpoints evolve.
# A stub transport records descriptors and replays canned bodies; no HTTP is involved.

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from src.forecast_dashboard.api_client import ForecastApiClient
from src.forecast_dashboard.payloads import filter_models, parse_interpretation
from src.forecast_dashboard.transport import ApiResponse, RequestDescriptor


class _StubTransport:
    def __init__(self, body: Any) -> None:
        self.body = body
        self.descriptors: list[RequestDescriptor] = []

    async def send(self, descriptor: RequestDescriptor) -> ApiResponse:
        self.descriptors.append(descriptor)
        return ApiResponse(status_code=200, body=self.body)


def _client(body: Any) -> tuple[ForecastApiClient, _StubTransport]:
    transport = _StubTransport(body)
    return ForecastApiClient(transport=transport), transport  # type: ignore[arg-type]


def test_get_models_parses_model_info() -> None:
    client, transport = _client(
        {
            "ARIMA": {"description": "Seasonal ARIMA", "type": "classical"},
            "XGBoost_Tuned": {
                "description": "Gradient boosting",
                "type": "ml",
                "supports_conditions": True,
                "supports_simulation": True,
            },
        }
    )

    models = asyncio.run(client.get_models())

    assert transport.descriptors[0].method == "GET"
    assert transport.descriptors[0].path == "/api/models"
    assert models["ARIMA"].type == "classical"
    assert models["XGBoost_Tuned"].supports_simulation is True


def test_get_evaluation_escapes_model_id_and_keeps_null_mape() -> None:
    client, transport = _client(
        {
            "model_id": "Zero Division",
            "accuracy_metrics": {"MAE": 0.1, "RMSE": 0.2, "MAPE (%)": None},
            "performance_metrics": {"avg_latency_ms": 1.0, "memory_increment_mb": 5.0},
        }
    )

    evaluation = asyncio.run(client.get_evaluation("Zero Division"))

    assert transport.descriptors[0].path == "/api/evaluation/Zero%20Division"
    assert evaluation.accuracy_metrics["MAPE (%)"] is None
    assert evaluation.error_analysis is None


def test_post_predictions_sends_json_body() -> None:
    client, transport = _client(
        [{"model_id": "ARIMA", "forecast": {"2010-01-01": 1.5}, "metadata": {"latency_ms": 3}}]
    )

    predictions = asyncio.run(client.post_predictions(model_ids=["ARIMA"], forecast_horizon=7))

    descriptor = transport.descriptors[0]
    assert descriptor.method == "POST"
    assert descriptor.path == "/api/predict"
    assert descriptor.body == {"model_ids": ["ARIMA"], "forecast_horizon": 7}
    assert predictions[0].forecast == {"2010-01-01": 1.5}


def test_analytics_endpoints_pass_query_params() -> None:
    client, transport = _client({"granularity": "daily", "data": []})

    asyncio.run(client.get_historical({"days": 30}))
    asyncio.run(client.get_decomposition())

    assert transport.descriptors[0].path == "/api/historical"
    assert transport.descriptors[0].params == {"days": 30}
    assert transport.descriptors[1].path == "/api/decomposition"
    assert transport.descriptors[1].params is None


def test_analytics_endpoint_rejects_non_object_payload() -> None:
    client, _ = _client(["not", "an", "object"])

    with pytest.raises(ValueError, match="Unexpected payload shape"):
        asyncio.run(client.get_peaks())


def test_interpretation_with_importance_and_shap_reports_both() -> None:
    interpretation = parse_interpretation(
        {
            "model_id": "XGBoost_Tuned",
            "feature_importance": {"day_of_week": 0.64, "month": 0.05, "day_of_year": 0.31},
            "shap_values": {
                "base_value": 303.3866882324219,
                "prediction_value": 588.4113531932235,
                "feature_contributions": {"day_of_week": 166.8, "day_of_year": 118.2},
            },
        }
    )

    assert interpretation.has_feature_importance
    assert interpretation.has_shap_values
    assert interpretation.feature_importance is not None
    assert interpretation.feature_importance["day_of_week"] == 0.64
    assert interpretation.shap_values is not None
    assert interpretation.shap_values.base_value == 303.3866882324219
    assert len(interpretation.shap_values.feature_contributions) == 2


def test_interpretation_keeps_importance_when_shap_is_null() -> None:
    interpretation = parse_interpretation(
        {"model_id": "Prophet", "feature_importance": {"temperature": 0.4}, "shap_values": None}
    )

    assert interpretation.has_feature_importance
    assert not interpretation.has_shap_values
    assert interpretation.shap_error is None


def test_interpretation_keeps_importance_when_shap_failed() -> None:
    interpretation = parse_interpretation(
        {
            "model_id": "FailedShapModel",
            "feature_importance": {"feature1": 0.5},
            "shap_values": {"error": "Failed to calculate SHAP values: TreeExplainer not supported"},
        }
    )

    assert interpretation.feature_importance == {"feature1": 0.5}
    assert not interpretation.has_shap_values
    assert interpretation.shap_error == (
        "Failed to calculate SHAP values: TreeExplainer not supported"
    )


def test_interpretation_reports_importance_error() -> None:
    interpretation = parse_interpretation(
        {
            "model_id": "NoImportanceModel",
            "feature_importance": {"error": "Failed to get feature importance"},
            "shap_values": None,
        }
    )

    assert not interpretation.has_feature_importance
    assert not interpretation.has_shap_values
    assert interpretation.feature_importance_error == "Failed to get feature importance"


def test_interpretation_moves_top_level_shap_fields() -> None:
    interpretation = parse_interpretation(
        {"base_value": 10.0, "prediction_value": 12.5, "feature_contributions": {"hour": 2.5}}
    )

    assert interpretation.has_shap_values
    assert not interpretation.has_feature_importance
    assert interpretation.shap_values is not None
    assert interpretation.shap_values.prediction_value == 12.5


def test_get_interpretation_returns_combined_payload() -> None:
    client, transport = _client(
        {
            "model_id": "XGBoost_Tuned",
            "feature_importance": {"hour": 0.7},
            "shap_values": {"base_value": 1.0, "prediction_value": 2.0},
        }
    )

    interpretation = asyncio.run(client.get_interpretation("XGBoost_Tuned"))

    assert transport.descriptors[0].path == "/api/interpret/XGBoost_Tuned"
    assert interpretation.has_feature_importance and interpretation.has_shap_values


def test_interpretation_rejects_unknown_shape() -> None:
    with pytest.raises(ValueError, match="Invalid interpretation response format"):
        parse_interpretation({"something_else": 1})


@pytest.mark.parametrize(
    ("method_name", "path"),
    [
        ("post_statistical_tests", "/api/scientific/statistical-tests"),
        ("post_residual_analysis", "/api/scientific/residual-analysis"),
        ("post_error_analysis", "/api/scientific/error-analysis"),
        ("post_visualization", "/api/scientific/visualize"),
        ("post_latex_export", "/api/scientific/latex-export"),
        ("post_reproducibility_report", "/api/scientific/reproducibility-report"),
    ],
)
def test_scientific_posts_send_request_body(method_name: str, path: str) -> None:
    client, transport = _client({"ok": True})
    request = {"model_ids": ["ARIMA", "XGBoost"], "test_size_days": 30}

    result = asyncio.run(getattr(client, method_name)(request))

    descriptor = transport.descriptors[0]
    assert descriptor.method == "POST"
    assert descriptor.path == path
    assert descriptor.body == request
    assert result == {"ok": True}


def test_reproducibility_report_defaults_to_empty_body() -> None:
    client, transport = _client({"metadata": {}})

    asyncio.run(client.post_reproducibility_report())

    assert transport.descriptors[0].body == {}


def test_model_diagnostics_passes_test_window() -> None:
    client, transport = _client({"model_id": "ARIMA"})

    asyncio.run(client.get_model_diagnostics("ARIMA"))
    asyncio.run(client.get_model_diagnostics("ARIMA", test_size_days=60))

    assert transport.descriptors[0].path == "/api/scientific/model-diagnostics/ARIMA"
    assert transport.descriptors[0].params == {"test_size_days": 30}
    assert transport.descriptors[1].params == {"test_size_days": 60}


def test_filter_models_drops_excluded_types() -> None:
    client, _ = _client(
        {
            "ARIMA": {"type": "classical"},
            "LSTM": {"type": "dl"},
            "Ensemble": {"type": "ensemble"},
        }
    )
    models = asyncio.run(client.get_models())

    filtered = filter_models(models, excluded_types=["DL"])

    assert sorted(filtered) == ["ARIMA", "Ensemble"]
