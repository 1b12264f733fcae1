# This file stores the user-facing failure messages for each resource kind.
# It exists so a failed fetch renders a bounded, kind-specific sentence instead of a raw transport error.
# Centralizing text also makes future wording reviews easier without touching fetch logic.

from __future__ import annotations

GENERIC_FAILURE = "Could not load data from the forecasting service."

FAILURE_MESSAGES: dict[str, str] = {
    "models": "Could not load the list of models.",
    "evaluation": "Could not load the evaluation for model {key}.",
    "interpretation": "Could not load the interpretation for model {key}.",
    "features": "Could not load the features for model {key}.",
    "predictions": "Could not load the forecast for model {key}.",
    "simulation": "Could not run the simulation.",
    "comparison": "Could not compare the scenarios.",
    "historical": "Could not load historical data.",
    "patterns": "Could not load seasonal patterns.",
    "anomalies": "Could not load anomalies.",
    "peaks": "Could not load peak periods.",
    "decomposition": "Could not load the decomposition.",
    "statistical_tests": "Could not run the statistical tests.",
    "residual_analysis": "Could not run the residual analysis.",
    "error_analysis": "Could not run the error analysis.",
    "visualization": "Could not generate the visualization.",
    "latex_export": "Could not export to LaTeX.",
    "reproducibility_report": "Could not load the reproducibility report.",
    "model_diagnostics": "Could not load diagnostics for model {key}.",
}


def failure_message(kind: str, key: str) -> str:
    template = FAILURE_MESSAGES.get(kind)
    if template is None:
        return GENERIC_FAILURE
    return template.format(key=key)
