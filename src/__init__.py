"""
Top-level import path for the forecast dashboard data layer.
`src.common` holds process settings and logging; `src.forecast_dashboard` holds the
transport, entity cache, and series alignment used by dashboard panels.
"""
