# This file aligns per-model forecast series into one date-ordered table for charting.
# It exists so line, bar, and heatmap views share the same outer-join and ordering rules.
# A model's field is left absent (not zero, not None) where it has no value for a date,
# which lets renderers tell "no data" apart from "value 0".
# Malformed series or values are skipped rather than raised.

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from numbers import Real
from typing import Any

import pandas as pd

MAX_HUE = 240.0
NEUTRAL_HUE = 120.0

AlignedRow = dict[str, Any]
AlignedTable = list[AlignedRow]


@dataclass(frozen=True)
class SeriesInput:
    id: str
    values: Any


@dataclass(frozen=True)
class ColorRange:
    min: float
    max: float


def align(series: Iterable[SeriesInput | Mapping[str, Any]]) -> AlignedTable:
    """Outer-join series on their date-keys and order rows by parsed timestamp.

    Date-keys are treated as opaque strings: "2010-01-01" and "2010-01-01T00:00:00"
    produce two rows. Keys that parse to the same instant keep their first-seen
    order; keys that do not parse at all are placed after every parseable key.
    """

    rows: dict[str, AlignedRow] = {}
    for item in series:
        unpacked = _unpack(item)
        if unpacked is None:
            continue
        series_id, values = unpacked
        for date_key, value in _iter_points(values):
            number = _as_number(value)
            if number is None:
                continue
            row = rows.setdefault(date_key, {"date": date_key})
            row[series_id] = number

    return sorted(rows.values(), key=lambda row: _sort_key(row["date"]))


def color_range(table: Iterable[Mapping[str, Any]], selected_ids: Iterable[str]) -> ColorRange:
    selected = [model_id for model_id in selected_ids if model_id != "date"]
    numbers: list[float] = []
    for row in table:
        for model_id in selected:
            number = _as_number(row.get(model_id))
            if number is not None:
                numbers.append(number)
    if not numbers:
        return ColorRange(min=0.0, max=0.0)
    return ColorRange(min=min(numbers), max=max(numbers))


def normalize_hue(value: Any, value_range: ColorRange) -> float:
    """Map a value to a hue: range minimum to blue (240), maximum to red (0)."""

    number = _as_number(value)
    span = value_range.max - value_range.min
    if number is None or span == 0:
        return NEUTRAL_HUE
    position = min(1.0, max(0.0, (number - value_range.min) / span))
    return (1.0 - position) * MAX_HUE


def heatmap_color(value: Any, value_range: ColorRange) -> str:
    return f"hsl({normalize_hue(value, value_range):g}, 70%, 50%)"


def series_from_predictions(predictions: Iterable[Any]) -> list[SeriesInput]:
    series: list[SeriesInput] = []
    for prediction in predictions:
        if isinstance(prediction, Mapping):
            model_id, forecast = prediction.get("model_id"), prediction.get("forecast")
        else:
            model_id = getattr(prediction, "model_id", None)
            forecast = getattr(prediction, "forecast", None)
        if model_id is None:
            continue
        series.append(SeriesInput(id=str(model_id), values=forecast))
    return series


def aligned_frame(table: AlignedTable, model_ids: Iterable[str] | None = None) -> pd.DataFrame:
    """Tabular view of an aligned table; absent fields become NaN."""

    if model_ids is None:
        columns: list[str] = []
        for row in table:
            columns.extend(key for key in row if key != "date" and key not in columns)
    else:
        columns = [model_id for model_id in model_ids if model_id != "date"]

    frame = pd.DataFrame.from_records(table, columns=["date", *columns])
    for column in columns:
        frame[column] = pd.to_numeric(frame[column], errors="coerce")
    return frame


def _unpack(item: Any) -> tuple[str, Any] | None:
    if isinstance(item, SeriesInput):
        return item.id, item.values
    if isinstance(item, Mapping) and item.get("id") is not None:
        return str(item["id"]), item.get("values")
    return None


def _iter_points(values: Any) -> Iterator[tuple[str, Any]]:
    if isinstance(values, (Mapping, pd.Series)):
        pairs: Iterable[Any] = values.items()
    elif isinstance(values, (str, bytes)):
        return
    else:
        try:
            pairs = iter(values)
        except TypeError:
            return

    for pair in pairs:
        if not isinstance(pair, tuple) or len(pair) != 2:
            continue
        date_key, value = pair
        if isinstance(date_key, str):
            yield date_key, value


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def _sort_key(date_key: str) -> tuple[int, int]:
    try:
        timestamp = pd.Timestamp(date_key)
    except (ValueError, TypeError):
        return (1, 0)
    if pd.isna(timestamp):
        return (1, 0)
    if timestamp.tzinfo is None:
        timestamp = timestamp.tz_localize("UTC")
    return (0, timestamp.value)
