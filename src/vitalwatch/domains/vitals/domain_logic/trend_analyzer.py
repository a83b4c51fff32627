"""Trend detection over a trailing history of vital readings.

The risk engine's trend is an ordinary least-squares slope of value against
row position in the history window, so ordering (not spacing) drives it.
The period summary uses the simpler half-over-half average comparison that
the vitals dashboard shows next to its min/max/avg tiles.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Sequence

from vitalwatch.domains.vitals.domain_logic.vital_models import (
    DEFAULT_TUNING,
    HIGHER_IS_WORSE,
    SCORED_VITALS,
    TREND_DEAD_ZONE,
    VITAL_FIELDS,
    RiskTuning,
    TrendLabel,
    VitalReading,
    as_utc,
    coerce_reading,
)

logger = logging.getLogger(__name__)

# Half-over-half change (percent of the first half) that counts as a trend.
PERIOD_TREND_PCT = 5.0

ReadingLike = VitalReading | Mapping[str, Any]


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (2.5 -> 3), unlike round()."""
    return math.floor(value + 0.5)


def linear_regression_slope(points: Sequence[tuple[float, float]]) -> float:
    """OLS slope of y on x. 0.0 with fewer than 2 points or no x-variance."""
    n = len(points)
    if n < 2:
        return 0.0

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for x, y in points:
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_x2 += x * x

    denom = n * sum_x2 - sum_x * sum_x
    if denom == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denom


def coerce_history(history: Iterable[ReadingLike] | None) -> list[VitalReading]:
    if not history:
        return []
    return [coerce_reading(row) for row in history if row is not None]


def vital_series(history: Sequence[VitalReading], vital: str) -> list[tuple[int, float]]:
    """``(row index, value)`` pairs for one vital.

    Rows missing the vital are skipped but keep their position, so gaps
    stretch the x-axis rather than closing up.
    """
    return [
        (i, row.get(vital))
        for i, row in enumerate(history)
        if row.get(vital) is not None
    ]


def classify_trend(slope: float, vital: str, dead_zone: float = TREND_DEAD_ZONE) -> TrendLabel:
    """Label a slope relative to whether higher values are worse for ``vital``."""
    if abs(slope) < dead_zone:
        return "stable"
    increasing = slope > 0
    if vital in HIGHER_IS_WORSE:
        return "worsening" if increasing else "improving"
    return "improving" if increasing else "worsening"


def trend_penalty(
    trend: TrendLabel,
    slope: float,
    point_count: int,
    tuning: RiskTuning = DEFAULT_TUNING,
) -> int:
    """Extra points for a worsening trend backed by enough history."""
    if trend != "worsening" or point_count < tuning.trend_min_points:
        return 0
    normalized = min(abs(slope) / tuning.trend_slope_scale, 1.0)
    return round_half_up(normalized * tuning.trend_penalty_cap)


def summarize_trends(
    history: Iterable[ReadingLike] | None,
    dead_zone: float = TREND_DEAD_ZONE,
) -> dict[str, dict[str, Any]]:
    """Per-vital ``avg``/``min``/``max``/``trend`` digest of a history window.

    Only scored vitals with at least two points are included. This is the
    deterministic summary handed to downstream commentary generators.
    """
    rows = coerce_history(history)
    summary: dict[str, dict[str, Any]] = {}
    for vital in SCORED_VITALS:
        points = vital_series(rows, vital)
        if len(points) < 2:
            continue
        values = [y for _, y in points]
        summary[vital] = {
            "avg": round_half_up(sum(values) / len(values) * 10) / 10,
            "min": min(values),
            "max": max(values),
            "trend": classify_trend(linear_regression_slope(points), vital, dead_zone),
        }
    return summary


def _period_trend(first_avg: float | None, second_avg: float | None, vital: str) -> TrendLabel:
    if first_avg is None or second_avg is None or first_avg == 0:
        return "stable"
    pct = (second_avg - first_avg) / abs(first_avg) * 100

    if pct > PERIOD_TREND_PCT:
        return "worsening" if vital in HIGHER_IS_WORSE else "improving"
    if pct < -PERIOD_TREND_PCT:
        return "improving" if vital in HIGHER_IS_WORSE else "worsening"
    return "stable"


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def summarize_period(
    history: Iterable[ReadingLike] | None,
    midpoint: datetime,
) -> dict[str, dict[str, Any]]:
    """Min/max/avg and half-over-half trend for every vital field.

    Readings before ``midpoint`` form the first half, the rest the second.
    Readings without a timestamp fall outside every period and are skipped.
    """
    rows = coerce_history(history)
    midpoint = as_utc(midpoint)

    summary: dict[str, dict[str, Any]] = {}
    for vital in VITAL_FIELDS:
        values: list[float] = []
        first: list[float] = []
        second: list[float] = []
        for row in rows:
            value = row.get(vital)
            if value is None or row.timestamp is None:
                continue
            values.append(value)
            if as_utc(row.timestamp) < midpoint:
                first.append(value)
            else:
                second.append(value)

        avg = _mean(values)
        summary[vital] = {
            "min": min(values) if values else None,
            "max": max(values) if values else None,
            "avg": round_half_up(avg * 10) / 10 if avg is not None else None,
            "trend": _period_trend(_mean(first), _mean(second), vital),
        }
    return summary


def select_history_window(
    readings: Iterable[ReadingLike] | None,
    now: datetime,
    days: int = 7,
) -> list[VitalReading]:
    """Readings from the trailing ``days`` before ``now``, oldest first.

    Readings without a timestamp cannot be placed in the window and are dropped.
    """
    start = as_utc(now) - timedelta(days=days)
    rows = [
        row for row in coerce_history(readings)
        if row.timestamp is not None and as_utc(row.timestamp) >= start
    ]
    rows.sort(key=lambda row: as_utc(row.timestamp))
    logger.debug("History window (%d days) holds %d reading(s)", days, len(rows))
    return rows
