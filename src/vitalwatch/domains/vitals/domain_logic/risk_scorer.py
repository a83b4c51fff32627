"""Deterministic risk scoring: latest reading + trailing history -> 0-100 score.

Per scored vital:
    zone points (risk_zones) x condition weight, rounded, capped per vital
    + trend penalty when the history shows a worsening slope

The per-vital contributions are summed, a compounding bonus is added when
several vitals are abnormal at once, and the total is clamped to [0, 100].

All computation is deterministic: no I/O, no randomness, no ambient state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from vitalwatch.domains.vitals.domain_logic.condition_weights import (
    CONDITION_WEIGHTS,
    ConditionWeightTable,
    condition_weight,
)
from vitalwatch.domains.vitals.domain_logic.risk_zones import ZONE_TABLES, ZoneBand, classify_zone
from vitalwatch.domains.vitals.domain_logic.trend_analyzer import (
    ReadingLike,
    classify_trend,
    coerce_history,
    linear_regression_slope,
    round_half_up,
    trend_penalty,
    vital_series,
)
from vitalwatch.domains.vitals.domain_logic.vital_models import (
    DEFAULT_TUNING,
    RiskCategory,
    RiskFactor,
    RiskScoreResult,
    RiskTuning,
    TrendLabel,
    VitalReading,
    coerce_reading,
    normalize_conditions,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VitalContribution:
    """Every intermediate step behind one vital's score."""

    vital: str
    value: int | float
    zone: str
    zone_points: int
    weight: float
    weighted_points: int
    slope: float
    history_points: int
    trend: TrendLabel
    trend_penalty: int
    explanation: str

    @property
    def score(self) -> int:
        return self.weighted_points + self.trend_penalty

    @property
    def abnormal(self) -> bool:
        return self.zone != "normal"

    def as_factor(self) -> RiskFactor:
        return RiskFactor(
            vital=self.vital,
            score=self.score,
            trend=self.trend,
            zone=self.zone,
            explanation=self.explanation,
        )


def _clamp(value: int, lo: int = 0, hi: int = 100) -> int:
    return max(lo, min(hi, value))


def risk_category(score: int, tuning: RiskTuning = DEFAULT_TUNING) -> RiskCategory:
    """Map an overall score to its category."""
    if score >= tuning.category_critical_at:
        return "critical"
    if score >= tuning.category_high_at:
        return "high"
    if score >= tuning.category_moderate_at:
        return "moderate"
    return "low"


def compounding_bonus(abnormal_count: int, tuning: RiskTuning = DEFAULT_TUNING) -> int:
    """Extra points when several vitals are out of their normal zone together."""
    if abnormal_count >= tuning.compound_multi_threshold:
        return tuning.compound_bonus_multi
    if abnormal_count >= 2:
        return tuning.compound_bonus_pair
    return 0


def score_vitals(
    reading: VitalReading,
    history: list[VitalReading],
    conditions: frozenset[str],
    *,
    tuning: RiskTuning = DEFAULT_TUNING,
    condition_weights: ConditionWeightTable = CONDITION_WEIGHTS,
    zone_tables: Mapping[str, tuple[ZoneBand, ...]] = ZONE_TABLES,
) -> list[VitalContribution]:
    """Score each present scored vital, in SCORED_VITALS order."""
    contributions: list[VitalContribution] = []
    for vital, value in reading.scored_values().items():
        zone = classify_zone(vital, value, zone_tables)
        weight = condition_weight(conditions, vital, condition_weights)
        weighted = min(tuning.vital_points_cap, round_half_up(zone.points * weight))

        points = vital_series(history, vital)
        slope = linear_regression_slope(points)
        trend = classify_trend(slope, vital, tuning.trend_dead_zone)

        contributions.append(VitalContribution(
            vital=vital,
            value=value,
            zone=zone.zone,
            zone_points=zone.points,
            weight=weight,
            weighted_points=weighted,
            slope=slope,
            history_points=len(points),
            trend=trend,
            trend_penalty=trend_penalty(trend, slope, len(points), tuning),
            explanation=zone.explanation,
        ))
    return contributions


def compute_risk_score(
    latest: ReadingLike | None,
    history: Iterable[ReadingLike] | None = None,
    conditions: Iterable[str] | str | None = None,
    *,
    tuning: RiskTuning = DEFAULT_TUNING,
    condition_weights: ConditionWeightTable = CONDITION_WEIGHTS,
    zone_tables: Mapping[str, tuple[ZoneBand, ...]] = ZONE_TABLES,
) -> RiskScoreResult:
    """Score a patient's latest vitals in the context of recent history.

    Args:
        latest: The most recent reading (VitalReading or row mapping).
        history: Trailing readings, oldest first. May be empty.
        conditions: Condition names, or a JSON-encoded list of them.
            Unknown names are ignored.
        tuning: Empirical constants; see RiskTuning.
        condition_weights: Condition -> {vital: multiplier} table.
        zone_tables: Per-vital zone bands.

    Returns:
        RiskScoreResult with factors for every present scored vital, ranked
        by score (ties keep SCORED_VITALS order). A missing or empty reading
        gives a zero, ``low`` result with no factors.

    Raises:
        ReadingValidationError: a row mapping holds a non-numeric vital.
    """
    reading = coerce_reading(latest)
    if reading is None or reading.is_empty():
        return RiskScoreResult(overall_score=0, category="low", factors=())

    contributions = score_vitals(
        reading,
        coerce_history(history),
        normalize_conditions(conditions),
        tuning=tuning,
        condition_weights=condition_weights,
        zone_tables=zone_tables,
    )

    abnormal = sum(1 for c in contributions if c.abnormal)
    bonus = compounding_bonus(abnormal, tuning)
    overall = _clamp(sum(c.score for c in contributions) + bonus)
    category = risk_category(overall, tuning)

    # sorted() is stable, so equal scores keep SCORED_VITALS order.
    ranked = sorted((c.as_factor() for c in contributions), key=lambda f: f.score, reverse=True)

    logger.debug(
        "Risk score %d (%s): %d vital(s), %d abnormal, compounding +%d",
        overall, category, len(contributions), abnormal, bonus,
    )
    return RiskScoreResult(overall_score=overall, category=category, factors=tuple(ranked))


def score_breakdown(
    latest: ReadingLike | None,
    history: Iterable[ReadingLike] | None = None,
    conditions: Iterable[str] | str | None = None,
    *,
    tuning: RiskTuning = DEFAULT_TUNING,
    condition_weights: ConditionWeightTable = CONDITION_WEIGHTS,
    zone_tables: Mapping[str, tuple[ZoneBand, ...]] = ZONE_TABLES,
) -> dict[str, Any]:
    """Itemized view of how a risk score was reached.

    Same inputs as compute_risk_score. Lists raw zone points, weight, capped
    points, slope and trend penalty per vital, plus the compounding bonus,
    so a score can be explained line by line.
    """
    reading = coerce_reading(latest)
    if reading is None or reading.is_empty():
        return {"vitals": {}, "compounding_bonus": 0, "raw_total": 0, "overall_score": 0}

    contributions = score_vitals(
        reading,
        coerce_history(history),
        normalize_conditions(conditions),
        tuning=tuning,
        condition_weights=condition_weights,
        zone_tables=zone_tables,
    )
    bonus = compounding_bonus(sum(1 for c in contributions if c.abnormal), tuning)
    raw_total = sum(c.score for c in contributions) + bonus

    return {
        "vitals": {
            c.vital: {
                "value": c.value,
                "zone": c.zone,
                "zone_points": c.zone_points,
                "weight": c.weight,
                "weighted_points": c.weighted_points,
                "slope": round(c.slope, 4),
                "history_points": c.history_points,
                "trend": c.trend,
                "trend_penalty": c.trend_penalty,
                "score": c.score,
            }
            for c in contributions
        },
        "compounding_bonus": bonus,
        "raw_total": raw_total,
        "overall_score": _clamp(raw_total),
    }
