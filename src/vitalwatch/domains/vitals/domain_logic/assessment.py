"""Run both engines over one reading for callers that persist and notify.

Neither engine depends on the other; this only bundles their outputs so a
caller can feed one alert/notification pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from vitalwatch.domains.vitals.domain_logic.alert_evaluator import evaluate_alerts
from vitalwatch.domains.vitals.domain_logic.alert_rules import THRESHOLD_RULES, ThresholdRule
from vitalwatch.domains.vitals.domain_logic.condition_weights import (
    CONDITION_WEIGHTS,
    ConditionWeightTable,
)
from vitalwatch.domains.vitals.domain_logic.risk_scorer import compute_risk_score
from vitalwatch.domains.vitals.domain_logic.risk_zones import ZONE_TABLES, ZoneBand
from vitalwatch.domains.vitals.domain_logic.trend_analyzer import ReadingLike
from vitalwatch.domains.vitals.domain_logic.vital_models import (
    DEFAULT_TUNING,
    AlertRecord,
    RiskScoreResult,
    RiskTuning,
    coerce_reading,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VitalsAssessment:
    """Alerts and risk score computed from the same reading."""

    alerts: tuple[AlertRecord, ...]
    risk: RiskScoreResult
    has_critical: bool = field(init=False)

    def __post_init__(self) -> None:
        critical = self.risk.category == "critical" or any(
            a.severity == "critical" for a in self.alerts
        )
        object.__setattr__(self, "has_critical", critical)

    def as_dict(self) -> dict[str, Any]:
        return {
            "alerts": [a.as_dict() for a in self.alerts],
            "risk": self.risk.as_dict(),
            "has_critical": self.has_critical,
        }


def assess_vitals(
    latest: ReadingLike | None,
    history: Iterable[ReadingLike] | None = None,
    conditions: Iterable[str] | str | None = None,
    *,
    rules: Mapping[str, tuple[ThresholdRule, ...]] = THRESHOLD_RULES,
    tuning: RiskTuning = DEFAULT_TUNING,
    condition_weights: ConditionWeightTable = CONDITION_WEIGHTS,
    zone_tables: Mapping[str, tuple[ZoneBand, ...]] = ZONE_TABLES,
) -> VitalsAssessment:
    """Evaluate threshold alerts and the risk score for ``latest``."""
    reading = coerce_reading(latest)
    assessment = VitalsAssessment(
        alerts=tuple(evaluate_alerts(reading, rules)),
        risk=compute_risk_score(
            reading,
            history,
            conditions,
            tuning=tuning,
            condition_weights=condition_weights,
            zone_tables=zone_tables,
        ),
    )
    if assessment.has_critical:
        logger.info(
            "Critical assessment: risk %d (%s), %d alert(s)",
            assessment.risk.overall_score,
            assessment.risk.category,
            len(assessment.alerts),
        )
    return assessment
