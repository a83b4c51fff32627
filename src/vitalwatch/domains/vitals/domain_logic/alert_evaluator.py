"""Threshold alert evaluation: one reading in, zero or more alert records out.

Pure and deterministic. Persistence, ids and notification are the caller's.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from vitalwatch.domains.vitals.domain_logic.alert_rules import THRESHOLD_RULES, ThresholdRule
from vitalwatch.domains.vitals.domain_logic.vital_models import (
    VITAL_UNITS,
    AlertRecord,
    VitalReading,
    coerce_reading,
    format_value,
)

logger = logging.getLogger(__name__)


def format_alert_message(vital: str, value: int | float, rule: ThresholdRule) -> str:
    """Fallback alert text, e.g. 'Low Heart Rate: 45BPM is below the threshold of 50BPM.'"""
    unit = VITAL_UNITS.get(vital, "")
    return (
        f"{rule.title}: {format_value(value)}{unit} {rule.verb} "
        f"the threshold of {format_value(rule.boundary)}{unit}."
    )


def match_rule(value: int | float, rules: tuple[ThresholdRule, ...]) -> ThresholdRule | None:
    """First matching rule, or None."""
    for rule in rules:
        if rule.matches(value):
            return rule
    return None


def evaluate_alerts(
    reading: VitalReading | Mapping[str, Any] | None,
    rules: Mapping[str, tuple[ThresholdRule, ...]] = THRESHOLD_RULES,
) -> list[AlertRecord]:
    """Evaluate every monitored vital of a reading against its rules.

    Absent vitals are skipped. Each breached vital contributes exactly one
    AlertRecord, taken from its most severe matching rule. An empty or
    missing reading yields an empty list.

    Raises:
        ReadingValidationError: if ``reading`` is a mapping with a
            non-numeric vital value.
    """
    reading = coerce_reading(reading)
    if reading is None:
        return []

    alerts: list[AlertRecord] = []
    for vital, vital_rules in rules.items():
        value = reading.get(vital)
        if value is None:
            continue

        rule = match_rule(value, vital_rules)
        if rule is None:
            continue

        alerts.append(AlertRecord(
            vital_type=vital,
            vital_value=value,
            threshold_value=rule.boundary,
            severity=rule.severity,
            title=rule.title,
            message=format_alert_message(vital, value, rule),
        ))

    if alerts:
        logger.debug(
            "Threshold evaluation raised %d alert(s): %s",
            len(alerts),
            ", ".join(f"{a.vital_type}={a.severity}" for a in alerts),
        )
    return alerts
