"""Threshold rule table for vital-sign alerts.

Rules for each vital are listed most severe first. Evaluation takes the
first rule that matches, so a vital yields at most one alert. Comparisons
are strict: a value sitting exactly on a boundary does not alert.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal, Mapping

from vitalwatch.domains.vitals.domain_logic.vital_models import (
    ALERT_SEVERITIES,
    SCORED_VITALS,
    AlertSeverity,
)

Direction = Literal["above", "below"]

_SEVERITY_RANK = {"critical": 0, "warning": 1, "info": 2}


class RuleTableError(Exception):
    """Raised when a threshold rule table is inconsistent."""


@dataclass(frozen=True)
class ThresholdRule:
    """A single alert rule: breach when the value is strictly past the boundary."""

    direction: Direction
    boundary: int | float
    severity: AlertSeverity
    title: str

    def matches(self, value: int | float) -> bool:
        if self.direction == "above":
            return value > self.boundary
        return value < self.boundary

    @property
    def verb(self) -> str:
        return "exceeds" if self.direction == "above" else "is below"


THRESHOLD_RULES: Mapping[str, tuple[ThresholdRule, ...]] = MappingProxyType({
    "heart_rate": (
        ThresholdRule("above", 150, "critical", "Critically High Heart Rate"),
        ThresholdRule("above", 120, "warning", "Elevated Heart Rate"),
        ThresholdRule("below", 40, "critical", "Critically Low Heart Rate"),
        ThresholdRule("below", 50, "warning", "Low Heart Rate"),
    ),
    "blood_pressure_systolic": (
        ThresholdRule("above", 160, "critical", "Critically High Systolic Blood Pressure"),
        ThresholdRule("above", 140, "warning", "Elevated Systolic Blood Pressure"),
    ),
    "blood_pressure_diastolic": (
        ThresholdRule("above", 100, "critical", "Critically High Diastolic Blood Pressure"),
        ThresholdRule("above", 90, "warning", "Elevated Diastolic Blood Pressure"),
    ),
    "glucose": (
        ThresholdRule("above", 250, "critical", "Critically High Blood Glucose"),
        ThresholdRule("above", 200, "warning", "Elevated Blood Glucose"),
    ),
    "oxygen_saturation": (
        ThresholdRule("below", 92, "critical", "Critically Low Oxygen Saturation"),
        ThresholdRule("below", 95, "warning", "Low Oxygen Saturation"),
    ),
    "temperature": (
        ThresholdRule("above", 103, "critical", "Critically High Temperature"),
        ThresholdRule("above", 100.4, "warning", "Elevated Temperature"),
    ),
})


def validate_rule_table(table: Mapping[str, tuple[ThresholdRule, ...]]) -> None:
    """Check that a rule table is well formed and ordered most severe first.

    Within one direction, a more severe rule must sit further out (a higher
    boundary for ``above``, a lower one for ``below``) and come earlier.
    Otherwise a lesser rule would shadow it.

    Raises:
        RuleTableError: describing the first problem found.
    """
    for vital, rules in table.items():
        if vital not in SCORED_VITALS:
            raise RuleTableError(f"Unknown vital in rule table: {vital!r}")
        if not rules:
            raise RuleTableError(f"No rules defined for {vital!r}")

        last_by_direction: dict[str, ThresholdRule] = {}
        for rule in rules:
            if rule.direction not in ("above", "below"):
                raise RuleTableError(f"{vital}: unknown direction {rule.direction!r}")
            if rule.severity not in ALERT_SEVERITIES:
                raise RuleTableError(f"{vital}: unknown severity {rule.severity!r}")
            if not rule.title.strip():
                raise RuleTableError(f"{vital}: rule at {rule.boundary} has no title")

            previous = last_by_direction.get(rule.direction)
            if previous is not None:
                if _SEVERITY_RANK[rule.severity] < _SEVERITY_RANK[previous.severity]:
                    raise RuleTableError(
                        f"{vital}: {rule.title!r} is more severe than the preceding "
                        f"{previous.title!r}"
                    )
                further_out = (
                    rule.boundary >= previous.boundary
                    if rule.direction == "above"
                    else rule.boundary <= previous.boundary
                )
                if further_out:
                    raise RuleTableError(
                        f"{vital}: {rule.title!r} is shadowed by {previous.title!r}"
                    )
            last_by_direction[rule.direction] = rule
