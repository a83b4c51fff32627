"""Condition-based weight multipliers for the risk engine.

A patient's conditions raise the weight of the vitals they make more
dangerous. Multiple matching conditions never stack: the largest
multiplier for a vital wins.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml

from vitalwatch.domains.vitals.domain_logic.vital_models import SCORED_VITALS

logger = logging.getLogger(__name__)

ConditionWeightTable = Mapping[str, Mapping[str, float]]

CONDITION_WEIGHTS: ConditionWeightTable = MappingProxyType({
    "Type 2 Diabetes": MappingProxyType({"glucose": 1.5}),
    "Hypertension": MappingProxyType({
        "blood_pressure_systolic": 1.5,
        "blood_pressure_diastolic": 1.5,
    }),
    "Heart Disease": MappingProxyType({"heart_rate": 1.5, "oxygen_saturation": 1.2}),
    "COPD": MappingProxyType({"oxygen_saturation": 1.5, "temperature": 1.2}),
})


class ConditionWeightsError(Exception):
    """Raised when a condition weights file cannot be used."""


def condition_weight(
    conditions: Iterable[str],
    vital: str,
    table: ConditionWeightTable = CONDITION_WEIGHTS,
) -> float:
    """Largest multiplier any of ``conditions`` applies to ``vital``, at least 1.0.

    Unknown condition names have no effect.
    """
    weight = 1.0
    for condition in conditions:
        multipliers = table.get(condition)
        if multipliers and vital in multipliers:
            weight = max(weight, multipliers[vital])
    return weight


def load_condition_weights(
    path: str | Path,
    base: ConditionWeightTable = CONDITION_WEIGHTS,
) -> ConditionWeightTable:
    """Load extra or overriding condition weights from a YAML file.

    Expected shape::

        Chronic Kidney Disease:
          blood_pressure_systolic: 1.3
        Hypertension:
          blood_pressure_systolic: 1.6

    Entries for a condition replace that condition's defaults entirely.
    Unknown vital keys are skipped with a warning.

    Raises:
        ConditionWeightsError: missing file, invalid YAML, or a document that
            is not a mapping of mappings with positive numeric multipliers.
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise ConditionWeightsError(f"Condition weights file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConditionWeightsError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConditionWeightsError(f"{path}: expected a mapping of condition -> vital weights")

    merged: dict[str, Mapping[str, float]] = dict(base)
    for condition, multipliers in data.items():
        if not isinstance(condition, str) or not condition.strip():
            raise ConditionWeightsError(f"{path}: condition names must be non-empty strings")
        if not isinstance(multipliers, dict):
            raise ConditionWeightsError(f"{path}: weights for {condition!r} must be a mapping")

        parsed: dict[str, float] = {}
        for vital, multiplier in multipliers.items():
            if vital not in SCORED_VITALS:
                logger.warning("Skipping unknown vital %r for condition %r in %s", vital, condition, path)
                continue
            if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)) or multiplier <= 0:
                raise ConditionWeightsError(
                    f"{path}: multiplier for {condition!r}/{vital} must be a positive number"
                )
            parsed[vital] = float(multiplier)
        merged[condition.strip()] = MappingProxyType(parsed)

    logger.info("Loaded %d condition weight override(s) from %s", len(data), path)
    return MappingProxyType(merged)
