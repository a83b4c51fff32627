"""Per-vital scoring zones for the risk engine.

Each vital maps to an ascending tuple of bands. A value belongs to the
first band whose upper bound it does not exceed; the final band is
unbounded. Points per band:

    normal = 0, warning/elevated = 6-12, high/fever = 10-18, critical/crisis = 22-25
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from vitalwatch.domains.vitals.domain_logic.vital_models import SCORED_VITALS, format_value

MAX_ZONE_POINTS = 25


class ZoneTableError(Exception):
    """Raised when a zone table is not a well-formed band partition."""


@dataclass(frozen=True)
class ZoneBand:
    """Values up to ``upper`` (inclusive or not) score ``points`` in ``zone``.

    ``explanation`` is a format string receiving ``value``.
    """

    upper: float | None
    upper_inclusive: bool
    points: int
    zone: str
    explanation: str

    def contains(self, value: float) -> bool:
        if self.upper is None:
            return True
        if self.upper_inclusive:
            return value <= self.upper
        return value < self.upper


@dataclass(frozen=True)
class ZoneScore:
    points: int
    zone: str
    explanation: str


def _band(upper, inclusive, points, zone, explanation) -> ZoneBand:
    return ZoneBand(upper, inclusive, points, zone, explanation)


ZONE_TABLES: Mapping[str, tuple[ZoneBand, ...]] = MappingProxyType({
    "heart_rate": (
        _band(50, False, 22, "critical", "Heart rate {value} BPM is critically low (< 50)"),
        _band(60, False, 10, "warning", "Heart rate {value} BPM is below normal (< 60)"),
        _band(100, True, 0, "normal", "Heart rate {value} BPM is within normal range"),
        _band(120, True, 10, "warning", "Heart rate {value} BPM is above normal (> 100)"),
        _band(None, False, 22, "critical", "Heart rate {value} BPM is critically high (> 120)"),
    ),
    "blood_pressure_systolic": (
        _band(120, False, 0, "normal", "Systolic BP {value} mmHg is normal"),
        _band(129, True, 8, "elevated", "Systolic BP {value} mmHg is elevated (120-129)"),
        _band(139, True, 14, "high", "Systolic BP {value} mmHg is high (130-179)"),
        _band(180, False, 18, "high", "Systolic BP {value} mmHg is high (130-179)"),
        _band(None, False, 25, "crisis", "Systolic BP {value} mmHg is in hypertensive crisis (>= 180)"),
    ),
    "blood_pressure_diastolic": (
        _band(80, False, 0, "normal", "Diastolic BP {value} mmHg is normal"),
        _band(89, True, 10, "high", "Diastolic BP {value} mmHg is high (>= 80)"),
        _band(120, False, 16, "high", "Diastolic BP {value} mmHg is high (>= 80)"),
        _band(None, False, 25, "crisis", "Diastolic BP {value} mmHg is in hypertensive crisis (>= 120)"),
    ),
    "glucose": (
        _band(55, False, 25, "critical", "Blood glucose {value} mg/dL is critically low (< 55)"),
        _band(70, False, 12, "warning", "Blood glucose {value} mg/dL is low (55-69)"),
        _band(140, True, 0, "normal", "Blood glucose {value} mg/dL is within normal range"),
        _band(200, True, 10, "high", "Blood glucose {value} mg/dL is high (141-200)"),
        _band(None, False, 22, "critical", "Blood glucose {value} mg/dL is critically high (> 200)"),
    ),
    "oxygen_saturation": (
        _band(90, False, 25, "critical", "SpO2 {value}% is critically low (< 90)"),
        _band(95, False, 12, "low", "SpO2 {value}% is low (90-94)"),
        _band(None, False, 0, "normal", "SpO2 {value}% is within normal range"),
    ),
    "temperature": (
        _band(97.0, False, 6, "warning", "Temperature {value}°F is below normal (< 97)"),
        _band(99.5, True, 0, "normal", "Temperature {value}°F is within normal range"),
        _band(103, True, 10, "fever", "Temperature {value}°F indicates fever (99.5-103)"),
        _band(None, False, 22, "critical", "Temperature {value}°F is critically high (> 103)"),
    ),
})


def classify_zone(
    vital: str,
    value: float,
    tables: Mapping[str, tuple[ZoneBand, ...]] = ZONE_TABLES,
) -> ZoneScore:
    """Map a vital value to its points, zone name and explanation.

    Raises:
        KeyError: if ``vital`` has no zone table.
    """
    for band in tables[vital]:
        if band.contains(value):
            return ZoneScore(
                points=band.points,
                zone=band.zone,
                explanation=band.explanation.format(value=format_value(value)),
            )
    # Unreachable for validated tables; the last band is unbounded.
    raise ZoneTableError(f"No zone band covers {vital}={value}")


def validate_zone_table(tables: Mapping[str, tuple[ZoneBand, ...]]) -> None:
    """Check every table is an ascending partition ending in an unbounded band."""
    for vital, bands in tables.items():
        if vital not in SCORED_VITALS:
            raise ZoneTableError(f"Unknown vital in zone table: {vital!r}")
        if not bands:
            raise ZoneTableError(f"No zone bands defined for {vital!r}")
        if bands[-1].upper is not None:
            raise ZoneTableError(f"{vital}: last band must be unbounded")

        previous: float | None = None
        for band in bands[:-1]:
            if band.upper is None:
                raise ZoneTableError(f"{vital}: only the last band may be unbounded")
            if previous is not None and band.upper <= previous:
                raise ZoneTableError(f"{vital}: band bounds must be strictly ascending")
            previous = band.upper

        for band in bands:
            if not 0 <= band.points <= MAX_ZONE_POINTS:
                raise ZoneTableError(
                    f"{vital}: band {band.zone!r} scores {band.points}, outside 0-{MAX_ZONE_POINTS}"
                )
            if "{value}" not in band.explanation:
                raise ZoneTableError(f"{vital}: band {band.zone!r} explanation does not cite the value")
