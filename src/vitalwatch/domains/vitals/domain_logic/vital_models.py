"""Vital-sign models and domain vocabulary shared by the alert and risk engines."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Iterable, Literal, Mapping

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Vocabulary (stable contract with callers and the rendering layer)
# ---------------------------------------------------------------------------

# Iteration order here is the tie-break order for ranked risk factors.
SCORED_VITALS = (
    "heart_rate",
    "blood_pressure_systolic",
    "blood_pressure_diastolic",
    "glucose",
    "oxygen_saturation",
    "temperature",
)

VITAL_FIELDS = SCORED_VITALS + ("sleep_hours", "steps")

VITAL_UNITS = {
    "heart_rate": "BPM",
    "blood_pressure_systolic": "mmHg",
    "blood_pressure_diastolic": "mmHg",
    "glucose": "mg/dL",
    "oxygen_saturation": "%",
    "temperature": "°F",
}

NORMAL_RANGES = {
    "heart_rate": "60-100 BPM",
    "blood_pressure_systolic": "<120 mmHg",
    "blood_pressure_diastolic": "<80 mmHg",
    "glucose": "70-140 mg/dL",
    "oxygen_saturation": "≥95%",
    "temperature": "97.0-99.5°F",
}

# Vitals where a rising value is clinically bad. Everything else in
# VITAL_FIELDS (SpO2, sleep, steps) is higher-is-better.
HIGHER_IS_WORSE = frozenset({
    "heart_rate",
    "blood_pressure_systolic",
    "blood_pressure_diastolic",
    "glucose",
    "temperature",
})

AlertSeverity = Literal["critical", "warning", "info"]
RiskCategory = Literal["low", "moderate", "high", "critical"]
TrendLabel = Literal["worsening", "improving", "stable"]

ALERT_SEVERITIES = ("critical", "warning", "info")
RISK_CATEGORIES = ("low", "moderate", "high", "critical")
TREND_LABELS = ("worsening", "improving", "stable")


# ---------------------------------------------------------------------------
# Risk engine constants (empirical; change only after clinical review)
# ---------------------------------------------------------------------------

VITAL_POINTS_CAP = 25           # max points a single vital can contribute
TREND_DEAD_ZONE = 0.5           # |slope| below this is "stable"
TREND_MIN_POINTS = 3            # history points needed before a trend penalty
TREND_PENALTY_CAP = 5
TREND_SLOPE_SCALE = 2.0         # |slope| at which the trend penalty saturates
COMPOUND_MULTI_THRESHOLD = 3    # abnormal vitals for the systemic bonus
COMPOUND_BONUS_MULTI = 10
COMPOUND_BONUS_PAIR = 5
CATEGORY_CRITICAL_AT = 80
CATEGORY_HIGH_AT = 55
CATEGORY_MODERATE_AT = 30


@dataclass(frozen=True)
class RiskTuning:
    """Tunable constants for the risk engine, passed explicitly to each call."""

    vital_points_cap: int = VITAL_POINTS_CAP
    trend_dead_zone: float = TREND_DEAD_ZONE
    trend_min_points: int = TREND_MIN_POINTS
    trend_penalty_cap: int = TREND_PENALTY_CAP
    trend_slope_scale: float = TREND_SLOPE_SCALE
    compound_multi_threshold: int = COMPOUND_MULTI_THRESHOLD
    compound_bonus_multi: int = COMPOUND_BONUS_MULTI
    compound_bonus_pair: int = COMPOUND_BONUS_PAIR
    category_critical_at: int = CATEGORY_CRITICAL_AT
    category_high_at: int = CATEGORY_HIGH_AT
    category_moderate_at: int = CATEGORY_MODERATE_AT


DEFAULT_TUNING = RiskTuning()


class ReadingValidationError(ValueError):
    """A reading field carries something other than a finite number."""


def format_value(value: float) -> str:
    """Render a measurement the way it reads on a chart: 155, not 155.0."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VitalReading:
    """One snapshot of measurements sourced together.

    Every measurement is optional. ``None`` means "not measured" and is never
    treated as zero or as a breach.
    """

    heart_rate: int | float | None = None
    blood_pressure_systolic: int | float | None = None
    blood_pressure_diastolic: int | float | None = None
    glucose: float | None = None
    oxygen_saturation: float | None = None
    temperature: float | None = None
    sleep_hours: float | None = None   # carried, not scored
    steps: int | None = None           # carried, not scored
    timestamp: datetime | str | None = None  # ordering only; strings parsed on init

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", _parse_timestamp(self.timestamp))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> VitalReading:
        """Build a reading from a loosely typed row (DB row or JSON body).

        Unknown keys are ignored. Raises ReadingValidationError when a vital
        field holds anything but a finite int/float, or when the timestamp
        cannot be parsed.
        """
        values: dict[str, Any] = {}
        for name in VITAL_FIELDS:
            raw = row.get(name)
            if raw is None:
                continue
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise ReadingValidationError(f"Field '{name}' must be a number")
            try:
                finite = math.isfinite(raw)
            except OverflowError as exc:
                raise ReadingValidationError(f"Field '{name}' must be a number") from exc
            if not finite:
                raise ReadingValidationError(f"Field '{name}' must be a number")
            values[name] = raw

        values["timestamp"] = row.get("timestamp")
        return cls(**values)

    def get(self, vital: str) -> int | float | None:
        """Value for a vital key, or None when absent or not a vital."""
        if vital not in VITAL_FIELDS:
            return None
        return getattr(self, vital)

    def scored_values(self) -> dict[str, int | float]:
        """Present scored vitals, in SCORED_VITALS order."""
        return {
            name: getattr(self, name)
            for name in SCORED_VITALS
            if getattr(self, name) is not None
        }

    def is_empty(self) -> bool:
        return not self.scored_values()

    def as_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp.isoformat()
        return data


def coerce_reading(reading: VitalReading | Mapping[str, Any] | None) -> VitalReading | None:
    """Accept either a VitalReading or a row mapping."""
    if reading is None or isinstance(reading, VitalReading):
        return reading
    return VitalReading.from_row(reading)


def _parse_timestamp(raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str):
        try:
            return datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ReadingValidationError(f"Field 'timestamp' is not ISO 8601: {raw!r}") from exc
    raise ReadingValidationError("Field 'timestamp' must be a datetime or ISO 8601 string")


def as_utc(moment: datetime) -> datetime:
    """Naive timestamps are stored as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def normalize_conditions(raw: Iterable[str] | str | None) -> frozenset[str]:
    """Normalize a patient's condition list into a set of names.

    Accepts None, any iterable of strings, or the JSON-encoded list that
    patient rows store. Bad entries are dropped: an unknown or unusable
    condition has no weighting effect, so it is never an error.
    """
    if raw is None:
        return frozenset()

    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else []
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed condition list (not JSON)")
            return frozenset()
        if not isinstance(raw, list):
            logger.warning("Ignoring condition list that is not a JSON array")
            return frozenset()

    names = set()
    for item in raw:
        if not isinstance(item, str):
            logger.warning("Ignoring non-string condition entry of type %s", type(item).__name__)
            continue
        name = item.strip()
        if name:
            names.add(name)
    return frozenset(names)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AlertRecord:
    """A single threshold breach. Identity and timestamps belong to the caller."""

    vital_type: str
    vital_value: int | float
    threshold_value: int | float
    severity: AlertSeverity
    title: str
    message: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RiskFactor:
    """One scored vital's contribution to the overall risk score."""

    vital: str
    score: int
    trend: TrendLabel
    zone: str
    explanation: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RiskScoreResult:
    """Composite risk score with ranked contributing factors."""

    overall_score: int
    category: RiskCategory
    factors: tuple[RiskFactor, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, Any]:
        """Serialize with the key names the dashboard consumes."""
        return {
            "overallScore": self.overall_score,
            "category": self.category,
            "factors": [f.as_dict() for f in self.factors],
        }

    def factor_for(self, vital: str) -> RiskFactor | None:
        for factor in self.factors:
            if factor.vital == vital:
                return factor
        return None
