"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from vitalwatch.domains.vitals.domain_logic.condition_weights import (
    CONDITION_WEIGHTS,
    ConditionWeightTable,
    load_condition_weights,
)
from vitalwatch.domains.vitals.domain_logic.vital_models import (
    COMPOUND_BONUS_MULTI,
    COMPOUND_BONUS_PAIR,
    COMPOUND_MULTI_THRESHOLD,
    TREND_DEAD_ZONE,
    TREND_MIN_POINTS,
    TREND_PENALTY_CAP,
    TREND_SLOPE_SCALE,
    VITAL_POINTS_CAP,
    RiskTuning,
)


class Settings(BaseSettings):
    """VitalWatch engine configuration.

    The engines never read settings themselves. Callers build a RiskTuning
    (and optionally a condition weight table) from here and pass it in.
    """

    model_config = SettingsConfigDict(
        env_prefix="VITALWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "info"

    # History window the caller should fetch for trend detection
    history_window_days: int = Field(default=7, ge=1)

    # Risk engine constants. Empirical; do not change without clinical review.
    vital_points_cap: int = Field(default=VITAL_POINTS_CAP, ge=0)
    trend_dead_zone: float = Field(default=TREND_DEAD_ZONE, ge=0)
    trend_min_points: int = Field(default=TREND_MIN_POINTS, ge=2)
    trend_penalty_cap: int = Field(default=TREND_PENALTY_CAP, ge=0)
    trend_slope_scale: float = Field(default=TREND_SLOPE_SCALE, gt=0)
    compound_multi_threshold: int = Field(default=COMPOUND_MULTI_THRESHOLD, ge=3)
    compound_bonus_multi: int = Field(default=COMPOUND_BONUS_MULTI, ge=0)
    compound_bonus_pair: int = Field(default=COMPOUND_BONUS_PAIR, ge=0)

    # Optional YAML file with extra/overriding condition weights
    condition_weights_path: str = ""

    def risk_tuning(self) -> RiskTuning:
        """Build the RiskTuning passed to compute_risk_score."""
        return RiskTuning(
            vital_points_cap=self.vital_points_cap,
            trend_dead_zone=self.trend_dead_zone,
            trend_min_points=self.trend_min_points,
            trend_penalty_cap=self.trend_penalty_cap,
            trend_slope_scale=self.trend_slope_scale,
            compound_multi_threshold=self.compound_multi_threshold,
            compound_bonus_multi=self.compound_bonus_multi,
            compound_bonus_pair=self.compound_bonus_pair,
        )

    def condition_weights(self) -> ConditionWeightTable:
        """Default condition weights, merged with the configured YAML file if any."""
        if not self.condition_weights_path:
            return CONDITION_WEIGHTS
        return load_condition_weights(self.condition_weights_path)


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
