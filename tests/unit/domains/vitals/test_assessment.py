"""Tests for the combined alert + risk assessment helper."""

from __future__ import annotations

import logging

from vitalwatch.domains.vitals.domain_logic.assessment import assess_vitals
from vitalwatch.domains.vitals.domain_logic.risk_zones import ZONE_TABLES, ZoneBand
from vitalwatch.domains.vitals.domain_logic.vital_models import VitalReading


class TestAssessVitals:
    def test_healthy_reading(self, healthy_reading):
        assessment = assess_vitals(healthy_reading, [], [])
        assert assessment.alerts == ()
        assert assessment.risk.overall_score == 0
        assert not assessment.has_critical

    def test_empty_reading(self):
        assessment = assess_vitals(None)
        assert assessment.alerts == ()
        assert assessment.risk.factors == ()
        assert not assessment.has_critical

    def test_critical_alert_flags_assessment(self):
        assessment = assess_vitals(VitalReading(heart_rate=155))
        assert assessment.has_critical
        assert assessment.risk.category == "low"

    def test_warning_only_is_not_critical(self):
        assessment = assess_vitals(VitalReading(glucose=220.0))
        assert [a.severity for a in assessment.alerts] == ["warning"]
        assert not assessment.has_critical

    def test_critical_category_flags_assessment(self):
        # Every zone critical but no single alert rule crossed at critical level
        reading = VitalReading(
            heart_rate=125,
            blood_pressure_systolic=155,
            blood_pressure_diastolic=95,
            glucose=230.0,
            oxygen_saturation=93.0,
            temperature=102.0,
        )
        assessment = assess_vitals(reading, [], ["Heart Disease", "Hypertension", "COPD"])
        assert all(a.severity == "warning" for a in assessment.alerts)
        assert assessment.risk.category == "critical"
        assert assessment.has_critical

    def test_accepts_row_mapping(self):
        assessment = assess_vitals({"oxygen_saturation": 88.0, "timestamp": "2026-03-10 08:00:00"})
        assert assessment.alerts[0].title == "Critically Low Oxygen Saturation"
        assert assessment.risk.factor_for("oxygen_saturation").zone == "critical"

    def test_logs_critical_assessments(self, caplog):
        with caplog.at_level(logging.INFO):
            assess_vitals(VitalReading(blood_pressure_systolic=185, blood_pressure_diastolic=120))
        assert "Critical assessment" in caplog.text

    def test_as_dict(self):
        data = assess_vitals(VitalReading(heart_rate=155)).as_dict()
        assert data["has_critical"] is True
        assert data["alerts"][0]["severity"] == "critical"
        assert data["risk"]["overallScore"] == 22

    def test_custom_zone_tables_forwarded(self):
        tables = dict(ZONE_TABLES)
        tables["glucose"] = (
            ZoneBand(None, False, 25, "critical", "Blood glucose {value} mg/dL flagged"),
        )
        assessment = assess_vitals(VitalReading(glucose=98.0), zone_tables=tables)
        assert assessment.alerts == ()
        assert assessment.risk.factor_for("glucose").zone == "critical"
        assert assessment.risk.overall_score == 25
