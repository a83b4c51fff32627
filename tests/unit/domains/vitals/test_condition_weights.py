"""Tests for condition-based weighting and the YAML weights loader."""

from __future__ import annotations

import logging

import pytest

from vitalwatch.domains.vitals.domain_logic.condition_weights import (
    CONDITION_WEIGHTS,
    ConditionWeightsError,
    condition_weight,
    load_condition_weights,
)


class TestConditionWeight:
    def test_no_conditions_is_neutral(self):
        assert condition_weight([], "glucose") == 1.0

    def test_unknown_condition_is_neutral(self):
        assert condition_weight(["Seasonal Allergies"], "glucose") == 1.0

    def test_condition_for_other_vital_is_neutral(self):
        assert condition_weight(["Type 2 Diabetes"], "heart_rate") == 1.0

    @pytest.mark.parametrize("condition, vital, expected", [
        ("Type 2 Diabetes", "glucose", 1.5),
        ("Hypertension", "blood_pressure_systolic", 1.5),
        ("Hypertension", "blood_pressure_diastolic", 1.5),
        ("Heart Disease", "heart_rate", 1.5),
        ("Heart Disease", "oxygen_saturation", 1.2),
        ("COPD", "oxygen_saturation", 1.5),
        ("COPD", "temperature", 1.2),
    ])
    def test_default_table(self, condition, vital, expected):
        assert condition_weight([condition], vital) == expected

    def test_overlapping_conditions_take_max_not_sum(self):
        assert condition_weight(["Heart Disease", "COPD"], "oxygen_saturation") == 1.5

    def test_duplicates_are_idempotent(self):
        assert condition_weight(["Hypertension", "Hypertension"], "blood_pressure_systolic") == \
            condition_weight(["Hypertension"], "blood_pressure_systolic")

    def test_matching_is_exact(self):
        assert condition_weight(["hypertension"], "blood_pressure_systolic") == 1.0

    def test_default_table_is_read_only(self):
        with pytest.raises(TypeError):
            CONDITION_WEIGHTS["Asthma"] = {"oxygen_saturation": 1.3}


class TestLoadConditionWeights:
    def test_merges_over_defaults(self, weights_file):
        table = load_condition_weights(weights_file)
        assert condition_weight(["Chronic Kidney Disease"], "blood_pressure_diastolic", table) == 1.3
        assert condition_weight(["Type 2 Diabetes"], "glucose", table) == 1.5

    def test_override_replaces_condition_entry(self, weights_file):
        table = load_condition_weights(weights_file)
        assert table["Hypertension"] == {"blood_pressure_systolic": 1.8}
        assert condition_weight(["Hypertension"], "blood_pressure_diastolic", table) == 1.0

    def test_defaults_untouched(self, weights_file):
        load_condition_weights(weights_file)
        assert CONDITION_WEIGHTS["Hypertension"]["blood_pressure_diastolic"] == 1.5

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConditionWeightsError, match="not found"):
            load_condition_weights(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("COPD: [oxygen_saturation: 1.5\n", encoding="utf-8")
        with pytest.raises(ConditionWeightsError, match="Invalid YAML"):
            load_condition_weights(path)

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- COPD\n- Asthma\n", encoding="utf-8")
        with pytest.raises(ConditionWeightsError, match="mapping"):
            load_condition_weights(path)

    def test_empty_document_keeps_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert dict(load_condition_weights(path)) == dict(CONDITION_WEIGHTS)

    @pytest.mark.parametrize("multiplier", ["1.5", 0, -1.2, True])
    def test_bad_multiplier(self, tmp_path, multiplier):
        path = tmp_path / "bad_multiplier.yaml"
        path.write_text(f"Asthma:\n  oxygen_saturation: {multiplier!r}\n", encoding="utf-8")
        with pytest.raises(ConditionWeightsError, match="positive number"):
            load_condition_weights(path)

    def test_unknown_vital_skipped_with_warning(self, tmp_path, caplog):
        path = tmp_path / "unknown_vital.yaml"
        path.write_text("Asthma:\n  peak_flow: 1.4\n  oxygen_saturation: 1.3\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            table = load_condition_weights(path)
        assert table["Asthma"] == {"oxygen_saturation": 1.3}
        assert "peak_flow" in caplog.text
