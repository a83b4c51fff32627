"""Shared test fixtures for VitalWatch tests."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("VITALWATCH_"):
            monkeypatch.delenv(name, raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from vitalwatch.domains.vitals.domain_logic.vital_models import VitalReading  # noqa: E402

BASE_TIME = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_reading(hours_ago: float | None = None, **vitals) -> VitalReading:
    """Create a test reading; ``hours_ago`` sets the timestamp relative to BASE_TIME."""
    timestamp = BASE_TIME - timedelta(hours=hours_ago) if hours_ago is not None else None
    return VitalReading(timestamp=timestamp, **vitals)


def make_history(vital: str, values: list[float], *, step_hours: float = 24) -> list[VitalReading]:
    """Ascending history for one vital, the last value at BASE_TIME."""
    count = len(values)
    return [
        make_reading(hours_ago=(count - 1 - i) * step_hours, **{vital: value})
        for i, value in enumerate(values)
    ]


@pytest.fixture
def healthy_reading() -> VitalReading:
    return make_reading(
        hours_ago=0,
        heart_rate=72,
        blood_pressure_systolic=115,
        blood_pressure_diastolic=75,
        glucose=98.0,
        oxygen_saturation=98.0,
        temperature=98.6,
        sleep_hours=7.5,
        steps=8200,
    )


@pytest.fixture
def empty_reading() -> VitalReading:
    return VitalReading()


@pytest.fixture
def rising_glucose_history() -> list[VitalReading]:
    return make_history("glucose", [110.0, 160.0, 210.0])


@pytest.fixture
def weights_file(tmp_path: Path) -> Path:
    path = tmp_path / "condition_weights.yaml"
    path.write_text(
        "Chronic Kidney Disease:\n"
        "  blood_pressure_systolic: 1.3\n"
        "  blood_pressure_diastolic: 1.3\n"
        "Hypertension:\n"
        "  blood_pressure_systolic: 1.8\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def reading_factory():
    return make_reading


@pytest.fixture
def history_factory():
    return make_history
