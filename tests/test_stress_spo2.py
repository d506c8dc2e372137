"""Stress index rules and the ratio-of-ratios SpO2 model."""

import numpy as np
import pytest

from model.spo2 import RatioOfRatiosSpO2
from model.stress import classify_stress, estimate_stress, stress_index
from rppg.types import HRVMetrics


# ── Stress ───────────────────────────────────────────────────

def test_no_hrv_means_no_stress_estimate():
    assert estimate_stress(None) == (None, None)


@pytest.mark.parametrize(
    "rmssd, sdnn, pnn50, expected_index, expected_level",
    [
        (10.0, 20.0, 1.0, 100, "high"),
        (30.0, 60.0, 5.0, 45, "moderate"),
        (50.0, 100.0, 30.0, 12, "low"),
    ],
)
def test_stress_index_and_level(rmssd, sdnn, pnn50, expected_index, expected_level):
    hrv = HRVMetrics(rmssd=rmssd, sdnn=sdnn, pnn50=pnn50, mean_rr=800.0)
    assert stress_index(hrv) == expected_index
    assert estimate_stress(hrv) == (expected_level, expected_index)


def test_stress_level_boundaries():
    assert classify_stress(34) == "low"
    assert classify_stress(35) == "moderate"
    assert classify_stress(64) == "moderate"
    assert classify_stress(65) == "high"


# ── SpO2 ─────────────────────────────────────────────────────

def _channels(red_ac: float, n: int = 300):
    wave = np.sin(2 * np.pi * np.arange(n) / 30.0)   # 10 full cycles
    return 150.0 + red_ac * wave, 100.0 + 1.0 * wave


def test_spo2_from_ratio_of_ratios():
    red, blue = _channels(0.9)                       # R = 0.6 → 110 − 15
    assert RatioOfRatiosSpO2().estimate(red, blue) == 95


def test_spo2_below_valid_range_is_rejected():
    red, blue = _channels(3.0)                       # R = 2 → clamps to 85
    assert RatioOfRatiosSpO2().estimate(red, blue) is None


def test_spo2_ignores_missing_samples():
    red, blue = _channels(0.9)
    red = np.concatenate([np.full(50, np.nan), red])
    blue = np.concatenate([np.full(50, np.nan), blue])
    assert RatioOfRatiosSpO2().estimate(red, blue) == 95


def test_spo2_needs_enough_finite_samples():
    red, blue = _channels(0.9, n=300)
    assert RatioOfRatiosSpO2(min_samples=450).estimate(red, blue) is None


def test_spo2_flat_channel_is_rejected():
    red, _ = _channels(0.9)
    assert RatioOfRatiosSpO2().estimate(red, np.full(300, 100.0)) is None
