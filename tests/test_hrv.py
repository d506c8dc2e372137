"""Beat detection, R-R intervals and time-domain HRV."""

import numpy as np
import pytest

from config import HR_BAND_HZ
from features.hrv import compute_hrv, detect_peaks, hrv_from_signal, rr_intervals_ms
from rppg.filters import bandpass_filter

from conftest import make_pulse


def test_detect_peaks_on_regular_pulse():
    peaks = detect_peaks(make_pulse(1.2, n=300))
    assert 11 <= len(peaks) <= 13
    assert all(24 <= gap <= 26 for gap in np.diff(peaks))


def test_detect_peaks_on_flat_signal():
    assert detect_peaks(np.full(100, 3.0)) == []


def test_detect_peaks_requires_strict_dominance():
    x = np.array([0.0, 0.0, 1.0, 1.0, 0.0, 0.0, 0.0])
    assert detect_peaks(x) == []


def test_detect_peaks_ignores_samples_near_the_edges():
    # index 1 and the last sample lack two neighbours on one side
    x = np.array([0.0, 1.0, 0.0, 0.0, 0.0, 0.0, 0.6, 0.0, 0.0, 0.0, 1.0])
    assert detect_peaks(x) == [6]


def test_detect_peaks_applies_threshold():
    x = np.array([0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 0.2, 0.0, 0.0, 0.0])
    assert detect_peaks(x) == [3]


def test_rr_intervals_drop_implausible_gaps():
    # 30 samples = 1000 ms, 3 samples = 100 ms
    assert rr_intervals_ms([0, 30, 60, 63], 30.0) == [1000.0, 1000.0]


def test_compute_hrv_known_values():
    hrv = compute_hrv([800.0, 850.0, 800.0, 900.0])
    assert hrv.rmssd == pytest.approx(70.7)
    assert hrv.sdnn == pytest.approx(41.5)
    assert hrv.pnn50 == pytest.approx(33.3)
    assert hrv.mean_rr == 838.0


def test_compute_hrv_needs_two_intervals():
    assert compute_hrv([800.0]) is None
    assert compute_hrv([]) is None


def test_hrv_from_regular_pulse():
    filtered = bandpass_filter(make_pulse(1.2), *HR_BAND_HZ, 30.0)
    hrv = hrv_from_signal(filtered, 30.0)
    assert hrv is not None
    assert hrv.mean_rr == pytest.approx(833, abs=20)
    assert hrv.rmssd < 40


def test_hrv_from_flat_signal_is_none():
    assert hrv_from_signal(np.zeros(600), 30.0) is None
