"""Spectral peak search and heart / respiratory rate estimation."""

import numpy as np
import pytest

from config import HR_BAND_HZ, RESP_BAND_HZ
from features.hr import estimate_heart_rate, estimate_respiratory_rate
from rppg.filters import bandpass_filter
from rppg.spectrum import Spectrum, find_dominant_peak, magnitude_spectrum

from conftest import make_pulse


# ── Helpers ───────────────────────────────────────────────────

def _flat_spectrum(size: int = 100, step: float = 0.05, floor: float = 0.1) -> Spectrum:
    return Spectrum(np.arange(size) * step, np.full(size, floor))


# ── Spectrum ─────────────────────────────────────────────────

def test_magnitude_spectrum_pads_to_power_of_two():
    spectrum = magnitude_spectrum(np.zeros(600), 30.0)
    assert len(spectrum) == 512
    assert spectrum.frequencies[1] == pytest.approx(30.0 / 1024)


def test_dominant_peak_found_in_band():
    spectrum = _flat_spectrum()
    spectrum.magnitudes[30] = 5.0
    peak = find_dominant_peak(spectrum, 1.0, 3.5)
    assert peak.index == 30
    assert peak.frequency == pytest.approx(1.5)
    assert peak.snr == pytest.approx(50.0)


def test_peak_outside_band_is_ignored():
    spectrum = _flat_spectrum()
    spectrum.magnitudes[10] = 5.0        # 0.5 Hz
    assert find_dominant_peak(spectrum, 1.0, 3.5) is None


def test_spectrum_edges_are_never_peaks():
    spectrum = _flat_spectrum()
    spectrum.magnitudes[0] = 5.0
    spectrum.magnitudes[-1] = 5.0
    assert find_dominant_peak(spectrum, 0.0, 5.0) is None


def test_low_snr_peak_is_rejected():
    spectrum = _flat_spectrum(floor=1.0)
    spectrum.magnitudes[30] = 1.2
    assert find_dominant_peak(spectrum, 1.0, 3.5) is None


def test_fundamental_replaces_stronger_harmonic():
    spectrum = _flat_spectrum()
    spectrum.magnitudes[40] = 5.0        # 2.0 Hz, harmonic
    spectrum.magnitudes[20] = 3.0        # 1.0 Hz, fundamental
    peak = find_dominant_peak(spectrum, 0.5, 3.0)
    assert peak.index == 20


def test_weak_half_frequency_peak_does_not_replace_dominant():
    spectrum = _flat_spectrum()
    spectrum.magnitudes[40] = 5.0
    spectrum.magnitudes[20] = 2.0        # below half the dominant magnitude
    peak = find_dominant_peak(spectrum, 0.5, 3.0)
    assert peak.index == 40


# ── Heart rate ───────────────────────────────────────────────

def test_heart_rate_of_clean_pulse():
    filtered = bandpass_filter(make_pulse(1.2, noise=0.02), *HR_BAND_HZ, 30.0)
    assert estimate_heart_rate(filtered, 30.0, HR_BAND_HZ) == pytest.approx(72, abs=2)


def test_heart_rate_with_minimum_window():
    filtered = bandpass_filter(make_pulse(1.2, n=450), *HR_BAND_HZ, 30.0)
    assert estimate_heart_rate(filtered, 30.0, HR_BAND_HZ) == pytest.approx(72, abs=3)


def test_heart_rate_prefers_fundamental_over_harmonic():
    t = np.arange(600) / 30.0
    raw = 100 + 1.0 * np.sin(2 * np.pi * 2.4 * t) + 0.65 * np.sin(2 * np.pi * 1.2 * t)
    filtered = bandpass_filter(raw, *HR_BAND_HZ, 30.0)
    assert estimate_heart_rate(filtered, 30.0, HR_BAND_HZ) == pytest.approx(72, abs=2)


def test_flat_signal_has_no_heart_rate():
    filtered = bandpass_filter(np.full(600, 100.0), *HR_BAND_HZ, 30.0)
    assert estimate_heart_rate(filtered, 30.0, HR_BAND_HZ) is None


def test_slow_rate_with_strong_double_is_rejected_as_subharmonic():
    # fs=32, 512 samples → exact 1/16 Hz bins: 0.875 Hz = bin 14, 1.75 Hz = bin 28
    t = np.arange(512) / 32.0
    signal = np.sin(2 * np.pi * 0.875 * t) + 0.9 * np.sin(2 * np.pi * 1.75 * t)
    assert estimate_heart_rate(signal, 32.0, (0.7, 3.5)) is None


def test_slow_rate_with_weak_double_is_kept():
    t = np.arange(512) / 32.0
    signal = np.sin(2 * np.pi * 0.875 * t) + 0.3 * np.sin(2 * np.pi * 1.75 * t)
    assert estimate_heart_rate(signal, 32.0, (0.7, 3.5)) in (52, 53)


# ── Respiratory rate ─────────────────────────────────────────

def test_respiratory_rate_of_slow_wave():
    filtered = bandpass_filter(make_pulse(0.25, amplitude=1.0), *RESP_BAND_HZ, 30.0)
    rate = estimate_respiratory_rate(filtered, 30.0, RESP_BAND_HZ)
    assert 13 <= rate <= 17


def test_flat_signal_has_no_respiratory_rate():
    filtered = bandpass_filter(np.full(600, 100.0), *RESP_BAND_HZ, 30.0)
    assert estimate_respiratory_rate(filtered, 30.0, RESP_BAND_HZ) is None
