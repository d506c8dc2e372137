"""
features/hr.py — Heart-rate & respiratory-rate estimation
===========================================================
Both rates come from the same frequency-domain recipe applied to a
band-limited trace (see `rppg.filters.bandpass_filter`):

    variance gate  →  magnitude spectrum  →  dominant in-band peak
                   →  SNR gate  →  Hz × 60  →  physiological range gate

Heart rate additionally goes through a subharmonic check: a candidate
below SUBHARMONIC_CHECK_BPM whose doubled frequency carries at least
SUBHARMONIC_RATIO of its magnitude is most likely half the true rate,
so it is rejected rather than reported.

Every rejection returns None — a missing estimate is an expected outcome
for short, flat, or noisy recordings.
"""

import numpy as np

from config import (
    HR_VALID_BPM,
    MIN_FILTERED_VARIANCE,
    RESP_VALID_BPM,
    SUBHARMONIC_CHECK_BPM,
    SUBHARMONIC_RATIO,
)
from rppg.filters import variance
from rppg.spectrum import SpectralPeak, find_dominant_peak, magnitude_spectrum
from utils.logger import get_logger

logger = get_logger("features.hr")


def _band_peak(filtered: np.ndarray, fs: float, band: tuple[float, float], label: str):
    filtered_var = variance(filtered)
    if filtered_var < MIN_FILTERED_VARIANCE:
        logger.debug("%s rejected — filtered variance %.5f below %.2f", label, filtered_var, MIN_FILTERED_VARIANCE)
        return None, None

    spectrum = magnitude_spectrum(filtered, fs)
    peak = find_dominant_peak(spectrum, band[0], band[1])
    if peak is None or peak.frequency < band[0]:
        logger.debug("%s rejected — no in-band peak above the SNR floor", label)
        return None, spectrum
    return peak, spectrum


def _is_subharmonic(peak: SpectralPeak, magnitudes: np.ndarray) -> bool:
    double_index = 2 * peak.index
    if double_index >= magnitudes.size:
        return False
    return bool(magnitudes[double_index] >= SUBHARMONIC_RATIO * peak.magnitude)


def estimate_heart_rate(filtered: np.ndarray, fs: float, band: tuple[float, float]) -> int | None:
    """
    Heart rate in BPM from a cardiac-band-filtered trace.

    Parameters
    ----------
    filtered : ndarray   Output of `bandpass_filter` for the HR band.
    fs       : float     Sampling rate (Hz).
    band     : (lo, hi)  Passband in Hz; peaks outside it are ignored.

    Returns
    -------
    int | None   Rounded BPM in HR_VALID_BPM, or None.
    """
    peak, spectrum = _band_peak(filtered, fs, band, "HR")
    if peak is None:
        return None

    bpm = peak.frequency * 60.0
    lo, hi = HR_VALID_BPM
    if bpm < lo or bpm > hi:
        logger.debug("HR rejected — %.1f BPM outside [%.0f, %.0f]", bpm, lo, hi)
        return None

    if bpm < SUBHARMONIC_CHECK_BPM and _is_subharmonic(peak, spectrum.magnitudes):
        logger.debug("HR rejected — %.1f BPM looks like a subharmonic of %.1f BPM", bpm, bpm * 2)
        return None

    logger.debug("HR %.1f BPM (%.3f Hz, SNR %.2f)", bpm, peak.frequency, peak.snr)
    return int(round(bpm))


def estimate_respiratory_rate(filtered: np.ndarray, fs: float, band: tuple[float, float]) -> int | None:
    """Breaths per minute from a respiratory-band-filtered trace, or None."""
    peak, _ = _band_peak(filtered, fs, band, "RR")
    if peak is None:
        return None

    rate = peak.frequency * 60.0
    lo, hi = RESP_VALID_BPM
    if rate < lo or rate > hi:
        logger.debug("RR rejected — %.1f breaths/min outside [%.0f, %.0f]", rate, lo, hi)
        return None
    return int(round(rate))
