"""
rppg/quality.py — Signal-quality grading & display waveform
=============================================================
Quality is graded from two numbers on the raw green trace:

* variance of the whole buffer — a pulse needs *some* fluctuation;
* coefficient of variation (CV, %) of the last ~3 s — large CV means
  motion or lighting changes swamp the pulse.

    variance < 0.01 or CV > 10 %  → poor
    variance < 0.1  or CV > 5 %   → fair
    variance < 1    or CV > 2 %   → good
    otherwise                     → excellent
"""

import numpy as np

from config import QUALITY_MIN_SAMPLES, QUALITY_RECENT_SECONDS, WAVEFORM_SECONDS
from rppg.filters import detrend, variance
from rppg.types import SignalQuality


def assess_signal_quality(samples: np.ndarray, fs: float) -> SignalQuality:
    x = np.asarray(samples, dtype=np.float64)
    if x.size < QUALITY_MIN_SAMPLES:
        return "poor"

    total_var = variance(x)
    recent = x[-max(1, int(round(fs * QUALITY_RECENT_SECONDS))):]
    recent_mean = float(recent.mean())
    cv = float(recent.std() / recent_mean * 100.0) if recent_mean > 0 else 100.0

    if not (np.isfinite(total_var) and np.isfinite(cv)):
        return "poor"
    if total_var < 0.01 or cv > 10:
        return "poor"
    if total_var < 0.1 or cv > 5:
        return "fair"
    if total_var < 1 or cv > 2:
        return "good"
    return "excellent"


def display_waveform(samples: np.ndarray, fs: float) -> tuple[float, ...]:
    """Detrended last ~5 s scaled to [-1, 1]; empty until enough samples."""
    x = np.asarray(samples, dtype=np.float64)
    if x.size < QUALITY_MIN_SAMPLES:
        return ()

    window = min(int(round(fs * WAVEFORM_SECONDS)), x.size)
    trace = detrend(x[-window:])
    peak = float(np.max(np.abs(trace))) if trace.size else 0.0
    if peak == 0:
        return tuple(float(v) for v in trace)
    return tuple(float(v) for v in trace / peak)
