"""
features/hrv.py — Heart Rate Variability (HRV) time-domain features
=====================================================================
Beats are located directly on the cardiac-band-filtered trace, turned
into R-R intervals, and summarised with the usual short-term metrics:

    SDNN  — population standard deviation of the R-R intervals
    RMSSD — root mean square of successive differences
    pNN50 — percentage of successive differences > 50 ms
    meanRR

Peak detection
--------------
The trace is min-max normalised to [0, 1]; a sample is a beat when it
exceeds HRV_PEAK_THRESHOLD and is strictly greater than its
HRV_PEAK_NEIGHBOURS neighbours on each side.

⚠️  A 15–20 s window holds only 15–30 beats, far from the 5-minute
    clinical standard.  Treat these numbers as trends, not diagnoses.
"""

import numpy as np
from scipy.signal import argrelmax

from config import (
    HRV_MIN_INTERVALS,
    HRV_MIN_PEAKS,
    HRV_PEAK_NEIGHBOURS,
    HRV_PEAK_THRESHOLD,
    PNN50_THRESHOLD_MS,
    RR_VALID_MS,
)
from rppg.types import HRVMetrics
from utils.logger import get_logger

logger = get_logger("features.hrv")


def detect_peaks(
    signal: np.ndarray,
    threshold: float = HRV_PEAK_THRESHOLD,
    neighbours: int = HRV_PEAK_NEIGHBOURS,
) -> list[int]:
    """Indices of local maxima on the min-max normalised signal."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size < 2 * neighbours + 1:
        return []
    lo, hi = float(x.min()), float(x.max())
    span = hi - lo
    if span == 0:
        return []

    norm = (x - lo) / span
    idx = argrelmax(norm, order=neighbours)[0]
    # argrelmax clips its window at the ends; require a full one
    idx = idx[(idx >= neighbours) & (idx < x.size - neighbours)]
    return [int(i) for i in idx[norm[idx] > threshold]]


def rr_intervals_ms(peaks: list[int], fs: float) -> list[float]:
    """Inter-beat gaps in ms, keeping only physiologically plausible ones."""
    lo, hi = RR_VALID_MS
    gaps = np.diff(np.asarray(peaks, dtype=np.float64)) / fs * 1000.0
    return [float(g) for g in gaps if lo <= g <= hi]


def compute_hrv(rr_ms: list[float]) -> HRVMetrics | None:
    """
    Time-domain HRV summary of R-R intervals (ms).

    Returns None with fewer than HRV_MIN_INTERVALS intervals.
    """
    if len(rr_ms) < HRV_MIN_INTERVALS:
        return None

    rr = np.asarray(rr_ms, dtype=np.float64)
    mean_rr = float(rr.mean())
    sdnn = float(np.std(rr))                 # population std (ddof=0)

    diffs = np.abs(np.diff(rr))
    rmssd = float(np.sqrt(np.mean(diffs ** 2)))
    pnn50 = float(np.count_nonzero(diffs > PNN50_THRESHOLD_MS) / diffs.size * 100.0)

    return HRVMetrics(
        rmssd=round(rmssd, 1),
        sdnn=round(sdnn, 1),
        pnn50=round(pnn50, 1),
        mean_rr=float(round(mean_rr)),
    )


def hrv_from_signal(filtered: np.ndarray, fs: float) -> HRVMetrics | None:
    """Peak detection → R-R intervals → HRV metrics, with count gates."""
    peaks = detect_peaks(filtered)
    if len(peaks) < HRV_MIN_PEAKS:
        logger.debug("HRV skipped — only %d peaks (need %d)", len(peaks), HRV_MIN_PEAKS)
        return None

    intervals = rr_intervals_ms(peaks, fs)
    metrics = compute_hrv(intervals)
    if metrics is None:
        logger.debug("HRV skipped — %d valid R-R intervals (need %d)", len(intervals), HRV_MIN_INTERVALS)
        return None

    logger.debug(
        "HRV — RMSSD=%.1f ms, SDNN=%.1f ms, pNN50=%.1f%%, meanRR=%.0f ms (%d intervals)",
        metrics.rmssd, metrics.sdnn, metrics.pnn50, metrics.mean_rr, len(intervals),
    )
    return metrics
