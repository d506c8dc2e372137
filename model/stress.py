"""
model/stress.py — Stress Index Estimation
============================================

⚠️  DISCLAIMER: This is a heuristic WELLNESS INDICATOR, not a validated
    clinical stress measure.  Short rPPG windows give noisy HRV, and
    psychological stress is multi-factorial.

────────────────────────────────────────────────────────────────────────
Rationale
────────────────────────────────────────────────────────────────────────
Under acute stress the sympathetic branch dominates and heart-rate
variability shrinks.  The index is a weighted rule score (no ML):

    RMSSD  → up to 40 points   (< 15 / < 25 / < 40 ms  → 40 / 30 / 15, else 5)
    SDNN   → up to 40 points   (< 30 / < 50 / < 80 ms  → 40 / 30 / 15, else 5)
    pNN50  → up to 20 points   (< 3 / < 10 / < 25 %    → 20 / 15 / 8,  else 2)

    total < 35  → "low"
    total < 65  → "moderate"
    otherwise   → "high"
────────────────────────────────────────────────────────────────────────
"""

from config import (
    STRESS_LOW_BELOW,
    STRESS_MODERATE_BELOW,
    STRESS_PNN50_FALLBACK,
    STRESS_PNN50_POINTS,
    STRESS_RMSSD_FALLBACK,
    STRESS_RMSSD_POINTS,
    STRESS_SDNN_FALLBACK,
    STRESS_SDNN_POINTS,
)
from rppg.types import HRVMetrics, StressLevel


def _points(value: float, table, fallback: int) -> int:
    for threshold, points in table:
        if value < threshold:
            return points
    return fallback


def stress_index(hrv: HRVMetrics) -> int:
    """Rule score in [12, 100]; higher means more stressed."""
    return (
        _points(hrv.rmssd, STRESS_RMSSD_POINTS, STRESS_RMSSD_FALLBACK)
        + _points(hrv.sdnn, STRESS_SDNN_POINTS, STRESS_SDNN_FALLBACK)
        + _points(hrv.pnn50, STRESS_PNN50_POINTS, STRESS_PNN50_FALLBACK)
    )


def classify_stress(index: int) -> StressLevel:
    if index < STRESS_LOW_BELOW:
        return "low"
    if index < STRESS_MODERATE_BELOW:
        return "moderate"
    return "high"


def estimate_stress(hrv: HRVMetrics | None) -> tuple[StressLevel | None, int | None]:
    """
    Map HRV metrics to `(level, index)`; `(None, None)` without HRV.
    """
    if hrv is None:
        return None, None
    index = stress_index(hrv)
    return classify_stress(index), index
