"""
model/spo2.py — Blood-oxygen (SpO2) estimation
================================================

⚠️⚠️  NOT CLINICALLY VALID  ⚠️⚠️
Pulse oximeters compare red against *infrared* absorption.  A webcam has
no infrared channel, so this module substitutes the blue channel and
applies a generic linear calibration.  The output is a rough wellness
estimate at best and must never be used to judge oxygenation.

Ratio of ratios
---------------
    R     = (AC_red / DC_red) / (AC_blue / DC_blue)
    SpO2  = 110 − 25 · R,   clamped to [85, 100]

AC is the population standard deviation of the channel buffer, DC its
mean.  Clamped values outside [90, 100] are treated as noise and
reported as None.

Any object exposing `estimate(red, blue) -> int | None` can replace
`RatioOfRatiosSpO2` in `SignalExtractor(spo2_model=...)`.
"""

from typing import Protocol

import numpy as np

from config import SPO2_CLAMP, SPO2_INTERCEPT, SPO2_SLOPE, SPO2_VALID


class SpO2Model(Protocol):
    def estimate(self, red: np.ndarray, blue: np.ndarray) -> int | None: ...


class RatioOfRatiosSpO2:
    """Linear red/blue ratio-of-ratios calibration."""

    def __init__(
        self,
        intercept: float = SPO2_INTERCEPT,
        slope: float = SPO2_SLOPE,
        min_samples: int = 2,
    ):
        self.intercept = intercept
        self.slope = slope
        self.min_samples = max(2, min_samples)

    def estimate(self, red: np.ndarray, blue: np.ndarray) -> int | None:
        red = np.asarray(red, dtype=np.float64)
        blue = np.asarray(blue, dtype=np.float64)
        valid = np.isfinite(red) & np.isfinite(blue)
        red, blue = red[valid], blue[valid]
        if red.size < self.min_samples:
            return None

        red_dc, blue_dc = float(red.mean()), float(blue.mean())
        red_ac, blue_ac = float(red.std()), float(blue.std())
        if red_dc == 0 or blue_dc == 0 or red_ac == 0 or blue_ac == 0:
            return None

        ratio = (red_ac / red_dc) / (blue_ac / blue_dc)
        spo2 = float(np.clip(self.intercept - self.slope * ratio, *SPO2_CLAMP))

        lo, hi = SPO2_VALID
        if spo2 < lo or spo2 > hi:
            return None
        return int(round(spo2))
