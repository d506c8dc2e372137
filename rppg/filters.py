"""
rppg/filters.py — Detrending & band-pass filtering
====================================================
Isolates one physiological band (cardiac or respiratory) from the raw
green-channel trace.

The band-pass is deliberately simple and cheap enough to run on every
result refresh:

    detrend  →  zero-mean  →  1st-order IIR high-pass (low cutoff)
             →  centred moving-average low-pass (high cutoff)
             →  unit-variance normalisation

High-pass
---------
    y[n] = α · (y[n−1] + x[n] − x[n−1]),   α = RC / (RC + dt),
    RC = 1 / (2π f_low),  y[0] = x[0]

Low-pass
--------
A symmetric moving average whose half-width is ⌊w / 2⌋ with
w = max(1, ⌊fs / (2 f_high)⌋).  Near the edges the window is truncated
and the mean is taken over the samples that exist.
"""

import numpy as np
from scipy.signal import detrend as _scipy_detrend, lfilter


def detrend(signal: np.ndarray) -> np.ndarray:
    """
    Remove the least-squares linear trend from a 1-D signal.

    Signals shorter than 2 samples are returned unchanged.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size < 2:
        return x.copy()
    return _scipy_detrend(x, type="linear")


def variance(signal: np.ndarray) -> float:
    """Population variance; 0 for fewer than two samples."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size < 2:
        return 0.0
    return float(np.var(x))


def highpass(signal: np.ndarray, cutoff_hz: float, fs: float) -> np.ndarray:
    """First-order IIR high-pass seeded so that y[0] = x[0]."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    rc = 1.0 / (2.0 * np.pi * cutoff_hz)
    dt = 1.0 / fs
    alpha = rc / (rc + dt)

    b = np.array([alpha, -alpha])
    a = np.array([1.0, -alpha])
    # Transposed direct-form state chosen so the first output equals x[0]
    zi = np.array([(1.0 - alpha) * x[0]])
    y, _ = lfilter(b, a, x, zi=zi)
    return y


def moving_average(signal: np.ndarray, cutoff_hz: float, fs: float) -> np.ndarray:
    """Centred moving-average low-pass with edge-truncated windows."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    window = max(1, int(np.floor(fs / (2.0 * cutoff_hz))))
    half = window // 2
    kernel = np.ones(2 * half + 1)

    sums = np.convolve(x, kernel, mode="same")
    counts = np.convolve(np.ones_like(x), kernel, mode="same")
    return sums / counts


def bandpass_filter(signal: np.ndarray, low_hz: float, high_hz: float, fs: float) -> np.ndarray:
    """
    Band-limit a raw intensity trace and scale it to unit variance.

    Parameters
    ----------
    signal  : ndarray, shape (N,)   Raw samples (any offset / drift).
    low_hz  : float                 High-pass cutoff.
    high_hz : float                 Low-pass cutoff.
    fs      : float                 Sampling rate in Hz.

    Returns
    -------
    filtered : ndarray, shape (N,)
        Signals shorter than 3 samples are returned as-is (as float64).
        A numerically flat input stays (near) zero rather than being
        blown up by the variance normalisation.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size < 3:
        return x.copy()

    filtered = detrend(x)
    filtered = filtered - filtered.mean()
    filtered = highpass(filtered, low_hz, fs)
    filtered = moving_average(filtered, high_hz, fs)

    rms = np.sqrt(np.mean(filtered ** 2))
    return filtered / (rms + 1e-8)
