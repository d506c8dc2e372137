"""
rppg/spectrum.py — Magnitude spectrum & dominant-peak search
==============================================================
The filtered trace is zero-padded to the next power of two and passed
through `numpy.fft.rfft`.  Only bins 0 … N/2 − 1 are kept so the bin
grid is `k · fs / N`.

Peak search
-----------
1. Collect local maxima (strictly greater than both neighbours) whose
   frequency lies inside the requested band.
2. Sort them by magnitude.  The strongest one is the default answer.
3. Harmonic disambiguation: a pulse waveform is not a pure sinusoid, so
   its first harmonic can out-power the fundamental.  If one of the top
   candidates sits at half the dominant peak's bin, the dominant peak is
   markedly stronger (> HARMONIC_DOMINANCE_RATIO ×) and the candidate
   still carries at least FUNDAMENTAL_MIN_RATIO of the dominant
   magnitude, the candidate (the fundamental) wins.
4. SNR = chosen magnitude / mean magnitude of every bin further than half
   an exclusion window away from the chosen bin.  Below MIN_PEAK_SNR the
   peak is rejected.
"""

from dataclasses import dataclass

import numpy as np
from scipy.signal import argrelmax

from config import (
    FUNDAMENTAL_MIN_RATIO,
    HARMONIC_CANDIDATES,
    HARMONIC_DOMINANCE_RATIO,
    MIN_PEAK_SNR,
    SNR_EXCLUSION_FRACTION,
)


@dataclass(frozen=True)
class Spectrum:
    frequencies: np.ndarray
    magnitudes: np.ndarray

    def __len__(self) -> int:
        return int(self.magnitudes.size)


@dataclass(frozen=True)
class SpectralPeak:
    index: int
    frequency: float
    magnitude: float
    snr: float


def magnitude_spectrum(signal: np.ndarray, fs: float) -> Spectrum:
    """|DFT| of the zero-padded signal on the half-spectrum grid."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size == 0:
        return Spectrum(np.empty(0), np.empty(0))

    n_fft = 1 << (x.size - 1).bit_length()        # next power of 2 ≥ len
    half = n_fft // 2
    magnitudes = np.abs(np.fft.rfft(x, n=n_fft))[:half]
    frequencies = np.arange(half) * (fs / n_fft)
    return Spectrum(frequencies, magnitudes)


def _local_maxima(spectrum: Spectrum, min_hz: float, max_hz: float) -> list[int]:
    freqs = spectrum.frequencies
    if spectrum.magnitudes.size < 3:
        return []
    idx = argrelmax(spectrum.magnitudes, order=1)[0]
    in_band = (freqs[idx] >= min_hz) & (freqs[idx] <= max_hz)
    return [int(i) for i in idx[in_band]]


def _resolve_fundamental(spectrum: Spectrum, ranked: list[int]) -> int:
    mags = spectrum.magnitudes
    dominant = ranked[0]
    for candidate in ranked[1:HARMONIC_CANDIDATES]:
        if abs(2 * candidate - dominant) > 1:
            continue
        if (mags[dominant] > HARMONIC_DOMINANCE_RATIO * mags[candidate]
                and mags[candidate] >= FUNDAMENTAL_MIN_RATIO * mags[dominant]):
            return candidate
    return dominant


def spectral_snr(spectrum: Spectrum, index: int) -> float:
    """Peak magnitude over the mean magnitude away from the peak."""
    mags = spectrum.magnitudes
    window = max(3, int(np.floor(mags.size * SNR_EXCLUSION_FRACTION)))
    distance = np.abs(np.arange(mags.size) - index)
    noise = mags[distance > window / 2.0]
    avg_noise = float(noise.mean()) if noise.size else 1.0
    if avg_noise <= 0:
        return 0.0
    return float(mags[index] / avg_noise)


def find_dominant_peak(spectrum: Spectrum, min_hz: float, max_hz: float) -> SpectralPeak | None:
    """
    Return the accepted peak inside [min_hz, max_hz], or None when no
    local maximum exists there or its SNR is below MIN_PEAK_SNR.
    """
    peaks = _local_maxima(spectrum, min_hz, max_hz)
    if not peaks:
        return None

    ranked = sorted(peaks, key=lambda i: spectrum.magnitudes[i], reverse=True)
    best = _resolve_fundamental(spectrum, ranked)
    snr = spectral_snr(spectrum, best)
    if snr < MIN_PEAK_SNR:
        return None

    return SpectralPeak(
        index=best,
        frequency=float(spectrum.frequencies[best]),
        magnitude=float(spectrum.magnitudes[best]),
        snr=snr,
    )
