"""
rppg/extractor.py — Streaming rPPG engine
==========================================
Turns a stream of per-frame ROI colour means into vital-sign estimates:

    frame  →  ROI mean RGB  →  rolling buffers (≈ 20 s)
           →  process():  band-pass (HR / respiratory)
                          →  FFT peak  →  HR, respiratory rate
                          →  beat peaks  →  HRV  →  stress index
                          →  red/blue ratio-of-ratios  →  SpO2
                          →  signal quality + display waveform

The green channel carries the pulse: haemoglobin absorbs green light
strongly, so the blood-volume pulse has the best contrast-to-noise ratio
there for ordinary visible-light webcams.  Red and blue means ride along
in side buffers for the SpO2 estimate.

Buffers are `deque(maxlen=…)`, so appending past capacity drops the
oldest entry in O(1) and the four buffers (green, timestamp, red, blue)
always have the same length.

`process()` only reads the buffers.  Analysis faults are caught there
and reported as `status="error"`; ordinary rejections (too little signal,
low SNR, out-of-range rates) show up as `None` fields.
"""

from collections import deque
from dataclasses import dataclass

import numpy as np

from config import (
    HR_BAND_HZ,
    RESP_BAND_HZ,
    RPPG_BUFFER_SECONDS,
    RPPG_FRAME_RATE,
    RPPG_MIN_SAMPLES,
    RPPG_UPDATE_INTERVAL,
)
from features.hr import estimate_heart_rate, estimate_respiratory_rate
from features.hrv import hrv_from_signal
from model.spo2 import RatioOfRatiosSpO2, SpO2Model
from model.stress import estimate_stress
from rppg.filters import bandpass_filter, variance
from rppg.quality import assess_signal_quality, display_waveform
from rppg.roi import RoiTracker
from rppg.types import ROI, RPPGResult, SignalStats
from utils.logger import get_logger

logger = get_logger("rppg.extractor")


@dataclass(frozen=True)
class ExtractorConfig:
    """Tunable parameters of `SignalExtractor` (defaults from config.py)."""
    frame_rate: float = RPPG_FRAME_RATE
    min_samples: int = RPPG_MIN_SAMPLES
    update_interval: float = RPPG_UPDATE_INTERVAL
    hr_band: tuple[float, float] = HR_BAND_HZ
    resp_band: tuple[float, float] = RESP_BAND_HZ
    buffer_seconds: float = RPPG_BUFFER_SECONDS

    def __post_init__(self):
        if self.frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {self.frame_rate}.")
        if self.min_samples < 1:
            raise ValueError(f"min_samples must be at least 1, got {self.min_samples}.")
        for name, (lo, hi) in (("hr_band", self.hr_band), ("resp_band", self.resp_band)):
            if not 0 < lo < hi:
                raise ValueError(f"{name} must satisfy 0 < low < high, got ({lo}, {hi}).")

    @property
    def max_samples(self) -> int:
        return int(self.frame_rate * self.buffer_seconds)


class SignalExtractor:
    """
    Stateful rPPG engine for one monitoring session.

    Parameters
    ----------
    config     : ExtractorConfig   Sampling rate, analysis thresholds, bands.
    spo2_model : SpO2Model | None  Replaces the default ratio-of-ratios model.

    Driven by a single caller (one video loop); not thread-safe.
    """

    def __init__(self, config: ExtractorConfig | None = None, spo2_model: SpO2Model | None = None):
        self.config = config or ExtractorConfig()
        self._spo2_model = spo2_model or RatioOfRatiosSpO2(min_samples=self.config.min_samples)
        self._roi = RoiTracker()

        capacity = self.config.max_samples
        self._signal: deque[float] = deque(maxlen=capacity)
        self._timestamps: deque[float] = deque(maxlen=capacity)
        self._red: deque[float] = deque(maxlen=capacity)
        self._blue: deque[float] = deque(maxlen=capacity)
        self._pending_red_blue: tuple[float, float] | None = None

        logger.info(
            "SignalExtractor created — fps=%.1f, min_samples=%d, window=%d samples",
            self.config.frame_rate, self.config.min_samples, capacity,
        )

    # ── ROI ──────────────────────────────────────────────────────────────────

    def initialize_roi(self, face_width: float, face_height: float, face_x: float, face_y: float) -> None:
        """Place the ROI from a face box (ignored if the face barely moved)."""
        self._roi.initialize_roi(face_width, face_height, face_x, face_y)

    def initialize_simple_roi(self, video_width: float, video_height: float) -> None:
        """Place a centred fallback ROI in the upper part of the frame."""
        self._roi.initialize_simple_roi(video_width, video_height)

    @property
    def roi(self) -> ROI | None:
        return self._roi.roi

    @property
    def roi_stable(self) -> bool:
        return self._roi.stable

    # ── Ingestion ────────────────────────────────────────────────────────────

    def extract_channel_intensity(self, frame_rgb: np.ndarray) -> float | None:
        """
        Mean green value inside the ROI of an RGB frame.

        The red and blue means are held back and attached to the next
        `add_sample` call.  Returns None when the ROI has zero area.
        """
        means = self._roi.channel_means(frame_rgb)
        if means is None:
            return None
        red, green, blue = means
        self._pending_red_blue = (red, blue)
        return green

    def add_sample(
        self,
        intensity: float,
        timestamp: float,
        red: float | None = None,
        blue: float | None = None,
    ) -> None:
        """
        Append one green-channel sample.

        Red/blue come from the explicit arguments, else from the last
        `extract_channel_intensity` call, else NaN (SpO2 skips NaNs).

        Raises ValueError for a NaN or infinite intensity.
        """
        if not np.isfinite(intensity):
            raise ValueError(f"Sample intensity must be finite, got {intensity!r}.")
        if red is None or blue is None:
            pending = self._pending_red_blue or (float("nan"), float("nan"))
            red = pending[0] if red is None else red
            blue = pending[1] if blue is None else blue
        self._pending_red_blue = None

        self._signal.append(float(intensity))
        self._timestamps.append(float(timestamp))
        self._red.append(float(red))
        self._blue.append(float(blue))

    def add_frame(self, frame_rgb: np.ndarray, timestamp: float) -> float | None:
        """`extract_channel_intensity` + `add_sample`; skips zero-area ROIs."""
        intensity = self.extract_channel_intensity(frame_rgb)
        if intensity is not None:
            self.add_sample(intensity, timestamp)
        return intensity

    @property
    def sample_count(self) -> int:
        return len(self._signal)

    # ── Analysis ─────────────────────────────────────────────────────────────

    def _status(self, count: int) -> str:
        if count == 0:
            return "initializing"
        if count < self.config.min_samples:
            return "collecting"
        return "running"

    def process(self) -> RPPGResult:
        """Snapshot of all estimates for the current buffer contents."""
        cfg = self.config
        count = len(self._signal)
        status = self._status(count)
        samples = np.fromiter(self._signal, dtype=np.float64, count=count)

        fields = {}
        if status == "running":
            try:
                fields = self._analyze(samples)
            except Exception:
                logger.exception("rPPG analysis failed on %d samples", count)
                status = "error"
                fields = {}

        return RPPGResult(
            status=status,
            samples_collected=count,
            signal_quality=assess_signal_quality(samples, cfg.frame_rate),
            waveform=display_waveform(samples, cfg.frame_rate),
            **fields,
        )

    def _analyze(self, samples: np.ndarray) -> dict:
        cfg = self.config
        fs = cfg.frame_rate

        hr_filtered = bandpass_filter(samples, cfg.hr_band[0], cfg.hr_band[1], fs)
        resp_filtered = bandpass_filter(samples, cfg.resp_band[0], cfg.resp_band[1], fs)

        heart_rate = estimate_heart_rate(hr_filtered, fs, cfg.hr_band)
        respiratory_rate = estimate_respiratory_rate(resp_filtered, fs, cfg.resp_band)
        hrv = hrv_from_signal(hr_filtered, fs)
        stress_level, stress_index = estimate_stress(hrv)
        spo2 = self._spo2_model.estimate(
            np.fromiter(self._red, dtype=np.float64),
            np.fromiter(self._blue, dtype=np.float64),
        )

        return {
            "heart_rate": heart_rate,
            "pulse_rate": heart_rate,
            "respiratory_rate": respiratory_rate,
            "hrv": hrv,
            "stress_level": stress_level,
            "stress_index": stress_index,
            "spo2": spo2,
        }

    def get_signal_stats(self) -> SignalStats | None:
        """Mean / std / min / max / variance of the raw buffer, for diagnostics."""
        if not self._signal:
            return None
        x = np.fromiter(self._signal, dtype=np.float64)
        var = variance(x)
        return SignalStats(
            mean=float(x.mean()),
            std=float(np.sqrt(var)),
            min=float(x.min()),
            max=float(x.max()),
            variance=var,
        )

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def reset(self) -> None:
        """Clear buffers and ROI; the extractor returns to `initializing`."""
        self._signal.clear()
        self._timestamps.clear()
        self._red.clear()
        self._blue.clear()
        self._pending_red_blue = None
        self._roi.reset()
        logger.info("SignalExtractor reset.")
