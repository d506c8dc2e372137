"""
api/session.py — Monitoring session manager
=============================================
Owns one `SignalExtractor` and one `FatigueFusionEngine` and serialises
every request that touches them.  FastAPI runs sync handlers on a
threadpool, so two requests can arrive at once; the engines are not
thread-safe themselves.

Thread safety
-------------
All engine calls and the cached rPPG snapshot are guarded by `_lock`.

Lifecycle
---------
    1. `start()` — reset both engines, mark the session active.
    2. Feed `add_frame(...)` / `add_samples(...)` at camera rate.
    3. Poll `latest_result()`; it recomputes at most once per
       `update_interval` seconds and serves the cached snapshot between.
    4. `analyze(...)` fuses facial metrics with the latest snapshot.
    5. `stop()` — reset and mark inactive.
"""

import base64
import binascii
import threading
import time
from typing import Callable

import cv2
import numpy as np

from face.metrics import fallback_drowsiness
from fatigue.engine import FatigueFusionEngine
from fatigue.types import FatigueAnalyticsResult, FatigueInputMetrics
from rppg.extractor import ExtractorConfig, SignalExtractor
from rppg.types import RPPGResult, SignalStats
from utils.logger import get_logger

logger = get_logger("api.session")

# ── Disclaimer string injected into session responses ───────────────────────
DISCLAIMER = (
    "⚠️ This is a WELLNESS ESTIMATION tool — NOT a medical device. "
    "Heart rate, respiratory rate, HRV, SpO2, stress and fatigue values are "
    "ESTIMATES derived from remote photoplethysmography (rPPG) and facial "
    "landmarks. They have NOT been validated for clinical use. "
    "Do NOT rely on them for driving, operating machinery, or medical decisions."
)


class SessionInactiveError(RuntimeError):
    """Raised when data arrives while no monitoring session is running."""


class FrameDecodeError(ValueError):
    """Raised when an uploaded frame is not a decodable image."""


def decode_frame(image_b64: str) -> np.ndarray:
    """Base64 JPEG/PNG → RGB uint8 array."""
    try:
        raw = base64.b64decode(image_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FrameDecodeError("image_b64 is not valid base64.") from exc

    frame_bgr = cv2.imdecode(np.frombuffer(raw, dtype=np.uint8), cv2.IMREAD_COLOR)
    if frame_bgr is None:
        raise FrameDecodeError("image_b64 does not contain a decodable image.")
    return cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)


class MonitoringSession:
    """
    One live monitoring session shared by the API routes.

    Parameters
    ----------
    config : ExtractorConfig | None   rPPG parameters (defaults from config.py).
    clock  : callable → seconds       Drives throttling and fatigue timing.
    """

    def __init__(self, config: ExtractorConfig | None = None, clock: Callable[[], float] = time.time):
        self._lock = threading.Lock()
        self._clock = clock
        self._extractor = SignalExtractor(config)
        self._fatigue = FatigueFusionEngine(clock=clock)
        self._active = False
        self._cached: RPPGResult | None = None
        self._cached_at = 0.0
        logger.info("MonitoringSession initialised.")

    # ── Lifecycle ──────────────────────────────────────────────────────────

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def start(self) -> None:
        with self._lock:
            self._reset_locked()
            self._active = True
        logger.info("Monitoring session started.")

    def stop(self) -> None:
        with self._lock:
            self._active = False
            self._reset_locked()
        logger.info("Monitoring session stopped.")

    def _reset_locked(self) -> None:
        self._extractor.reset()
        self._fatigue.reset()
        self._cached = None
        self._cached_at = 0.0

    def _require_active(self) -> None:
        if not self._active:
            raise SessionInactiveError("No active session. POST /session/start first.")

    # ── rPPG ingestion ─────────────────────────────────────────────────────

    def add_frame(self, image_b64: str, timestamp_ms: float, face_box=None) -> float | None:
        """
        Decode a frame, update the ROI and append one sample.

        Returns the green intensity, or None when the ROI had zero area.
        """
        frame_rgb = decode_frame(image_b64)
        with self._lock:
            self._require_active()
            if face_box is not None:
                self._extractor.initialize_roi(face_box.width, face_box.height, face_box.x, face_box.y)
            return self._extractor.add_frame(frame_rgb, timestamp_ms)

    def add_samples(self, samples) -> int:
        """Append pre-averaged samples; returns the buffer size afterwards."""
        with self._lock:
            self._require_active()
            for s in samples:
                self._extractor.add_sample(s.green, s.timestamp_ms, red=s.red, blue=s.blue)
            return self._extractor.sample_count

    # ── rPPG results ───────────────────────────────────────────────────────

    def latest_result(self) -> RPPGResult:
        with self._lock:
            return self._latest_result_locked()

    def _latest_result_locked(self) -> RPPGResult:
        now = self._clock()
        interval = self._extractor.config.update_interval
        if self._cached is None or now - self._cached_at >= interval:
            self._cached = self._extractor.process()
            self._cached_at = now
            logger.debug(
                "rPPG refresh — status=%s, samples=%d, HR=%s",
                self._cached.status, self._cached.samples_collected, self._cached.heart_rate,
            )
        return self._cached

    def signal_stats(self) -> tuple[SignalStats | None, int, bool]:
        with self._lock:
            return (
                self._extractor.get_signal_stats(),
                self._extractor.sample_count,
                self._extractor.roi_stable,
            )

    # ── Fatigue ────────────────────────────────────────────────────────────

    def analyze(self, facial) -> FatigueAnalyticsResult:
        """Fuse one tick of facial metrics with the latest rPPG snapshot."""
        drowsiness = facial.drowsiness_score
        if drowsiness is None:
            drowsiness = fallback_drowsiness(facial.ear, facial.mar)

        with self._lock:
            self._require_active()
            rppg = self._latest_result_locked()
            metrics = FatigueInputMetrics.from_rppg(
                rppg,
                ear=facial.ear,
                mar=facial.mar,
                blink_count=facial.blink_count,
                blink_duration=facial.blink_duration,
                yawn_count=facial.yawn_count,
                drowsiness_score=drowsiness,
            )
            return self._fatigue.analyze(metrics)

    def record_break(self) -> None:
        with self._lock:
            self._require_active()
            self._fatigue.record_break()
