"""
face/metrics.py — Eye / mouth aspect ratios & blink / yawn counting
=====================================================================
Geometry on MediaPipe FaceMesh landmarks (normalised x, y):

    EAR = (‖p2 − p6‖ + ‖p3 − p5‖) / (2 · ‖p1 − p4‖)
    MAR = ‖top − bottom‖ / ‖left − right‖

`FacialEventCounter` turns the per-frame ratios into events:

* blink — EAR below BLINK_EAR_THRESHOLD for ≥ BLINK_CONSEC_FRAMES frames,
  counted when the eye reopens;
* yawn  — MAR above YAWN_MAR_THRESHOLD for ≥ YAWN_CONSEC_FRAMES frames,
  counted when the mouth closes.

It keeps cumulative totals plus a rolling one-minute window.  The fatigue
engine takes the one-minute blink rate as `blink_count` but the session
total as `yawn_count`; `FacialSnapshot.fatigue_inputs()` does the mapping.
"""

import math
from collections import deque
from dataclasses import dataclass

from config import (
    BLINK_CONSEC_FRAMES,
    BLINK_EAR_THRESHOLD,
    EVENT_WINDOW_SECONDS,
    YAWN_CONSEC_FRAMES,
    YAWN_MAR_THRESHOLD,
)

# p1 corner, p2/p3 top, p4 corner, p5/p6 bottom
RIGHT_EYE_LANDMARKS = [362, 385, 387, 263, 373, 380]
LEFT_EYE_LANDMARKS = [33, 160, 158, 133, 153, 144]
# left corner, right corner, top lip centre, bottom lip centre
MOUTH_LANDMARKS = [61, 291, 0, 17]


def _dist(p, q) -> float:
    return math.hypot(p[0] - q[0], p[1] - q[1])


def compute_ear(eye) -> float:
    """Eye aspect ratio from six (x, y) points; 0 for a degenerate eye."""
    p1, p2, p3, p4, p5, p6 = eye
    horizontal = _dist(p1, p4)
    if horizontal == 0:
        return 0.0
    return (_dist(p2, p6) + _dist(p3, p5)) / (2.0 * horizontal)


def compute_mar(mouth) -> float:
    """Mouth aspect ratio from (left, right, top, bottom) points."""
    left, right, top, bottom = mouth
    horizontal = _dist(left, right)
    if horizontal == 0:
        return 0.0
    return _dist(top, bottom) / horizontal


def ratios_from_landmarks(landmarks) -> tuple[float, float]:
    """(mean EAR of both eyes, MAR) from a full FaceMesh landmark list."""
    left = compute_ear([landmarks[i] for i in LEFT_EYE_LANDMARKS])
    right = compute_ear([landmarks[i] for i in RIGHT_EYE_LANDMARKS])
    mar = compute_mar([landmarks[i] for i in MOUTH_LANDMARKS])
    return (left + right) / 2.0, mar


def fallback_drowsiness(ear: float, mar: float) -> float:
    """Local drowsiness estimate in [0, 1] used when no external score exists."""
    score = (1.0 - ear) * 0.5 + (0.3 if mar > 0.5 else 0.0)
    return min(1.0, max(0.0, score))


@dataclass(frozen=True)
class FacialSnapshot:
    ear: float
    mar: float
    blink_total: int
    blinks_per_minute: int
    last_blink_duration: float   # s
    yawn_total: int
    yawns_per_minute: int
    drowsiness_score: float

    def fatigue_inputs(self) -> dict:
        """Keyword arguments for `FatigueInputMetrics` / `from_rppg`."""
        return {
            "ear": self.ear,
            "mar": self.mar,
            "blink_count": self.blinks_per_minute,
            "blink_duration": self.last_blink_duration,
            "yawn_count": self.yawn_total,
            "drowsiness_score": self.drowsiness_score,
        }


class FacialEventCounter:
    """Frame-by-frame blink / yawn detector with rolling rates."""

    def __init__(self, window_seconds: float = EVENT_WINDOW_SECONDS):
        self.window_seconds = window_seconds
        self.reset()

    def reset(self) -> None:
        self._closed_frames = 0
        self._closed_since = 0.0
        self._open_frames = 0
        self.blink_total = 0
        self.yawn_total = 0
        self.last_blink_duration = 0.0
        self._blink_times: deque[float] = deque()
        self._yawn_times: deque[float] = deque()

    def update(self, ear: float, mar: float, now: float) -> FacialSnapshot:
        if ear < BLINK_EAR_THRESHOLD:
            self._closed_frames += 1
            if self._closed_frames == 1:
                self._closed_since = now
        else:
            if self._closed_frames >= BLINK_CONSEC_FRAMES:
                self.blink_total += 1
                self.last_blink_duration = now - self._closed_since
                self._blink_times.append(now)
            self._closed_frames = 0

        if mar > YAWN_MAR_THRESHOLD:
            self._open_frames += 1
        else:
            if self._open_frames >= YAWN_CONSEC_FRAMES:
                self.yawn_total += 1
                self._yawn_times.append(now)
            self._open_frames = 0

        cutoff = now - self.window_seconds
        for times in (self._blink_times, self._yawn_times):
            while times and times[0] < cutoff:
                times.popleft()

        return FacialSnapshot(
            ear=ear,
            mar=mar,
            blink_total=self.blink_total,
            blinks_per_minute=len(self._blink_times),
            last_blink_duration=self.last_blink_duration,
            yawn_total=self.yawn_total,
            yawns_per_minute=len(self._yawn_times),
            drowsiness_score=fallback_drowsiness(ear, mar),
        )
