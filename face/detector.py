"""
face/detector.py — Face landmarks → face box + EAR / MAR
=========================================================
Wraps Google's MediaPipe Face Mesh (468 landmarks, single face) and
reduces each frame to what the monitoring loop needs:

  1. the pixel-space bounding box of the landmarks, which places the
     rPPG ROI (`SignalExtractor.initialize_roi`);
  2. the eye and mouth aspect ratios (`face.metrics`).

Only one face is tracked; additional faces are ignored.
"""

from dataclasses import dataclass, field

import cv2
import numpy as np
# NOTE: mediapipe is imported lazily inside FaceDetector.__init__() so the
# API server and the engines work on machines without it.
from face.metrics import ratios_from_landmarks
from utils.logger import get_logger

logger = get_logger("face.detector")


@dataclass
class FaceObservation:
    """Result of one detector call."""
    face_detected: bool = False
    box: tuple[float, float, float, float] | None = None   # x, y, width, height (px)
    ear: float = 0.0
    mar: float = 0.0
    landmarks: list = field(default_factory=list)          # normalised (x, y)


def face_box(landmarks, frame_w: int, frame_h: int) -> tuple[float, float, float, float] | None:
    """Bounding box of normalised landmarks in pixels; None if degenerate."""
    if not landmarks:
        return None
    pts = np.asarray(landmarks, dtype=np.float64)[:, :2] * np.array([frame_w, frame_h])
    x_min, y_min = pts.min(axis=0)
    x_max, y_max = pts.max(axis=0)
    width, height = x_max - x_min, y_max - y_min
    if width <= 0 or height <= 0:
        return None
    return float(x_min), float(y_min), float(width), float(height)


class FaceDetector:
    """MediaPipe FaceMesh with a `detect(frame_bgr)` method."""

    def __init__(self, min_detection_confidence: float = 0.5, min_tracking_confidence: float = 0.5):
        try:
            import mediapipe as mp
        except ImportError as exc:
            raise ImportError(
                "mediapipe is not installed — run `pip install mediapipe` "
                "to use live face tracking."
            ) from exc

        self._mp_face_mesh = mp.solutions.face_mesh.FaceMesh(
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        logger.info("MediaPipe FaceMesh initialised.")

    def detect(self, frame_bgr: np.ndarray) -> FaceObservation:
        h, w = frame_bgr.shape[:2]
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self._mp_face_mesh.process(frame_rgb)

        if not results.multi_face_landmarks:
            return FaceObservation()

        landmarks = [(lm.x, lm.y) for lm in results.multi_face_landmarks[0].landmark]
        ear, mar = ratios_from_landmarks(landmarks)
        return FaceObservation(
            face_detected=True,
            box=face_box(landmarks, w, h),
            ear=ear,
            mar=mar,
            landmarks=landmarks,
        )

    def close(self) -> None:
        self._mp_face_mesh.close()
        logger.info("FaceMesh closed.")
