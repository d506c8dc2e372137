"""
camera/capture.py — Timestamped webcam capture
================================================
A daemon thread keeps grabbing frames so the monitoring loop never
blocks on camera I/O.  Each frame is stamped with the wall-clock time
(ms) at which it was read; the rPPG buffers store that stamp alongside
the colour sample.

`get_latest()` is non-blocking and returns `(frame_bgr, timestamp_ms)`
or None.  `frame_id` increases by one per grabbed frame, so a consumer
polling faster than the camera can tell repeated frames apart and avoid
feeding the same sample twice.
"""

import threading
import time

import cv2
import numpy as np

from config import CAMERA_FPS, CAMERA_HEIGHT, CAMERA_INDEX, CAMERA_WIDTH
from utils.logger import get_logger

logger = get_logger("camera.capture")


class CameraCapture:
    """One webcam with thread-safe access to its newest frame."""

    def __init__(self, device_index: int = CAMERA_INDEX, fps: float = CAMERA_FPS):
        self._device_index = device_index
        self._requested_fps = fps
        self._cap: cv2.VideoCapture | None = None
        self._latest: tuple[np.ndarray, float] | None = None
        self._frame_id = 0
        self._lock = threading.Lock()
        self._frame_ready = threading.Event()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.is_open = False
        self.actual_fps: float = float(fps)

    # ── Public API ───────────────────────────────────────────────────────────

    def open(self) -> bool:
        """Open the device and start the capture thread; False on failure."""
        if self.is_open:
            logger.warning("Camera already open — ignoring duplicate open().")
            return True

        self._cap = cv2.VideoCapture(self._device_index)
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, CAMERA_WIDTH)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CAMERA_HEIGHT)
        self._cap.set(cv2.CAP_PROP_FPS, self._requested_fps)

        if not self._cap.isOpened():
            logger.error(
                "Failed to open camera at index %d. "
                "Check that a webcam is connected and not in use.",
                self._device_index,
            )
            self._cap.release()
            self._cap = None
            return False

        reported_fps = self._cap.get(cv2.CAP_PROP_FPS)
        # Some backends report 0 until the first frame arrives.
        self.actual_fps = reported_fps if reported_fps > 0 else float(self._requested_fps)
        logger.info(
            "Camera opened — %dx%d @ %.1f FPS",
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            self.actual_fps,
        )

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()
        self.is_open = True
        return True

    def release(self) -> None:
        """Stop the capture thread and free the device."""
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        if self._cap:
            self._cap.release()
            self._cap = None
        self.is_open = False
        logger.info("Camera released.")

    @property
    def frame_id(self) -> int:
        with self._lock:
            return self._frame_id

    def get_latest(self) -> tuple[np.ndarray, float] | None:
        """Newest `(frame_bgr, timestamp_ms)` or None before the first frame."""
        with self._lock:
            if self._latest is None:
                return None
            frame, ts = self._latest
            return frame.copy(), ts

    def wait_for_frame(self, timeout: float = 1.0) -> tuple[np.ndarray, float] | None:
        """Block until a new frame arrives or `timeout` seconds elapse."""
        self._frame_ready.wait(timeout=timeout)
        self._frame_ready.clear()
        return self.get_latest()

    # ── Private ──────────────────────────────────────────────────────────────

    def _capture_loop(self) -> None:
        while not self._stop_event.is_set():
            ret, frame = self._cap.read()  # type: ignore[union-attr]
            if not ret:
                logger.warning("Frame grab returned False — camera may have been disconnected.")
                break
            stamp_ms = time.time() * 1000.0
            with self._lock:
                self._latest = (frame, stamp_ms)
                self._frame_id += 1
            self._frame_ready.set()
        logger.debug("Capture loop exited.")
