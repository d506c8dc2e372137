"""
rppg/roi.py — Region-of-interest placement & colour sampling
==============================================================
Two ways to place the sampling rectangle:

* From a detected face box: the centred 60 % of the face width and
  40 % of its height, starting 10 % below the top of the box.  That
  window covers the forehead and upper cheeks, the flattest well-perfused
  skin on the face.
* Without a face: a square of 30 % of the frame's short side,
  horizontally centred, 15 % below the top of the frame.

Jitter guard
------------
Face detectors wobble by a few pixels every frame.  Moving the ROI that
often would inject the wobble straight into the intensity trace, so a
face-box update only re-places the ROI when its origin would move by
more than 10 % of the face size.
"""

import numpy as np

from config import (
    ROI_HEIGHT_FRACTION,
    ROI_MOVE_TOLERANCE,
    ROI_TOP_OFFSET_FRACTION,
    ROI_WIDTH_FRACTION,
    SIMPLE_ROI_SIZE_FRACTION,
    SIMPLE_ROI_TOP_FRACTION,
)
from rppg.types import ROI
from utils.logger import get_logger

logger = get_logger("rppg.roi")


class RoiTracker:
    """Holds the current ROI and samples mean RGB inside it."""

    def __init__(self):
        self.roi: ROI | None = None
        self.stable = False

    @property
    def initialized(self) -> bool:
        return self.roi is not None

    def initialize_roi(self, face_width: float, face_height: float, face_x: float, face_y: float) -> None:
        new_x = face_x + (face_width - face_width * ROI_WIDTH_FRACTION) / 2.0
        new_y = face_y + face_height * ROI_TOP_OFFSET_FRACTION

        if (self.roi is None
                or abs(new_x - self.roi.x) > face_width * ROI_MOVE_TOLERANCE
                or abs(new_y - self.roi.y) > face_height * ROI_MOVE_TOLERANCE):
            self.roi = ROI(
                x=new_x,
                y=new_y,
                width=face_width * ROI_WIDTH_FRACTION,
                height=face_height * ROI_HEIGHT_FRACTION,
            )
            self.stable = False
            logger.debug("ROI placed at (%.0f, %.0f) %.0f×%.0f", new_x, new_y, self.roi.width, self.roi.height)
        else:
            self.stable = True

    def initialize_simple_roi(self, video_width: float, video_height: float) -> None:
        size = min(video_width, video_height) * SIMPLE_ROI_SIZE_FRACTION
        self.roi = ROI(
            x=(video_width - size) / 2.0,
            y=video_height * SIMPLE_ROI_TOP_FRACTION,
            width=size,
            height=size,
        )
        self.stable = False

    def channel_means(self, frame_rgb: np.ndarray) -> tuple[float, float, float] | None:
        """
        Mean (R, G, B) over the ROI pixels of an H×W×3 (or ×4 RGBA) frame.

        Falls back to the simple ROI when none has been placed yet.
        Returns None when the ROI clipped to the frame has zero area.
        """
        frame = np.asarray(frame_rgb)
        if frame.ndim != 3 or frame.shape[2] < 3:
            raise ValueError(f"Expected an H×W×3 RGB frame, got shape {frame.shape}.")

        height, width = frame.shape[:2]
        if not self.initialized:
            self.initialize_simple_roi(width, height)

        start_x = max(0, int(np.floor(self.roi.x)))
        start_y = max(0, int(np.floor(self.roi.y)))
        clipped = ROI(
            x=start_x,
            y=start_y,
            width=min(width, int(np.floor(self.roi.x + self.roi.width))) - start_x,
            height=min(height, int(np.floor(self.roi.y + self.roi.height))) - start_y,
        )
        if clipped.area == 0:
            return None

        patch = frame[start_y:start_y + clipped.height, start_x:start_x + clipped.width, :3].astype(np.float64)
        red, green, blue = patch.reshape(-1, 3).mean(axis=0)
        return float(red), float(green), float(blue)

    def reset(self) -> None:
        self.roi = None
        self.stable = False
