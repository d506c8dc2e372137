"""ROI placement, jitter guard and colour sampling."""

import numpy as np
import pytest

from rppg.roi import RoiTracker
from rppg.types import ROI


def test_roi_from_face_box():
    tracker = RoiTracker()
    tracker.initialize_roi(100, 100, 50, 50)
    assert tracker.roi == ROI(x=70.0, y=60.0, width=60.0, height=40.0)
    assert not tracker.stable


def test_small_face_movement_keeps_roi():
    tracker = RoiTracker()
    tracker.initialize_roi(100, 100, 50, 50)
    tracker.initialize_roi(100, 100, 55, 50)
    assert tracker.roi.x == 70.0
    assert tracker.stable


def test_large_face_movement_moves_roi():
    tracker = RoiTracker()
    tracker.initialize_roi(100, 100, 50, 50)
    tracker.initialize_roi(100, 100, 65, 50)
    assert tracker.roi.x == 85.0
    assert not tracker.stable


def test_simple_roi_is_centred_square():
    tracker = RoiTracker()
    tracker.initialize_simple_roi(640, 480)
    assert tracker.roi == ROI(x=248.0, y=72.0, width=144.0, height=144.0)


def test_channel_means_fall_back_to_simple_roi():
    tracker = RoiTracker()
    frame = np.zeros((100, 100, 3), dtype=np.uint8)
    frame[:, :] = (10, 200, 30)
    assert tracker.channel_means(frame) == (10.0, 200.0, 30.0)
    assert tracker.initialized


def test_channel_means_only_sample_inside_roi():
    tracker = RoiTracker()
    tracker.initialize_roi(40, 40, 0, 0)     # ROI (8, 4) 24×16
    frame = np.zeros((100, 100, 3), dtype=np.uint8)
    frame[4:20, 8:32] = (0, 90, 0)
    assert tracker.channel_means(frame) == (0.0, 90.0, 0.0)


def test_roi_outside_frame_has_no_sample():
    tracker = RoiTracker()
    tracker.initialize_roi(100, 100, 1000, 1000)
    assert tracker.channel_means(np.zeros((50, 50, 3), dtype=np.uint8)) is None


def test_roi_partly_off_frame_samples_the_overlap():
    tracker = RoiTracker()
    tracker.initialize_roi(100, 100, -50, -40)   # ROI (-30, -30) 60×40
    frame = np.zeros((100, 100, 3), dtype=np.uint8)
    frame[0:10, 0:30] = (0, 120, 0)
    assert tracker.channel_means(frame) == (0.0, 120.0, 0.0)


@pytest.mark.parametrize(
    "roi, expected",
    [(ROI(0, 0, 24, 16), 384.0), (ROI(10, 10, -5, 8), 0.0), (ROI(0, 0, 0, 10), 0.0)],
)
def test_roi_area(roi, expected):
    assert roi.area == expected


def test_grayscale_frame_is_rejected():
    with pytest.raises(ValueError):
        RoiTracker().channel_means(np.zeros((50, 50), dtype=np.uint8))
