"""EAR / MAR geometry, blink and yawn counting, face box from landmarks."""

import pytest

from face.detector import face_box
from face.metrics import (
    LEFT_EYE_LANDMARKS,
    MOUTH_LANDMARKS,
    RIGHT_EYE_LANDMARKS,
    FacialEventCounter,
    compute_ear,
    compute_mar,
    fallback_drowsiness,
    ratios_from_landmarks,
)
from fatigue.engine import FatigueFusionEngine
from fatigue.types import FatigueInputMetrics


# ── Helpers ───────────────────────────────────────────────────

def _eye(ear_target: float = 0.3, x0: float = 0.3):
    """Six points with a horizontal span of 0.1 and the requested EAR."""
    half = 0.1 * ear_target / 2.0
    return [
        (x0, 0.5),                 # p1 outer corner
        (x0 + 0.03, 0.5 - half),   # p2 upper
        (x0 + 0.07, 0.5 - half),   # p3 upper
        (x0 + 0.1, 0.5),           # p4 inner corner
        (x0 + 0.07, 0.5 + half),   # p5 lower
        (x0 + 0.03, 0.5 + half),   # p6 lower
    ]


def _mouth(mar_target: float):
    return [(0.4, 0.7), (0.6, 0.7), (0.5, 0.7 - 0.1 * mar_target), (0.5, 0.7 + 0.1 * mar_target)]


def _face_mesh(ear_target: float, mar_target: float):
    landmarks = [(0.5, 0.5)] * 468
    for idx, point in zip(LEFT_EYE_LANDMARKS, _eye(ear_target, 0.3)):
        landmarks[idx] = point
    for idx, point in zip(RIGHT_EYE_LANDMARKS, _eye(ear_target, 0.6)):
        landmarks[idx] = point
    for idx, point in zip(MOUTH_LANDMARKS, _mouth(mar_target)):
        landmarks[idx] = point
    return landmarks


# ── Geometry ─────────────────────────────────────────────────

def test_ear_of_open_eye():
    assert compute_ear(_eye(0.3)) == pytest.approx(0.3)


def test_ear_of_degenerate_eye_is_zero():
    assert compute_ear([(0.5, 0.5)] * 6) == 0.0


def test_mar_of_open_mouth():
    assert compute_mar(_mouth(0.8)) == pytest.approx(0.8)


def test_mar_of_degenerate_mouth_is_zero():
    assert compute_mar([(0.5, 0.5)] * 4) == 0.0


def test_ratios_from_full_mesh():
    ear, mar = ratios_from_landmarks(_face_mesh(0.25, 0.4))
    assert ear == pytest.approx(0.25)
    assert mar == pytest.approx(0.4)


@pytest.mark.parametrize(
    "ear, mar, expected",
    [
        (0.3, 0.2, 0.35),
        (0.1, 0.8, 0.75),
        (0.0, 1.0, 0.8),
        (3.0, 0.0, 0.0),
    ],
)
def test_fallback_drowsiness(ear, mar, expected):
    assert fallback_drowsiness(ear, mar) == pytest.approx(expected)


def test_face_box_from_normalised_landmarks():
    landmarks = [(0.25, 0.5), (0.75, 0.25), (0.5, 0.75)]
    assert face_box(landmarks, 640, 480) == (160.0, 120.0, 320.0, 240.0)
    assert face_box([], 640, 480) is None


# ── Event counting ───────────────────────────────────────────

def test_blink_counted_when_eye_reopens():
    counter = FacialEventCounter()
    counter.update(0.3, 0.2, 0.0)
    for i in range(3):
        counter.update(0.1, 0.2, 0.1 + i * 0.033)
    snapshot = counter.update(0.3, 0.2, 0.2)

    assert snapshot.blink_total == 1
    assert snapshot.blinks_per_minute == 1
    assert snapshot.last_blink_duration == pytest.approx(0.1)


def test_single_closed_frame_is_not_a_blink():
    counter = FacialEventCounter()
    counter.update(0.1, 0.2, 0.0)
    assert counter.update(0.3, 0.2, 0.033).blink_total == 0


@pytest.mark.parametrize("frames, expected", [(15, 1), (14, 0)])
def test_yawn_needs_sustained_open_mouth(frames, expected):
    counter = FacialEventCounter()
    for i in range(frames):
        counter.update(0.3, 0.8, i * 0.033)
    assert counter.update(0.3, 0.2, 1.0).yawn_total == expected


def test_rates_use_rolling_one_minute_window():
    counter = FacialEventCounter()
    counter.update(0.1, 0.2, 0.0)
    counter.update(0.1, 0.2, 0.033)
    assert counter.update(0.3, 0.2, 0.066).blinks_per_minute == 1

    snapshot = counter.update(0.3, 0.2, 61.0)
    assert snapshot.blinks_per_minute == 0
    assert snapshot.blink_total == 1


def test_fatigue_inputs_keep_yawns_older_than_a_minute(clock):
    counter = FacialEventCounter()
    t = 0.0
    for _ in range(5):
        for _ in range(15):
            counter.update(0.3, 0.8, t)
            t += 0.033
        counter.update(0.3, 0.2, t)
        t += 1.0
    snapshot = counter.update(0.3, 0.2, t + 61.0)
    assert snapshot.yawns_per_minute == 0
    assert snapshot.yawn_total == 5

    inputs = snapshot.fatigue_inputs()
    assert inputs["yawn_count"] == 5
    assert inputs["blink_count"] == snapshot.blinks_per_minute

    with_yawns = FatigueFusionEngine(clock=clock).analyze(
        FatigueInputMetrics(**{**inputs, "blink_count": 15, "drowsiness_score": 0.0})
    )
    without_yawns = FatigueFusionEngine(clock=clock).analyze(
        FatigueInputMetrics(**{**inputs, "blink_count": 15, "drowsiness_score": 0.0, "yawn_count": 0})
    )
    assert with_yawns.fatigue_score - without_yawns.fatigue_score == 15
