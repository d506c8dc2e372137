"""
config.py — Centralised configuration & hyper-parameters
=========================================================
Every tunable constant in the project lives here so that the rPPG
engine, the fatigue fusion engine, the CLI and the API all read from a
single source of truth.

The heuristic thresholds below (SNR floor, harmonic ratios, stress
cut-offs, fatigue weights) are empirical.  They are tunable knobs, not
physical constants.
"""

import os

# ─── Camera ──────────────────────────────────────────────────────────────────
CAMERA_INDEX: int = 0          # Device index passed to cv2.VideoCapture
CAMERA_WIDTH: int = 640
CAMERA_HEIGHT: int = 480
CAMERA_FPS: int = 30           # Requested FPS; actual FPS may differ

# ─── ROI ─────────────────────────────────────────────────────────────────────
# Face-box ROI: centred 60 % of the width, 40 % of the height starting 10 %
# below the top of the box (forehead / upper cheeks).
ROI_WIDTH_FRACTION: float = 0.6
ROI_HEIGHT_FRACTION: float = 0.4
ROI_TOP_OFFSET_FRACTION: float = 0.1
ROI_MOVE_TOLERANCE: float = 0.1       # Re-initialise only past 10 % of face size

# Fallback ROI when no face is available: square of 30 % of the short side,
# horizontally centred, 15 % down from the top of the frame.
SIMPLE_ROI_SIZE_FRACTION: float = 0.3
SIMPLE_ROI_TOP_FRACTION: float = 0.15

# ─── rPPG Signal Processing ──────────────────────────────────────────────────
RPPG_FRAME_RATE: float = 30.0         # Hz
RPPG_MIN_SAMPLES: int = 450           # ≈ 15 s at 30 FPS before analysis starts
RPPG_UPDATE_INTERVAL: float = 2.5     # s between refreshed results
RPPG_BUFFER_SECONDS: float = 20.0     # Rolling window kept in memory

# 1.0 Hz → 60 BPM, 3.5 Hz → 210 BPM
HR_BAND_HZ: tuple[float, float] = (1.0, 3.5)
# 0.1 Hz → 6 breaths/min, 0.5 Hz → 30 breaths/min
RESP_BAND_HZ: tuple[float, float] = (0.1, 0.5)

MIN_FILTERED_VARIANCE: float = 0.01   # Below this the band carries no information
MIN_PEAK_SNR: float = 1.5             # Peak / mean off-peak magnitude
SNR_EXCLUSION_FRACTION: float = 0.1   # Fraction of bins treated as "the peak"

# Harmonic disambiguation
HARMONIC_CANDIDATES: int = 5          # Peaks inspected for a harmonic relation
HARMONIC_DOMINANCE_RATIO: float = 1.2 # Harmonic must exceed candidate by this
FUNDAMENTAL_MIN_RATIO: float = 0.5    # Candidate must keep this share of the harmonic
SUBHARMONIC_RATIO: float = 0.8        # 2× bin this strong → candidate is a subharmonic
SUBHARMONIC_CHECK_BPM: float = 60.0

HR_VALID_BPM: tuple[float, float] = (50.0, 200.0)
RESP_VALID_BPM: tuple[float, float] = (6.0, 40.0)

# ─── Signal Quality / Display ────────────────────────────────────────────────
QUALITY_MIN_SAMPLES: int = 30
QUALITY_RECENT_SECONDS: float = 3.0
WAVEFORM_SECONDS: float = 5.0

# ─── HRV ─────────────────────────────────────────────────────────────────────
HRV_PEAK_THRESHOLD: float = 0.3       # On the min-max normalised trace
HRV_PEAK_NEIGHBOURS: int = 2          # Must dominate this many samples each side
HRV_MIN_PEAKS: int = 3
HRV_MIN_INTERVALS: int = 2
RR_VALID_MS: tuple[float, float] = (300.0, 1500.0)   # 40–200 BPM equivalent
PNN50_THRESHOLD_MS: float = 50.0

# ─── Stress Estimation ───────────────────────────────────────────────────────
# (threshold, points) pairs evaluated in order; the fallback applies when the
# metric exceeds every threshold.  Lower HRV → more points → more stress.
STRESS_RMSSD_POINTS: tuple = ((15.0, 40), (25.0, 30), (40.0, 15))
STRESS_RMSSD_FALLBACK: int = 5
STRESS_SDNN_POINTS: tuple = ((30.0, 40), (50.0, 30), (80.0, 15))
STRESS_SDNN_FALLBACK: int = 5
STRESS_PNN50_POINTS: tuple = ((3.0, 20), (10.0, 15), (25.0, 8))
STRESS_PNN50_FALLBACK: int = 2
STRESS_LOW_BELOW: int = 35
STRESS_MODERATE_BELOW: int = 65

# ─── SpO2 Estimation ─────────────────────────────────────────────────────────
# Ratio-of-ratios on red/blue (no infrared channel — rough estimate only).
SPO2_INTERCEPT: float = 110.0
SPO2_SLOPE: float = 25.0
SPO2_CLAMP: tuple[float, float] = (85.0, 100.0)
SPO2_VALID: tuple[float, float] = (90.0, 100.0)

# ─── Facial Metrics ──────────────────────────────────────────────────────────
BLINK_EAR_THRESHOLD: float = 0.23
BLINK_CONSEC_FRAMES: int = 2
YAWN_MAR_THRESHOLD: float = 0.7
YAWN_CONSEC_FRAMES: int = 15
EVENT_WINDOW_SECONDS: float = 60.0    # Rolling window for blink / yawn rates

# ─── Fatigue Fusion ──────────────────────────────────────────────────────────
EAR_CLOSED_THRESHOLD: float = 0.2
EAR_OPEN_REFERENCE: float = 0.3
EAR_DROOPY_THRESHOLD: float = 0.25
EAR_HISTORY_SIZE: int = 300           # ≈ 10 s at 30 FPS
SCORE_HISTORY_SIZE: int = 30

MICRO_SLEEP_MIN_MS: float = 500.0
MICRO_SLEEP_MAX_MS: float = 3000.0
MICRO_SLEEP_RETENTION_S: float = 10 * 60.0
MICRO_SLEEP_RECENT_S: float = 5 * 60.0
MICRO_SLEEP_FLAG_S: float = 5.0       # "detected" flag stays up this long

BASELINE_BLINK_RATE: float = 15.0     # blinks / min
YAWN_SATURATION: int = 5
HRV_LOW_RMSSD_MS: float = 20.0
HRV_FAIR_RMSSD_MS: float = 40.0

FATIGUE_WEIGHTS: dict = {
    "drowsiness": 40.0,
    "ear": 20.0,
    "blink": 15.0,
    "yawn": 15.0,
    "hrv": 10.0,
}
TREND_RECENT_POINTS: int = 5
TREND_DELTA: float = 5.0

COGNITIVE_BASELINE_HR: float = 70.0
COGNITIVE_HR_SPAN: float = 50.0
COGNITIVE_BLINK_REFERENCE: float = 20.0
COGNITIVE_STRESS_LEVEL_POINTS: dict = {"low": 10.0, "moderate": 25.0, "high": 40.0}

BREAK_INTERVAL_S: float = 45 * 60.0
BREAK_SUGGEST_FRACTION: float = 0.75

# ─── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.environ.get("RPPG_LOG_LEVEL", "INFO").upper()

# ─── API ─────────────────────────────────────────────────────────────────────
API_TITLE = "rPPG Wellness & Fatigue Monitor API"
API_VERSION = "0.2.0"
