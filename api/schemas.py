"""
api/schemas.py — Pydantic request & response models
=====================================================
Request bodies are validated by FastAPI (422 on bad input).  Responses
mirror the engine dataclasses (`RPPGResult`, `FatigueAnalyticsResult`)
so the OpenAPI docs show the exact payload shape.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


# ── Request Models ───────────────────────────────────────────────────────────


class FaceBox(BaseModel):
    """Face bounding box in pixels, as reported by the client's detector."""
    x: float
    y: float
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class FrameRequest(BaseModel):
    """One video frame (JPEG/PNG, base64) for server-side ROI sampling."""
    image_b64: str = Field(..., min_length=1, description="Base64-encoded JPEG or PNG.")
    timestamp_ms: float = Field(..., ge=0)
    face_box: Optional[FaceBox] = None


class ColourSample(BaseModel):
    green: float = Field(..., allow_inf_nan=False)
    red: Optional[float] = Field(None, allow_inf_nan=False)
    blue: Optional[float] = Field(None, allow_inf_nan=False)
    timestamp_ms: float = Field(..., ge=0, allow_inf_nan=False)


class SamplesRequest(BaseModel):
    """Pre-averaged ROI colour samples, oldest first."""
    samples: list[ColourSample] = Field(..., min_length=1)


class FacialMetricsRequest(BaseModel):
    """Facial metrics for one fatigue tick; rPPG fields are merged server-side."""
    ear: float = Field(..., ge=0)
    mar: float = Field(0.0, ge=0)
    blink_count: int = Field(0, ge=0, description="Blinks in the last minute.")
    blink_duration: float = Field(0.0, ge=0, description="Last blink duration (s).")
    yawn_count: int = Field(0, ge=0, description="Cumulative yawns this session.")
    drowsiness_score: Optional[float] = Field(
        None, ge=0, le=1,
        description="External drowsiness estimate; computed from EAR/MAR when omitted.",
    )


# ── Response Models ──────────────────────────────────────────────────────────


class HRVData(BaseModel):
    rmssd: float
    sdnn: float
    pnn50: float
    mean_rr: float


class RPPGResponse(BaseModel):
    status: Literal["initializing", "collecting", "running", "error"]
    samples_collected: int
    heart_rate: Optional[int] = None
    pulse_rate: Optional[int] = None
    respiratory_rate: Optional[int] = None
    hrv: Optional[HRVData] = None
    stress_level: Optional[Literal["low", "moderate", "high"]] = None
    stress_index: Optional[int] = None
    spo2: Optional[int] = None
    signal_quality: Literal["excellent", "good", "fair", "poor"]
    waveform: list[float]


class SignalStatsResponse(BaseModel):
    mean: float
    std: float
    min: float
    max: float
    variance: float
    sample_count: int
    roi_stable: bool


class FatigueResponse(BaseModel):
    fatigue_score: int
    fatigue_level: str
    fatigue_trend: str
    micro_sleep_detected: bool
    micro_sleep_count: int
    micro_sleep_duration: float
    last_micro_sleep_time: Optional[float] = None
    cognitive_load: str
    cognitive_load_score: int
    risk_level: str
    risk_score: int
    risk_factors: list[str]
    wellness_score: int
    wellness_status: str
    break_recommended: bool
    break_urgency: str
    time_since_last_break: float
    recommended_break_duration: int
    session_duration: float
    alertness_pattern: list[float]


class SessionResponse(BaseModel):
    status: Literal["active", "inactive"]
    message: str
