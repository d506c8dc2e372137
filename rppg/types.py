"""
rppg/types.py — Value objects produced by the rPPG engine
==========================================================
Snapshots are frozen dataclasses: `SignalExtractor.process()` builds a
fresh `RPPGResult` on every call and nothing mutates it afterwards, so a
result can be handed to the fatigue engine, the API layer, or a logger
without copying.
"""

from dataclasses import dataclass, field, asdict
from typing import Literal

Status = Literal["initializing", "collecting", "running", "error"]
SignalQuality = Literal["poor", "fair", "good", "excellent"]
StressLevel = Literal["low", "moderate", "high"]


@dataclass(frozen=True)
class ROI:
    """Pixel-space rectangle sampled for colour intensity."""
    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)


@dataclass(frozen=True)
class HRVMetrics:
    rmssd: float     # ms
    sdnn: float      # ms
    pnn50: float     # %
    mean_rr: float   # ms


@dataclass(frozen=True)
class SignalStats:
    mean: float
    std: float
    min: float
    max: float
    variance: float


@dataclass(frozen=True)
class RPPGResult:
    """
    One snapshot of everything the rPPG engine knows.

    Every physiological field is nullable: `None` means the estimate was
    rejected (too few samples, flat signal, low SNR, out of range), which
    is a normal outcome rather than an error.
    """
    status: Status
    samples_collected: int
    heart_rate: int | None = None
    pulse_rate: int | None = None
    respiratory_rate: int | None = None
    hrv: HRVMetrics | None = None
    stress_level: StressLevel | None = None
    stress_index: int | None = None
    spo2: int | None = None
    signal_quality: SignalQuality = "poor"
    waveform: tuple[float, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["waveform"] = list(self.waveform)
        return data
