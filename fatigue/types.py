"""
fatigue/types.py — Inputs and outputs of the fatigue fusion engine
===================================================================
`FatigueInputMetrics` bundles one monitoring tick: facial metrics from
the landmark tracker plus the rPPG fields of the latest `RPPGResult`.
Use `FatigueInputMetrics.from_rppg(...)` to merge the two.
"""

from dataclasses import dataclass, field, asdict
from typing import Literal

from rppg.types import HRVMetrics, RPPGResult, StressLevel

FatigueLevel = Literal["alert", "mild", "moderate", "severe", "critical"]
FatigueTrend = Literal["improving", "stable", "worsening"]
CognitiveLoad = Literal["low", "moderate", "high", "overload"]
RiskLevel = Literal["safe", "caution", "warning", "danger", "critical"]
WellnessStatus = Literal["excellent", "good", "fair", "poor", "critical"]
BreakUrgency = Literal["none", "suggested", "recommended", "urgent", "immediate"]


@dataclass(frozen=True)
class FatigueInputMetrics:
    ear: float
    mar: float = 0.0
    blink_count: int = 0            # blinks per minute (rolling window)
    blink_duration: float = 0.0     # s, last blink
    yawn_count: int = 0             # cumulative yawns this session
    drowsiness_score: float = 0.0   # 0–1
    heart_rate: int | None = None
    respiratory_rate: int | None = None
    stress_level: StressLevel | None = None
    stress_index: int | None = None
    hrv: HRVMetrics | None = None

    @classmethod
    def from_rppg(cls, rppg: RPPGResult | None, **facial) -> "FatigueInputMetrics":
        if rppg is None:
            return cls(**facial)
        return cls(
            heart_rate=rppg.heart_rate,
            respiratory_rate=rppg.respiratory_rate,
            stress_level=rppg.stress_level,
            stress_index=rppg.stress_index,
            hrv=rppg.hrv,
            **facial,
        )


@dataclass(frozen=True)
class MicroSleepEvent:
    time: float        # s, clock time the eyes re-opened
    duration_ms: float


@dataclass(frozen=True)
class MicroSleepStats:
    count: int
    total_duration_ms: float
    avg_duration_ms: float


@dataclass(frozen=True)
class FatigueAnalyticsResult:
    fatigue_score: int
    fatigue_level: FatigueLevel
    fatigue_trend: FatigueTrend

    micro_sleep_detected: bool
    micro_sleep_count: int
    micro_sleep_duration: float          # ms, sum over the retained log
    last_micro_sleep_time: float | None

    cognitive_load: CognitiveLoad
    cognitive_load_score: int

    risk_level: RiskLevel
    risk_score: int
    risk_factors: tuple[str, ...]

    wellness_score: int
    wellness_status: WellnessStatus

    break_recommended: bool
    break_urgency: BreakUrgency
    time_since_last_break: float         # s
    recommended_break_duration: int      # min

    session_duration: float              # s
    alertness_pattern: tuple[float, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["risk_factors"] = list(self.risk_factors)
        data["alertness_pattern"] = list(self.alertness_pattern)
        return data
