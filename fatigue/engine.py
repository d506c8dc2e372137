"""
fatigue/engine.py — Fatigue / risk / wellness fusion
=====================================================
Combines facial metrics (EAR, blinks, yawns, drowsiness score) with rPPG
outputs (heart rate, stress, HRV) into one assessment per monitoring
tick.

Scores (all 0–100, rounded)
---------------------------
Fatigue     drowsiness ×40 + EAR deficit ×20 + blink deviation ×15
            + yawns ×15 + HRV/stress ×10
Cognitive   stress ×40 + heart-rate elevation ×30 + blink suppression ×30
Risk        fatigue ×0.4 + recent micro-sleeps (10 each, ≤30)
            + eye closure (20 / 10) + session length (10 / 5)
Wellness    100 − fatigue, nudged by stress, heart rate and RMSSD

Each term is clamped on its own before summing so no single input can
push the total past its share.

Micro-sleep
-----------
EAR below EAR_CLOSED_THRESHOLD marks the eyes closed.  When they reopen,
a closure lasting 500–3000 ms is logged as a micro-sleep.  Shorter
closures are blinks, longer ones are deliberate.  The log keeps the last
10 minutes.

The engine keeps its own histories and is driven by a single caller, so
it carries no locks.  Time comes from an injectable clock (seconds).
"""

import time
from collections import deque
from typing import Callable

from config import (
    BASELINE_BLINK_RATE,
    BREAK_INTERVAL_S,
    BREAK_SUGGEST_FRACTION,
    COGNITIVE_BASELINE_HR,
    COGNITIVE_BLINK_REFERENCE,
    COGNITIVE_HR_SPAN,
    COGNITIVE_STRESS_LEVEL_POINTS,
    EAR_CLOSED_THRESHOLD,
    EAR_DROOPY_THRESHOLD,
    EAR_HISTORY_SIZE,
    EAR_OPEN_REFERENCE,
    FATIGUE_WEIGHTS,
    HRV_FAIR_RMSSD_MS,
    HRV_LOW_RMSSD_MS,
    MICRO_SLEEP_FLAG_S,
    MICRO_SLEEP_MAX_MS,
    MICRO_SLEEP_MIN_MS,
    MICRO_SLEEP_RECENT_S,
    MICRO_SLEEP_RETENTION_S,
    SCORE_HISTORY_SIZE,
    TREND_DELTA,
    TREND_RECENT_POINTS,
    YAWN_SATURATION,
)
from fatigue.types import (
    BreakUrgency,
    CognitiveLoad,
    FatigueAnalyticsResult,
    FatigueInputMetrics,
    FatigueLevel,
    FatigueTrend,
    MicroSleepEvent,
    MicroSleepStats,
    RiskLevel,
    WellnessStatus,
)
from utils.logger import get_logger

logger = get_logger("fatigue.engine")


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def _score(value: float) -> int:
    return int(round(_clamp(value, 0.0, 100.0)))


class FatigueFusionEngine:
    """
    Session-scoped fatigue analytics.

    Parameters
    ----------
    clock : callable returning seconds (default `time.time`).
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._ear_history: deque[float] = deque(maxlen=EAR_HISTORY_SIZE)
        self._alertness_history: deque[float] = deque(maxlen=SCORE_HISTORY_SIZE)
        self._fatigue_history: deque[float] = deque(maxlen=SCORE_HISTORY_SIZE)
        self._micro_sleeps: list[MicroSleepEvent] = []
        self.reset()

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def reset(self) -> None:
        now = self._clock()
        self._session_start = now
        self._last_break = now
        self._micro_sleeps = []
        self._ear_history.clear()
        self._alertness_history.clear()
        self._fatigue_history.clear()
        self._eye_closed = False
        self._eye_closed_since = 0.0
        logger.info("FatigueFusionEngine reset.")

    def record_break(self) -> None:
        self._last_break = self._clock()
        logger.info("Break recorded.")

    # ── Main entry point ─────────────────────────────────────────────────────

    def analyze(self, metrics: FatigueInputMetrics) -> FatigueAnalyticsResult:
        now = self._clock()

        self._ear_history.append(metrics.ear)
        self._track_micro_sleep(metrics.ear, now)

        fatigue_score = self._fatigue_score(metrics)
        fatigue_trend = self._fatigue_trend()
        load_level, load_score = self._cognitive_load(metrics)
        risk_level, risk_score, risk_factors = self._risk(metrics, fatigue_score, now)
        wellness_score, wellness_status = self._wellness(metrics, fatigue_score)
        urgency, break_minutes = self._break_recommendation(fatigue_score, now)

        self._alertness_history.append(100.0 - fatigue_score)
        self._fatigue_history.append(float(fatigue_score))

        last = self._micro_sleeps[-1] if self._micro_sleeps else None
        return FatigueAnalyticsResult(
            fatigue_score=fatigue_score,
            fatigue_level=self._fatigue_level(fatigue_score),
            fatigue_trend=fatigue_trend,
            micro_sleep_detected=last is not None and now - last.time < MICRO_SLEEP_FLAG_S,
            micro_sleep_count=len(self._micro_sleeps),
            micro_sleep_duration=sum(e.duration_ms for e in self._micro_sleeps),
            last_micro_sleep_time=last.time if last else None,
            cognitive_load=load_level,
            cognitive_load_score=load_score,
            risk_level=risk_level,
            risk_score=risk_score,
            risk_factors=tuple(risk_factors),
            wellness_score=wellness_score,
            wellness_status=wellness_status,
            break_recommended=urgency != "none",
            break_urgency=urgency,
            time_since_last_break=now - self._last_break,
            recommended_break_duration=break_minutes,
            session_duration=now - self._session_start,
            alertness_pattern=tuple(self._alertness_history),
        )

    def micro_sleep_stats(self) -> MicroSleepStats:
        count = len(self._micro_sleeps)
        total = sum(e.duration_ms for e in self._micro_sleeps)
        return MicroSleepStats(count=count, total_duration_ms=total, avg_duration_ms=total / count if count else 0.0)

    # ── Micro-sleep ──────────────────────────────────────────────────────────

    def _track_micro_sleep(self, ear: float, now: float) -> None:
        if ear < EAR_CLOSED_THRESHOLD:
            if not self._eye_closed:
                self._eye_closed = True
                self._eye_closed_since = now
        elif self._eye_closed:
            closed_ms = (now - self._eye_closed_since) * 1000.0
            if MICRO_SLEEP_MIN_MS <= closed_ms <= MICRO_SLEEP_MAX_MS:
                self._micro_sleeps.append(MicroSleepEvent(time=now, duration_ms=closed_ms))
                logger.warning("Micro-sleep detected: %.0f ms", closed_ms)
            self._eye_closed = False

        cutoff = now - MICRO_SLEEP_RETENTION_S
        self._micro_sleeps = [e for e in self._micro_sleeps if e.time > cutoff]

    def _recent_micro_sleeps(self, now: float) -> int:
        return sum(1 for e in self._micro_sleeps if now - e.time < MICRO_SLEEP_RECENT_S)

    # ── Fatigue ──────────────────────────────────────────────────────────────

    def _fatigue_score(self, m: FatigueInputMetrics) -> int:
        w = FATIGUE_WEIGHTS
        ear_deficit = _clamp(1.0 - m.ear / EAR_OPEN_REFERENCE) if m.ear > 0 else 0.0
        blink_deviation = _clamp(abs(m.blink_count - BASELINE_BLINK_RATE) / BASELINE_BLINK_RATE)
        yawns = _clamp(m.yawn_count / YAWN_SATURATION)

        if m.hrv is not None:
            if m.hrv.rmssd < HRV_LOW_RMSSD_MS:
                autonomic = 1.0
            elif m.hrv.rmssd < HRV_FAIR_RMSSD_MS:
                autonomic = 0.5
            else:
                autonomic = 0.0
        elif m.stress_index is not None:
            autonomic = _clamp(m.stress_index / 100.0)
        else:
            autonomic = 0.0

        return _score(
            _clamp(m.drowsiness_score) * w["drowsiness"]
            + ear_deficit * w["ear"]
            + blink_deviation * w["blink"]
            + yawns * w["yawn"]
            + autonomic * w["hrv"]
        )

    @staticmethod
    def _fatigue_level(score: int) -> FatigueLevel:
        if score < 20:
            return "alert"
        if score < 40:
            return "mild"
        if score < 60:
            return "moderate"
        if score < 80:
            return "severe"
        return "critical"

    def _fatigue_trend(self) -> FatigueTrend:
        history = list(self._fatigue_history)
        if len(history) < TREND_RECENT_POINTS:
            return "stable"
        recent = history[-TREND_RECENT_POINTS:]
        older = history[:-TREND_RECENT_POINTS]
        recent_avg = sum(recent) / TREND_RECENT_POINTS
        older_avg = sum(older) / max(1, len(older))

        delta = recent_avg - older_avg
        if delta > TREND_DELTA:
            return "worsening"
        if delta < -TREND_DELTA:
            return "improving"
        return "stable"

    # ── Cognitive load ───────────────────────────────────────────────────────

    def _cognitive_load(self, m: FatigueInputMetrics) -> tuple[CognitiveLoad, int]:
        score = 0.0
        if m.stress_index is not None:
            score += _clamp(m.stress_index / 100.0) * 40
        elif m.stress_level is not None:
            score += COGNITIVE_STRESS_LEVEL_POINTS.get(m.stress_level, 0.0)

        if m.heart_rate is not None:
            score += _clamp((m.heart_rate - COGNITIVE_BASELINE_HR) / COGNITIVE_HR_SPAN) * 30

        score += _clamp(1.0 - m.blink_count / COGNITIVE_BLINK_REFERENCE) * 30

        value = _score(score)
        if value < 25:
            level = "low"
        elif value < 50:
            level = "moderate"
        elif value < 75:
            level = "high"
        else:
            level = "overload"
        return level, value

    # ── Risk ─────────────────────────────────────────────────────────────────

    def _risk(self, m: FatigueInputMetrics, fatigue_score: int, now: float) -> tuple[RiskLevel, int, list[str]]:
        factors: list[str] = []
        score = fatigue_score * 0.4
        if fatigue_score > 60:
            factors.append("High fatigue level")

        recent = self._recent_micro_sleeps(now)
        if recent > 0:
            score += min(30, recent * 10)
            factors.append(f"{recent} micro-sleep(s) in last 5 min")

        if m.ear < EAR_CLOSED_THRESHOLD:
            score += 20
            factors.append("Eyes closing")
        elif m.ear < EAR_DROOPY_THRESHOLD:
            score += 10
            factors.append("Droopy eyelids")

        session_minutes = (now - self._session_start) / 60.0
        if session_minutes > 120:
            score += 10
            factors.append("Extended session (>2 hours)")
        elif session_minutes > 60:
            score += 5
            factors.append("Long session (>1 hour)")

        value = _score(score)
        if value < 20:
            level = "safe"
        elif value < 40:
            level = "caution"
        elif value < 60:
            level = "warning"
        elif value < 80:
            level = "danger"
        else:
            level = "critical"
        return level, value, factors

    # ── Wellness ─────────────────────────────────────────────────────────────

    @staticmethod
    def _wellness(m: FatigueInputMetrics, fatigue_score: int) -> tuple[int, WellnessStatus]:
        score = 100.0 - fatigue_score
        score += {"high": -15, "moderate": -5, "low": 5}.get(m.stress_level, 0)

        if m.heart_rate is not None:
            if 60 <= m.heart_rate <= 80:
                score += 5
            elif m.heart_rate > 100:
                score -= 10

        if m.hrv is not None and m.hrv.rmssd > HRV_FAIR_RMSSD_MS:
            score += 5

        value = _score(score)
        if value >= 80:
            status = "excellent"
        elif value >= 60:
            status = "good"
        elif value >= 40:
            status = "fair"
        elif value >= 20:
            status = "poor"
        else:
            status = "critical"
        return value, status

    # ── Breaks ───────────────────────────────────────────────────────────────

    def _break_recommendation(self, fatigue_score: int, now: float) -> tuple[BreakUrgency, int]:
        since_break = now - self._last_break
        recent = self._recent_micro_sleeps(now)

        if recent >= 2:
            return "immediate", 15
        if fatigue_score > 70 or recent >= 1:
            return "urgent", 10
        if fatigue_score > 50 or since_break > BREAK_INTERVAL_S:
            return "recommended", 5
        if fatigue_score > 30 or since_break > BREAK_INTERVAL_S * BREAK_SUGGEST_FRACTION:
            return "suggested", 3
        return "none", 0
