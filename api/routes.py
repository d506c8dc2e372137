"""
api/routes.py — FastAPI route definitions
==========================================
All HTTP endpoints are defined here and wired into the app via
`app.include_router(router)` in `api/app.py`.

Endpoint summary
----------------
    GET  /health              — Liveness probe
    POST /session/start       — Reset both engines and start monitoring
    POST /session/stop        — Stop monitoring and clear all buffers
    POST /rppg/frame          — One base64 frame (+ optional face box)
    POST /rppg/samples        — Pre-averaged ROI colour samples
    GET  /rppg/result         — Latest rPPG snapshot (throttled)
    GET  /rppg/stats          — Raw signal statistics
    POST /fatigue/analyze     — Facial metrics → fatigue / risk / wellness
    POST /fatigue/break       — Record that the user took a break
    GET  /docs                — Auto-generated Swagger UI (FastAPI built-in)

Handlers are plain `def` so FastAPI runs them on its threadpool; the
numpy work inside them would otherwise block the event loop.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from api.schemas import (
    FacialMetricsRequest,
    FatigueResponse,
    FrameRequest,
    RPPGResponse,
    SamplesRequest,
    SessionResponse,
    SignalStatsResponse,
)
from api.session import DISCLAIMER, FrameDecodeError, MonitoringSession, SessionInactiveError
from utils.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()


def get_session(request: Request) -> MonitoringSession:
    """The app-wide session created in `create_app()`."""
    return request.app.state.session


def _inactive(exc: SessionInactiveError) -> HTTPException:
    return HTTPException(status_code=409, detail=str(exc))


# ── Health ────────────────────────────────────────────────────────────────────

@router.get("/health")
def health():
    """Simple liveness check."""
    return {"status": "ok", "service": "rPPG Wellness & Fatigue Monitor"}


# ── Session control ───────────────────────────────────────────────────────────

@router.post("/session/start")
def start_session(session: MonitoringSession = Depends(get_session)) -> SessionResponse:
    session.start()
    return SessionResponse(status="active", message=DISCLAIMER)


@router.post("/session/stop")
def stop_session(session: MonitoringSession = Depends(get_session)) -> SessionResponse:
    session.stop()
    return SessionResponse(status="inactive", message="Session stopped. Buffers cleared.")


# ── rPPG ──────────────────────────────────────────────────────────────────────

@router.post("/rppg/frame")
def add_frame(request: FrameRequest, session: MonitoringSession = Depends(get_session)):
    """
    Sample one frame.

    Body (JSON):
        image_b64     : str              base64 JPEG / PNG
        timestamp_ms  : float
        face_box      : {x, y, width, height} | null   (pixels)

    Without a face box the centred fallback ROI is used.  Returns 400 for
    an undecodable image and 409 when no session is active.
    """
    try:
        intensity = session.add_frame(request.image_b64, request.timestamp_ms, request.face_box)
    except FrameDecodeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SessionInactiveError as exc:
        raise _inactive(exc) from exc

    return {"accepted": intensity is not None, "intensity": intensity}


@router.post("/rppg/samples")
def add_samples(request: SamplesRequest, session: MonitoringSession = Depends(get_session)):
    try:
        count = session.add_samples(request.samples)
    except SessionInactiveError as exc:
        raise _inactive(exc) from exc
    return {"accepted": len(request.samples), "samples_collected": count}


@router.get("/rppg/result")
def rppg_result(session: MonitoringSession = Depends(get_session)) -> RPPGResponse:
    """Latest snapshot; recomputed at most once per update interval."""
    return RPPGResponse(**session.latest_result().to_dict())


@router.get("/rppg/stats")
def rppg_stats(session: MonitoringSession = Depends(get_session)) -> SignalStatsResponse:
    """Returns 404 while the buffer is empty."""
    stats, count, stable = session.signal_stats()
    if stats is None:
        raise HTTPException(status_code=404, detail="No samples collected yet.")
    return SignalStatsResponse(
        mean=stats.mean,
        std=stats.std,
        min=stats.min,
        max=stats.max,
        variance=stats.variance,
        sample_count=count,
        roi_stable=stable,
    )


# ── Fatigue ───────────────────────────────────────────────────────────────────

@router.post("/fatigue/analyze")
def analyze_fatigue(
    request: FacialMetricsRequest,
    session: MonitoringSession = Depends(get_session),
) -> FatigueResponse:
    try:
        result = session.analyze(request)
    except SessionInactiveError as exc:
        raise _inactive(exc) from exc

    if result.micro_sleep_detected:
        logger.warning("Micro-sleep reported to client (risk=%s).", result.risk_level)
    return FatigueResponse(**result.to_dict())


@router.post("/fatigue/break")
def record_break(session: MonitoringSession = Depends(get_session)):
    try:
        session.record_break()
    except SessionInactiveError as exc:
        raise _inactive(exc) from exc
    return {"status": "ok", "message": "Break recorded."}
