"""
api/app.py — FastAPI application factory
==========================================
Creates and configures the FastAPI instance.  All configuration is
centralised here so that `main.py` stays minimal.

CORS
----
All origins are allowed by default so a browser dashboard served from
another port can stream frames.  Restrict `allow_origins` when exposing
the service beyond localhost.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from api.session import MonitoringSession
from config import API_TITLE, API_VERSION


def create_app(session: MonitoringSession | None = None) -> FastAPI:
    """
    Construct and return the configured FastAPI application.

    Each app owns its own `MonitoringSession` (stored on `app.state`), so
    tests can build isolated instances or inject one with a fake clock.
    """
    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description=(
            "Remote photoplethysmography (rPPG) vital signs and fatigue "
            "monitoring API. ⚠️ WELLNESS TOOL ONLY — not a medical device."
        ),
    )
    app.state.session = session or MonitoringSession()

    # ── CORS ────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Mount routes ────────────────────────────────────────────────────
    app.include_router(router)

    return app
