#!/usr/bin/env python3
"""
rPPG Wellness & Fatigue Monitor — Main Entry Point
===================================================
Launches the FastAPI backend with Uvicorn.
Run with:  python main.py [--host 0.0.0.0] [--port 8000]

⚠️  DISCLAIMER: This is a WELLNESS ESTIMATION tool, NOT a medical device.
    Heart rate, respiratory rate, HRV, SpO2, stress and fatigue readings
    are ESTIMATES from a webcam.  Do NOT use them for clinical diagnosis,
    treatment decisions, or as a substitute for a driver-safety system.
"""

import argparse

import uvicorn

from api.app import create_app
from config import LOG_LEVEL

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="rPPG monitor API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    app = create_app()
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        reload=False,
        log_level=LOG_LEVEL.lower(),
    )
