#!/usr/bin/env python3
"""
demo_cli.py — Live monitoring from the terminal
=================================================
Runs the rPPG and fatigue engines against the local webcam WITHOUT the
FastAPI server.  Useful for demos and for eyeballing the signal.

Usage:
    python demo_cli.py --duration 120 --show-feed

Press `q` in the video window (with --show-feed) or Ctrl-C to stop.

⚠️  DISCLAIMER: This is a WELLNESS ESTIMATION tool — NOT a medical device
    and NOT a certified driver-drowsiness system.
"""

import argparse
import sys
import time

import cv2

from camera.capture import CameraCapture
from face.detector import FaceDetector
from face.metrics import FacialEventCounter
from fatigue.engine import FatigueFusionEngine
from fatigue.types import FatigueInputMetrics
from rppg.extractor import ExtractorConfig, SignalExtractor
from utils.alerts import LoggingAlertSink, TerminalBellAlertSink, should_alert
from utils.logger import get_logger, set_level

logger = get_logger("demo_cli")

STATUS_EVERY_S = 2.0


def pretty_print(label: str, value, unit: str = "") -> None:
    """Colourised terminal output."""
    shown = "—" if value is None else value
    print(f"  \033[1;36m{label:<28}\033[0m \033[1;33m{shown}\033[0m {unit}")


def status_line(rppg, fatigue) -> str:
    hr = rppg.heart_rate if rppg.heart_rate is not None else "--"
    rr = rppg.respiratory_rate if rppg.respiratory_rate is not None else "--"
    return (
        f"  [{rppg.status:<12}] n={rppg.samples_collected:<4} "
        f"HR={hr:<4} RR={rr:<3} q={rppg.signal_quality:<9} | "
        f"fatigue={fatigue.fatigue_score:>3} ({fatigue.fatigue_level}) "
        f"risk={fatigue.risk_level:<8} break={fatigue.break_urgency}"
    )


def draw_overlay(display, observation, roi, fatigue) -> None:
    if observation.box is not None:
        x, y, w, h = (int(v) for v in observation.box)
        cv2.rectangle(display, (x, y), (x + w, y + h), (0, 255, 0), 1)
    if roi is not None:
        cv2.rectangle(
            display,
            (int(roi.x), int(roi.y)),
            (int(roi.x + roi.width), int(roi.y + roi.height)),
            (0, 200, 255), 2,
        )
    if fatigue is not None:
        colour = (0, 0, 255) if fatigue.risk_level in ("danger", "critical") else (255, 255, 255)
        cv2.putText(display, f"Fatigue {fatigue.fatigue_score}  Risk {fatigue.risk_level}",
                    (20, 35), cv2.FONT_HERSHEY_SIMPLEX, 0.6, colour, 2)


def main():
    parser = argparse.ArgumentParser(description="rPPG wellness & fatigue monitor — CLI demo")
    parser.add_argument("--duration", type=int, default=60, help="Monitoring duration (seconds)")
    parser.add_argument("--fps", type=float, default=None, help="Override the sampling rate (default: camera FPS)")
    parser.add_argument("--show-feed", action="store_true", help="Show live camera feed with face/ROI overlay")
    parser.add_argument("--no-bell", action="store_true", help="Log alerts instead of ringing the terminal bell")
    parser.add_argument("--verbose", action="store_true", help="Show DEBUG logs (rejected estimates, ROI moves)")
    args = parser.parse_args()
    if args.verbose:
        set_level("DEBUG")

    print("\n" + "=" * 60)
    print("  rPPG WELLNESS & FATIGUE MONITOR — CLI DEMO")
    print("=" * 60)
    print("  ⚠️  This is a WELLNESS ESTIMATION tool — NOT medical grade.")
    print("=" * 60 + "\n")

    # ── Initialise components ────────────────────────────────────────────
    camera = CameraCapture()
    if not camera.open():
        print("ERROR: Could not open camera. Exiting.")
        sys.exit(1)
    if camera.wait_for_frame(timeout=3.0) is None:
        camera.release()
        print("ERROR: No frame received from camera. Exiting.")
        sys.exit(1)

    fps = args.fps or camera.actual_fps
    try:
        extractor = SignalExtractor(ExtractorConfig(frame_rate=fps))
    except ValueError as e:
        camera.release()
        print(f"ERROR: {e}")
        sys.exit(2)

    face_detector = FaceDetector()
    counter = FacialEventCounter()
    fatigue_engine = FatigueFusionEngine()
    alerts = LoggingAlertSink() if args.no_bell else TerminalBellAlertSink()

    print(f"  Sampling rate : {fps:.1f} Hz")
    print(f"  Duration      : {args.duration} s")
    print("  Please look at the camera in even lighting…\n")

    # ── Main loop ────────────────────────────────────────────────────────
    start = time.time()
    last_frame_id = 0
    last_refresh = 0.0
    last_status = 0.0
    rppg = extractor.process()
    fatigue = None

    try:
        while time.time() - start < args.duration:
            frame_id = camera.frame_id
            latest = camera.get_latest()
            if latest is None or frame_id == last_frame_id:
                time.sleep(0.005)
                continue
            last_frame_id = frame_id
            frame_bgr, timestamp_ms = latest

            observation = face_detector.detect(frame_bgr)
            if observation.box is not None:
                x, y, w, h = observation.box
                extractor.initialize_roi(w, h, x, y)
            extractor.add_frame(cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB), timestamp_ms)

            now = time.time()
            if now - last_refresh >= extractor.config.update_interval:
                rppg = extractor.process()
                last_refresh = now

            if observation.face_detected:
                facial = counter.update(observation.ear, observation.mar, now)
                fatigue = fatigue_engine.analyze(
                    FatigueInputMetrics.from_rppg(rppg, **facial.fatigue_inputs())
                )
                if should_alert(fatigue.break_urgency, fatigue.micro_sleep_detected):
                    reason = "micro-sleep detected" if fatigue.micro_sleep_detected else f"{fatigue.break_urgency} break needed"
                    alerts.start(reason)
                else:
                    alerts.stop()

            if fatigue is not None and now - last_status >= STATUS_EVERY_S:
                print(status_line(rppg, fatigue))
                last_status = now

            if args.show_feed:
                display = frame_bgr.copy()
                draw_overlay(display, observation, extractor.roi, fatigue)
                cv2.imshow("rPPG Monitor", display)
                if cv2.waitKey(1) & 0xFF == ord("q"):
                    print("\n  Monitoring stopped by user.")
                    break
    except KeyboardInterrupt:
        print("\n  Interrupted.")
    finally:
        alerts.stop()
        camera.release()
        face_detector.close()
        if args.show_feed:
            cv2.destroyAllWindows()

    # ── Summary ──────────────────────────────────────────────────────────
    rppg = extractor.process()
    print("\n" + "=" * 60)
    print("  SESSION SUMMARY")
    print("=" * 60)

    print("\n  ── Vital signs (ESTIMATED) ──")
    pretty_print("Status", rppg.status)
    pretty_print("Samples", rppg.samples_collected)
    pretty_print("Signal quality", rppg.signal_quality)
    pretty_print("Heart rate", rppg.heart_rate, "BPM")
    pretty_print("Respiratory rate", rppg.respiratory_rate, "breaths/min")
    pretty_print("SpO2", rppg.spo2, "%")
    if rppg.hrv is not None:
        pretty_print("RMSSD", rppg.hrv.rmssd, "ms")
        pretty_print("SDNN", rppg.hrv.sdnn, "ms")
        pretty_print("pNN50", rppg.hrv.pnn50, "%")
    else:
        print("    ⚠️  Not enough clean beats for HRV.")
    pretty_print("Stress", f"{rppg.stress_level} ({rppg.stress_index})" if rppg.stress_level else None)

    print("\n  ── Fatigue ──")
    if fatigue is None:
        print("    ⚠️  No face was detected — no fatigue analysis.")
    else:
        stats = fatigue_engine.micro_sleep_stats()
        pretty_print("Fatigue score", fatigue.fatigue_score, f"/ 100 ({fatigue.fatigue_level})")
        pretty_print("Trend", fatigue.fatigue_trend)
        pretty_print("Cognitive load", fatigue.cognitive_load)
        pretty_print("Risk", f"{fatigue.risk_level} ({fatigue.risk_score})")
        for factor in fatigue.risk_factors:
            print(f"    • {factor}")
        pretty_print("Wellness", f"{fatigue.wellness_score} ({fatigue.wellness_status})")
        pretty_print("Micro-sleeps", stats.count, f"(avg {stats.avg_duration_ms:.0f} ms)")
        pretty_print("Blinks / yawns", f"{counter.blink_total} / {counter.yawn_total}")
        if fatigue.break_recommended:
            pretty_print("Break", f"{fatigue.break_urgency}", f"— {fatigue.recommended_break_duration} min")

    print("\n" + "=" * 60)
    print("  ⚠️  DISCLAIMER: All values above are ESTIMATES.")
    print("      Do NOT use for medical diagnosis or safety-critical decisions.")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
