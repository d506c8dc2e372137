"""
utils/alerts.py — Drowsiness alert sinks
=========================================
The monitoring loop raises an alert when a break becomes urgent or a
fresh micro-sleep shows up, and clears it once things settle.  How the
alert is delivered is pluggable:

    LoggingAlertSink       — WARNING log line (always safe, used by the API)
    TerminalBellAlertSink  — ASCII bell + banner on stdout (CLI)

Sinks only see `start(reason)` / `stop()`; repeated `start` calls while
an alert is active are ignored so the terminal is not flooded.
"""

import sys
from typing import Protocol, TextIO

from utils.logger import get_logger

logger = get_logger("utils.alerts")


class AlertSink(Protocol):
    active: bool

    def start(self, reason: str) -> None: ...

    def stop(self) -> None: ...


class LoggingAlertSink:
    def __init__(self):
        self.active = False

    def start(self, reason: str) -> None:
        if self.active:
            return
        self.active = True
        logger.warning("ALERT: %s", reason)

    def stop(self) -> None:
        if self.active:
            self.active = False
            logger.info("Alert cleared.")


class TerminalBellAlertSink(LoggingAlertSink):
    """Rings the terminal bell and prints a red banner."""

    def __init__(self, stream: TextIO | None = None):
        super().__init__()
        self._stream = stream or sys.stdout

    def start(self, reason: str) -> None:
        if self.active:
            return
        super().start(reason)
        self._stream.write(f"\a\n  \033[1;31m⚠️  {reason.upper()}\033[0m\n")
        self._stream.flush()


def should_alert(break_urgency: str, micro_sleep_detected: bool) -> bool:
    """True when the fatigue result warrants an audible alert."""
    return micro_sleep_detected or break_urgency in ("urgent", "immediate")
