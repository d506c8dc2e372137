"""Shared fixtures: synthetic pulse traces and a controllable clock."""

import numpy as np
import pytest


class FakeClock:
    """Callable clock (seconds) advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_pulse(
    freq_hz: float = 1.2,
    n: int = 600,
    fs: float = 30.0,
    amplitude: float = 0.5,
    offset: float = 100.0,
    noise: float = 0.0,
    seed: int = 7,
) -> np.ndarray:
    """Green-channel-like trace: DC offset + sinusoidal pulse + optional noise."""
    t = np.arange(n) / fs
    x = offset + amplitude * np.sin(2 * np.pi * freq_hz * t)
    if noise:
        x = x + np.random.default_rng(seed).normal(0.0, noise, n)
    return x


@pytest.fixture
def clock():
    return FakeClock()
