"""SignalExtractor: buffering, status lifecycle and the full analysis pass."""

import numpy as np
import pytest

from rppg.extractor import ExtractorConfig, SignalExtractor

from conftest import make_pulse


# ── Helpers ───────────────────────────────────────────────────

def _feed(extractor: SignalExtractor, samples, red=None, blue=None) -> None:
    for i, value in enumerate(samples):
        extractor.add_sample(
            value,
            i * 1000.0 / extractor.config.frame_rate,
            red=None if red is None else red[i],
            blue=None if blue is None else blue[i],
        )


class _FixedSpO2:
    def estimate(self, red, blue):
        return 97


class _BrokenSpO2:
    def estimate(self, red, blue):
        raise RuntimeError("sensor model crashed")


# ═══════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════

@pytest.mark.parametrize(
    "kwargs",
    [
        {"frame_rate": 0},
        {"min_samples": 0},
        {"hr_band": (3.5, 1.0)},
        {"resp_band": (0.0, 0.5)},
    ],
)
def test_invalid_config_is_rejected(kwargs):
    with pytest.raises(ValueError):
        ExtractorConfig(**kwargs)


def test_default_window_is_twenty_seconds():
    assert ExtractorConfig().max_samples == 600


# ═══════════════════════════════════════════════════════════════
# Status lifecycle
# ═══════════════════════════════════════════════════════════════

def test_empty_extractor_is_initializing():
    result = SignalExtractor().process()
    assert result.status == "initializing"
    assert result.samples_collected == 0
    assert result.heart_rate is None
    assert result.signal_quality == "poor"
    assert result.waveform == ()


def test_partial_buffer_is_collecting():
    extractor = SignalExtractor()
    _feed(extractor, make_pulse(n=100))
    result = extractor.process()
    assert result.status == "collecting"
    assert result.samples_collected == 100
    assert result.heart_rate is None
    assert len(result.waveform) == 100


def test_buffer_is_bounded_to_window():
    extractor = SignalExtractor()
    _feed(extractor, make_pulse(n=700))
    assert extractor.sample_count == 600
    assert extractor.process().samples_collected == 600


def test_reset_returns_to_initializing():
    extractor = SignalExtractor()
    extractor.initialize_roi(100, 100, 0, 0)
    _feed(extractor, make_pulse(n=100))
    extractor.reset()
    assert extractor.process().status == "initializing"
    assert extractor.roi is None
    assert extractor.get_signal_stats() is None


# ═══════════════════════════════════════════════════════════════
# Analysis
# ═══════════════════════════════════════════════════════════════

def test_running_result_for_clean_pulse():
    extractor = SignalExtractor()
    _feed(extractor, make_pulse(1.2, noise=0.02))
    result = extractor.process()

    assert result.status == "running"
    assert result.heart_rate == pytest.approx(72, abs=2)
    assert result.pulse_rate == result.heart_rate
    assert result.hrv is not None
    assert result.stress_level in ("low", "moderate", "high")
    assert 12 <= result.stress_index <= 100
    assert result.signal_quality in ("good", "excellent")
    assert len(result.waveform) == 150
    assert max(abs(v) for v in result.waveform) == pytest.approx(1.0)


def test_flat_signal_yields_no_estimates():
    extractor = SignalExtractor()
    _feed(extractor, np.full(600, 100.0))
    result = extractor.process()
    assert result.status == "running"
    assert result.heart_rate is None
    assert result.respiratory_rate is None
    assert result.hrv is None
    assert result.stress_level is None and result.stress_index is None


def test_spo2_from_explicit_red_blue():
    n = 600
    wave = np.sin(2 * np.pi * np.arange(n) / 30.0)
    extractor = SignalExtractor()
    _feed(extractor, make_pulse(n=n), red=150 + 0.9 * wave, blue=100 + wave)
    assert extractor.process().spo2 == 95


def test_spo2_absent_without_red_blue():
    extractor = SignalExtractor()
    _feed(extractor, make_pulse())
    assert extractor.process().spo2 is None


def test_spo2_model_can_be_replaced():
    extractor = SignalExtractor(spo2_model=_FixedSpO2())
    _feed(extractor, make_pulse())
    assert extractor.process().spo2 == 97


def test_analysis_failure_reports_error_status():
    extractor = SignalExtractor(spo2_model=_BrokenSpO2())
    _feed(extractor, make_pulse())
    result = extractor.process()
    assert result.status == "error"
    assert result.heart_rate is None
    assert result.samples_collected == 600
    assert len(result.waveform) == 150


def test_smaller_min_samples_starts_analysis_earlier():
    extractor = SignalExtractor(ExtractorConfig(min_samples=60))
    _feed(extractor, make_pulse(n=60))
    assert extractor.process().status == "running"


# ═══════════════════════════════════════════════════════════════
# Frame ingestion
# ═══════════════════════════════════════════════════════════════

def test_add_frame_samples_green_and_keeps_red_blue():
    extractor = SignalExtractor()
    frame = np.zeros((120, 160, 3), dtype=np.uint8)
    frame[:, :] = (150, 90, 100)

    assert extractor.add_frame(frame, 0.0) == 90.0
    assert extractor.sample_count == 1
    assert extractor.roi is not None
    assert extractor.get_signal_stats().mean == 90.0
    assert extractor._red[-1] == 150.0 and extractor._blue[-1] == 100.0


def test_add_sample_without_channels_pads_with_nan():
    extractor = SignalExtractor()
    extractor.add_sample(90.0, 0.0)
    assert np.isnan(extractor._red[-1])
    assert len(extractor._red) == len(extractor._signal) == len(extractor._timestamps)


def test_roi_stability_flag():
    extractor = SignalExtractor()
    extractor.initialize_roi(100, 100, 50, 50)
    assert not extractor.roi_stable
    extractor.initialize_roi(100, 100, 52, 51)
    assert extractor.roi_stable


def test_signal_stats():
    extractor = SignalExtractor()
    _feed(extractor, [1.0, 2.0, 3.0, 4.0])
    stats = extractor.get_signal_stats()
    assert stats.mean == 2.5
    assert stats.min == 1.0 and stats.max == 4.0
    assert stats.variance == pytest.approx(1.25)
    assert stats.std == pytest.approx(np.sqrt(1.25))


def test_minimum_window_with_noise():
    extractor = SignalExtractor()
    _feed(extractor, make_pulse(1.2, n=450, noise=0.02, seed=3))
    result = extractor.process()
    assert result.status == "running"
    assert result.heart_rate == pytest.approx(72, abs=3)
    assert result.signal_quality in ("good", "excellent")


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), -float("inf")])
def test_non_finite_sample_is_rejected(bad):
    extractor = SignalExtractor()
    _feed(extractor, make_pulse(1.2, noise=0.02))
    with pytest.raises(ValueError):
        extractor.add_sample(bad, 20000.0)

    assert extractor.sample_count == 600
    result = extractor.process()
    assert result.status == "running"
    assert result.heart_rate == pytest.approx(72, abs=2)
    assert result.signal_quality in ("good", "excellent")
