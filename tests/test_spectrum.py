# tests/test_spectrum.py

import math

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from scopepost.config.models import ScopeSettings, PostProcessingSettings, ChannelSpectrumSettings
from scopepost.core.result import PostProcessingResult
from scopepost.core.spectrum import (
    SpectrumGenerator, autocorrelation_peak, magnitude_to_db, power_and_magnitude
)
from scopepost.core.transforms import ScipyRealTransform
from scopepost.enums import WindowFunction

# --- Test Fixtures ---

@pytest.fixture
def scope() -> ScopeSettings:
    return ScopeSettings(physical_channels=2, math_channels=0)


@pytest.fixture
def postprocessing() -> PostProcessingSettings:
    return PostProcessingSettings(
        spectrum_window=WindowFunction.HANN, spectrum_reference=0.0, spectrum_limit=-20.0
    )


def sine(freq: float, fs: float, n: int, amplitude: float = 1.0, offset: float = 0.0) -> np.ndarray:
    t = np.arange(n) / fs
    return offset + amplitude * np.sin(2 * np.pi * freq * t)


def single_channel_result(samples, interval: float, channels: int = 2) -> PostProcessingResult:
    result = PostProcessingResult(channels)
    data = result.modify_data(0)
    data.voltage.sample = np.asarray(samples, dtype=np.float64)
    data.voltage.interval = interval
    return result


def enable_spectrum(scope: ScopeSettings, channel: int = 0) -> ScopeSettings:
    scope.spectrum[channel] = ChannelSpectrumSettings(used=True)
    return scope

# --- Statistics ---

def test_dc_ac_rms(scope, postprocessing):
    samples = sine(1000.0, 1e6, 10000, amplitude=1.0, offset=2.0)
    result = single_channel_result(samples, 1e-6)
    SpectrumGenerator(scope, postprocessing).process(result)
    data = result.data(0)
    assert data.dc == pytest.approx(np.mean(samples))
    assert data.ac == pytest.approx(1 / math.sqrt(2), rel=1e-6)
    assert data.rms ** 2 == pytest.approx(data.dc ** 2 + data.ac ** 2)


def test_rms_identity_for_random_data(scope, postprocessing):
    rng = np.random.default_rng(7)
    samples = rng.normal(0.3, 1.5, 4096)
    result = single_channel_result(samples, 1e-5)
    SpectrumGenerator(scope, postprocessing).process(result)
    data = result.data(0)
    assert data.dc == pytest.approx(samples.mean())
    assert data.rms ** 2 == pytest.approx(data.dc ** 2 + data.ac ** 2, rel=1e-12)
    assert data.rms == pytest.approx(np.sqrt(np.mean(samples ** 2)))

# --- Spectrum layout ---

@pytest.mark.parametrize("n", [2, 4, 10, 256, 1000])
def test_spectrum_length_is_half_record_minus_one(scope, postprocessing, n):
    samples = np.random.default_rng(n).standard_normal(n)
    result = single_channel_result(samples, 1e-3)
    SpectrumGenerator(enable_spectrum(scope), postprocessing).process(result)
    assert len(result.data(0).spectrum.sample) == n // 2 - 1


def test_spectrum_interval(scope, postprocessing):
    result = single_channel_result(np.zeros(500) + np.arange(500) % 7, 2e-6)
    SpectrumGenerator(scope, postprocessing).process(result)
    assert result.data(0).spectrum.interval == pytest.approx(1.0 / (2e-6 * 500))


def test_empty_channel_is_cleared(scope, postprocessing):
    result = single_channel_result(sine(50, 1000, 1000), 1e-3)
    stale = result.modify_data(1)
    stale.spectrum.sample = np.ones(10)
    stale.spectrum.interval = 3.0
    SpectrumGenerator(scope, postprocessing).process(result)
    assert result.data(1).spectrum.empty
    assert result.data(1).spectrum.interval == 0.0
    assert result.data(1).frequency == 0.0

# --- dB conversion ---

def test_db_values_are_clamped_at_limit(scope, postprocessing):
    postprocessing.spectrum_reference = 5.0
    postprocessing.spectrum_limit = -30.0
    floor = -30.0 - 5.0
    result = single_channel_result(sine(100, 10000, 2000), 1e-4)
    SpectrumGenerator(enable_spectrum(scope), postprocessing).process(result)
    spectrum = result.data(0).spectrum.sample
    assert spectrum.min() == floor
    assert np.all(spectrum >= floor)


def test_db_scaling_of_peak(scope):
    n = 1000
    settings = PostProcessingSettings(spectrum_window=WindowFunction.RECTANGULAR,
                                      spectrum_reference=0.0, spectrum_limit=-100.0)
    result = single_channel_result(sine(50, 1000, n), 1e-3)
    SpectrumGenerator(enable_spectrum(scope), settings).process(result)
    spectrum = result.data(0).spectrum.sample
    # |X| = N/2 for a unit sine on a bin, rectangular window
    expected = 20 * math.log10(n / 2) + 60 - 20 * math.log10(n // 2)
    assert spectrum[50] == pytest.approx(expected, abs=1e-6)


def test_raw_magnitudes_when_spectrum_hidden_and_frequency_found(scope, postprocessing):
    n = 10000
    result = single_channel_result(sine(1000.0, 1e6, n), 1e-6)
    SpectrumGenerator(scope, postprocessing).process(result)
    data = result.data(0)
    assert data.frequency > 0
    peak = int(np.argmax(data.spectrum.sample))
    assert peak == 10
    # Hann window halves the coherent gain: |X| ~ N/4
    assert data.spectrum.sample[peak] == pytest.approx(n / 4, rel=1e-3)

# --- Frequency estimation ---

def test_frequency_from_autocorrelation(scope, postprocessing):
    result = single_channel_result(sine(1000.0, 1e6, 10000), 1e-6)
    SpectrumGenerator(scope, postprocessing).process(result)
    assert result.data(0).frequency == pytest.approx(1000.0, rel=0.01)


def test_frequency_from_spectral_peak_overrides(scope, postprocessing):
    result = single_channel_result(sine(1000.0, 1e6, 10000), 1e-6)
    SpectrumGenerator(enable_spectrum(scope), postprocessing).process(result)
    data = result.data(0)
    assert data.frequency == pytest.approx(data.spectrum.interval * 10)
    assert data.frequency == pytest.approx(1000.0)


def test_short_period_falls_back_to_spectrum(scope, postprocessing):
    """Period of 50 samples is too short for the autocorrelation estimate."""
    result = single_channel_result(sine(20.0, 1000.0, 1000), 1e-3)
    SpectrumGenerator(scope, postprocessing).process(result)
    data = result.data(0)
    assert data.frequency == pytest.approx(20.0)
    # dB conversion ran even though the spectrum view is off
    assert data.spectrum.sample.min() == pytest.approx(-20.0)


def test_silent_channel_has_no_frequency(scope, postprocessing):
    result = single_channel_result(np.full(1024, 0.5), 1e-3)
    SpectrumGenerator(scope, postprocessing).process(result)
    data = result.data(0)
    assert data.frequency == 0.0
    assert data.dc == pytest.approx(0.5)
    assert data.ac == pytest.approx(0.0, abs=1e-12)
    assert_array_equal(data.spectrum.sample, np.full(511, -20.0))

# --- Edge cases ---

def test_single_sample_record(scope, postprocessing):
    result = single_channel_result([3.0], 1e-3)
    SpectrumGenerator(scope, postprocessing).process(result)
    data = result.data(0)
    assert data.dc == 3.0
    assert data.rms == pytest.approx(3.0)
    assert data.spectrum.empty
    assert data.frequency == 0.0


def test_zero_interval_does_not_raise(scope, postprocessing):
    result = single_channel_result(sine(20.0, 1000.0, 1000), 0.0)
    SpectrumGenerator(scope, postprocessing).process(result)
    data = result.data(0)
    assert data.spectrum.interval == 0.0
    assert data.frequency == 0.0


def test_odd_record_length(scope, postprocessing):
    result = single_channel_result(sine(20.0, 1000.0, 999), 1e-3)
    SpectrumGenerator(enable_spectrum(scope), postprocessing).process(result)
    assert len(result.data(0).spectrum.sample) == 999 // 2 - 1

# --- Determinism and window cache ---

def test_repeated_processing_is_bit_identical(scope, postprocessing):
    samples = np.random.default_rng(3).standard_normal(2048) + sine(30, 2048, 2048)
    generator = SpectrumGenerator(enable_spectrum(scope), postprocessing)

    first = single_channel_result(samples, 1 / 2048)
    generator.process(first)
    second = single_channel_result(samples, 1 / 2048)
    generator.process(second)
    assert generator.window_cache.recomputations == 1

    fresh = single_channel_result(samples, 1 / 2048)
    SpectrumGenerator(scope, postprocessing).process(fresh)

    for other in (second, fresh):
        assert_array_equal(first.data(0).spectrum.sample, other.data(0).spectrum.sample)
        assert first.data(0).frequency == other.data(0).frequency
        assert first.data(0).rms == other.data(0).rms


def test_window_change_recomputes_and_changes_spectrum(scope, postprocessing):
    samples = sine(33.3, 1000.0, 1000)
    generator = SpectrumGenerator(enable_spectrum(scope), postprocessing)

    hann = single_channel_result(samples, 1e-3)
    generator.process(hann)
    postprocessing.spectrum_window = WindowFunction.FLATTOP
    flat = single_channel_result(samples, 1e-3)
    generator.process(flat)

    assert generator.window_cache.recomputations == 2
    assert generator.window_cache.kind is WindowFunction.FLATTOP
    assert not np.array_equal(hann.data(0).spectrum.sample, flat.data(0).spectrum.sample)


def test_length_change_recomputes_window(scope, postprocessing):
    generator = SpectrumGenerator(scope, postprocessing)
    generator.process(single_channel_result(sine(5, 100, 400), 0.01))
    generator.process(single_channel_result(sine(5, 100, 800), 0.01))
    assert generator.window_cache.recomputations == 2
    assert generator.window_cache.length == 800


def test_custom_transform_backend_is_used(scope, postprocessing, mocker):
    backend = ScipyRealTransform()
    forward = mocker.spy(backend, "forward")
    inverse = mocker.spy(backend, "inverse")
    SpectrumGenerator(scope, postprocessing, transform=backend).process(
        single_channel_result(sine(5, 100, 400), 0.01))
    assert forward.call_count == 1
    assert inverse.call_count == 1

# --- Helpers ---

def test_power_and_magnitude_layout():
    packed = np.arange(1.0, 9.0)  # n = 8, dft_length = 4
    power, magnitude = power_and_magnitude(packed, 4)
    assert_allclose(power, np.array([1, 4 + 64, 9 + 49, 16 + 36, 25, 0, 0, 0]) / 16)
    assert_allclose(magnitude, [1.0, math.sqrt(68), math.sqrt(58)])


def test_autocorrelation_peak_skips_main_lobe():
    correlation = np.array([10.0, 5.0, 2.0, 3.0, 8.0, 4.0])
    assert autocorrelation_peak(correlation, 6) == 4
    assert autocorrelation_peak(np.array([4.0, 3.0, 2.0, 1.0]), 4) == 0
    assert autocorrelation_peak(correlation, 1) == 0


def _scan_lags(values, stop):
    minimum, peak, position = values[0], 0.0, 0
    for lag in range(1, stop):
        if values[lag] > peak and values[lag] > minimum:
            peak, position = values[lag], lag
        elif values[lag] < minimum:
            minimum = values[lag]
    return position


def test_autocorrelation_peak_matches_sequential_scan():
    rng = np.random.default_rng(7)
    for _ in range(20):
        correlation = rng.normal(size=300)
        assert autocorrelation_peak(correlation, 300) == _scan_lags(correlation, 300)
    ties = np.array([5.0, 1.0, 3.0, 0.5, 3.0])
    assert autocorrelation_peak(ties, 5) == 2
    assert autocorrelation_peak(np.array([1.0, -3.0, -2.0]), 3) == 0


def test_magnitude_to_db_clamps_and_finds_first_peak():
    levels, peak = magnitude_to_db(np.array([1e-9, 10.0, 10.0, 0.0]), 1, 0.0, -20.0)
    assert_allclose(levels, [-20.0, 80.0, 80.0, -20.0])
    assert peak == 1


def test_magnitude_to_db_peak_in_bin_zero_reports_no_peak():
    levels, peak = magnitude_to_db(np.array([5.0, 1.0, 1.0]), 1, 0.0, -100.0)
    assert levels[0] > levels[1]
    assert peak == 0


def test_magnitude_to_db_empty():
    levels, peak = magnitude_to_db(np.zeros(0), 1, 0.0, -20.0)
    assert levels.size == 0
    assert peak == 0
