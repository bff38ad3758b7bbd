# scopepost/core/spectrum.py

"""
Spectrum, DC/AC/RMS statistics and frequency estimation for every channel.

For each channel with voltage samples the analyzer

1. removes the DC component and computes dc, ac (rms of the AC part) and rms,
2. windows the AC part and transforms it into the packed half-complex layout,
3. derives the magnitude spectrum and the power spectrum,
4. transforms the power spectrum back, which yields the autocorrelation, and
   takes the first dominant autocorrelation peak as the signal period,
5. converts the magnitudes to dB relative to the configured reference level,
   clamped at the display limit, and uses the highest spectral peak as the
   frequency when one is found.

The autocorrelation estimate is only trusted when its peak lies more than
`AUTOCORRELATION_MIN_LAG` samples away, since below that the lag granularity
is too coarse (a peak at lag 5 cannot tell 5.0 from 6.0 MHz apart at 30 MS/s).
"""

import logging
import math
from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from scopepost.config.models import ScopeSettings, PostProcessingSettings
from .result import DataChannel, PostProcessingResult
from .transforms import RealTransform, ScipyRealTransform
from .windows import WindowCache

logger = logging.getLogger(__name__)

AUTOCORRELATION_MIN_LAG = 100
# dB level of a full-scale sine relative to the reference level
DB_FULL_SCALE_OFFSET = 60.0


def power_and_magnitude(
    packed: NDArray[np.float64],
    dft_length: int
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Splits a packed half-complex spectrum into power and magnitude buffers.

    Args:
        packed: Forward transform of n real samples (half-complex layout).
        dft_length: n // 2, must be >= 1.

    Returns:
        A tuple containing:
        - power (NDArray[np.float64]): Length-n half-complex buffer holding
          |X[k]|**2 / dft_length**2 as the real part of bins 0..dft_length,
          all imaginary parts zero. Bins 0 and dft_length use the real part only.
        - magnitude (NDArray[np.float64]): Length dft_length - 1. Element 0 is
          the raw real DC term, elements 1.. are |X[k]|.
    """
    n = len(packed)
    correction = 1.0 / dft_length / dft_length
    power = np.zeros(n, dtype=np.float64)
    power[0] = packed[0] * packed[0] * correction
    bins = np.arange(1, dft_length)
    real = packed[bins]
    imag = packed[n - bins]
    power[bins] = (real * real + imag * imag) * correction
    power[dft_length] = packed[dft_length] * packed[dft_length] * correction

    magnitude = packed[:dft_length - 1].copy()
    if dft_length > 2:
        magnitude[1:] = np.sqrt(real[:-1] * real[:-1] + imag[:-1] * imag[:-1])
    return power, magnitude


def autocorrelation_peak(correlation: NDArray[np.float64], stop: int) -> int:
    """
    Finds the lag of the dominant autocorrelation peak.

    Scans lags 1 .. stop-1 while tracking the running minimum; a lag becomes
    the peak when its value exceeds both the best peak so far and the running
    minimum. The latter skips the main lobe around lag 0.

    Returns:
        The peak lag, or 0 if none was found.
    """
    if stop <= 1:
        return 0
    values = np.asarray(correlation[:stop], dtype=np.float64)
    # Lag p is compared against the minimum of lags 0 .. p-1; accepted lags
    # form a rising sequence, so the last one is the first occurrence of the
    # largest candidate, provided it is above zero.
    running_minimum = np.minimum.accumulate(values)[:-1]
    lags = values[1:]
    candidates = np.where(lags > running_minimum, lags, -np.inf)
    best = int(np.argmax(candidates))
    if not candidates[best] > 0.0:
        return 0
    return best + 1


def magnitude_to_db(
    magnitude: NDArray[np.float64],
    dft_length: int,
    reference: float,
    limit: float
) -> Tuple[NDArray[np.float64], int]:
    """
    Converts a magnitude spectrum to dB and finds its highest bin.

    dB = 20*log10(|v|) + 60 - reference - 20*log10(dft_length), clamped from
    below at `limit - reference`.

    The running peak starts at the unconverted value of bin 0; a bin becomes
    the peak when its dB value is strictly larger, so ties keep the first bin.

    Returns:
        The dB spectrum and the index of its peak bin, 0 when no bin rose
        above the starting value.
    """
    if len(magnitude) == 0:
        return np.zeros(0, dtype=np.float64), 0
    offset = DB_FULL_SCALE_OFFSET - reference - 20.0 * math.log10(dft_length)
    floor = limit - reference
    with np.errstate(divide='ignore'):
        levels = 20.0 * np.log10(np.abs(magnitude)) + offset
    levels = np.where(floor > levels, floor, levels)

    peak_position = int(np.argmax(levels))
    if not levels[peak_position] > magnitude[0]:
        peak_position = 0
    return levels, peak_position


class SpectrumGenerator:
    """
    Analyzes every channel of a `PostProcessingResult` in place.

    Keeps the window coefficients of the previous call in a `WindowCache`;
    they are recomputed only when the window kind or the record length
    changes. Settings objects are read on every call, so changes made between
    cycles take effect on the next one.

    Args:
        scope: Channel display flags.
        postprocessing: Window function and dB scaling.
        transform: Real transform backend. Defaults to `ScipyRealTransform`.
    """

    def __init__(
        self,
        scope: ScopeSettings,
        postprocessing: PostProcessingSettings,
        transform: Optional[RealTransform] = None
    ) -> None:
        self.scope = scope
        self.postprocessing = postprocessing
        self.transform: RealTransform = transform if transform is not None else ScipyRealTransform()
        self.window_cache = WindowCache()

    def process(self, result: PostProcessingResult) -> None:
        for channel in range(result.channel_count):
            channel_data = result.modify_data(channel)
            if channel_data.voltage.empty:
                channel_data.spectrum.interval = 0.0
                channel_data.spectrum.clear()
                continue
            self._analyze(channel, channel_data)

    def _analyze(self, channel: int, channel_data: DataChannel) -> None:
        samples = np.asarray(channel_data.voltage.sample, dtype=np.float64)
        sample_count = len(samples)
        window = self.window_cache.get(self.postprocessing.spectrum_window, sample_count)

        dc = float(np.mean(samples))
        ac_samples = samples - dc
        ac2 = float(np.mean(ac_samples * ac_samples))
        channel_data.dc = dc
        channel_data.ac = math.sqrt(ac2)
        channel_data.rms = math.sqrt(dc * dc + ac2)

        voltage_interval = channel_data.voltage.interval
        if voltage_interval > 0:
            channel_data.spectrum.interval = 1.0 / voltage_interval / sample_count
        else:
            logger.warning(f"Channel {channel}: non-positive sample interval {voltage_interval}, frequency unknown.")
            channel_data.spectrum.interval = 0.0

        dft_length = sample_count // 2
        if dft_length < 1:
            channel_data.spectrum.clear()
            channel_data.frequency = 0.0
            return

        # Odd record lengths go through the even-length formulas unchanged.
        packed = self.transform.forward(window * ac_samples)
        power, magnitude = power_and_magnitude(packed, dft_length)
        correlation = self.transform.inverse(power)

        peak_lag = autocorrelation_peak(correlation, dft_length)
        if peak_lag > AUTOCORRELATION_MIN_LAG and voltage_interval > 0:
            channel_data.frequency = 1.0 / (voltage_interval * peak_lag)
        else:
            channel_data.frequency = 0.0

        peak_bin = 0
        if self.scope.is_spectrum_used(channel) or channel_data.frequency == 0:
            levels, peak_bin = magnitude_to_db(
                magnitude,
                dft_length,
                self.postprocessing.spectrum_reference,
                self.postprocessing.spectrum_limit,
            )
            channel_data.spectrum.sample = levels
        else:
            channel_data.spectrum.sample = magnitude

        # A peak in bin 0 is indistinguishable from "no peak" here and keeps the
        # autocorrelation estimate, even if the DC-adjacent bin really is the maximum.
        if peak_bin:
            channel_data.frequency = channel_data.spectrum.interval * peak_bin
        logger.debug(
            f"Channel {channel}: n={sample_count}, dc={dc:.6g}, ac={channel_data.ac:.6g}, "
            f"lag={peak_lag}, peak_bin={peak_bin}, f={channel_data.frequency:.6g} Hz"
        )
