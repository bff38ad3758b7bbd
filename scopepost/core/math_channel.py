# scopepost/core/math_channel.py

"""
Derives math channels from physical channels 0 and 1.
"""

import logging

import numpy as np
from numpy.typing import NDArray

from scopepost.config.models import ScopeSettings
from scopepost.enums import MathMode
from .result import PostProcessingResult

logger = logging.getLogger(__name__)


def combine_channels(
    ch1: NDArray[np.float64],
    ch2: NDArray[np.float64],
    mode: MathMode
) -> NDArray[np.float64]:
    """
    Combines two sample arrays elementwise.

    The longer input is truncated to the length of the shorter one.

    Args:
        ch1: Samples of physical channel 0.
        ch2: Samples of physical channel 1.
        mode: Arithmetic to apply.

    Returns:
        New float64 array of length min(len(ch1), len(ch2)).

    Example:
        >>> combine_channels(np.array([1., 2., 3.]), np.array([4., 5., 6.]), MathMode.SUB_CH1_FROM_CH2)
        array([3., 3., 3.])
    """
    length = min(len(ch1), len(ch2))
    a = np.asarray(ch1[:length], dtype=np.float64)
    b = np.asarray(ch2[:length], dtype=np.float64)
    if mode is MathMode.ADD_CH1_CH2:
        return a + b
    if mode is MathMode.SUB_CH2_FROM_CH1:
        return a - b
    if mode is MathMode.SUB_CH1_FROM_CH2:
        return b - a
    raise ValueError(f"Unsupported math mode: {mode!r}")


class MathChannelGenerator:
    """
    Fills the voltage buffers of math channels.

    Math channels occupy ids `physical_channels .. channel_count - 1` of the
    result. All of them use the math mode configured on the first math
    channel. Keeps no state between calls.
    """

    def __init__(self, scope: ScopeSettings, physical_channels: int) -> None:
        self.scope = scope
        self.physical_channels = physical_channels

    def process(self, result: PostProcessingResult) -> None:
        ch1 = result.data(0).voltage
        ch2 = result.data(1).voltage
        if ch1.empty or ch2.empty:
            # Previous math data stays in place until both sources have samples again.
            logger.debug("Math channels not updated: channel 0 or 1 has no samples.")
            return

        mode = self.scope.math_mode
        for channel in range(self.physical_channels, result.channel_count):
            if not self.scope.is_voltage_used(channel) and not self.scope.is_spectrum_used(channel):
                continue
            channel_data = result.modify_data(channel)
            channel_data.voltage.interval = ch1.interval
            channel_data.voltage.sample = combine_channels(ch1.sample, ch2.sample, mode)
