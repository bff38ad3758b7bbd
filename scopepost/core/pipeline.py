# scopepost/core/pipeline.py

"""
Runs the post-processing stages over one acquisition and publishes the result.
"""

import copy
import logging
import threading
from typing import List, Optional, Protocol, Sequence

import numpy as np
from numpy.typing import ArrayLike

from scopepost.config.models import ScopeSettings, PostProcessingSettings
from .math_channel import MathChannelGenerator
from .result import PostProcessingResult, ResultPublisher
from .spectrum import SpectrumGenerator
from .transforms import RealTransform

logger = logging.getLogger(__name__)


class Processor(Protocol):
    """A post-processing stage that mutates a result in place."""

    def process(self, result: PostProcessingResult) -> None:
        ...


class PostProcessor:
    """
    Sequential post-processing driver.

    Every call to `process()` runs all stages to completion, in order, while
    holding the post-processor's lock, and only then publishes the result.
    Consumers obtain results exclusively through `publisher`, so they never
    see a container that is still being written, and a published container
    is never handed to the stages again. If a stage raises, the
    exception propagates and nothing is published for that cycle.

    Args:
        scope: Channel layout and display flags.
        postprocessing: Window and dB scaling settings.
        transform: Optional real transform backend for the spectrum stage.
        processors: Optional explicit stage list, replacing the default
                    [MathChannelGenerator, SpectrumGenerator].
        publisher: Optional publisher shared with consumers.
    """

    def __init__(
        self,
        scope: ScopeSettings,
        postprocessing: PostProcessingSettings,
        transform: Optional[RealTransform] = None,
        processors: Optional[Sequence[Processor]] = None,
        publisher: Optional[ResultPublisher] = None,
    ) -> None:
        self.scope = scope
        self.postprocessing = postprocessing
        if processors is None:
            processors = [
                MathChannelGenerator(scope, scope.physical_channels),
                SpectrumGenerator(scope, postprocessing, transform),
            ]
        self.processors: List[Processor] = list(processors)
        self.publisher = publisher if publisher is not None else ResultPublisher()
        self._lock = threading.Lock()

    def new_result(
        self,
        voltages: Sequence[ArrayLike],
        intervals: Sequence[float],
    ) -> PostProcessingResult:
        """
        Creates a result for a fresh acquisition.

        Physical channel voltage buffers are filled from `voltages`; math
        channels start empty.

        Raises:
            ValueError: If more voltage buffers than physical channels are given
                        or the interval count does not match.
        """
        if len(voltages) > self.scope.physical_channels:
            raise ValueError(
                f"Got {len(voltages)} channels but only {self.scope.physical_channels} physical channels are configured."
            )
        if len(intervals) != len(voltages):
            raise ValueError(f"Expected {len(voltages)} sample intervals, got {len(intervals)}.")
        result = PostProcessingResult(self.scope.channel_count)
        for channel, (samples, interval) in enumerate(zip(voltages, intervals)):
            channel_data = result.modify_data(channel)
            channel_data.voltage.sample = np.asarray(samples, dtype=np.float64).copy()
            channel_data.voltage.interval = float(interval)
        return result

    def process(self, result: PostProcessingResult) -> PostProcessingResult:
        """
        Runs every stage over `result` and publishes it.

        A result that was already published is left untouched; the stages run
        on a deep copy of it instead, and that copy is returned and published.
        """
        with self._lock:
            if result.published:
                logger.debug("Result was already published; processing a copy.")
                result = copy.deepcopy(result)
                result.published = False
            for processor in self.processors:
                logger.debug(f"Running {type(processor).__name__}.")
                processor.process(result)
        self.publisher.publish(result)
        return result

    def run(
        self,
        voltages: Sequence[ArrayLike],
        intervals: Sequence[float],
    ) -> PostProcessingResult:
        """Convenience wrapper: `new_result()` followed by `process()`."""
        return self.process(self.new_result(voltages, intervals))
