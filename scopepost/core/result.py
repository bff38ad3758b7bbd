# scopepost/core/result.py

"""
Per-acquisition result container shared by the post-processing stages and
its consumers.

A `PostProcessingResult` holds one `DataChannel` per channel id (physical
channels first, then math channels). The processing stages mutate it in
place; once finished it is handed to a `ResultPublisher`, which is the only
place readers obtain containers from. Readers therefore never observe a
container that is still being processed.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


def _empty_samples() -> NDArray[np.float64]:
    return np.zeros(0, dtype=np.float64)


@dataclass
class SampleValues:
    """An ordered run of samples and the spacing between them.

    For voltage data `interval` is the time between samples in seconds, for
    spectrum data it is the frequency step between bins in Hz.
    """
    sample: NDArray[np.float64] = field(default_factory=_empty_samples)
    interval: float = 0.0

    def __len__(self) -> int:
        return len(self.sample)

    @property
    def empty(self) -> bool:
        return len(self.sample) == 0

    def clear(self) -> None:
        self.sample = _empty_samples()


@dataclass
class DataChannel:
    """Analyzed data of one channel."""
    voltage: SampleValues = field(default_factory=SampleValues)
    spectrum: SampleValues = field(default_factory=SampleValues)  # dB levels after analysis
    frequency: float = 0.0
    dc: float = 0.0
    ac: float = 0.0   # rms of the AC component
    rms: float = 0.0  # sqrt(dc**2 + ac**2)
    valid: bool = True  # not clipped, no dropouts


class PostProcessingResult:
    """
    Owned collection of `DataChannel` records for one acquisition cycle.

    Args:
        channel_count: Number of channels, physical plus math.
    """

    def __init__(self, channel_count: int) -> None:
        if channel_count < 0:
            raise ValueError("channel_count must not be negative")
        self._analyzed_data: List[DataChannel] = [DataChannel() for _ in range(channel_count)]
        # Software trigger status and the number of leading samples to skip so
        # the triggered trace lands on screen. Carried through for consumers.
        self.software_trigger_triggered: bool = False
        self.skip_samples: int = 0
        # Set by ResultPublisher.publish(); a published result is never mutated again.
        self.published: bool = False

    def _check(self, channel: int) -> int:
        if not 0 <= channel < len(self._analyzed_data):
            raise IndexError(f"Channel {channel} out of range (0..{len(self._analyzed_data) - 1}).")
        return channel

    def data(self, channel: int) -> DataChannel:
        """Returns the analyzed data of `channel` for reading."""
        return self._analyzed_data[self._check(channel)]

    def modify_data(self, channel: int) -> DataChannel:
        """Returns the analyzed data of `channel` for modification."""
        return self._analyzed_data[self._check(channel)]

    @property
    def channel_count(self) -> int:
        return len(self._analyzed_data)

    @property
    def sample_count(self) -> int:
        """Maximum voltage sample count across all channels (0 if none)."""
        return max((len(ch.voltage) for ch in self._analyzed_data), default=0)

    def __iter__(self):
        return iter(self._analyzed_data)

    def __len__(self) -> int:
        return len(self._analyzed_data)


class ResultPublisher:
    """
    Thread-safe hand-over point for finished results.

    The processing thread calls `publish()` once per cycle with a container
    it no longer mutates; readers call `latest()` or subscribe to be notified.
    Publication swaps a single reference under a lock, so a reader sees
    either the previous or the new container, never a partial one.
    """

    def __init__(self) -> None:
        self._latest: Optional[PostProcessingResult] = None
        self._lock = threading.Lock()
        self._subscribers: Dict[int, Callable[[PostProcessingResult], None]] = {}
        self._next_token = 0
        self._published = 0

    def latest(self) -> Optional[PostProcessingResult]:
        with self._lock:
            return self._latest

    @property
    def published_count(self) -> int:
        with self._lock:
            return self._published

    def publish(self, result: PostProcessingResult) -> None:
        with self._lock:
            result.published = True
            self._latest = result
            self._published += 1
            callbacks = list(self._subscribers.values())
        for callback in callbacks:
            try:
                callback(result)
            except Exception:
                # A broken consumer must not stop the acquisition loop.
                logger.exception("Result subscriber raised an exception.")

    def subscribe(
        self,
        callback: Callable[[PostProcessingResult], None],
        *,
        replay: bool = True,
    ) -> Callable[[], None]:
        """
        Registers `callback` for every published result.

        If `replay` is set and a result was already published, the callback is
        invoked once immediately with it.

        Returns:
            A function that removes the subscription.
        """
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = callback
            snapshot = self._latest
        if replay and snapshot is not None:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Result subscriber raised an exception during replay.")

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe


__all__ = ["SampleValues", "DataChannel", "PostProcessingResult", "ResultPublisher"]
