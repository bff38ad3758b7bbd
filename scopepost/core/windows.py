# scopepost/core/windows.py

"""
Window functions applied to a record before the spectral transform, and a
cache that keeps the coefficients of the last used window.

All windows are symmetric: with N samples and E = N - 1 the first and last
positions are 0 and E. Formulas follow the usual textbook definitions
(Hamming, Hann, Blackman, Nuttall, ...). A record of a single sample gets a
window of [1.0] for every kind.
"""

import logging
from typing import Callable, Dict, Optional, Any

import numpy as np
from numpy.typing import NDArray

from scopepost.enums import WindowFunction

logger = logging.getLogger(__name__)

GAUSS_SIGMA = 0.4
BLACKMAN_ALPHA = 0.16

_WindowFormula = Callable[[NDArray[np.float64], int], NDArray[np.float64]]


def _cosine_sum(p: NDArray[np.float64], end: int, *coefficients: float) -> NDArray[np.float64]:
    """Generalized cosine window: a0 - a1*cos(2x) + a2*cos(4x) - a3*cos(6x) + ..."""
    result = np.zeros_like(p)
    for k, a in enumerate(coefficients):
        sign = -1.0 if k % 2 else 1.0
        result += sign * a * np.cos(2.0 * np.pi * k * p / end)
    return result


def _rectangular(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    return np.ones_like(p)


def _hamming(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    return 0.54 - 0.46 * np.cos(2.0 * np.pi * p / (n - 1))


def _hann(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    return 0.5 * (1.0 - np.cos(2.0 * np.pi * p / (n - 1)))


def _cosine(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    return np.sin(np.pi * p / (n - 1))


def _lanczos(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    # np.sinc(x) = sin(pi*x) / (pi*x) and is 1 at x == 0
    return np.sinc(2.0 * p / (n - 1) - 1.0)


def _bartlett(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    end = n - 1
    return 2.0 / end * (end / 2.0 - np.abs(p - end / 2.0))


def _triangular(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    end = n - 1
    return 2.0 / n * (n / 2.0 - np.abs(p - end / 2.0))


def _gauss(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    end = n - 1
    return np.exp(-0.5 * ((p - end / 2.0) / (GAUSS_SIGMA * end / 2.0)) ** 2)


def _bartlett_hann(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    end = n - 1
    return 0.62 - 0.48 * np.abs(p / end - 0.5) - 0.38 * np.cos(2.0 * np.pi * p / end)


def _blackman(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    return _cosine_sum(p, n - 1, (1.0 - BLACKMAN_ALPHA) / 2.0, 0.5, BLACKMAN_ALPHA / 2.0)


def _nuttall(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    return _cosine_sum(p, n - 1, 0.355768, 0.487396, 0.144232, 0.012604)


def _blackman_harris(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    return _cosine_sum(p, n - 1, 0.35875, 0.48829, 0.14128, 0.01168)


def _blackman_nuttall(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    return _cosine_sum(p, n - 1, 0.3635819, 0.4891775, 0.1365995, 0.0106411)


def _flat_top(p: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    return _cosine_sum(p, n - 1, 1.0, 1.93, 1.29, 0.388, 0.028)


WINDOW_FORMULAS: Dict[WindowFunction, _WindowFormula] = {
    WindowFunction.RECTANGULAR: _rectangular,
    WindowFunction.HAMMING: _hamming,
    WindowFunction.HANN: _hann,
    WindowFunction.COSINE: _cosine,
    WindowFunction.LANCZOS: _lanczos,
    WindowFunction.BARTLETT: _bartlett,
    WindowFunction.TRIANGULAR: _triangular,
    WindowFunction.GAUSS: _gauss,
    WindowFunction.BARTLETTHANN: _bartlett_hann,
    WindowFunction.BLACKMAN: _blackman,
    WindowFunction.NUTTALL: _nuttall,
    WindowFunction.BLACKMANHARRIS: _blackman_harris,
    WindowFunction.BLACKMANNUTTALL: _blackman_nuttall,
    WindowFunction.FLATTOP: _flat_top,
}


def window_coefficients(kind: Any, length: int) -> NDArray[np.float64]:
    """
    Computes the coefficients of a window function.

    Args:
        kind: A `WindowFunction` (or its name). Anything that is not a known
              window selects the rectangular window.
        length: Number of samples in the record (>= 0).

    Returns:
        Float64 array of `length` coefficients.

    Raises:
        ValueError: If length is negative.
    """
    if length < 0:
        raise ValueError(f"Window length must not be negative, got {length}.")
    if isinstance(kind, str) and not isinstance(kind, WindowFunction):
        kind = WindowFunction.from_name(kind)
    formula = WINDOW_FORMULAS.get(kind) if isinstance(kind, WindowFunction) else None
    if formula is None:
        logger.warning(f"Unrecognised window function {kind!r}; using rectangular window.")
        formula = _rectangular

    if length == 0:
        return np.zeros(0, dtype=np.float64)
    if length == 1:
        return np.ones(1, dtype=np.float64)
    positions = np.arange(length, dtype=np.float64)
    return formula(positions, length).astype(np.float64, copy=False)


class WindowCache:
    """
    Holds the coefficients of the last requested window.

    The cache key is (kind, length); a request with a different key
    recomputes the coefficients, a matching request returns the cached array
    unchanged. Returned arrays are read-only.
    """

    def __init__(self) -> None:
        self.kind: Optional[Any] = None
        self.length: Optional[int] = None
        self._coefficients: Optional[NDArray[np.float64]] = None
        self.recomputations = 0

    def get(self, kind: Any, length: int) -> NDArray[np.float64]:
        if self._coefficients is None or self.kind != kind or self.length != length:
            logger.debug(f"Computing {kind} window for {length} samples.")
            coefficients = window_coefficients(kind, length)
            coefficients.setflags(write=False)
            self._coefficients = coefficients
            self.kind = kind
            self.length = length
            self.recomputations += 1
        return self._coefficients

    def invalidate(self) -> None:
        self.kind = None
        self.length = None
        self._coefficients = None
