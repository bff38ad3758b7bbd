# scopepost/core/transforms.py

"""
Real-valued spectral transforms in the packed half-complex layout.

A record of n real samples transforms into n real numbers:

    [r0, r1, ..., r(n/2), i((n+1)/2 - 1), ..., i2, i1]

i.e. the real parts of bins 0..n/2 ascending, followed by the imaginary parts
of bins (n+1)/2-1 .. 1 descending. Bin 0 (and bin n/2 for even n) is purely
real, so nothing is lost. Both directions are unnormalised:
inverse(forward(x)) == n * x.

The spectrum analyzer only talks to the `RealTransform` protocol, so any
backend providing this layout can be substituted. `ScipyRealTransform` is
the default, built on scipy.fft.
"""

import logging
from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray
from scipy.fft import rfft, irfft

logger = logging.getLogger(__name__)


@runtime_checkable
class RealTransform(Protocol):
    """Forward and inverse real transform on fixed-length packed buffers."""

    def forward(self, values: NDArray[np.float64]) -> NDArray[np.float64]:
        """Real samples -> packed half-complex spectrum of the same length."""
        ...

    def inverse(self, packed: NDArray[np.float64]) -> NDArray[np.float64]:
        """Packed half-complex spectrum -> real samples of the same length."""
        ...


def to_halfcomplex(half_spectrum: NDArray[np.complex128], n: int) -> NDArray[np.float64]:
    """
    Packs the output of `rfft` (bins 0..n//2) into the half-complex layout.

    Args:
        half_spectrum: Complex bins 0..n//2 as returned by scipy.fft.rfft.
        n: Length of the original real record.

    Returns:
        Float64 array of length n.
    """
    if len(half_spectrum) != n // 2 + 1:
        raise ValueError(f"Expected {n // 2 + 1} bins for n={n}, got {len(half_spectrum)}.")
    packed = np.empty(n, dtype=np.float64)
    packed[:n // 2 + 1] = half_spectrum.real
    imag_count = (n - 1) // 2  # bins with a stored imaginary part
    if imag_count > 0:
        packed[n - imag_count:] = half_spectrum.imag[imag_count:0:-1]
    return packed


def from_halfcomplex(packed: NDArray[np.float64]) -> NDArray[np.complex128]:
    """
    Unpacks a half-complex buffer into complex bins 0..n//2 (the `rfft` layout).
    """
    n = len(packed)
    half_spectrum = np.zeros(n // 2 + 1, dtype=np.complex128)
    half_spectrum.real = packed[:n // 2 + 1]
    imag_count = (n - 1) // 2
    if imag_count > 0:
        half_spectrum.imag[1:imag_count + 1] = packed[n - 1:n - imag_count - 1:-1]
    return half_spectrum


class ScipyRealTransform:
    """`RealTransform` backed by scipy.fft.rfft / irfft."""

    def forward(self, values: NDArray[np.float64]) -> NDArray[np.float64]:
        values = np.asarray(values, dtype=np.float64)
        if values.ndim != 1:
            raise ValueError("Input data must be a 1D array.")
        n = values.shape[0]
        if n == 0:
            return np.zeros(0, dtype=np.float64)
        return to_halfcomplex(rfft(values), n)

    def inverse(self, packed: NDArray[np.float64]) -> NDArray[np.float64]:
        packed = np.asarray(packed, dtype=np.float64)
        if packed.ndim != 1:
            raise ValueError("Input spectrum must be a 1D array.")
        n = packed.shape[0]
        if n == 0:
            return np.zeros(0, dtype=np.float64)
        # irfft scales by 1/n; the packed convention is unnormalised
        return irfft(from_halfcomplex(packed), n=n, norm="forward").astype(np.float64, copy=False)


__all__ = ["RealTransform", "ScipyRealTransform", "to_halfcomplex", "from_halfcomplex"]
