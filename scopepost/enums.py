# scopepost/enums.py

"""
Enumerations shared by the configuration models and the processing core.
"""

import logging
from enum import Enum
from typing import Union

logger = logging.getLogger(__name__)


class MathMode(str, Enum):
    """Arithmetic used to derive a math channel from physical channels 0 and 1."""
    ADD_CH1_CH2 = "add"
    SUB_CH2_FROM_CH1 = "sub_ch2_from_ch1"
    SUB_CH1_FROM_CH2 = "sub_ch1_from_ch2"

    @classmethod
    def from_name(cls, name: Union[str, "MathMode"]) -> "MathMode":
        """
        Parses a math mode from its value or member name (case-insensitive).

        Raises:
            ValueError: If the name matches no mode.
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace("-", "_")
        for mode in cls:
            if key in (mode.value, mode.name.lower()):
                return mode
        raise ValueError(f"Unknown math mode '{name}'. Choose one of {[m.value for m in cls]}.")


class WindowFunction(str, Enum):
    """Window applied to the AC component before the spectral transform."""
    RECTANGULAR = "rectangular"
    HAMMING = "hamming"
    HANN = "hann"
    COSINE = "cosine"
    LANCZOS = "lanczos"
    BARTLETT = "bartlett"
    TRIANGULAR = "triangular"
    GAUSS = "gauss"
    BARTLETTHANN = "bartlett_hann"
    BLACKMAN = "blackman"
    NUTTALL = "nuttall"
    BLACKMANHARRIS = "blackman_harris"
    BLACKMANNUTTALL = "blackman_nuttall"
    FLATTOP = "flat_top"

    @classmethod
    def from_name(cls, name: Union[str, "WindowFunction"]) -> "WindowFunction":
        """
        Parses a window name such as 'hann', 'Blackman-Harris' or 'flattop'.

        Unknown names fall back to RECTANGULAR, mirroring how the analyzer
        treats an unrecognised selector.
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        for window in cls:
            if key in (window.value.replace("_", ""), window.name.lower()):
                return window
        logger.warning(f"Unknown window function '{name}'. Falling back to rectangular window.")
        return cls.RECTANGULAR
