# scopepost/core/__init__.py

"""
Core Processing Package for scopepost.

Contains modules for:
- The per-acquisition result container and its publisher
- Math channel synthesis
- Window functions and the real spectral transform
- Spectrum / statistics / frequency analysis
- The post-processing driver
- Loading recorded acquisitions
"""

from . import result
from . import math_channel
from . import windows
from . import transforms
from . import spectrum
from . import pipeline
from . import data_handler

from .result import SampleValues, DataChannel, PostProcessingResult, ResultPublisher
from .math_channel import MathChannelGenerator
from .spectrum import SpectrumGenerator
from .pipeline import PostProcessor

__all__ = [
    "result",
    "math_channel",
    "windows",
    "transforms",
    "spectrum",
    "pipeline",
    "data_handler",
    "SampleValues",
    "DataChannel",
    "PostProcessingResult",
    "ResultPublisher",
    "MathChannelGenerator",
    "SpectrumGenerator",
    "PostProcessor",
]
