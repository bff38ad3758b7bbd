# scopepost/__init__.py

"""
scopepost: post-processing core for digital storage oscilloscope acquisitions.

Derives math channels from the physical inputs and computes per-channel
spectrum, DC/AC/RMS statistics and a frequency estimate.
"""

from .version import __version__

__all__ = ["__version__"]
