# scopepost/core/data_handler.py

"""
Loads recorded acquisitions from files and tabulates analysis results.

Supported inputs:
- CSV (pandas): one numeric column per channel, optional 'time' column.
- NPZ (numpy): arrays named 'ch0', 'ch1', ... plus an optional scalar 'interval'.
- Audio (soundfile): every audio channel becomes a scope channel, the sample
  interval is 1 / samplerate.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
import pandas as pd
import soundfile as sf
from numpy.typing import NDArray

from .result import PostProcessingResult

logger = logging.getLogger(__name__)

TABULAR_READ_FORMATS = {".csv"}
ARRAY_READ_FORMATS = {".npz"}
AUDIO_READ_FORMATS = {".wav", ".flac", ".ogg", ".aiff"}
SUPPORTED_READ_FORMATS = TABULAR_READ_FORMATS | ARRAY_READ_FORMATS | AUDIO_READ_FORMATS

TIME_COLUMN = "time"

Acquisition = Tuple[List[NDArray[np.float64]], Optional[float]]


def _read_csv(fpath: Path) -> Acquisition:
    df = pd.read_csv(fpath)
    interval: Optional[float] = None
    if TIME_COLUMN in df.columns:
        times = df[TIME_COLUMN].to_numpy(dtype=np.float64)
        if len(times) > 1:
            interval = float(np.mean(np.diff(times)))
        df = df.drop(columns=[TIME_COLUMN])
    numeric = df.select_dtypes(include=[np.number])
    dropped = set(df.columns) - set(numeric.columns)
    if dropped:
        logger.warning(f"Ignoring non-numeric columns in {fpath.name}: {sorted(dropped)}")
    channels = [numeric[col].to_numpy(dtype=np.float64) for col in numeric.columns]
    return channels, interval


def _read_npz(fpath: Path) -> Acquisition:
    with np.load(fpath) as npz:
        names = sorted((k for k in npz.files if k.startswith("ch")), key=lambda k: (len(k), k))
        channels = [np.asarray(npz[k], dtype=np.float64).ravel() for k in names]
        interval = float(npz["interval"]) if "interval" in npz.files else None
    return channels, interval


def _read_audio(fpath: Path) -> Acquisition:
    data, samplerate = sf.read(str(fpath), dtype="float64", always_2d=True)
    # soundfile returns (frames, channels)
    channels = [np.ascontiguousarray(data[:, i]) for i in range(data.shape[1])]
    return channels, 1.0 / samplerate


def read_acquisition(
    file_path: Union[str, Path],
    interval: Optional[float] = None
) -> Tuple[List[NDArray[np.float64]], float]:
    """
    Loads the per-channel voltage samples of a recorded acquisition.

    Args:
        file_path: Path to a CSV, NPZ or audio file.
        interval: Sample interval in seconds. Overrides any interval stored in
                  or derived from the file.

    Returns:
        A tuple containing:
        - channels (List[NDArray[np.float64]]): Samples per channel, in file order.
        - interval (float): Seconds between consecutive samples.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the format is unsupported, the file holds no channels or
                    no positive sample interval is known.
    """
    fpath = Path(file_path)
    if not fpath.exists():
        raise FileNotFoundError(f"Input file not found: {fpath}")
    if not fpath.is_file():
        raise ValueError(f"Input path is not a file: {fpath}")

    suffix = fpath.suffix.lower()
    logger.info(f"Reading acquisition from: {fpath}")
    if suffix in TABULAR_READ_FORMATS:
        channels, file_interval = _read_csv(fpath)
    elif suffix in ARRAY_READ_FORMATS:
        channels, file_interval = _read_npz(fpath)
    elif suffix in AUDIO_READ_FORMATS:
        channels, file_interval = _read_audio(fpath)
    else:
        raise ValueError(f"Unsupported file format: '{suffix}'. Supported: {sorted(SUPPORTED_READ_FORMATS)}")

    if not channels:
        raise ValueError(f"No channel data found in {fpath.name}.")
    if interval is None:
        interval = file_interval
    if interval is None or not interval > 0:
        raise ValueError(f"No positive sample interval known for {fpath.name}; pass one explicitly.")
    logger.debug(f"Loaded {len(channels)} channels of {len(channels[0])} samples, interval={interval:g}s")
    return channels, float(interval)


def results_to_frame(result: PostProcessingResult) -> pd.DataFrame:
    """Tabulates the scalar measurements of every channel."""
    rows = []
    for channel, data in enumerate(result):
        rows.append({
            "channel": channel,
            "samples": len(data.voltage),
            "frequency": data.frequency,
            "dc": data.dc,
            "ac": data.ac,
            "rms": data.rms,
            "valid": data.valid,
        })
    return pd.DataFrame(rows, columns=["channel", "samples", "frequency", "dc", "ac", "rms", "valid"])
