# scopepost/cli/analyze_cmd.py

"""
CLI commands that run the post-processing pipeline on recorded acquisitions.
"""

import logging
from pathlib import Path
from typing import Optional

import click
from tabulate import tabulate

from scopepost.config.models import ScopeConfig, ScopeSettings
from scopepost.core.data_handler import read_acquisition, results_to_frame
from scopepost.core.pipeline import PostProcessor
from scopepost.enums import MathMode, WindowFunction

logger = logging.getLogger(__name__)

WINDOW_CHOICES = [w.value for w in WindowFunction]
MATH_MODE_CHOICES = [m.value for m in MathMode]


def _build_settings(
    config: ScopeConfig,
    channel_count: int,
    window: Optional[str],
    math_mode: Optional[str],
    spectrum: bool
) -> tuple:
    """Derives scope and post-processing settings for a file with `channel_count` channels."""
    base = config.scope
    physical = max(channel_count, base.physical_channels)
    # Keep the math channel settings in place when the physical count grows.
    voltage = list(base.voltage[:base.physical_channels])
    voltage += [voltage[-1].model_copy() for _ in range(physical - base.physical_channels)]
    voltage += list(base.voltage[base.physical_channels:])
    spectrum_flags = list(base.spectrum[:base.physical_channels])
    spectrum_flags += [spectrum_flags[-1].model_copy() for _ in range(physical - base.physical_channels)]
    spectrum_flags += list(base.spectrum[base.physical_channels:])

    scope = ScopeSettings(
        physical_channels=physical,
        math_channels=base.math_channels,
        voltage=[v.model_copy() for v in voltage],
        spectrum=[s.model_copy(update={"used": True}) if spectrum else s.model_copy() for s in spectrum_flags],
    )
    if math_mode is not None and scope.math_channels > 0:
        scope.voltage[physical].math_mode = MathMode.from_name(math_mode)

    postprocessing = config.postprocessing.model_copy()
    if window is not None:
        postprocessing.spectrum_window = WindowFunction.from_name(window)
    return scope, postprocessing


@click.command("analyze")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("--interval", type=float, default=None,
              help="Sample interval in seconds (overrides the file).")
@click.option("--window", type=click.Choice(WINDOW_CHOICES, case_sensitive=False), default=None,
              help="Window function applied before the FFT (default from config).")
@click.option("--math-mode", type=click.Choice(MATH_MODE_CHOICES, case_sensitive=False), default=None,
              help="Arithmetic used for math channels (default from config).")
@click.option("--spectrum/--no-spectrum", default=False, show_default=True,
              help="Enable the spectrum view on every channel (dB conversion and peak search).")
@click.option("--format", "output_format", type=click.Choice(["table", "csv", "json"]), default="table",
              show_default=True, help="Output format of the per-channel measurements.")
@click.pass_context
def analyze_cmd(
    ctx,
    input_file: str,
    interval: Optional[float],
    window: Optional[str],
    math_mode: Optional[str],
    spectrum: bool,
    output_format: str
):
    """Run one post-processing cycle on a recorded acquisition."""
    input_path = Path(input_file)
    config: ScopeConfig = ctx.obj['config']

    try:
        channels, sample_interval = read_acquisition(input_path, interval=interval)
        scope, postprocessing = _build_settings(config, len(channels), window, math_mode, spectrum)
        logger.info(
            f"Analyzing {len(channels)} channels with {postprocessing.spectrum_window.value} window, "
            f"{scope.math_channels} math channel(s) ({scope.math_mode.value})."
        )
        processor = PostProcessor(scope, postprocessing)
        result = processor.run(channels, [sample_interval] * len(channels))
    except FileNotFoundError:
        raise click.UsageError(f"Input file not found: {input_path}")
    except ValueError as e:
        raise click.UsageError(f"Error during analysis: {e}")
    except Exception as e:
        logger.error(f"An unexpected error occurred during analysis: {e}", exc_info=True)
        raise click.Abort()

    frame = results_to_frame(result)
    if output_format == "json":
        click.echo(frame.to_json(orient="records", indent=2))
    elif output_format == "csv":
        click.echo(frame.to_csv(index=False), nl=False)
    else:
        click.echo(tabulate(frame.values.tolist(), headers=list(frame.columns), floatfmt=".6g"))


@click.command("windows")
def windows_cmd():
    """List the available window functions."""
    for window in WindowFunction:
        click.echo(window.value)
