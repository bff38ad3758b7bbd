# scopepost/cli/main.py

"""
Main entry point for the scopepost CLI application.
Uses Click for command-line interface handling.
"""

import logging

import click

from scopepost.version import __version__
from scopepost.config import ScopeConfig
from .base_cmd import ConfigGroup, verbose_option, quiet_option
from .analyze_cmd import analyze_cmd, windows_cmd

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


@click.group(context_settings=CONTEXT_SETTINGS, cls=ConfigGroup)
@click.version_option(__version__, '-V', '--version', package_name='scopepost', prog_name='scopepost')
@verbose_option
@quiet_option
@click.pass_context
def main_cli(ctx, verbose: int, quiet: bool):
    """
    scopepost: post-processing of oscilloscope acquisitions.

    Configuration is loaded from:
    Defaults -> ./scopepost.toml -> ~/.config/scopepost/scopepost.toml -> Env Vars

    Use -v for verbose output, -vv for debug output, -q for quiet mode.
    """
    config: ScopeConfig = ctx.obj['config']
    logger.debug(
        f"scopepost CLI group invoked: {config.scope.physical_channels} physical, "
        f"{config.scope.math_channels} math channel(s)."
    )


main_cli.add_command(analyze_cmd)
main_cli.add_command(windows_cmd)

cli = main_cli

if __name__ == "__main__":
    cli()
