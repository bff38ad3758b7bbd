# scopepost/cli/base_cmd.py

"""
Base setup for CLI commands: configuration loading and logging initialization.
"""

import logging
import sys

import click

from scopepost.config import load_configuration, ScopeConfig
from scopepost.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


class ConfigGroup(click.Group):
    """
    A custom Click Group that loads configuration and sets up logging before
    invoking the group or its subcommands. The config is passed on via
    ctx.obj['config']. Errors during setup exit with code 1; errors raised by
    the command itself propagate.
    """
    def invoke(self, ctx: click.Context):
        if ctx.obj is None:
            ctx.obj = {}

        setup_success = False
        try:
            if 'config' not in ctx.obj:
                config = load_configuration()
                ctx.obj['config'] = config

                verbosity = 0
                if ctx.params.get('quiet', False):
                    verbosity = -1
                elif ctx.params.get('verbose', 0) > 0:
                    verbosity = ctx.params['verbose']
                setup_logging(config, verbosity)
                logger.debug("Logging setup complete in ConfigGroup.")
            elif not isinstance(ctx.obj['config'], ScopeConfig):
                raise TypeError(f"ctx.obj['config'] must be a ScopeConfig, got {type(ctx.obj['config']).__name__}")
            else:
                logger.debug("Configuration already loaded in context.")

            setup_success = True
            return super().invoke(ctx)

        except click.exceptions.Exit:
            raise
        except Exception as e:
            if setup_success:
                raise
            logging.getLogger("scopepost.error").critical(f"Critical error during CLI setup: {e!r}", exc_info=True)
            print(f"CRITICAL SETUP ERROR: {e!r}", file=sys.stderr)
            ctx.exit(1)


# --- Common CLI Options ---
verbose_option = click.option(
    '-v', '--verbose',
    count=True,
    help="Increase verbosity level (-v for INFO, -vv for DEBUG)."
)
quiet_option = click.option(
    '-q', '--quiet',
    is_flag=True,
    default=False,
    help="Suppress all console output except results."
)
