# scopepost/utils/logging_config.py

"""
Configures the logging system for scopepost based on loaded settings.
Uses Rich for enhanced console logging.
"""

import logging
from datetime import datetime
from typing import Optional
from pathlib import Path

from rich.logging import RichHandler

from scopepost.config import ScopeConfig
from scopepost.version import __version__

# --- Constants ---
# Map verbosity levels (from CLI flags) to logging levels
VERBOSITY_MAP = {
    0: logging.WARNING,  # Default (normal)
    1: logging.INFO,     # -v (verbose)
    2: logging.DEBUG,    # -vv (debug)
    -1: logging.CRITICAL + 10 # -q (quiet/silent)
}

# --- Setup Function ---

def setup_logging(config: ScopeConfig, verbosity: int = 0) -> Optional[Path]:
    """
    Configures the package logger based on the provided configuration and verbosity level.

    Args:
        config: The loaded ScopeConfig object.
        verbosity: An integer representing the desired console verbosity level
                   (e.g., 0 for normal, 1 for verbose, 2 for debug, -1 for quiet).

    Returns:
        Path of the log file if file logging is active, otherwise None.
    """
    log_cfg = config.logging
    console_level = VERBOSITY_MAP.get(verbosity, logging.DEBUG if verbosity > 2 else logging.INFO)

    package_logger = logging.getLogger("scopepost")
    package_logger.setLevel(logging.DEBUG) # Handlers filter on their own levels
    package_logger.handlers.clear()

    # --- Console Handler (Rich) ---
    if console_level <= logging.CRITICAL:
        console_handler = RichHandler(
            level=console_level,
            show_time=False,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(console_handler)
    else:
        package_logger.addHandler(logging.NullHandler())

    # --- File Handler ---
    log_filepath: Optional[Path] = None
    if log_cfg.log_file_enabled:
        try:
            log_dir = config.paths.log_directory
            log_dir.mkdir(parents=True, exist_ok=True)
            log_filename = log_cfg.log_filename_template.format(timestamp=datetime.now())
            log_filepath = log_dir / log_filename

            file_handler = logging.FileHandler(log_filepath, encoding='utf-8')
            file_handler.setLevel(log_cfg.log_level_file)
            file_handler.setFormatter(logging.Formatter(log_cfg.log_format))
            package_logger.addHandler(file_handler)

            file_logger = logging.getLogger("scopepost.init")
            file_logger.info(f"--- scopepost v{__version__} Log Start ---")
            file_logger.debug(f"Full configuration loaded: {config.model_dump()}")
        except OSError as e:
            logging.getLogger("scopepost.error").error(f"Failed to configure file logging: {e}", exc_info=True)
            log_filepath = None

    init_logger = logging.getLogger("scopepost.init")
    init_logger.info(f"scopepost v{__version__} initialized.")
    if log_filepath is not None:
        init_logger.info(f"Logging to file: {log_filepath}")
    return log_filepath
