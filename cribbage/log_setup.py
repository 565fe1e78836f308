"""
cribbage/log_setup.py

Logging configuration for the command-line entry points: a timestamped run
directory with a size-rotated log file, plus a rich console handler.
"""

import datetime
import logging
import logging.handlers
import os
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import Config


def setup_logging(
    config: Config, verbose: bool = False, console: Optional[Console] = None
) -> Optional[str]:
    """
    Configures the root logger from config.logging.

    Returns the run log directory, or None when file logging is off or could
    not be set up (console logging still works in that case).
    """
    log_cfg = config.logging
    file_level = getattr(logging, str(log_cfg.log_level_file).upper(), logging.DEBUG)
    console_level = (
        logging.DEBUG
        if verbose
        else getattr(logging, str(log_cfg.log_level_console).upper(), logging.WARNING)
    )

    handlers: List[logging.Handler] = []
    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_level=True,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
        level=console_level,
    )
    handlers.append(console_handler)

    run_log_dir: Optional[str] = None
    log_file: Optional[str] = None
    if log_cfg.log_to_file:
        run_timestamp = datetime.datetime.now().strftime("%Y_%m_%d_%H%M%S")
        candidate_dir = os.path.join(
            log_cfg.log_dir, f"{log_cfg.log_file_prefix}_run_{run_timestamp}"
        )
        try:
            os.makedirs(candidate_dir, exist_ok=True)
            log_file = os.path.join(candidate_dir, f"{log_cfg.log_file_prefix}.log")
            fh = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=log_cfg.log_max_bytes,
                backupCount=log_cfg.log_backup_count,
                encoding="utf-8",
            )
            fh.setLevel(file_level)
            fh.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(levelname)-8s - [%(threadName)-12s] - %(name)-25s - %(message)s"
                )
            )
            handlers.append(fh)
            run_log_dir = candidate_dir
        except OSError as e:
            print(f"ERROR: Could not set up file logging in '{candidate_dir}': {e}")
            log_file = None

    # Configure Root Logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root_logger.addHandler(handler)

    initial_logger = logging.getLogger(__name__)
    initial_logger.info("-" * 50)
    initial_logger.info("Logging initialized. Config: %s", config._source_path or "defaults")
    initial_logger.info(
        "Log File: %s (Level: %s)",
        log_file or "disabled",
        logging.getLevelName(file_level),
    )
    initial_logger.info("Console Level: %s", logging.getLevelName(console_level))
    initial_logger.info("Command: %s", " ".join(sys.argv))
    initial_logger.info("-" * 50)
    return run_log_dir
