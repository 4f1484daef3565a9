"""Logging utilities for kinfst.

This module provides loguru-based logging configuration and the plain-text
run log written next to each command's results.
"""

import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

import kinfst


def setup_logging(
    verbose: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure loguru for kinfst.

    Sets up console logging with INFO level (or DEBUG if verbose), and
    optional file logging with JSON serialization.

    Args:
        verbose: If True, set console logging to DEBUG level.
        log_file: Optional path to log file. If provided, DEBUG-level
            logs are written with JSON serialization.
    """
    logger.remove()

    # stdout so output shows up in notebook cells
    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stdout,
        level=level,
        format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
        colorize=True,
    )

    if log_file:
        logger.add(
            log_file,
            serialize=True,
            level="DEBUG",
        )


def write_run_log(
    output_config: "kinfst.core.config.OutputConfig",
    params: dict,
    timing: dict,
    command_line: str,
) -> Path:
    """Write the run log for one command.

    Sections are introduced by ``##`` lines so the log can be concatenated
    with other tools' logs and still be grepped.

    Args:
        output_config: Output configuration specifying directory and prefix.
        params: Parameters and summary values to record.
        timing: Named durations in seconds.
        command_line: The command line used to invoke the program.

    Returns:
        Path to the written log file.

    Example output format:
        ##
        ## kinfst Version = 0.1.0
        ## Date = 2026-01-31T10:30:00
        ##
        ## Command Line Input = kinfst kinship -bfile data
        ##
        ## Summary Statistics:
        ## n_individuals = 2922
        ## n_loci = 588652
        ##
        ## Computation Time:
        ## total time = 12.30 seconds
        ##
    """
    output_config.ensure_outdir()
    log_path = output_config.log_path

    with open(log_path, "w") as f:
        f.write("##\n")
        f.write(f"## kinfst Version = {kinfst.__version__}\n")
        f.write(f"## Date = {datetime.now().isoformat()}\n")
        f.write("##\n")

        f.write(f"## Command Line Input = {command_line}\n")
        f.write("##\n")

        f.write("## Summary Statistics:\n")
        for key, value in params.items():
            f.write(f"## {key} = {value}\n")
        f.write("##\n")

        f.write("## Computation Time:\n")
        for key, value in timing.items():
            if isinstance(value, float):
                f.write(f"## {key} time = {value:.2f} seconds\n")
            else:
                f.write(f"## {key} time = {value} seconds\n")
        f.write("##\n")

    return log_path
