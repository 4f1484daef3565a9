"""Utility modules for kinfst.

This package contains supporting utilities:
- logging: Loguru configuration and run-log output
"""

from kinfst.utils.logging import setup_logging, write_run_log

__all__ = ["setup_logging", "write_run_log"]
