"""JAX configuration utilities for kinfst.

Kinship accumulation runs through JIT-compiled JAX kernels. Sums of
millions of per-locus products need 64-bit precision, and default JAX is
32-bit, so configure_jax() (or ensure_jax_configured()) must run before any
accumulation.
"""

from __future__ import annotations

from typing import Any

import jax
from loguru import logger

_configured = False


def configure_jax(enable_x64: bool = True) -> None:
    """Configure JAX for kinship accumulation.

    Args:
        enable_x64: Enable 64-bit floating point precision. Defaults to True.
    """
    global _configured

    if enable_x64:
        jax.config.update("jax_enable_x64", True)
        logger.debug("JAX 64-bit precision enabled")

    _configured = enable_x64
    info = get_jax_info()
    logger.debug(
        f"JAX configured: version={info['version']}, "
        f"backend={info['backend']}, devices={len(info['devices'])}"
    )


def ensure_jax_configured() -> None:
    """Enable x64 once per process if nobody has configured JAX yet."""
    if not _configured or not jax.config.jax_enable_x64:
        configure_jax(enable_x64=True)


def get_jax_info() -> dict[str, Any]:
    """Describe the active JAX install, for --version and run logs.

    Returns:
        Dictionary with version, backend, devices and x64_enabled keys.
    """
    return {
        "version": jax.__version__,
        "backend": jax.default_backend(),
        "devices": [str(d) for d in jax.devices()],
        "x64_enabled": jax.config.jax_enable_x64,
    }
