"""Numeric backend selection.

The device is picked once at startup and made the JAX default::

    device = select_device("gpu")   # falls back to CPU with a warning
"""

from __future__ import annotations

import logging

import jax

logger = logging.getLogger(__name__)


def select_device(name: str = "cpu") -> jax.Device:
    """Return the first device of platform *name* and make it the default.

    If no such device is available, logs a warning and uses the CPU.
    """
    try:
        device = jax.devices(name)[0]
    except RuntimeError:
        logger.warning("No %s device available, falling back to CPU", name)
        device = jax.devices("cpu")[0]
    jax.config.update("jax_default_device", device)
    logger.info("Using device %s", device)
    return device
