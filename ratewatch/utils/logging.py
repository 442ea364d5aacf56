"""
Logging setup for entry points.

Replaces loguru's default sink with one honouring settings.log_level.
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru sinks for a worker, scheduler or script."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
            "<level>{message}</level> {extra}"
        ),
    )
