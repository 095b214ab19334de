"""
Logging configuration using Loguru.

Call ``setup_logging`` once at startup; modules simply do
``from loguru import logger``.
"""
from __future__ import annotations

import sys

from loguru import logger

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

_handler_id = None


# PUBLIC_INTERFACE
def setup_logging(level: str = "INFO") -> None:
    """
    Replace loguru's default sink with a single stderr sink at ``level``.

    Calling it again swaps the sink for one at the new level instead of
    stacking handlers.
    """
    global _handler_id

    if _handler_id is None:
        # Drop loguru's pre-installed default handler
        logger.remove()
    else:
        logger.remove(_handler_id)

    _handler_id = logger.add(sys.stderr, colorize=True, format=_FORMAT, level=level)
