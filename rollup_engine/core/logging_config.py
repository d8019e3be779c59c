"""
Process-wide logging setup for rollup entry points.

Modules never configure logging themselves; they create a module logger with
logging.getLogger(__name__). Whatever process hosts the rollup (a scheduler
worker, an operator shell) calls configure_logging() once at startup.
"""

import logging
from typing import Optional

from rollup_engine.core.config import get_settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger with the engine's standard format.

    Args:
        level: Log level name (e.g. "DEBUG"). Defaults to Settings.log_level.
    """
    if level is None:
        level = get_settings().log_level

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
