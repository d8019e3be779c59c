"""
Core infrastructure package for the analytics rollup engine.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL database connectivity via asyncpg
- The engine's exception hierarchy
- Logging setup for hosting processes

Re-exports allow simplified imports like:

    from rollup_engine.core import get_settings, get_db_pool, SourceReadError
"""

from rollup_engine.core.config import Settings, get_settings

from rollup_engine.core.database import init_db, close_db, get_db_pool

from rollup_engine.core.exceptions import (
    RollupError,
    SourceReadError,
    SummaryWriteError,
    SummaryKeyConflictError,
    RollupRunError,
)

from rollup_engine.core.logging_config import configure_logging


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    # Errors (from exceptions.py)
    'RollupError',
    'SourceReadError',
    'SummaryWriteError',
    'SummaryKeyConflictError',
    'RollupRunError',
    # Logging (from logging_config.py)
    'configure_logging',
]
