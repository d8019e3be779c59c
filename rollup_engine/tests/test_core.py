"""
Tests for the core infrastructure: settings, database pool lifecycle, the
exception hierarchy and logging setup.
"""

import logging
from datetime import date, datetime
from unittest.mock import AsyncMock, Mock, patch

import pytest

from rollup_engine.core import database
from rollup_engine.core.config import Settings, get_settings
from rollup_engine.core.exceptions import (
    RollupError,
    RollupRunError,
    SourceReadError,
    SummaryKeyConflictError,
    SummaryWriteError,
)
from rollup_engine.core.logging_config import LOG_FORMAT, configure_logging
from rollup_engine.models import RollupReport


class TestSettings:

    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.setenv('DATABASE_URL', 'postgresql://u:p@localhost:5432/qa')

        settings = Settings(_env_file=None)

        assert settings.rollup_concurrency == 4
        assert settings.rollup_continue_on_error is False
        assert settings.recent_days_default == 7
        assert settings.bug_closed_statuses == ['Closed', 'Done', 'Resolved']
        assert settings.db_pool_max_size == 10

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv('DATABASE_URL', 'postgresql://u:p@localhost:5432/qa')
        monkeypatch.setenv('ROLLUP_CONCURRENCY', '1')
        monkeypatch.setenv('ROLLUP_CONTINUE_ON_ERROR', 'true')
        monkeypatch.setenv('BUG_CLOSED_STATUSES', '["Closed", "Won\'t Fix"]')

        settings = Settings(_env_file=None)

        assert settings.rollup_concurrency == 1
        assert settings.rollup_continue_on_error is True
        assert settings.bug_closed_statuses == ['Closed', "Won't Fix"]

    def test_get_settings_is_cached(self, monkeypatch) -> None:
        monkeypatch.setenv('DATABASE_URL', 'postgresql://u:p@localhost:5432/qa')
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


@pytest.mark.asyncio
class TestDatabasePool:

    async def test_init_is_idempotent_and_close_resets(self, mock_settings: Mock) -> None:
        pool = AsyncMock()
        create_pool = AsyncMock(return_value=pool)

        with patch.object(database, '_pool', None), \
                patch.object(database, 'get_settings', return_value=mock_settings), \
                patch('asyncpg.create_pool', new=create_pool):
            first = await database.get_db_pool()
            second = await database.init_db()
            await database.close_db()

            assert first is pool
            assert second is pool
            create_pool.assert_awaited_once()
            assert create_pool.call_args.kwargs['max_size'] == 10
            pool.close.assert_awaited_once()
            assert database._pool is None


class TestExceptions:

    def test_hierarchy(self) -> None:
        assert issubclass(SourceReadError, RollupError)
        assert issubclass(SummaryKeyConflictError, SummaryWriteError)
        assert issubclass(RollupRunError, RollupError)

    def test_messages(self) -> None:
        assert str(SourceReadError('issue records', 'timeout')) == (
            'Failed to read issue records: timeout'
        )
        conflict = SummaryKeyConflictError(
            'bug_analytics_daily', ('Checkout', 12), 'duplicate', constraint='project_date'
        )
        assert conflict.constraint == 'project_date'
        assert 'bug_analytics_daily' in str(conflict)

    def test_run_error_summarises_report(self) -> None:
        report = RollupReport(
            startDay=date(2026, 1, 1),
            endDay=date(2026, 1, 1),
            totalUnits=5,
            startedAt=datetime(2026, 1, 2),
        )

        error = RollupRunError(report)

        assert error.report is report
        assert 'out of 5' in str(error)


class TestLogging:

    def test_configure_logging_uses_standard_format(self) -> None:
        with patch('logging.basicConfig') as basic_config:
            configure_logging('debug')

        basic_config.assert_called_once_with(level=logging.DEBUG, format=LOG_FORMAT)

    def test_configure_logging_defaults_to_settings(self, mock_settings: Mock) -> None:
        mock_settings.log_level = 'WARNING'

        with patch('rollup_engine.core.logging_config.get_settings', return_value=mock_settings), \
                patch('logging.basicConfig') as basic_config:
            configure_logging()

        assert basic_config.call_args.kwargs['level'] == logging.WARNING
