"""
Source Reader Test Module

Tests for rollup_engine/services/source_readers.py against a mocked asyncpg
pool:
- Row grouping of runs and their result entries
- Query parameters (day window bounds, subject identity)
- Error translation into SourceReadError
- Subject enumeration
"""

from datetime import date, datetime
from unittest.mock import AsyncMock, patch

import asyncpg
import pytest

from rollup_engine.core.exceptions import SourceReadError
from rollup_engine.models import ResultStatus
from rollup_engine.services.source_readers import (
    fetch_catalog_records,
    fetch_execution_records,
    fetch_issue_records,
    group_execution_rows,
    list_bug_subjects,
    list_project_subjects,
    list_repository_subjects,
)
from rollup_engine.services.windows import get_day_window


MODULE = 'rollup_engine.services.source_readers'


def _run_row(run_id, result_id=None, status=None, execution_time=None, automated=False):
    return {
        'run_id': run_id,
        'project_id': 12,
        'execution_date': datetime(2026, 1, 12, 14, 30),
        'result_id': result_id,
        'status': status,
        'execution_time': execution_time,
        'automated': automated,
    }


class TestGroupExecutionRows:

    def test_groups_results_under_their_run(self) -> None:
        rows = [
            _run_row(1, 10, 'passed', 100, True),
            _run_row(1, 11, 'failed', None, False),
            _run_row(2),
        ]

        records = group_execution_rows(rows)

        assert [record.runId for record in records] == [1, 2]
        assert [entry.status for entry in records[0].results] == [
            ResultStatus.PASSED,
            ResultStatus.FAILED,
        ]
        assert records[0].results[0].automated is True
        assert records[0].results[1].executionTime is None
        assert records[1].results == []
        assert records[1].executionDate == date(2026, 1, 12)


@pytest.mark.asyncio
class TestFetchExecutionRecords:

    async def test_passes_window_bounds(self, mock_db_pool: AsyncMock, mock_conn: AsyncMock) -> None:
        mock_conn.fetch.return_value = [_run_row(1, 10, 'passed', 50, True)]
        window = get_day_window(date(2026, 1, 12))

        with patch(f'{MODULE}.get_db_pool', new=AsyncMock(return_value=mock_db_pool)):
            records = await fetch_execution_records(12, window)

        args = mock_conn.fetch.call_args.args
        assert args[1:] == (12, window.start, window.end)
        assert len(records) == 1
        assert records[0].results[0].executionTime == 50

    async def test_unknown_status_raises_source_read_error(
        self,
        mock_db_pool: AsyncMock,
        mock_conn: AsyncMock,
    ) -> None:
        mock_conn.fetch.return_value = [_run_row(1, 10, 'exploded')]

        with patch(f'{MODULE}.get_db_pool', new=AsyncMock(return_value=mock_db_pool)):
            with pytest.raises(SourceReadError) as exc_info:
                await fetch_execution_records(12, get_day_window(date(2026, 1, 12)))

        assert exc_info.value.source == 'execution records'

    async def test_driver_error_raises_source_read_error(
        self,
        mock_db_pool: AsyncMock,
        mock_conn: AsyncMock,
    ) -> None:
        mock_conn.fetch.side_effect = asyncpg.PostgresError('relation "test_runs" does not exist')

        with patch(f'{MODULE}.get_db_pool', new=AsyncMock(return_value=mock_db_pool)):
            with pytest.raises(SourceReadError) as exc_info:
                await fetch_execution_records(12, get_day_window(date(2026, 1, 12)))

        assert isinstance(exc_info.value.__cause__, asyncpg.PostgresError)


@pytest.mark.asyncio
class TestFetchIssueRecords:

    async def test_passes_subject_identity_and_parses_rows(
        self,
        mock_db_pool: AsyncMock,
        mock_conn: AsyncMock,
    ) -> None:
        mock_conn.fetch.return_value = [{
            'jira_key': 'QA-7',
            'project': 'Checkout',
            'project_id': None,
            'status': 'Open',
            'is_open': True,
            'priority': 'High',
            'created_date': datetime(2026, 1, 12, 9, 0),
            'resolved_date': None,
            'updated_date': None,
        }]
        window = get_day_window(date(2026, 1, 12))

        with patch(f'{MODULE}.get_db_pool', new=AsyncMock(return_value=mock_db_pool)):
            issues = await fetch_issue_records('Checkout', None, window)

        assert mock_conn.fetch.call_args.args[1:] == ('Checkout', None, window.start, window.end)
        assert issues[0].jiraKey == 'QA-7'
        assert issues[0].projectId is None
        assert issues[0].isOpen is True


@pytest.mark.asyncio
class TestFetchCatalogRecords:

    async def test_parses_text_priority(self, mock_db_pool: AsyncMock, mock_conn: AsyncMock) -> None:
        as_of = datetime(2026, 1, 12, 23, 59, 59, 999000)
        mock_conn.fetch.return_value = [{
            'test_case_id': 5,
            'automated': True,
            'priority': '2',
            'regression': False,
            'deleted_at': None,
            'created_at': datetime(2026, 1, 1),
            'updated_at': datetime(2026, 1, 2),
        }]

        with patch(f'{MODULE}.get_db_pool', new=AsyncMock(return_value=mock_db_pool)):
            records = await fetch_catalog_records(3, as_of)

        assert mock_conn.fetch.call_args.args[1:] == (3, as_of)
        assert records[0].testCaseId == 5
        assert records[0].priority == '2'


@pytest.mark.asyncio
class TestSubjectEnumeration:

    async def test_lists_projects_and_repositories(
        self,
        mock_db_pool: AsyncMock,
        mock_conn: AsyncMock,
    ) -> None:
        mock_conn.fetch.side_effect = [
            [{'id': 1, 'title': 'Checkout'}, {'id': 2, 'title': 'Search'}],
            [{'id': 7, 'project_id': 1, 'title': 'web'}],
        ]

        with patch(f'{MODULE}.get_db_pool', new=AsyncMock(return_value=mock_db_pool)):
            projects = await list_project_subjects()
            repositories = await list_repository_subjects()

        assert [project.projectId for project in projects] == [1, 2]
        assert repositories[0].projectId == 1
        assert repositories[0].repositoryId == 7

    async def test_bug_subjects_keep_both_identity_variants(
        self,
        mock_db_pool: AsyncMock,
        mock_conn: AsyncMock,
    ) -> None:
        mock_conn.fetch.return_value = [
            {'project': 'Checkout', 'project_id': None},
            {'project': 'Checkout', 'project_id': 12},
            {'project': '', 'project_id': 3},
        ]

        with patch(f'{MODULE}.get_db_pool', new=AsyncMock(return_value=mock_db_pool)):
            subjects = await list_bug_subjects()

        assert [(subject.project, subject.projectId) for subject in subjects] == [
            ('Checkout', None),
            ('Checkout', 12),
        ]
