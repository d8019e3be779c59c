"""
Idempotent summary store for the analytics rollup engine.

This module is the only place the engine writes. Each summary table is written
with a single INSERT ... ON CONFLICT DO UPDATE keyed on the row's natural key,
so running the same (subject, day) any number of times leaves exactly one row
holding the latest computed values.

Bug analytics rows have two candidate keys, (project_id, date) and
(project, date), each backed by its own unique constraint. Rather than trying
one key and falling back on a constraint error, the store:

1. Opens a transaction and takes advisory locks on both candidate keys, in
   sorted order, so concurrent writers of the same logical row serialize.
2. Looks up which candidate keys already hold a row for the day.
3. Picks the key with resolve_bug_summary_key() (pure, no I/O).
4. Issues one upsert against that key.

Error translation:
- asyncpg.UniqueViolationError -> SummaryKeyConflictError
- any other asyncpg.PostgresError -> SummaryWriteError

Key Functions:
- ensure_summary_tables: Create the three tables if missing
- upsert_test_execution_summary / upsert_bug_analytics_daily /
  upsert_test_case_analytics: Keyed overwrites
- resolve_bug_summary_key: Decide which bug analytics key to write under
- get_test_execution_summaries / get_bug_analytics / get_test_case_analytics:
  Read a page of persisted rows back for a date range, with the total count
"""

import logging
import re
from datetime import date
from typing import Any, Dict, List, NoReturn, Optional, Tuple

import asyncpg
from pydantic import ValidationError

from rollup_engine.core.database import get_db_pool
from rollup_engine.core.exceptions import (
    SourceReadError,
    SummaryKeyConflictError,
    SummaryWriteError,
)
from rollup_engine.models.enums import BugSummaryKey
from rollup_engine.models.schemas import (
    BugAnalyticsDaily,
    TestCaseAnalytics,
    TestExecutionSummary,
)
from rollup_engine.sql.summary_queries import (
    BUG_CONFLICT_TARGET_PROJECT_ID,
    BUG_CONFLICT_TARGET_PROJECT_NAME,
    SUMMARY_TABLES_DDL,
    get_advisory_lock_query,
    get_bug_analytics_by_project_query,
    get_bug_analytics_key_lookup_query,
    get_bug_analytics_upsert_query,
    get_test_case_analytics_by_repository_query,
    get_test_case_analytics_upsert_query,
    get_test_execution_by_project_query,
    get_test_execution_upsert_query,
)


logger = logging.getLogger(__name__)


TEST_EXECUTION_TABLE = 'test_execution_summaries'
BUG_ANALYTICS_TABLE = 'bug_analytics_daily'
TEST_CASE_ANALYTICS_TABLE = 'test_case_analytics'

# Default page size for read-back queries
DEFAULT_PAGE_SIZE = 100


def _raise_write_error(table: str, key: Any, error: asyncpg.PostgresError) -> NoReturn:
    if isinstance(error, asyncpg.UniqueViolationError):
        raise SummaryKeyConflictError(
            table,
            key,
            str(error),
            constraint=getattr(error, 'constraint_name', None),
        ) from error
    raise SummaryWriteError(table, key, str(error)) from error


# =============================================================================
# Schema Bootstrap
# =============================================================================


async def ensure_summary_tables() -> None:
    """
    Create the three summary tables and their unique constraints if missing.

    Safe to call on every start.

    Raises:
        SummaryWriteError: If the DDL fails.
    """
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            await conn.execute(SUMMARY_TABLES_DDL)
    except asyncpg.PostgresError as e:
        _raise_write_error('summary tables', 'ddl', e)

    logger.info("Summary tables ensured")


# =============================================================================
# Test Execution Summary
# =============================================================================


async def upsert_test_execution_summary(summary: TestExecutionSummary) -> int:
    """
    Write a test execution summary keyed by (projectId, date).

    Every metric column and lastUpdatedAt is overwritten on conflict.

    Returns:
        int: The row id.

    Raises:
        SummaryKeyConflictError: On an unexpected unique violation.
        SummaryWriteError: On any other database error.
    """
    key = (summary.projectId, summary.date.isoformat())
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            return await conn.fetchval(
                get_test_execution_upsert_query(),
                summary.projectId,
                summary.date,
                summary.totalRuns,
                summary.passedRuns,
                summary.failedRuns,
                summary.skippedRuns,
                summary.blockedRuns,
                summary.automatedCount,
                summary.manualCount,
                summary.avgExecutionTime,
                summary.totalTestCases,
                summary.lastUpdatedAt,
            )
    except asyncpg.PostgresError as e:
        _raise_write_error(TEST_EXECUTION_TABLE, key, e)


# =============================================================================
# Bug Analytics Daily
# =============================================================================


def resolve_bug_summary_key(
    project_id: Optional[int],
    has_id_row: bool,
    has_name_row: bool,
) -> BugSummaryKey:
    """
    Decide which unique key a bug analytics row is written under.

    Rules, first match wins:
    1. No numeric reference          -> PROJECT_NAME (only key available)
    2. A row exists under the id key -> PROJECT_ID (update it)
    3. A row exists under the name   -> PROJECT_NAME (update it; writing by id
                                        would collide with it)
    4. No row yet                    -> PROJECT_ID (insert with both keys set)

    Args:
        project_id: Numeric project reference of the subject, or None.
        has_id_row: Whether (project_id, date) already has a row.
        has_name_row: Whether (project, date) already has a row.

    Returns:
        BugSummaryKey

    Example:
        >>> resolve_bug_summary_key(7, has_id_row=False, has_name_row=True)
        <BugSummaryKey.PROJECT_NAME: 'project_name'>
    """
    if project_id is None:
        return BugSummaryKey.PROJECT_NAME

    if has_id_row:
        return BugSummaryKey.PROJECT_ID

    if has_name_row:
        return BugSummaryKey.PROJECT_NAME

    return BugSummaryKey.PROJECT_ID


def get_bug_lock_keys(project: str, project_id: Optional[int], day: date) -> List[str]:
    """Advisory lock keys for both candidate bug analytics keys, sorted."""
    keys = [f"{BUG_ANALYTICS_TABLE}:name:{project}:{day.isoformat()}"]
    if project_id is not None:
        keys.append(f"{BUG_ANALYTICS_TABLE}:id:{project_id}:{day.isoformat()}")
    return sorted(keys)


async def upsert_bug_analytics_daily(record: BugAnalyticsDaily) -> BugSummaryKey:
    """
    Write a bug analytics row under whichever candidate key already owns it.

    Lock, look up, resolve and write all happen in one transaction, so a
    (subject, day) converges on a single row no matter how many workers or
    processes write it.

    Returns:
        BugSummaryKey: The key the row was written under.

    Raises:
        SummaryKeyConflictError: On an unexpected unique violation.
        SummaryWriteError: On any other database error.
    """
    key = (record.project, record.projectId, record.date.isoformat())
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            async with conn.transaction():
                for lock_key in get_bug_lock_keys(record.project, record.projectId, record.date):
                    await conn.execute(get_advisory_lock_query(), lock_key)

                existing = await conn.fetchrow(
                    get_bug_analytics_key_lookup_query(),
                    record.projectId,
                    record.project,
                    record.date,
                )
                has_id_row = bool(existing and existing['has_id_row'])
                has_name_row = bool(existing and existing['has_name_row'])

                summary_key = resolve_bug_summary_key(record.projectId, has_id_row, has_name_row)
                conflict_target = (
                    BUG_CONFLICT_TARGET_PROJECT_ID
                    if summary_key == BugSummaryKey.PROJECT_ID
                    else BUG_CONFLICT_TARGET_PROJECT_NAME
                )

                await conn.fetchval(
                    get_bug_analytics_upsert_query(conflict_target),
                    record.project,
                    record.projectId,
                    record.date,
                    record.bugsCreated,
                    record.bugsResolved,
                    record.bugsClosed,
                    record.bugsReopened,
                    record.avgResolutionHours,
                    record.openBugs,
                    record.criticalBugs,
                    record.highPriorityBugs,
                    record.mediumPriorityBugs,
                    record.lowPriorityBugs,
                    record.lastUpdatedAt,
                )
    except asyncpg.PostgresError as e:
        _raise_write_error(BUG_ANALYTICS_TABLE, key, e)

    logger.debug(f"Wrote {BUG_ANALYTICS_TABLE} {key} under {summary_key.value} key")
    return summary_key


# =============================================================================
# Test Case Analytics
# =============================================================================


async def upsert_test_case_analytics(record: TestCaseAnalytics) -> int:
    """
    Write test case analytics keyed by (projectId, repositoryId, date).

    Returns:
        int: The row id.

    Raises:
        SummaryKeyConflictError: On an unexpected unique violation.
        SummaryWriteError: On any other database error.
    """
    key = (record.projectId, record.repositoryId, record.date.isoformat())
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            return await conn.fetchval(
                get_test_case_analytics_upsert_query(),
                record.projectId,
                record.repositoryId,
                record.date,
                record.totalCases,
                record.automatedCases,
                record.manualCases,
                record.highPriorityCases,
                record.mediumPriorityCases,
                record.lowPriorityCases,
                record.regressionCases,
                record.lastUpdatedAt,
            )
    except asyncpg.PostgresError as e:
        _raise_write_error(TEST_CASE_ANALYTICS_TABLE, key, e)


# =============================================================================
# Read-back
# =============================================================================


def _to_camel(name: str) -> str:
    return re.sub(r'_([a-z])', lambda match: match.group(1).upper(), name)


def _row_to_fields(row: Any) -> Dict[str, Any]:
    return {_to_camel(column): value for column, value in dict(row).items()}


def _is_descending(sort_order: str) -> bool:
    if sort_order not in ('asc', 'desc'):
        raise ValueError(f"Unknown sort order: {sort_order!r}")
    return sort_order == 'desc'


async def _select_summaries(
    table: str,
    queries: Tuple[str, str],
    key_args: List[Any],
    start_date: Optional[date],
    end_date: Optional[date],
    limit: int,
    offset: int,
) -> Tuple[List[Dict[str, Any]], int]:
    page_query, count_query = queries

    args = list(key_args)
    if start_date is not None:
        args.append(start_date)
    if end_date is not None:
        args.append(end_date)

    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            rows = await conn.fetch(page_query, *args, limit, offset)
            total = await conn.fetchval(count_query, *args)
    except asyncpg.PostgresError as e:
        raise SourceReadError(table, str(e)) from e

    return [_row_to_fields(row) for row in rows], total or 0


async def get_test_execution_summaries(
    project_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
    sort_by: str = 'date',
    sort_order: str = 'desc',
) -> Tuple[List[TestExecutionSummary], int]:
    """
    Read one page of persisted test execution summaries of a project.

    Args:
        project_id: Project to read.
        start_date: Earliest day to include, or None for no lower bound.
        end_date: Latest day to include, or None for no upper bound.
        limit: Page size.
        offset: Rows to skip.
        sort_by: 'date' or 'lastUpdatedAt'.
        sort_order: 'desc' (default) or 'asc'.

    Returns:
        Tuple of (page rows, total rows matching the filters).

    Raises:
        ValueError: On an unknown sort_by or sort_order.
        SourceReadError: If the query fails or a row cannot be parsed.
    """
    queries = get_test_execution_by_project_query(
        start_date is not None, end_date is not None, sort_by, _is_descending(sort_order)
    )
    rows, total = await _select_summaries(
        TEST_EXECUTION_TABLE, queries, [project_id], start_date, end_date, limit, offset
    )

    try:
        return [TestExecutionSummary(**fields) for fields in rows], total
    except ValidationError as e:
        raise SourceReadError(TEST_EXECUTION_TABLE, str(e)) from e


async def get_bug_analytics(
    project_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
    sort_by: str = 'date',
    sort_order: str = 'desc',
) -> Tuple[List[BugAnalyticsDaily], int]:
    """Read one page of persisted bug analytics of a project reference, plus the total."""
    queries = get_bug_analytics_by_project_query(
        start_date is not None, end_date is not None, sort_by, _is_descending(sort_order)
    )
    rows, total = await _select_summaries(
        BUG_ANALYTICS_TABLE, queries, [project_id], start_date, end_date, limit, offset
    )

    try:
        return [BugAnalyticsDaily(**fields) for fields in rows], total
    except ValidationError as e:
        raise SourceReadError(BUG_ANALYTICS_TABLE, str(e)) from e


async def get_test_case_analytics(
    project_id: int,
    repository_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
    sort_by: str = 'date',
    sort_order: str = 'desc',
) -> Tuple[List[TestCaseAnalytics], int]:
    """Read one page of persisted test case analytics of a repository, plus the total."""
    queries = get_test_case_analytics_by_repository_query(
        start_date is not None, end_date is not None, sort_by, _is_descending(sort_order)
    )
    rows, total = await _select_summaries(
        TEST_CASE_ANALYTICS_TABLE,
        queries,
        [project_id, repository_id],
        start_date,
        end_date,
        limit,
        offset,
    )

    try:
        return [TestCaseAnalytics(**fields) for fields in rows], total
    except ValidationError as e:
        raise SourceReadError(TEST_CASE_ANALYTICS_TABLE, str(e)) from e
