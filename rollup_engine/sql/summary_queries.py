"""
Parameterized SQL for the three summary tables written by the rollup engine.

Tables:
    - test_execution_summaries: unique (project_id, date)
    - bug_analytics_daily: unique (project_id, date) AND unique (project, date)
    - test_case_analytics: unique (project_id, repository_id, date)

Every write is a single INSERT ... ON CONFLICT DO UPDATE statement that
overwrites all metric columns, so re-running a day converges on the same row.
Identity columns are never rewritten on conflict.
"""

from typing import List, Optional, Tuple


# =============================================================================
# Schema Bootstrap
# =============================================================================

SUMMARY_TABLES_DDL = """
    CREATE TABLE IF NOT EXISTS test_execution_summaries (
        id BIGSERIAL PRIMARY KEY,
        project_id BIGINT NOT NULL,
        date DATE NOT NULL,
        total_runs INTEGER NOT NULL DEFAULT 0,
        passed_runs INTEGER NOT NULL DEFAULT 0,
        failed_runs INTEGER NOT NULL DEFAULT 0,
        skipped_runs INTEGER NOT NULL DEFAULT 0,
        blocked_runs INTEGER NOT NULL DEFAULT 0,
        automated_count INTEGER NOT NULL DEFAULT 0,
        manual_count INTEGER NOT NULL DEFAULT 0,
        avg_execution_time DOUBLE PRECISION,
        total_test_cases INTEGER NOT NULL DEFAULT 0,
        last_updated_at TIMESTAMP NOT NULL,
        CONSTRAINT test_execution_summaries_project_id_date_key UNIQUE (project_id, date)
    );

    CREATE TABLE IF NOT EXISTS bug_analytics_daily (
        id BIGSERIAL PRIMARY KEY,
        project VARCHAR(255) NOT NULL,
        project_id BIGINT,
        date DATE NOT NULL,
        bugs_created INTEGER NOT NULL DEFAULT 0,
        bugs_resolved INTEGER NOT NULL DEFAULT 0,
        bugs_closed INTEGER NOT NULL DEFAULT 0,
        bugs_reopened INTEGER NOT NULL DEFAULT 0,
        avg_resolution_hours DOUBLE PRECISION,
        open_bugs INTEGER NOT NULL DEFAULT 0,
        critical_bugs INTEGER NOT NULL DEFAULT 0,
        high_priority_bugs INTEGER NOT NULL DEFAULT 0,
        medium_priority_bugs INTEGER NOT NULL DEFAULT 0,
        low_priority_bugs INTEGER NOT NULL DEFAULT 0,
        last_updated_at TIMESTAMP NOT NULL,
        CONSTRAINT bug_analytics_daily_project_id_date_key UNIQUE (project_id, date),
        CONSTRAINT bug_analytics_daily_project_date_key UNIQUE (project, date)
    );

    CREATE TABLE IF NOT EXISTS test_case_analytics (
        id BIGSERIAL PRIMARY KEY,
        project_id BIGINT NOT NULL,
        repository_id BIGINT NOT NULL,
        date DATE NOT NULL,
        total_cases INTEGER NOT NULL DEFAULT 0,
        automated_cases INTEGER NOT NULL DEFAULT 0,
        manual_cases INTEGER NOT NULL DEFAULT 0,
        high_priority_cases INTEGER NOT NULL DEFAULT 0,
        medium_priority_cases INTEGER NOT NULL DEFAULT 0,
        low_priority_cases INTEGER NOT NULL DEFAULT 0,
        regression_cases INTEGER NOT NULL DEFAULT 0,
        last_updated_at TIMESTAMP NOT NULL,
        CONSTRAINT test_case_analytics_project_id_repository_id_date_key
            UNIQUE (project_id, repository_id, date)
    );
"""


# =============================================================================
# Test Execution Summary
# =============================================================================


def get_test_execution_upsert_query() -> str:
    """
    Generate SQL upserting one test execution summary keyed by (project_id, date).

    Parameters:
        $1 project_id, $2 date, $3 total_runs, $4 passed_runs, $5 failed_runs,
        $6 skipped_runs, $7 blocked_runs, $8 automated_count, $9 manual_count,
        $10 avg_execution_time, $11 total_test_cases, $12 last_updated_at

    Returns:
        str: PostgreSQL UPSERT query string returning the row id.
    """
    return """
        INSERT INTO test_execution_summaries (
            project_id, date,
            total_runs, passed_runs, failed_runs, skipped_runs, blocked_runs,
            automated_count, manual_count,
            avg_execution_time, total_test_cases,
            last_updated_at
        ) VALUES (
            $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12
        )
        ON CONFLICT (project_id, date) DO UPDATE SET
            total_runs = EXCLUDED.total_runs,
            passed_runs = EXCLUDED.passed_runs,
            failed_runs = EXCLUDED.failed_runs,
            skipped_runs = EXCLUDED.skipped_runs,
            blocked_runs = EXCLUDED.blocked_runs,
            automated_count = EXCLUDED.automated_count,
            manual_count = EXCLUDED.manual_count,
            avg_execution_time = EXCLUDED.avg_execution_time,
            total_test_cases = EXCLUDED.total_test_cases,
            last_updated_at = EXCLUDED.last_updated_at
        RETURNING id
    """


# =============================================================================
# Bug Analytics Daily
# =============================================================================

# Conflict targets for the two candidate keys
BUG_CONFLICT_TARGET_PROJECT_ID = "(project_id, date)"
BUG_CONFLICT_TARGET_PROJECT_NAME = "(project, date)"


def get_bug_analytics_upsert_query(conflict_target: str) -> str:
    """
    Generate SQL upserting one bug analytics row under the given key.

    Args:
        conflict_target: BUG_CONFLICT_TARGET_PROJECT_ID or
            BUG_CONFLICT_TARGET_PROJECT_NAME.

    Parameters:
        $1 project, $2 project_id, $3 date, $4 bugs_created, $5 bugs_resolved,
        $6 bugs_closed, $7 bugs_reopened, $8 avg_resolution_hours, $9 open_bugs,
        $10 critical_bugs, $11 high_priority_bugs, $12 medium_priority_bugs,
        $13 low_priority_bugs, $14 last_updated_at

    Returns:
        str: PostgreSQL UPSERT query string returning the row id.

    Raises:
        ValueError: If conflict_target is not one of the two known keys.
    """
    if conflict_target not in (BUG_CONFLICT_TARGET_PROJECT_ID, BUG_CONFLICT_TARGET_PROJECT_NAME):
        raise ValueError(f"Unknown bug analytics conflict target: {conflict_target}")

    return f"""
        INSERT INTO bug_analytics_daily (
            project, project_id, date,
            bugs_created, bugs_resolved, bugs_closed, bugs_reopened,
            avg_resolution_hours, open_bugs,
            critical_bugs, high_priority_bugs, medium_priority_bugs, low_priority_bugs,
            last_updated_at
        ) VALUES (
            $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14
        )
        ON CONFLICT {conflict_target} DO UPDATE SET
            bugs_created = EXCLUDED.bugs_created,
            bugs_resolved = EXCLUDED.bugs_resolved,
            bugs_closed = EXCLUDED.bugs_closed,
            bugs_reopened = EXCLUDED.bugs_reopened,
            avg_resolution_hours = EXCLUDED.avg_resolution_hours,
            open_bugs = EXCLUDED.open_bugs,
            critical_bugs = EXCLUDED.critical_bugs,
            high_priority_bugs = EXCLUDED.high_priority_bugs,
            medium_priority_bugs = EXCLUDED.medium_priority_bugs,
            low_priority_bugs = EXCLUDED.low_priority_bugs,
            last_updated_at = EXCLUDED.last_updated_at
        RETURNING id
    """


def get_bug_analytics_key_lookup_query() -> str:
    """
    Generate SQL reporting which candidate keys already hold a row for a day.

    Parameters:
        $1: project_id (may be NULL; a NULL reference never matches)
        $2: project name
        $3: date

    Returns:
        str: Query returning one row with boolean has_id_row, has_name_row.
    """
    return """
        SELECT
            EXISTS(
                SELECT 1 FROM bug_analytics_daily
                WHERE project_id = $1::bigint AND date = $3
            ) AS has_id_row,
            EXISTS(
                SELECT 1 FROM bug_analytics_daily
                WHERE project = $2 AND date = $3
            ) AS has_name_row
    """


def get_advisory_lock_query() -> str:
    """
    SQL taking a transaction-scoped advisory lock on a text key.

    Held until the surrounding transaction commits or rolls back.

    Parameters:
        $1: lock key text
    """
    return "SELECT pg_advisory_xact_lock(hashtext($1))"


# =============================================================================
# Test Case Analytics
# =============================================================================


def get_test_case_analytics_upsert_query() -> str:
    """
    Generate SQL upserting one test case analytics row keyed by
    (project_id, repository_id, date).

    Parameters:
        $1 project_id, $2 repository_id, $3 date, $4 total_cases,
        $5 automated_cases, $6 manual_cases, $7 high_priority_cases,
        $8 medium_priority_cases, $9 low_priority_cases, $10 regression_cases,
        $11 last_updated_at

    Returns:
        str: PostgreSQL UPSERT query string returning the row id.
    """
    return """
        INSERT INTO test_case_analytics (
            project_id, repository_id, date,
            total_cases, automated_cases, manual_cases,
            high_priority_cases, medium_priority_cases, low_priority_cases,
            regression_cases,
            last_updated_at
        ) VALUES (
            $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11
        )
        ON CONFLICT (project_id, repository_id, date) DO UPDATE SET
            total_cases = EXCLUDED.total_cases,
            automated_cases = EXCLUDED.automated_cases,
            manual_cases = EXCLUDED.manual_cases,
            high_priority_cases = EXCLUDED.high_priority_cases,
            medium_priority_cases = EXCLUDED.medium_priority_cases,
            low_priority_cases = EXCLUDED.low_priority_cases,
            regression_cases = EXCLUDED.regression_cases,
            last_updated_at = EXCLUDED.last_updated_at
        RETURNING id
    """


# =============================================================================
# Read-back Queries
# =============================================================================

TEST_EXECUTION_COLUMNS = (
    "project_id, date, total_runs, passed_runs, failed_runs, skipped_runs, "
    "blocked_runs, automated_count, manual_count, avg_execution_time, "
    "total_test_cases, last_updated_at"
)

BUG_ANALYTICS_COLUMNS = (
    "project, project_id, date, bugs_created, bugs_resolved, bugs_closed, "
    "bugs_reopened, avg_resolution_hours, open_bugs, critical_bugs, "
    "high_priority_bugs, medium_priority_bugs, low_priority_bugs, last_updated_at"
)

TEST_CASE_ANALYTICS_COLUMNS = (
    "project_id, repository_id, date, total_cases, automated_cases, "
    "manual_cases, high_priority_cases, medium_priority_cases, "
    "low_priority_cases, regression_cases, last_updated_at"
)


# Sort keys accepted by the read-back queries, mapped to their columns
SORT_COLUMNS = {
    'date': 'date',
    'lastUpdatedAt': 'last_updated_at',
}


def _build_summary_where_clause(
    key_columns: List[str],
    has_start: bool,
    has_end: bool,
) -> Tuple[str, int]:
    where_conditions = []
    index = 0

    for column in key_columns:
        index += 1
        where_conditions.append(f"{column} = ${index}")

    if has_start:
        index += 1
        where_conditions.append(f"date >= ${index}")

    if has_end:
        index += 1
        where_conditions.append(f"date <= ${index}")

    where_clause = " AND ".join(where_conditions) if where_conditions else "TRUE"
    return where_clause, index


def build_summary_select_query(
    table: str,
    columns: str,
    key_columns: List[str],
    has_start: bool,
    has_end: bool,
    sort_by: str = 'date',
    descending: bool = True,
) -> Tuple[str, int]:
    """
    Generate SQL listing summary rows for a subject over an optional date range.

    Key columns take the first placeholders, followed by the optional start and
    end dates, then LIMIT and OFFSET.

    Args:
        table: Summary table name.
        columns: Comma-separated column list to select.
        key_columns: Subject columns matched by equality, in placeholder order.
        has_start: Whether a "date >= start" bound is supplied.
        has_end: Whether a "date <= end" bound is supplied.
        sort_by: Key of SORT_COLUMNS to order by.
        descending: Newest first when True.

    Returns:
        Tuple of (query string, number of placeholders before LIMIT/OFFSET).

    Raises:
        ValueError: If sort_by is not a key of SORT_COLUMNS.

    Example:
        >>> sql, n = build_summary_select_query(
        ...     'test_execution_summaries', TEST_EXECUTION_COLUMNS,
        ...     ['project_id'], has_start=True, has_end=False
        ... )
        >>> n
        2
    """
    if sort_by not in SORT_COLUMNS:
        raise ValueError(f"Unknown sort key: {sort_by!r}")

    where_clause, index = _build_summary_where_clause(key_columns, has_start, has_end)
    order = "DESC" if descending else "ASC"

    order_by = f"{SORT_COLUMNS[sort_by]} {order}"
    if sort_by != 'date':
        # date breaks ties so pages stay stable
        order_by += f", date {order}"

    query = f"""
        SELECT {columns}
        FROM {table}
        WHERE {where_clause}
        ORDER BY {order_by}
        LIMIT ${index + 1} OFFSET ${index + 2}
    """

    return query, index


def build_summary_count_query(
    table: str,
    key_columns: List[str],
    has_start: bool,
    has_end: bool,
) -> str:
    """
    Generate SQL counting the rows build_summary_select_query pages over.

    Takes the same placeholders, minus LIMIT and OFFSET.
    """
    where_clause, _ = _build_summary_where_clause(key_columns, has_start, has_end)

    return f"""
        SELECT count(*)
        FROM {table}
        WHERE {where_clause}
    """


def get_bug_analytics_by_project_query(
    has_start: bool,
    has_end: bool,
    sort_by: str = 'date',
    descending: bool = True,
) -> Tuple[str, str]:
    """Read-back for bug analytics of one numeric project reference.

    Returns:
        Tuple of (page query, count query).
    """
    key_columns = ['project_id']
    query, _ = build_summary_select_query(
        'bug_analytics_daily',
        BUG_ANALYTICS_COLUMNS,
        key_columns,
        has_start,
        has_end,
        sort_by,
        descending,
    )
    return query, build_summary_count_query(
        'bug_analytics_daily', key_columns, has_start, has_end
    )


def get_test_execution_by_project_query(
    has_start: bool,
    has_end: bool,
    sort_by: str = 'date',
    descending: bool = True,
) -> Tuple[str, str]:
    """Read-back for test execution summaries of one project."""
    key_columns = ['project_id']
    query, _ = build_summary_select_query(
        'test_execution_summaries',
        TEST_EXECUTION_COLUMNS,
        key_columns,
        has_start,
        has_end,
        sort_by,
        descending,
    )
    return query, build_summary_count_query(
        'test_execution_summaries', key_columns, has_start, has_end
    )


def get_test_case_analytics_by_repository_query(
    has_start: bool,
    has_end: bool,
    sort_by: str = 'date',
    descending: bool = True,
) -> Tuple[str, str]:
    """Read-back for test case analytics of one project repository."""
    key_columns = ['project_id', 'repository_id']
    query, _ = build_summary_select_query(
        'test_case_analytics',
        TEST_CASE_ANALYTICS_COLUMNS,
        key_columns,
        has_start,
        has_end,
        sort_by,
        descending,
    )
    return query, build_summary_count_query(
        'test_case_analytics', key_columns, has_start, has_end
    )
