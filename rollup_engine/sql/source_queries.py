"""
Parameterized SQL for the read-only source domains.

Three source domains feed the rollup:
    - Execution Records: test_runs + test_run_results + test_cases.automated
    - Issue Records: bug_budget (tracker mirror)
    - Catalog Records: test_cases joined to test_suites for the repository

Plus the subject enumeration used by a range run (projects, repositories,
distinct issue project identities).

All queries use asyncpg positional placeholders ($1, $2, ...). Time bounds are
passed as naive timestamps produced by the day-window helpers, and compared
inclusively on both ends.
"""


def get_execution_records_query() -> str:
    """
    Generate SQL returning one row per (run, result entry) for a project/day.

    Runs without results come back as a single row with NULL result columns
    (LEFT JOIN), so a run with zero results is still visible to the caller.

    Parameters:
        $1: project_id
        $2: window start (inclusive)
        $3: window end (inclusive)

    Returns:
        str: PostgreSQL query string.
    """
    return """
        SELECT
            tr.id AS run_id,
            tr.project_id,
            tr.execution_date,
            r.id AS result_id,
            r.status::text AS status,
            r.execution_time,
            COALESCE(tc.automated, FALSE) AS automated
        FROM test_runs tr
        LEFT JOIN test_run_results r ON r.test_run_id = tr.id
        LEFT JOIN test_cases tc ON tc.id = r.test_case_id
        WHERE tr.project_id = $1
          AND tr.execution_date >= $2::timestamp
          AND tr.execution_date <= $3::timestamp
        ORDER BY tr.id, r.id
    """


def get_issue_records_query() -> str:
    """
    Generate SQL returning the issues that can contribute to one bug
    analytics row.

    Scope follows the subject identity: the project name always matches, and
    the numeric reference matches only when one is supplied ($2 NULL means
    "any reference"). Rows are pre-filtered to those that are open or were
    created or resolved inside the window; the aggregator applies the exact
    per-field predicates.

    Parameters:
        $1: project name
        $2: project_id or NULL
        $3: window start (inclusive)
        $4: window end (inclusive)

    Returns:
        str: PostgreSQL query string.
    """
    return """
        SELECT
            jira_key,
            project,
            project_id,
            status,
            is_open,
            priority,
            created_date,
            resolved_date,
            updated_date
        FROM bug_budget
        WHERE project = $1
          AND ($2::bigint IS NULL OR project_id = $2::bigint)
          AND (
                is_open
             OR (created_date >= $3 AND created_date <= $4)
             OR (resolved_date >= $3 AND resolved_date <= $4)
          )
        ORDER BY id
    """


def get_catalog_records_query() -> str:
    """
    Generate SQL returning the non-deleted test cases of a repository that
    existed (or were touched) by the as-of boundary.

    Parameters:
        $1: repository_id
        $2: as-of boundary (end of the day window, inclusive)

    Returns:
        str: PostgreSQL query string.
    """
    return """
        SELECT
            tc.id AS test_case_id,
            tc.automated,
            tc.priority::text AS priority,
            tc.regression,
            tc.deleted_at,
            tc.created_at,
            tc.updated_at
        FROM test_cases tc
        JOIN test_suites s ON s.id = tc.suite_id
        WHERE s.repository_id = $1
          AND tc.deleted_at IS NULL
          AND (tc.created_at <= $2 OR tc.updated_at <= $2)
        ORDER BY tc.id
    """


# =============================================================================
# Subject Enumeration
# =============================================================================


def get_projects_query() -> str:
    """SQL listing every project (subject of test execution summaries)."""
    return """
        SELECT id, title
        FROM projects
        ORDER BY id
    """


def get_repositories_query() -> str:
    """SQL listing every repository with its owning project."""
    return """
        SELECT id, project_id, title
        FROM repositories
        ORDER BY project_id, id
    """


def get_bug_subjects_query() -> str:
    """
    SQL listing the distinct (project name, project reference) identities seen
    in issue records. A name that appears both with and without a reference is
    returned once per variant.
    """
    return """
        SELECT DISTINCT project, project_id
        FROM bug_budget
        ORDER BY project, project_id NULLS FIRST
    """
