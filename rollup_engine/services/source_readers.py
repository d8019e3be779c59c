"""
Source readers for the analytics rollup engine.

Read-only access to the transactional tables the summaries are derived from,
plus the subject enumeration a range run starts with. Every function acquires a
connection from the shared asyncpg pool, runs one query from
rollup_engine.sql.source_queries and parses the rows into pydantic models.

Failures are translated into SourceReadError:
- asyncpg.PostgresError: the query itself failed
- pydantic.ValidationError: a row carried a value the models do not accept
  (for example an unknown result status)

Key Functions:
- fetch_execution_records: Runs of a project on one day, with nested results
- fetch_issue_records: Issues relevant to one bug analytics subject and day
- fetch_catalog_records: Non-deleted test cases of a repository as of a moment
- list_project_subjects / list_repository_subjects / list_bug_subjects
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import asyncpg
from pydantic import ValidationError

from rollup_engine.core.database import get_db_pool
from rollup_engine.core.exceptions import SourceReadError
from rollup_engine.models.schemas import (
    BugSubject,
    CatalogRecord,
    ExecutionRecord,
    IssueRecord,
    ProjectSubject,
    RepositorySubject,
    ResultEntry,
)
from rollup_engine.services.windows import DayWindow
from rollup_engine.sql.source_queries import (
    get_bug_subjects_query,
    get_catalog_records_query,
    get_execution_records_query,
    get_issue_records_query,
    get_projects_query,
    get_repositories_query,
)


logger = logging.getLogger(__name__)


async def _fetch(source: str, query: str, *args: Any) -> List[Any]:
    """Run a read query, translating driver errors into SourceReadError."""
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            return await conn.fetch(query, *args)
    except asyncpg.PostgresError as e:
        raise SourceReadError(source, str(e)) from e


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


# =============================================================================
# Execution Records
# =============================================================================


def group_execution_rows(rows: List[Any]) -> List[ExecutionRecord]:
    """
    Fold flat (run, result) rows into ExecutionRecord objects.

    Rows must be ordered by run id. A row with a NULL result_id is the LEFT
    JOIN placeholder of a run with no results and adds no ResultEntry.

    Args:
        rows: Mapping-like rows from get_execution_records_query().

    Returns:
        List of ExecutionRecord, one per distinct run, in row order.

    Raises:
        pydantic.ValidationError: If a row cannot be parsed.
    """
    records: Dict[int, ExecutionRecord] = {}

    for row in rows:
        run_id = row['run_id']
        record = records.get(run_id)
        if record is None:
            record = ExecutionRecord(
                runId=run_id,
                projectId=row['project_id'],
                executionDate=_as_date(row['execution_date']),
            )
            records[run_id] = record

        if row['result_id'] is None:
            continue

        record.results.append(
            ResultEntry(
                status=row['status'],
                executionTime=row['execution_time'],
                automated=bool(row['automated']),
            )
        )

    return list(records.values())


async def fetch_execution_records(project_id: int, window: DayWindow) -> List[ExecutionRecord]:
    """
    Fetch every test run of a project executed inside the day window.

    Args:
        project_id: Project to read.
        window: Inclusive day window.

    Returns:
        List of ExecutionRecord with their result entries. Runs without results
        are included with an empty results list.

    Raises:
        SourceReadError: If the query fails or a row cannot be parsed.
    """
    source = 'execution records'
    rows = await _fetch(
        source,
        get_execution_records_query(),
        project_id,
        window.start,
        window.end,
    )

    try:
        records = group_execution_rows(rows)
    except ValidationError as e:
        raise SourceReadError(source, str(e)) from e

    logger.debug(
        f"Read {len(records)} runs for project {project_id} on {window.day.isoformat()}"
    )
    return records


# =============================================================================
# Issue Records
# =============================================================================


async def fetch_issue_records(
    project: str,
    project_id: Optional[int],
    window: DayWindow,
) -> List[IssueRecord]:
    """
    Fetch the issues that can contribute to one bug analytics row.

    Scope is project name, narrowed to project_id when one is given. Only
    issues that are open, or were created or resolved inside the window, are
    returned; the aggregator applies the exact per-metric predicates.

    Raises:
        SourceReadError: If the query fails or a row cannot be parsed.
    """
    source = 'issue records'
    rows = await _fetch(
        source,
        get_issue_records_query(),
        project,
        project_id,
        window.start,
        window.end,
    )

    try:
        return [
            IssueRecord(
                jiraKey=row['jira_key'],
                project=row['project'],
                projectId=row['project_id'],
                status=row['status'],
                isOpen=bool(row['is_open']),
                priority=row['priority'],
                createdDate=row['created_date'],
                resolvedDate=row['resolved_date'],
                updatedDate=row['updated_date'],
            )
            for row in rows
        ]
    except ValidationError as e:
        raise SourceReadError(source, str(e)) from e


# =============================================================================
# Catalog Records
# =============================================================================


async def fetch_catalog_records(repository_id: int, as_of: datetime) -> List[CatalogRecord]:
    """
    Fetch non-deleted test cases of a repository created or updated by as_of.

    Raises:
        SourceReadError: If the query fails or a row cannot be parsed.
    """
    source = 'catalog records'
    rows = await _fetch(source, get_catalog_records_query(), repository_id, as_of)

    try:
        return [
            CatalogRecord(
                testCaseId=row['test_case_id'],
                automated=bool(row['automated']),
                priority=row['priority'],
                regression=bool(row['regression']),
                deletedAt=row['deleted_at'],
                createdAt=row['created_at'],
                updatedAt=row['updated_at'],
            )
            for row in rows
        ]
    except ValidationError as e:
        raise SourceReadError(source, str(e)) from e


# =============================================================================
# Subject Enumeration
# =============================================================================


async def list_project_subjects() -> List[ProjectSubject]:
    """List every project. Subjects of the test execution summary."""
    rows = await _fetch('projects', get_projects_query())
    return [ProjectSubject(projectId=row['id'], title=row['title']) for row in rows]


async def list_repository_subjects() -> List[RepositorySubject]:
    """List every (project, repository) pair. Subjects of test case analytics."""
    rows = await _fetch('repositories', get_repositories_query())
    return [
        RepositorySubject(
            projectId=row['project_id'],
            repositoryId=row['id'],
            title=row['title'],
        )
        for row in rows
    ]


async def list_bug_subjects() -> List[BugSubject]:
    """
    List the distinct (project name, project reference) pairs in issue records.

    Rows with an empty project name are dropped since they cannot be keyed.
    """
    rows = await _fetch('bug subjects', get_bug_subjects_query())
    return [
        BugSubject(project=row['project'], projectId=row['project_id'])
        for row in rows
        if row['project']
    ]
