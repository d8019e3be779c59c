"""
SQL Query Module for the analytics rollup engine.

Provides parameterized SQL queries for:
- Source domain reads and subject enumeration (source_queries)
- Summary table DDL, upserts, key lookups and read-back (summary_queries)

Keeps SQL text out of the services so business logic and data access stay
separate. All query functions are re-exported here for convenience.

Example usage:
    from rollup_engine.sql import (
        get_execution_records_query,
        get_test_execution_upsert_query,
    )
"""

# =============================================================================
# SOURCE QUERIES - read-only domains
# =============================================================================

from rollup_engine.sql.source_queries import (
    get_execution_records_query,
    get_issue_records_query,
    get_catalog_records_query,
    get_projects_query,
    get_repositories_query,
    get_bug_subjects_query,
)

# =============================================================================
# SUMMARY QUERIES - idempotent summary tables
# =============================================================================

from rollup_engine.sql.summary_queries import (
    SUMMARY_TABLES_DDL,
    BUG_CONFLICT_TARGET_PROJECT_ID,
    BUG_CONFLICT_TARGET_PROJECT_NAME,
    SORT_COLUMNS,
    get_test_execution_upsert_query,
    get_bug_analytics_upsert_query,
    get_bug_analytics_key_lookup_query,
    get_advisory_lock_query,
    get_test_case_analytics_upsert_query,
    get_test_execution_by_project_query,
    get_bug_analytics_by_project_query,
    get_test_case_analytics_by_repository_query,
)


__all__ = [
    # Source queries
    'get_execution_records_query',
    'get_issue_records_query',
    'get_catalog_records_query',
    'get_projects_query',
    'get_repositories_query',
    'get_bug_subjects_query',
    # Summary queries
    'SUMMARY_TABLES_DDL',
    'BUG_CONFLICT_TARGET_PROJECT_ID',
    'BUG_CONFLICT_TARGET_PROJECT_NAME',
    'SORT_COLUMNS',
    'get_test_execution_upsert_query',
    'get_bug_analytics_upsert_query',
    'get_bug_analytics_key_lookup_query',
    'get_advisory_lock_query',
    'get_test_case_analytics_upsert_query',
    'get_test_execution_by_project_query',
    'get_bug_analytics_by_project_query',
    'get_test_case_analytics_by_repository_query',
]
