"""
Rollup Engine Services Module

Business logic for the analytics rollup engine. Data flows one way:

    source_readers -> classification -> aggregators -> summary_store

Services:
- windows: Day windows and inclusive date ranges
- classification: Run-outcome and priority-bucket classifiers
- source_readers: Read-only access to runs, issues and the test case catalog
- summary_store: Idempotent upserts and read-back of the summary tables
- test_execution: Daily test execution summary per project
- bug_analytics: Daily bug analytics per tracker project
- test_case_analytics: As-of-day catalog totals per repository

Each aggregator exposes a pure compute_* function (no I/O, easy to test) and an
async populate_* function that reads, computes and writes one (subject, day).
"""

# =============================================================================
# Day Windows
# =============================================================================

from rollup_engine.services.windows import (
    DayWindow,
    get_day_window,
    iter_days,
    get_yesterday,
    get_last_n_days_range,
)

# =============================================================================
# Classifiers
# =============================================================================

from rollup_engine.services.classification import (
    classify_run_outcome,
    classify_priority_bucket,
)

# =============================================================================
# Source Readers
# =============================================================================

from rollup_engine.services.source_readers import (
    fetch_execution_records,
    fetch_issue_records,
    fetch_catalog_records,
    list_project_subjects,
    list_repository_subjects,
    list_bug_subjects,
)

# =============================================================================
# Summary Store
# =============================================================================

from rollup_engine.services.summary_store import (
    ensure_summary_tables,
    upsert_test_execution_summary,
    upsert_bug_analytics_daily,
    upsert_test_case_analytics,
    resolve_bug_summary_key,
    get_test_execution_summaries,
    get_bug_analytics,
    get_test_case_analytics,
)

# =============================================================================
# Aggregators
# =============================================================================

from rollup_engine.services.test_execution import (
    compute_test_execution_summary,
    populate_test_execution_summary,
)

from rollup_engine.services.bug_analytics import (
    compute_bug_analytics,
    populate_bug_analytics_daily,
)

from rollup_engine.services.test_case_analytics import (
    compute_test_case_analytics,
    populate_test_case_analytics,
)


__all__ = [
    # Day windows
    'DayWindow',
    'get_day_window',
    'iter_days',
    'get_yesterday',
    'get_last_n_days_range',
    # Classifiers
    'classify_run_outcome',
    'classify_priority_bucket',
    # Source readers
    'fetch_execution_records',
    'fetch_issue_records',
    'fetch_catalog_records',
    'list_project_subjects',
    'list_repository_subjects',
    'list_bug_subjects',
    # Summary store
    'ensure_summary_tables',
    'upsert_test_execution_summary',
    'upsert_bug_analytics_daily',
    'upsert_test_case_analytics',
    'resolve_bug_summary_key',
    'get_test_execution_summaries',
    'get_bug_analytics',
    'get_test_case_analytics',
    # Aggregators
    'compute_test_execution_summary',
    'populate_test_execution_summary',
    'compute_bug_analytics',
    'populate_bug_analytics_daily',
    'compute_test_case_analytics',
    'populate_test_case_analytics',
]
