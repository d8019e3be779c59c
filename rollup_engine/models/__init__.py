"""
Package initialization file for rollup engine models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import them from rollup_engine.models directly.

Usage:
    from rollup_engine.models import (
        ExecutionRecord,
        RunOutcome,
        TestExecutionSummary,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from rollup_engine.models.enums import (
    ResultStatus,
    RunOutcome,
    PriorityBucket,
    BugPriority,
    SummaryKind,
    BugSummaryKey,
    UnitStatus,
)

# =============================================================================
# Schemas
# =============================================================================

from rollup_engine.models.schemas import (
    # Source records
    ResultEntry,
    ExecutionRecord,
    IssueRecord,
    CatalogRecord,
    # Subjects
    ProjectSubject,
    RepositorySubject,
    BugSubject,
    # Summary records
    TestExecutionSummary,
    BugAnalyticsDaily,
    TestCaseAnalytics,
    # Batch bookkeeping
    RollupUnit,
    UnitFailure,
    RollupReport,
)


__all__ = [
    # Enums
    "ResultStatus",
    "RunOutcome",
    "PriorityBucket",
    "BugPriority",
    "SummaryKind",
    "BugSummaryKey",
    "UnitStatus",
    # Source records
    "ResultEntry",
    "ExecutionRecord",
    "IssueRecord",
    "CatalogRecord",
    # Subjects
    "ProjectSubject",
    "RepositorySubject",
    "BugSubject",
    # Summary records
    "TestExecutionSummary",
    "BugAnalyticsDaily",
    "TestCaseAnalytics",
    # Batch bookkeeping
    "RollupUnit",
    "UnitFailure",
    "RollupReport",
]
