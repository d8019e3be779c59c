"""
Enumeration definitions for the analytics rollup engine.

All enums inherit from both `str` and `Enum` so they serialize as plain strings
in pydantic models and compare equal to the raw values read from PostgreSQL.

Source vocabularies:
- ResultStatus: test_run_results.status (TestRunResultStatus enum type)
- BugPriority: bug_budget.priority labels as mirrored from the tracker
- PriorityBucket: test_cases.priority folded into three buckets
"""

from enum import Enum


class ResultStatus(str, Enum):
    """
    Outcome recorded on one Result Entry of a test run.

    Values: 'passed' | 'failed' | 'skipped' | 'blocked' | 'inProgress'
    """
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    BLOCKED = "blocked"
    IN_PROGRESS = "inProgress"


class RunOutcome(str, Enum):
    """
    Single outcome assigned to a whole test run by the run-outcome classifier.

    - PASSED / FAILED / SKIPPED / BLOCKED: counted in the matching run bucket
    - NO_RESULT: run has no result entries; excluded from every bucket
    - MIXED: non-failing, non-blocking statuses that are neither all-skipped
      nor all-passed (e.g. partly in progress). Counted in automation and
      duration tallies only.
    """
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    BLOCKED = "blocked"
    NO_RESULT = "no_result"
    MIXED = "mixed"


class PriorityBucket(str, Enum):
    """
    Test case priority bucket.

    HIGH covers both "high" and "critical" catalog priorities.
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BugPriority(str, Enum):
    """
    Literal tracker priority labels counted by bug analytics.

    Matched exactly (case-sensitive); unlike PriorityBucket there is no
    merging of Critical into High.
    """
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class SummaryKind(str, Enum):
    """
    The three summary tables maintained by the rollup engine.
    """
    TEST_EXECUTION = "test_execution"
    BUG_ANALYTICS = "bug_analytics"
    TEST_CASE_ANALYTICS = "test_case_analytics"


class BugSummaryKey(str, Enum):
    """
    Which unique key a bug analytics row is written under.

    - PROJECT_ID: (project_id, date)
    - PROJECT_NAME: (project, date)
    """
    PROJECT_ID = "project_id"
    PROJECT_NAME = "project_name"


class UnitStatus(str, Enum):
    """
    Final status of one unit of work in a rollup run.
    """
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"
