"""
Pydantic models for the analytics rollup engine.

This module provides type-safe data validation for every record the engine
reads or writes:

- Source records (read-only): ExecutionRecord with nested ResultEntry,
  IssueRecord, CatalogRecord
- Subjects discovered for a range run: ProjectSubject, RepositorySubject,
  BugSubject
- Summary records (the only rows the engine writes): TestExecutionSummary,
  BugAnalyticsDaily, TestCaseAnalytics
- Batch bookkeeping: RollupUnit, UnitFailure, RollupReport

Field names follow the camelCase used by the summary read API so that rows can
be handed to consumers without renaming.

All models use Pydantic v2 syntax.
"""

from datetime import datetime, date as DateType
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict

from rollup_engine.models.enums import (
    ResultStatus,
    SummaryKind,
    UnitStatus,
)


# =============================================================================
# Source Records
# =============================================================================


class ResultEntry(BaseModel):
    """
    One per-case result inside a test run.

    Carries the linked test case's automation flag so automation tallies do not
    need a second lookup.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "passed",
                "executionTime": 1250,
                "automated": True
            }
        }
    )

    status: ResultStatus = Field(
        ...,
        description="Outcome of this result entry"
    )
    executionTime: Optional[int] = Field(
        default=None,
        description="Execution duration as reported by the runner; None when not reported"
    )
    automated: bool = Field(
        default=False,
        description="Automation flag of the linked test case"
    )


class ExecutionRecord(BaseModel):
    """
    One test run for a project on a calendar day.
    """
    runId: int = Field(..., description="test_runs.id")
    projectId: int = Field(..., description="Owning project")
    executionDate: Optional[DateType] = Field(
        default=None,
        description="Calendar day the run was executed"
    )
    results: List[ResultEntry] = Field(
        default_factory=list,
        description="Result entries recorded for the run"
    )


class IssueRecord(BaseModel):
    """
    One bug mirrored from the issue tracker.

    The subject identity may be carried by name only, by numeric reference
    only, or by both.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "jiraKey": "QA-1042",
                "project": "Checkout",
                "projectId": 12,
                "status": "In Progress",
                "isOpen": True,
                "priority": "High",
                "createdDate": "2026-01-12T09:00:00",
                "resolvedDate": None,
                "updatedDate": "2026-01-13T11:30:00"
            }
        }
    )

    jiraKey: Optional[str] = Field(default=None, description="Tracker key")
    project: str = Field(..., description="Free-text project name from the tracker")
    projectId: Optional[int] = Field(
        default=None,
        description="Numeric project reference, when the issue was linked to a project"
    )
    status: Optional[str] = Field(default=None, description="Raw tracker status label")
    isOpen: bool = Field(default=True, description="Whether the issue is currently open")
    priority: Optional[str] = Field(default=None, description="Raw tracker priority label")
    createdDate: Optional[datetime] = Field(default=None)
    resolvedDate: Optional[datetime] = Field(default=None)
    updatedDate: Optional[datetime] = Field(default=None)


class CatalogRecord(BaseModel):
    """
    One test case definition from the catalog.
    """
    testCaseId: int = Field(..., description="test_cases.id")
    automated: bool = Field(default=False)
    priority: Optional[str] = Field(
        default=None,
        description="Raw priority value as text; bucketed by the priority classifier"
    )
    regression: bool = Field(default=False)
    deletedAt: Optional[datetime] = Field(default=None, description="Soft-deletion marker")
    createdAt: Optional[datetime] = Field(default=None)
    updatedAt: Optional[datetime] = Field(default=None)


# =============================================================================
# Subjects
# =============================================================================


class ProjectSubject(BaseModel):
    """A project; subject of the test execution summary."""
    projectId: int
    title: Optional[str] = None


class RepositorySubject(BaseModel):
    """A project + repository pair; subject of test case analytics."""
    projectId: int
    repositoryId: int
    title: Optional[str] = None


class BugSubject(BaseModel):
    """A distinct (project name, project reference) pair seen in issue records."""
    project: str
    projectId: Optional[int] = None


# =============================================================================
# Summary Records
# =============================================================================


class TestExecutionSummary(BaseModel):
    """
    Daily test execution summary for one project.

    Unique on (projectId, date). avgExecutionTime is None when no result entry
    of the day reported a duration; 0.0 is a real average.
    """
    __test__ = False

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "projectId": 12,
                "date": "2026-01-12",
                "totalRuns": 3,
                "passedRuns": 2,
                "failedRuns": 1,
                "skippedRuns": 0,
                "blockedRuns": 0,
                "automatedCount": 40,
                "manualCount": 8,
                "avgExecutionTime": 932.5,
                "totalTestCases": 48,
                "lastUpdatedAt": "2026-01-13T02:00:04"
            }
        }
    )

    projectId: int
    date: DateType
    totalRuns: int = Field(default=0, ge=0)
    passedRuns: int = Field(default=0, ge=0)
    failedRuns: int = Field(default=0, ge=0)
    skippedRuns: int = Field(default=0, ge=0)
    blockedRuns: int = Field(default=0, ge=0)
    automatedCount: int = Field(default=0, ge=0)
    manualCount: int = Field(default=0, ge=0)
    avgExecutionTime: Optional[float] = Field(
        default=None,
        description="Mean duration over entries that reported one; None for no data"
    )
    totalTestCases: int = Field(
        default=0,
        ge=0,
        description="Number of result entries of the day (not number of runs)"
    )
    lastUpdatedAt: datetime


class BugAnalyticsDaily(BaseModel):
    """
    Daily bug analytics for one tracker project identity.

    Unique on (projectId, date) when projectId is set, and on (project, date).
    bugsCreated, bugsResolved, bugsClosed and bugsReopened are same-day deltas;
    openBugs and the priority counts are snapshots.
    """
    project: str
    projectId: Optional[int] = None
    date: DateType
    bugsCreated: int = Field(default=0, ge=0)
    bugsResolved: int = Field(default=0, ge=0)
    bugsClosed: int = Field(default=0, ge=0)
    bugsReopened: int = Field(default=0, ge=0)
    avgResolutionHours: Optional[float] = Field(
        default=None,
        description="Mean created-to-resolved time in hours; None when nothing was resolved"
    )
    openBugs: int = Field(default=0, ge=0)
    criticalBugs: int = Field(default=0, ge=0)
    highPriorityBugs: int = Field(default=0, ge=0)
    mediumPriorityBugs: int = Field(default=0, ge=0)
    lowPriorityBugs: int = Field(default=0, ge=0)
    lastUpdatedAt: datetime


class TestCaseAnalytics(BaseModel):
    """
    As-of-day test case catalog totals for one repository.

    Unique on (projectId, repositoryId, date). totalCases may exceed the sum of
    the priority buckets when some cases carry an unrecognised priority.
    """
    __test__ = False

    projectId: int
    repositoryId: int
    date: DateType
    totalCases: int = Field(default=0, ge=0)
    automatedCases: int = Field(default=0, ge=0)
    manualCases: int = Field(default=0, ge=0)
    highPriorityCases: int = Field(default=0, ge=0)
    mediumPriorityCases: int = Field(default=0, ge=0)
    lowPriorityCases: int = Field(default=0, ge=0)
    regressionCases: int = Field(default=0, ge=0)
    lastUpdatedAt: datetime


# =============================================================================
# Batch Bookkeeping
# =============================================================================


class RollupUnit(BaseModel):
    """
    One unit of work: a single (kind, subject, day) aggregation.

    Which subject fields are set depends on the kind:
    - TEST_EXECUTION: projectId
    - BUG_ANALYTICS: project (+ projectId when known)
    - TEST_CASE_ANALYTICS: projectId + repositoryId
    """
    model_config = ConfigDict(frozen=True)

    kind: SummaryKind
    day: DateType
    projectId: Optional[int] = None
    repositoryId: Optional[int] = None
    project: Optional[str] = None

    @property
    def label(self) -> str:
        if self.kind == SummaryKind.TEST_EXECUTION:
            subject = f"project={self.projectId}"
        elif self.kind == SummaryKind.BUG_ANALYTICS:
            subject = f"project={self.project!r} projectId={self.projectId}"
        else:
            subject = f"project={self.projectId} repository={self.repositoryId}"
        return f"{self.kind.value} {subject} day={self.day.isoformat()}"


class UnitFailure(BaseModel):
    """A unit that raised, with the error captured as text."""
    unit: RollupUnit
    errorType: str
    error: str


class RollupReport(BaseModel):
    """
    Outcome of a range run.

    In fail-fast mode a report is only returned when every unit completed. In
    continue-on-error mode failures are listed here instead of being raised.
    """
    startDay: DateType
    endDay: DateType
    totalUnits: int = Field(default=0, ge=0)
    completedUnits: int = Field(default=0, ge=0)
    skippedUnits: int = Field(default=0, ge=0)
    failures: List[UnitFailure] = Field(default_factory=list)
    unitStatuses: List[UnitStatus] = Field(
        default_factory=list,
        description="Final status per unit, in unit order"
    )
    startedAt: datetime
    finishedAt: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return not self.failures and self.skippedUnits == 0
