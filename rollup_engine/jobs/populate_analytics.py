"""
Analytics summary population job.

Recomputes the three daily summary tables for a day or an inclusive date range.
A range run:

1. Discovers the subjects once, at the start of the call:
   - every project (test execution summaries)
   - every distinct (project name, project reference) in issue records
     (bug analytics)
   - every repository with its project (test case analytics)
2. Builds one RollupUnit per (day, kind, subject), ordered day by day and,
   within a day, test execution, then bug analytics, then test case analytics.
3. Chains bug analytics units of a day that may land on the same row (shared
   project name or project reference) so they run one after another.
4. Runs the chains through a bounded asyncio worker pool
   (asyncio.Semaphore + asyncio.gather). With concurrency 1 the units run one
   after another in that order, except that a chain runs as a block at the
   position of its first unit.

Failure policy:
- Fail-fast (default): the first failing unit stops units that have not yet
  started; running units finish, then the first error is re-raised.
- Continue-on-error (Settings.rollup_continue_on_error or the
  continue_on_error argument): every unit runs and failures are collected in
  the returned RollupReport. Pass raise_on_failure=True to get a
  RollupRunError carrying that report when anything failed.

Every write is a keyed overwrite, so retrying a failed range, or overlapping
two runs, is always safe.

Entry points:
- run_for_subject_and_day(unit)
- run_for_range(start_day, end_day)
- run_for_yesterday()
- run_for_last_n_days(n=7)

Usage:
    from rollup_engine.jobs import run_for_yesterday

    report = await run_for_yesterday()
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from rollup_engine.core.config import get_settings
from rollup_engine.core.exceptions import RollupRunError
from rollup_engine.models.enums import SummaryKind, UnitStatus
from rollup_engine.models.schemas import (
    BugSubject,
    ProjectSubject,
    RepositorySubject,
    RollupReport,
    RollupUnit,
    UnitFailure,
)
from rollup_engine.services.bug_analytics import populate_bug_analytics_daily
from rollup_engine.services.source_readers import (
    list_bug_subjects,
    list_project_subjects,
    list_repository_subjects,
)
from rollup_engine.services.test_case_analytics import populate_test_case_analytics
from rollup_engine.services.test_execution import populate_test_execution_summary
from rollup_engine.services.windows import get_last_n_days_range, get_yesterday, iter_days


logger = logging.getLogger(__name__)


# =============================================================================
# Units of Work
# =============================================================================


def build_units(
    days: List[date],
    projects: List[ProjectSubject],
    bug_subjects: List[BugSubject],
    repositories: List[RepositorySubject],
) -> List[RollupUnit]:
    """
    Expand days x subjects into the ordered list of units for a range run.

    Args:
        days: Calendar days in ascending order.
        projects: Subjects for test execution summaries.
        bug_subjects: Subjects for bug analytics.
        repositories: Subjects for test case analytics.

    Returns:
        List of RollupUnit, day-major.
    """
    units: List[RollupUnit] = []

    for day in days:
        for project in projects:
            units.append(
                RollupUnit(kind=SummaryKind.TEST_EXECUTION, day=day, projectId=project.projectId)
            )

        for subject in bug_subjects:
            units.append(
                RollupUnit(
                    kind=SummaryKind.BUG_ANALYTICS,
                    day=day,
                    project=subject.project,
                    projectId=subject.projectId,
                )
            )

        for repository in repositories:
            units.append(
                RollupUnit(
                    kind=SummaryKind.TEST_CASE_ANALYTICS,
                    day=day,
                    projectId=repository.projectId,
                    repositoryId=repository.repositoryId,
                )
            )

    return units


async def discover_subjects() -> Tuple[
    List[ProjectSubject], List[BugSubject], List[RepositorySubject]
]:
    """
    Enumerate the subjects of all three summary kinds.

    Raises:
        SourceReadError: If any enumeration query fails.
    """
    projects = await list_project_subjects()
    bug_subjects = await list_bug_subjects()
    repositories = await list_repository_subjects()

    logger.info(
        f"Discovered {len(projects)} projects, {len(bug_subjects)} bug subjects, "
        f"{len(repositories)} repositories"
    )
    return projects, bug_subjects, repositories


async def run_for_subject_and_day(unit: RollupUnit) -> None:
    """
    Run the aggregator matching the unit's kind. Errors propagate.

    Raises:
        ValueError: If the unit is missing the subject fields its kind needs.
        SourceReadError: If the aggregator cannot read its sources.
        SummaryWriteError: If the aggregator cannot write its row.
    """
    if unit.kind == SummaryKind.TEST_EXECUTION:
        if unit.projectId is None:
            raise ValueError(f"Unit {unit.label} has no projectId")
        await populate_test_execution_summary(unit.projectId, unit.day)

    elif unit.kind == SummaryKind.BUG_ANALYTICS:
        if not unit.project:
            raise ValueError(f"Unit {unit.label} has no project name")
        await populate_bug_analytics_daily(unit.project, unit.projectId, unit.day)

    elif unit.kind == SummaryKind.TEST_CASE_ANALYTICS:
        if unit.projectId is None or unit.repositoryId is None:
            raise ValueError(f"Unit {unit.label} needs both projectId and repositoryId")
        await populate_test_case_analytics(unit.projectId, unit.repositoryId, unit.day)

    else:
        raise ValueError(f"Unknown summary kind: {unit.kind}")


# =============================================================================
# Worker Pool
# =============================================================================


def build_unit_chains(units: List[RollupUnit]) -> List[List[int]]:
    """
    Group unit indices into chains that must run one after another.

    Bug analytics units of the same day that share a project name or a
    project reference can resolve to the same summary row, so they are chained
    (transitively) and run in unit order. Every other unit is a chain of one.

    Returns:
        Chains of unit indices, ordered by their first unit.
    """
    parent = list(range(len(units)))

    def _find(index: int) -> int:
        while parent[index] != index:
            parent[index] = parent[parent[index]]
            index = parent[index]
        return index

    owners: Dict[Tuple, int] = {}

    for index, unit in enumerate(units):
        if unit.kind != SummaryKind.BUG_ANALYTICS:
            continue

        keys = [(unit.day, 'project', unit.project)]
        if unit.projectId is not None:
            keys.append((unit.day, 'projectId', unit.projectId))

        for key in keys:
            owner = owners.setdefault(key, index)
            root, other = sorted((_find(owner), _find(index)))
            parent[other] = root

    chains: Dict[int, List[int]] = {}
    for index in range(len(units)):
        chains.setdefault(_find(index), []).append(index)

    return list(chains.values())


async def run_units(
    units: List[RollupUnit],
    start_day: date,
    end_day: date,
    concurrency: int,
    continue_on_error: bool,
) -> Tuple[RollupReport, Optional[BaseException]]:
    """
    Run units through a bounded worker pool.

    Each worker slot runs a whole chain from build_unit_chains, so units that
    may write the same summary row never overlap and the last writer is always
    the later unit.

    Returns:
        Tuple of (report, first error). The first error is None when every
        unit completed, and is only meaningful to fail-fast callers.
    """
    report = RollupReport(
        startDay=start_day,
        endDay=end_day,
        totalUnits=len(units),
        startedAt=datetime.now(),
    )
    statuses: List[UnitStatus] = [UnitStatus.SKIPPED] * len(units)
    failures: List[Tuple[int, UnitFailure]] = []
    first_error: Optional[BaseException] = None

    sem = asyncio.Semaphore(max(1, concurrency))
    stop = asyncio.Event()

    async def _run_chain(chain: List[int]) -> None:
        nonlocal first_error

        async with sem:
            for index in chain:
                if stop.is_set():
                    return

                unit = units[index]
                try:
                    await run_for_subject_and_day(unit)
                except Exception as e:
                    statuses[index] = UnitStatus.FAILED
                    failures.append(
                        (index, UnitFailure(unit=unit, errorType=type(e).__name__, error=str(e)))
                    )
                    if first_error is None:
                        first_error = e
                        if not continue_on_error:
                            logger.error(
                                f"Unit {unit.label} failed, not starting remaining units: {e}"
                            )
                    if not continue_on_error:
                        stop.set()
                    continue

                statuses[index] = UnitStatus.COMPLETED

    await asyncio.gather(*(_run_chain(chain) for chain in build_unit_chains(units)))

    report.unitStatuses = statuses
    report.completedUnits = statuses.count(UnitStatus.COMPLETED)
    report.skippedUnits = statuses.count(UnitStatus.SKIPPED)
    report.failures = [failure for _, failure in sorted(failures, key=lambda item: item[0])]
    report.finishedAt = datetime.now()

    return report, first_error


# =============================================================================
# Entry Points
# =============================================================================


async def run_for_range(
    start_day: date,
    end_day: date,
    continue_on_error: Optional[bool] = None,
    concurrency: Optional[int] = None,
    raise_on_failure: bool = False,
) -> RollupReport:
    """
    Recompute every summary for every subject and every day in [start, end].

    Args:
        start_day: First day, inclusive.
        end_day: Last day, inclusive.
        continue_on_error: Override Settings.rollup_continue_on_error.
        concurrency: Override Settings.rollup_concurrency.
        raise_on_failure: In continue-on-error mode, raise RollupRunError
            after all units ran if any failed.

    Returns:
        RollupReport. In fail-fast mode a report is only returned when no unit
        failed.

    Raises:
        ValueError: If start_day is after end_day (before any work is done).
        SourceReadError: If subject discovery fails.
        Exception: In fail-fast mode, the first unit's error.
        RollupRunError: In continue-on-error mode with raise_on_failure=True.
    """
    days = list(iter_days(start_day, end_day))

    settings = get_settings()
    if continue_on_error is None:
        continue_on_error = settings.rollup_continue_on_error
    if concurrency is None:
        concurrency = settings.rollup_concurrency

    logger.info(
        f"Starting analytics summary population for date range: "
        f"{start_day.isoformat()} to {end_day.isoformat()}"
    )

    projects, bug_subjects, repositories = await discover_subjects()
    units = build_units(days, projects, bug_subjects, repositories)

    report, first_error = await run_units(
        units,
        start_day,
        end_day,
        concurrency=concurrency,
        continue_on_error=continue_on_error,
    )

    if first_error is not None and not continue_on_error:
        logger.error(
            f"Analytics summary population aborted: "
            f"{report.completedUnits} completed, {report.skippedUnits} skipped"
        )
        raise first_error

    if report.failures:
        logger.warning(
            f"Completed analytics summary population with {len(report.failures)} failed "
            f"unit(s) out of {report.totalUnits}"
        )
        if raise_on_failure:
            raise RollupRunError(report)
    else:
        logger.info(
            f"Completed analytics summary population for date range: "
            f"{report.completedUnits} units"
        )

    return report


async def run_for_yesterday(
    continue_on_error: Optional[bool] = None,
    concurrency: Optional[int] = None,
    raise_on_failure: bool = False,
) -> RollupReport:
    """Recompute every summary for yesterday. Intended for the daily schedule."""
    yesterday = get_yesterday()
    return await run_for_range(
        yesterday,
        yesterday,
        continue_on_error=continue_on_error,
        concurrency=concurrency,
        raise_on_failure=raise_on_failure,
    )


async def run_for_last_n_days(
    n: Optional[int] = None,
    continue_on_error: Optional[bool] = None,
    concurrency: Optional[int] = None,
    raise_on_failure: bool = False,
) -> RollupReport:
    """
    Recompute every summary for today - n through today, inclusive.

    Args:
        n: Days to look back; defaults to Settings.recent_days_default (7).
            n = 0 covers today only.

    Raises:
        ValueError: If n is negative (before any work is done).
    """
    if n is None:
        n = get_settings().recent_days_default

    start_day, end_day = get_last_n_days_range(n)
    return await run_for_range(
        start_day,
        end_day,
        continue_on_error=continue_on_error,
        concurrency=concurrency,
        raise_on_failure=raise_on_failure,
    )
