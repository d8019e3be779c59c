"""
Bug analytics aggregator for the analytics rollup engine.

Computes one BugAnalyticsDaily row per (tracker project, day) from the issue
records mirrored from the tracker.

Same-day deltas (evaluated against the day window):
- bugsCreated: created in the window
- bugsResolved: resolved in the window and no longer open
- bugsClosed: resolved in the window with a status in the closed set
- bugsReopened: updated in the window, open, and carrying a resolved
  timestamp. This is an approximation: the tracker mirror keeps no status
  history, so an open issue that was once resolved and touched today is taken
  to have been reopened today.

Snapshots:
- openBugs: open and created or updated at or before the end of the day
- criticalBugs / highPriorityBugs / mediumPriorityBugs / lowPriorityBugs: open
  issues per literal tracker label (Critical, High, Medium, Low). Unlike the
  catalog bucket classifier, Critical is not folded into High.

avgResolutionHours is the mean of (resolvedDate - createdDate) in hours over
issues resolved in the window that carry both timestamps, None when there are
none.
"""

import logging
from datetime import date, datetime
from typing import Collection, Dict, Iterable, Optional

from rollup_engine.core.config import get_settings
from rollup_engine.models.enums import BugPriority
from rollup_engine.models.schemas import BugAnalyticsDaily, IssueRecord
from rollup_engine.services.source_readers import fetch_issue_records
from rollup_engine.services.summary_store import upsert_bug_analytics_daily
from rollup_engine.services.windows import DayWindow, get_day_window


logger = logging.getLogger(__name__)


SECONDS_PER_HOUR = 3600.0


def _in_scope(issue: IssueRecord, project: str, project_id: Optional[int]) -> bool:
    if issue.project != project:
        return False
    return project_id is None or issue.projectId == project_id


def compute_bug_analytics(
    issues: Iterable[IssueRecord],
    project: str,
    project_id: Optional[int],
    window: DayWindow,
    closed_statuses: Collection[str],
    now: Optional[datetime] = None,
) -> BugAnalyticsDaily:
    """
    Aggregate issue records into a BugAnalyticsDaily row.

    Pure function. Issues outside the subject scope (other project name, or
    another numeric reference when one is given) are ignored.

    Args:
        issues: Candidate issue records.
        project: Tracker project name of the subject.
        project_id: Numeric project reference, or None to match any.
        window: Day window being summarised.
        closed_statuses: Status labels counted by bugsClosed (case-sensitive).
        now: Value for lastUpdatedAt (defaults to datetime.now()).

    Returns:
        BugAnalyticsDaily

    Example:
        An issue created at 09:00 and resolved at 15:00 the same day, now
        closed, gives bugsCreated=1, bugsResolved=1 and avgResolutionHours=6.0.
    """
    bugs_created = 0
    bugs_resolved = 0
    bugs_closed = 0
    bugs_reopened = 0
    open_bugs = 0
    priority_counts: Dict[BugPriority, int] = {priority: 0 for priority in BugPriority}
    known_priorities = {priority.value: priority for priority in BugPriority}
    total_resolution_hours = 0.0
    resolution_count = 0

    for issue in issues:
        if not _in_scope(issue, project, project_id):
            continue

        resolved_today = window.contains(issue.resolvedDate)

        if window.contains(issue.createdDate):
            bugs_created += 1

        if resolved_today and not issue.isOpen:
            bugs_resolved += 1

        if resolved_today and issue.status in closed_statuses:
            bugs_closed += 1

        if window.contains(issue.updatedDate) and issue.isOpen and issue.resolvedDate is not None:
            bugs_reopened += 1

        if issue.isOpen:
            if window.is_on_or_before_end(issue.createdDate) or window.is_on_or_before_end(issue.updatedDate):
                open_bugs += 1

            priority = known_priorities.get(issue.priority)
            if priority is not None:
                priority_counts[priority] += 1

        if resolved_today and issue.createdDate is not None:
            elapsed = issue.resolvedDate - issue.createdDate
            total_resolution_hours += elapsed.total_seconds() / SECONDS_PER_HOUR
            resolution_count += 1

    avg_resolution_hours = (
        total_resolution_hours / resolution_count if resolution_count > 0 else None
    )

    return BugAnalyticsDaily(
        project=project,
        projectId=project_id,
        date=window.day,
        bugsCreated=bugs_created,
        bugsResolved=bugs_resolved,
        bugsClosed=bugs_closed,
        bugsReopened=bugs_reopened,
        avgResolutionHours=avg_resolution_hours,
        openBugs=open_bugs,
        criticalBugs=priority_counts[BugPriority.CRITICAL],
        highPriorityBugs=priority_counts[BugPriority.HIGH],
        mediumPriorityBugs=priority_counts[BugPriority.MEDIUM],
        lowPriorityBugs=priority_counts[BugPriority.LOW],
        lastUpdatedAt=now or datetime.now(),
    )


async def populate_bug_analytics_daily(
    project: str,
    project_id: Optional[int],
    day: date,
) -> BugAnalyticsDaily:
    """
    Recompute and persist the bug analytics row of a tracker project for a day.

    The row is written under whichever candidate key (project reference or
    project name) already owns it; see summary_store.resolve_bug_summary_key.

    Raises:
        SourceReadError: If the issues cannot be read.
        SummaryWriteError: If the row cannot be written.
    """
    try:
        settings = get_settings()
        window = get_day_window(day)
        issues = await fetch_issue_records(project, project_id, window)

        record = compute_bug_analytics(
            issues,
            project,
            project_id,
            window,
            closed_statuses=frozenset(settings.bug_closed_statuses),
        )
        summary_key = await upsert_bug_analytics_daily(record)

        logger.info(
            f"Populated bug analytics daily for project {project} on {day.isoformat()} "
            f"(key: {summary_key.value})"
        )
        return record
    except Exception:
        logger.exception(
            f"Error populating bug analytics daily for project {project} on {day.isoformat()}"
        )
        raise
