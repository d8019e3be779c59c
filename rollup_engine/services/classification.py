"""
Classifiers for the analytics rollup engine.

Two pure functions with no I/O:

classify_run_outcome:
    Assigns one RunOutcome to a test run from its result entries. The rules are
    evaluated in order and the first match wins:

    1. No result entries        -> NO_RESULT (no outcome bucket)
    2. Any entry failed         -> FAILED
    3. Any entry blocked        -> BLOCKED
    4. Every entry skipped      -> SKIPPED
    5. Every entry passed       -> PASSED
    6. Anything else            -> MIXED (e.g. passed + inProgress)

    FAILED therefore beats BLOCKED, and a run with one failed entry among many
    passed entries is FAILED.

classify_priority_bucket:
    Folds a catalog priority into HIGH / MEDIUM / LOW. "critical" and "high"
    both land in HIGH. Matching is case-insensitive after trimming whitespace.
    Anything else, including None and numeric codes, yields None so the case is
    counted in totals but in no bucket.

Note that bug analytics does NOT use classify_priority_bucket: it counts the
literal tracker labels (see BugPriority), where "Critical" and "High" are
separate columns.
"""

from typing import Any, Dict, Iterable, Optional

from rollup_engine.models.enums import PriorityBucket, ResultStatus, RunOutcome
from rollup_engine.models.schemas import ResultEntry


# Lower-cased catalog priority label -> bucket
PRIORITY_BUCKET_MAP: Dict[str, PriorityBucket] = {
    'critical': PriorityBucket.HIGH,
    'high': PriorityBucket.HIGH,
    'medium': PriorityBucket.MEDIUM,
    'low': PriorityBucket.LOW,
}


def _status_of(entry: Any) -> ResultStatus:
    if isinstance(entry, ResultEntry):
        return entry.status
    return ResultStatus(entry)


def classify_run_outcome(results: Iterable[Any]) -> RunOutcome:
    """
    Classify a test run from its result entries.

    Args:
        results: ResultEntry objects, ResultStatus values, or raw status
            strings. Mixed input is accepted.

    Returns:
        RunOutcome: Exactly one outcome per run.

    Raises:
        ValueError: If a raw status string is not a known ResultStatus.

    Example:
        >>> classify_run_outcome(['passed', 'failed', 'blocked'])
        <RunOutcome.FAILED: 'failed'>
        >>> classify_run_outcome([])
        <RunOutcome.NO_RESULT: 'no_result'>
    """
    statuses = [_status_of(entry) for entry in results]

    if not statuses:
        return RunOutcome.NO_RESULT

    if ResultStatus.FAILED in statuses:
        return RunOutcome.FAILED

    if ResultStatus.BLOCKED in statuses:
        return RunOutcome.BLOCKED

    if all(status == ResultStatus.SKIPPED for status in statuses):
        return RunOutcome.SKIPPED

    if all(status == ResultStatus.PASSED for status in statuses):
        return RunOutcome.PASSED

    return RunOutcome.MIXED


def classify_priority_bucket(priority: Any) -> Optional[PriorityBucket]:
    """
    Map a catalog priority to its bucket.

    Args:
        priority: Raw priority value. Only strings are recognised.

    Returns:
        The PriorityBucket, or None when the value is missing or unrecognised.

    Example:
        >>> classify_priority_bucket(' Critical ')
        <PriorityBucket.HIGH: 'high'>
        >>> classify_priority_bucket('2') is None
        True
    """
    if not isinstance(priority, str):
        return None

    return PRIORITY_BUCKET_MAP.get(priority.strip().lower())
