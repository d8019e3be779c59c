"""
Scheduled jobs for the analytics rollup engine.

This module exposes the entry points a scheduler or an operator command calls
to recompute the daily summary tables:

- run_for_yesterday(): the daily job; recomputes yesterday
- run_for_last_n_days(n=7): catch-up; recomputes today - n through today
- run_for_range(start_day, end_day): backfill of an inclusive range
- run_for_subject_and_day(unit): a single (kind, subject, day)

Idempotency:
-----------
Every summary row is written with a keyed overwrite, so re-running any entry
point for an overlapping range converges on the same rows. There is no job
state table; a failed run is retried by simply running it again.

Usage Examples:
---------------
    from rollup_engine.jobs import run_for_yesterday, run_for_range

    report = await run_for_yesterday()

    # Backfill January, collecting failures instead of stopping
    report = await run_for_range(
        date(2026, 1, 1),
        date(2026, 1, 31),
        continue_on_error=True,
    )
"""

from rollup_engine.jobs.populate_analytics import (
    build_unit_chains,
    build_units,
    discover_subjects,
    run_units,
    run_for_subject_and_day,
    run_for_range,
    run_for_yesterday,
    run_for_last_n_days,
)


__all__ = [
    'build_unit_chains',
    'build_units',
    'discover_subjects',
    'run_units',
    'run_for_subject_and_day',
    'run_for_range',
    'run_for_yesterday',
    'run_for_last_n_days',
]
