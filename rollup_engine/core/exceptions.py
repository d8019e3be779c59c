"""
Exception hierarchy for the analytics rollup engine.

Source readers, the summary store and the scheduler raise these types so a
caller (a scheduling trigger or an operator command) can tell a storage read
failure from a write failure without inspecting driver-specific errors.

Usage:
    from rollup_engine.core.exceptions import SourceReadError

    try:
        rows = await conn.fetch(query, project_id)
    except asyncpg.PostgresError as exc:
        raise SourceReadError("execution records", str(exc)) from exc
"""

from typing import Any, Optional


class RollupError(Exception):
    """Base class for every error raised by the rollup engine."""


class SourceReadError(RollupError):
    """Raised when a source query fails or returns a row that cannot be parsed.

    Args:
        source: Human-readable name of the source domain
            (e.g. "execution records", "issue records").
        detail: Driver or validation message.
    """

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"Failed to read {source}: {detail}")


class SummaryWriteError(RollupError):
    """Raised when a summary upsert fails.

    Args:
        table: Summary table that was being written.
        key: The composite key of the row, for logs.
        detail: Driver message.
    """

    def __init__(self, table: str, key: Any, detail: str) -> None:
        self.table = table
        self.key = key
        self.detail = detail
        super().__init__(f"Failed to write {table} {key}: {detail}")


class SummaryKeyConflictError(SummaryWriteError):
    """Raised when a summary upsert trips a unique constraint other than the
    one it targeted (the row exists under the alternate key)."""

    def __init__(self, table: str, key: Any, detail: str, constraint: Optional[str] = None) -> None:
        self.constraint = constraint
        super().__init__(table, key, detail)


class RollupRunError(RollupError):
    """Raised by a continue-on-error batch run when the caller asked for
    failures to be raised after all units completed. Carries the full report."""

    def __init__(self, report: Any) -> None:
        self.report = report
        super().__init__(
            f"Rollup finished with {len(report.failures)} failed unit(s) "
            f"out of {report.totalUnits}"
        )
