"""
Tests for the test case analytics aggregator
(rollup_engine/services/test_case_analytics.py).
"""

from datetime import date, datetime
from typing import List
from unittest.mock import AsyncMock, patch

import pytest

from rollup_engine.models import CatalogRecord
from rollup_engine.services.test_case_analytics import (
    compute_test_case_analytics,
    populate_test_case_analytics,
)


MODULE = 'rollup_engine.services.test_case_analytics'


class TestComputeTestCaseAnalytics:

    def test_bucket_and_flag_tallies(
        self,
        sample_catalog_records: List[CatalogRecord],
        sample_day: date,
        fixed_now: datetime,
    ) -> None:
        row = compute_test_case_analytics(
            sample_catalog_records, 12, 3, sample_day, now=fixed_now
        )

        assert row.projectId == 12
        assert row.repositoryId == 3
        assert row.date == sample_day
        assert row.totalCases == 5
        assert row.automatedCases == 3
        assert row.manualCases == 2
        assert row.highPriorityCases == 2
        assert row.mediumPriorityCases == 1
        assert row.lowPriorityCases == 1
        assert row.regressionCases == 2
        assert row.lastUpdatedAt == fixed_now

    def test_unrecognised_priority_counts_in_total_only(
        self,
        sample_catalog_records: List[CatalogRecord],
        sample_day: date,
    ) -> None:
        row = compute_test_case_analytics(sample_catalog_records, 12, 3, sample_day)

        bucketed = row.highPriorityCases + row.mediumPriorityCases + row.lowPriorityCases
        assert bucketed == 4
        assert row.totalCases > bucketed

    def test_empty_catalog(self, sample_day: date) -> None:
        row = compute_test_case_analytics([], 12, 3, sample_day)

        assert row.totalCases == 0
        assert row.automatedCases == 0
        assert row.manualCases == 0

    def test_as_of_snapshot_is_cumulative(self, sample_day: date) -> None:
        """A case created last year still counts; deleted or future cases do not."""
        as_of = datetime(2026, 1, 12, 23, 59, 59, 999000)
        records = [
            CatalogRecord(testCaseId=1, createdAt=datetime(2025, 1, 1), updatedAt=datetime(2025, 1, 1)),
            CatalogRecord(testCaseId=2, createdAt=datetime(2026, 1, 13), updatedAt=datetime(2026, 1, 13)),
            CatalogRecord(
                testCaseId=3,
                createdAt=datetime(2025, 1, 1),
                updatedAt=datetime(2025, 1, 1),
                deletedAt=datetime(2025, 6, 1),
            ),
            CatalogRecord(testCaseId=4, createdAt=as_of, updatedAt=datetime(2026, 2, 1)),
        ]

        row = compute_test_case_analytics(records, 12, 3, sample_day, as_of=as_of)

        assert row.totalCases == 2


class TestPopulateTestCaseAnalytics:

    @pytest.mark.asyncio
    async def test_reads_catalog_as_of_day_end_and_upserts(
        self,
        sample_catalog_records: List[CatalogRecord],
        sample_day: date,
    ) -> None:
        fetch = AsyncMock(return_value=sample_catalog_records)
        upsert = AsyncMock(return_value=1)

        with patch(f'{MODULE}.fetch_catalog_records', new=fetch), \
                patch(f'{MODULE}.upsert_test_case_analytics', new=upsert):
            row = await populate_test_case_analytics(12, 3, sample_day)

        fetch.assert_awaited_once_with(3, datetime(2026, 1, 12, 23, 59, 59, 999000))
        upsert.assert_awaited_once_with(row)
        assert row.totalCases == 5
