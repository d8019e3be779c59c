'''
Analytics Rollup Engine Test Suite

Test Modules:
-------------
- test_classification.py: Run-outcome rule order, priority buckets
- test_windows.py: Day window bounds, inclusive date ranges
- test_test_execution.py: Run buckets, entry tallies, average over partial data
- test_bug_analytics.py: Same-day deltas, snapshots, literal priority labels
- test_test_case_analytics.py: As-of-day catalog snapshot
- test_source_readers.py: Row parsing and SourceReadError translation
- test_summary_store.py: Dual-key resolution, keyed upserts, read-back
- test_populate_analytics.py: Units of work, fail-fast and continue-on-error
- test_core.py: Settings, pool lifecycle, exceptions, logging

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v

Test Dependencies:
------------------
- pytest
- pytest-asyncio

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

# Package is empty by design - all tests are in individual modules
# This file enables pytest discovery of the tests directory

__all__ = []
