"""
Analytics Rollup Engine Package.

Batch service that recomputes idempotent daily summary records (test
execution, bug analytics, test case analytics) from live test-management data.

Subpackages:
    - core: Configuration, database pool, exceptions and logging
    - models: Pydantic schemas and enums
    - services: Classifiers, source readers, aggregators and the summary store
    - jobs: Scheduler entry points (yesterday, last N days, range)
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
